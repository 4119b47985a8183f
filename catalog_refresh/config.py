"""Configuration management from environment variables."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file
load_dotenv()

# Project root
PROJECT_ROOT = Path(__file__).parent.parent
PACKAGE_DIR = Path(__file__).parent
DATA_DIR = Path(os.getenv("DATA_DIR", str(PROJECT_ROOT / "data")))

# Ensure directories exist
DATA_DIR.mkdir(parents=True, exist_ok=True)

SECOND = 1
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE


class Config:
    """Application configuration."""

    # Edmunds vehicle API
    EDMUNDS_BASE_URL: str = os.getenv("EDMUNDS_BASE_URL", "https://api.edmunds.com")
    EDMUNDS_API_KEY: str | None = os.getenv("EDMUNDS_API_KEY")
    CATALOG_YEAR: int = int(os.getenv("CATALOG_YEAR", "2016"))

    # Crawl pacing
    TIME_BETWEEN_REQ_MS: int = int(os.getenv("TIME_BETWEEN_REQ_MS", "500"))
    TIMEOUT: int = int(os.getenv("TIMEOUT", "20"))

    # Refresh schedule
    MAX_TIME_BETWEEN_IMPORTS_HOURS: float = float(os.getenv("MAX_TIME_BETWEEN_IMPORTS_HOURS", "24"))
    TIME_BETWEEN_CHECKS_MINUTES: float = float(os.getenv("TIME_BETWEEN_CHECKS_MINUTES", "60"))

    # Artifacts
    RAW_FILE: Path = Path(os.getenv("RAW_FILE", str(DATA_DIR / "cars_raw.json")))
    PROBLEM_FILE: Path = Path(os.getenv("PROBLEM_FILE", str(DATA_DIR / "auto.json")))
    TEMPLATE_FILE: Path = Path(
        os.getenv("TEMPLATE_FILE", str(PACKAGE_DIR / "templates" / "problem.template.json"))
    )
    AUDIT_DB: Path = Path(os.getenv("AUDIT_DB", str(DATA_DIR / "audit.db")))
    RUNS_FILE: Path = Path(os.getenv("RUNS_FILE", str(DATA_DIR / "import_runs.jsonl")))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE", "import.log")

    # API
    API_KEY: str | None = os.getenv("API_KEY")
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3000"))

    @property
    def tick_seconds(self) -> float:
        return self.TIME_BETWEEN_REQ_MS / 1000

    @property
    def staleness_threshold_seconds(self) -> float:
        return self.MAX_TIME_BETWEEN_IMPORTS_HOURS * HOUR

    @property
    def check_interval_seconds(self) -> float:
        return self.TIME_BETWEEN_CHECKS_MINUTES * MINUTE

    @classmethod
    def validate(cls, require_api_key: bool = True) -> None:
        """Validate required configuration."""
        errors = []
        if require_api_key and not cls.EDMUNDS_API_KEY:
            errors.append("EDMUNDS_API_KEY is required")
        if cls.TIME_BETWEEN_REQ_MS <= 0:
            errors.append("TIME_BETWEEN_REQ_MS must be positive")
        if cls.MAX_TIME_BETWEEN_IMPORTS_HOURS <= 0:
            errors.append("MAX_TIME_BETWEEN_IMPORTS_HOURS must be positive")
        if cls.TIME_BETWEEN_CHECKS_MINUTES <= 0:
            errors.append("TIME_BETWEEN_CHECKS_MINUTES must be positive")
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")


config = Config()
