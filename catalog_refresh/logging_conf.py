"""Logging setup: console plus a daily import log."""
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

from catalog_refresh.config import config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None, log_file: Optional[Path] = None) -> None:
    """Configure root logging with framework logs suppressed to WARNING."""
    root = logging.getLogger()
    root.setLevel((level or config.LOG_LEVEL).upper())

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(console)

    log_path = log_file or Path(config.LOG_FILE)
    file_handler = TimedRotatingFileHandler(log_path, when="midnight", encoding="utf-8")
    file_handler.suffix = "%Y-%m-%d"
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(file_handler)

    # Suppress framework logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
