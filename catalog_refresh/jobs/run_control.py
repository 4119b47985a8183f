"""Import job state: lifecycle and request counters of one crawl."""
import time
import logging
import uuid
from enum import Enum
from typing import Optional
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class JobState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class ImportJob:
    """A single crawl run."""

    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    state: JobState = JobState.IDLE

    # Internal state
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    dispatched: int = 0
    completed: int = 0
    not_found: int = 0
    error: Optional[str] = None

    @property
    def in_flight(self) -> int:
        return self.dispatched - self.completed

    def start(self) -> None:
        """Move Idle -> Running."""
        if self.state is not JobState.IDLE:
            raise RuntimeError(f"Import job {self.run_id} already {self.state.value}")
        self.state = JobState.RUNNING
        self.start_time = time.time()
        logger.info(f"Run ID: {self.run_id}")

    def record_dispatch(self) -> None:
        self.dispatched += 1

    def record_completion(self) -> None:
        self.completed += 1

    def record_not_found(self) -> None:
        self.not_found += 1

    def mark_succeeded(self) -> None:
        self.state = JobState.SUCCEEDED
        self.end_time = time.time()

    def mark_failed(self, reason: str) -> None:
        self.state = JobState.FAILED
        self.error = reason
        self.end_time = time.time()

    def elapsed_seconds(self) -> float:
        if self.start_time is None:
            return 0.0
        return (self.end_time or time.time()) - self.start_time

    def format_duration(self) -> str:
        """Duration as minutes and seconds, e.g. ``12M:5s``."""
        elapsed = int(self.elapsed_seconds())
        return f"{elapsed // 60}M:{elapsed % 60}s"

    def get_summary(self) -> dict:
        """Get summary statistics."""
        elapsed = self.elapsed_seconds()
        return {
            "run_id": self.run_id,
            "state": self.state.value,
            "elapsed_seconds": round(elapsed, 2),
            "dispatched": self.dispatched,
            "completed": self.completed,
            "not_found": self.not_found,
            "rate": round(self.completed / elapsed, 2) if elapsed > 0 else 0.0,
            "error": self.error,
        }
