"""SQLite audit trail of every catalog request."""
import aiosqlite
import logging
from pathlib import Path
from typing import Optional

from catalog_refresh.config import config

logger = logging.getLogger(__name__)


class RequestAudit:
    """Records (run, sequence number, status, URL) for each completed request."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path or config.AUDIT_DB

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS crawl_requests (
                    run_id TEXT NOT NULL,
                    seq INTEGER NOT NULL,
                    status TEXT NOT NULL,
                    url TEXT NOT NULL,
                    recorded_at TIMESTAMP,
                    PRIMARY KEY (run_id, seq)
                )
                """
            )
            await db.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_run_status ON crawl_requests(run_id, status)
                """
            )
            await db.commit()
            logger.info(f"Audit database initialized at {self.db_path}")

    async def record(self, run_id: str, seq: int, status: Optional[int], url: str) -> None:
        """Record one completed request. A missing status means a transport failure."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT OR REPLACE INTO crawl_requests (run_id, seq, status, url, recorded_at)
                VALUES (?, ?, ?, ?, datetime('now'))
                """,
                (run_id, seq, str(status) if status is not None else "error", url),
            )
            await db.commit()

    async def get_stats(self, run_id: str) -> dict[str, int]:
        """Request counts of a run grouped by status."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                """
                SELECT status, COUNT(*) FROM crawl_requests
                WHERE run_id = ?
                GROUP BY status
                """,
                (run_id,),
            )
            return {row[0]: row[1] for row in await cursor.fetchall()}
