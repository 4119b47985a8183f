"""Import run history as JSONL."""
import json
import time
from pathlib import Path
from typing import Optional
import aiofiles

from catalog_refresh.config import config
from catalog_refresh.fetch.redact import redact_json
from catalog_refresh.jobs.run_control import ImportJob


class MetricsExporter:
    """Appends one line per finished import run."""

    def __init__(self, runs_file: Optional[Path] = None):
        self.runs_file = Path(runs_file or config.RUNS_FILE)

    async def export_run(self, job: ImportJob, audit_stats: Optional[dict[str, int]] = None) -> None:
        """Export the summary of a finished job."""
        metrics = {
            "ts": time.time(),
            **job.get_summary(),
        }
        if audit_stats is not None:
            metrics["statuses"] = audit_stats

        line = json.dumps(redact_json(metrics)) + "\n"
        self.runs_file.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(self.runs_file, "a") as f:
            await f.write(line)
