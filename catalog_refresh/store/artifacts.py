"""Raw snapshot and problem document files."""
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import aiofiles
import aiofiles.os
import orjson

from catalog_refresh.config import config
from catalog_refresh.mapping.models import ProblemDocument

logger = logging.getLogger(__name__)

EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


class ArtifactStore:
    """Writes both artifacts as pretty-printed JSON.

    The problem document's modification time is the last successful refresh.
    Writes go straight to the target file, so a concurrent reader may see a
    partially written document.
    """

    def __init__(self, raw_path: Optional[Path] = None, problem_path: Optional[Path] = None):
        self.raw_path = Path(raw_path or config.RAW_FILE)
        self.problem_path = Path(problem_path or config.PROBLEM_FILE)

    async def write_raw(self, makes: list[dict]) -> None:
        await self._write_json(self.raw_path, makes)
        logger.info(f"Saved raw catalog to {self.raw_path}")

    async def read_raw(self) -> list[dict]:
        async with aiofiles.open(self.raw_path, "rb") as f:
            return orjson.loads(await f.read())

    async def write_problem(self, problem: ProblemDocument) -> None:
        await self._write_json(self.problem_path, problem.to_json_dict())
        logger.info(f"Saved problem with {len(problem.options)} options to {self.problem_path}")

    async def last_modified(self) -> datetime:
        """Modification time of the problem document, epoch when missing."""
        try:
            stats = await aiofiles.os.stat(self.problem_path)
        except FileNotFoundError:
            return EPOCH
        return datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc)

    async def _write_json(self, path: Path, data: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "wb") as f:
            await f.write(orjson.dumps(data, option=orjson.OPT_INDENT_2))
