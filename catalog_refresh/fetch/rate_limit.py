"""Fixed-interval pacing for outbound catalog requests."""
import asyncio
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class Pacer:
    """Spaces scheduler ticks at least `interval` seconds apart."""

    def __init__(self, interval: float):
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self.interval = interval
        self._last_tick: Optional[float] = None
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        """Wait until the next tick is due."""
        async with self._lock:
            loop = asyncio.get_running_loop()
            if self._last_tick is not None:
                elapsed = loop.time() - self._last_tick
                if elapsed < self.interval:
                    await asyncio.sleep(self.interval - elapsed)
            self._last_tick = loop.time()
