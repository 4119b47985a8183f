"""Paced FIFO work queue whose tasks may enqueue follow-up tasks."""
import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional

from catalog_refresh.exceptions import CrawlAborted
from catalog_refresh.fetch.rate_limit import Pacer
from catalog_refresh.jobs.run_control import ImportJob

logger = logging.getLogger(__name__)

Fetch = Callable[[str], Awaitable[Optional[Any]]]


@dataclass
class Task:
    """A deferred fetch plus the continuation that consumes its payload.

    ``on_result`` receives the decoded payload (``None`` for a 404) and
    returns the follow-up tasks to enqueue, if any.
    """

    path: str
    on_result: Callable[[Optional[Any]], Optional[Iterable["Task"]]]
    label: str = ""


class WorkQueueScheduler:
    """Dispatches at most one task per tick until the queue is drained.

    Drained means the queue is empty and every dispatched request has
    completed. Completions wake the run loop, since they are what produce the
    next wave of tasks.
    """

    def __init__(self, fetch: Fetch, tick_seconds: float, job: Optional[ImportJob] = None):
        self._fetch = fetch
        self.queue: deque[Task] = deque()
        self.pacer = Pacer(tick_seconds)
        self.job = job or ImportJob()
        self.aborted = False
        self.error: Optional[BaseException] = None
        self._progress = asyncio.Event()
        self._in_flight: set[asyncio.Task] = set()

    @property
    def dispatched(self) -> int:
        return self.job.dispatched

    @property
    def completed(self) -> int:
        return self.job.completed

    def enqueue(self, task: Task) -> bool:
        """Append a task at the tail. Refused once aborted."""
        if self.aborted:
            logger.debug(f"Ignoring task after abort: {task.label or task.path}")
            return False
        self.queue.append(task)
        return True

    def is_drained(self) -> bool:
        return not self.queue and self.job.dispatched == self.job.completed

    def tick(self) -> bool:
        """Pop and dispatch one task. Returns whether a task was dispatched."""
        if self.aborted or not self.queue:
            return False
        task = self.queue.popleft()
        self.job.record_dispatch()
        pending = asyncio.create_task(self._execute(task))
        self._in_flight.add(pending)
        pending.add_done_callback(self._in_flight.discard)
        return True

    def abort(self, error: BaseException) -> None:
        """Stop dispatching, drop queued tasks and ignore further responses."""
        if self.aborted:
            return
        self.aborted = True
        self.error = error
        dropped = len(self.queue)
        self.queue.clear()
        logger.error(f"Error occurred: {error}")
        logger.info(f"number of requests: {self.job.dispatched} (dropped {dropped} queued tasks)")
        self._progress.set()

    async def run(self) -> None:
        """Tick until drained. Raises CrawlAborted after an abort."""
        try:
            while not self.aborted:
                if self.queue:
                    await self.pacer.wait()
                    self.tick()
                    continue
                if self.is_drained():
                    break
                self._progress.clear()
                await self._progress.wait()

            # Responses already in flight still complete; their continuations are skipped.
            while self.job.in_flight > 0:
                self._progress.clear()
                await self._progress.wait()
        except asyncio.CancelledError:
            self.abort(CrawlAborted("cancelled"))
            for pending in list(self._in_flight):
                pending.cancel()
            raise

        if self.aborted:
            if isinstance(self.error, CrawlAborted):
                raise self.error
            raise CrawlAborted(str(self.error), cause=self.error)

    async def _execute(self, task: Task) -> None:
        try:
            try:
                payload = await self._fetch(task.path)
            finally:
                self.job.record_completion()
            if self.aborted:
                logger.debug(f"Discarding response after abort: {task.label or task.path}")
                return
            for follow_up in task.on_result(payload) or ():
                self.enqueue(follow_up)
        except Exception as e:
            self.abort(e)
        finally:
            self._progress.set()
