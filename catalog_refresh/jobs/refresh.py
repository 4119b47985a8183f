"""Single-flight refresh of the problem document."""
import asyncio
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Awaitable, Callable, Optional

import httpx

from catalog_refresh.config import config
from catalog_refresh.exceptions import CatalogError
from catalog_refresh.fetch.client import CatalogClient
from catalog_refresh.jobs.importer import CatalogImporter
from catalog_refresh.jobs.metrics_exporter import MetricsExporter
from catalog_refresh.jobs.run_control import ImportJob, JobState
from catalog_refresh.mapping.problem import load_template, map_catalog
from catalog_refresh.store.artifacts import ArtifactStore
from catalog_refresh.store.audit import RequestAudit

logger = logging.getLogger(__name__)

ImportCatalog = Callable[[], Awaitable[list[dict]]]


class RefreshService:
    """Decides when to crawl and persists the result.

    At most one crawl runs at a time: triggers that arrive while one is in
    progress are dropped, not queued. A failed crawl leaves the previous
    artifacts untouched; the next periodic check retries.
    """

    def __init__(
        self,
        store: Optional[ArtifactStore] = None,
        import_catalog: Optional[ImportCatalog] = None,
        template_path: Optional[Path] = None,
        staleness_threshold: Optional[float] = None,
        check_interval: Optional[float] = None,
        audit: Optional[RequestAudit] = None,
        history: Optional[MetricsExporter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        tick_seconds: Optional[float] = None,
    ):
        self.store = store or ArtifactStore()
        self.import_catalog = import_catalog or self._import_from_service
        self.template_path = Path(template_path or config.TEMPLATE_FILE)
        self.staleness_threshold = (
            config.staleness_threshold_seconds if staleness_threshold is None else staleness_threshold
        )
        self.check_interval = config.check_interval_seconds if check_interval is None else check_interval
        self.audit = audit
        self.history = history
        self.transport = transport
        self.tick_seconds = tick_seconds

        self.refreshing = False
        self.crawls_started = 0
        self.current_job: Optional[ImportJob] = None
        self.last_error: Optional[Exception] = None
        self._current: Optional[asyncio.Task] = None
        self._periodic: Optional[asyncio.Task] = None

    @property
    def state(self) -> JobState:
        return JobState.RUNNING if self.refreshing else JobState.IDLE

    async def last_refresh_time(self) -> datetime:
        return await self.store.last_modified()

    def trigger_refresh(self) -> bool:
        """Start a refresh in the background unless one is running."""
        if self.refreshing:
            logger.info("Refresh already running, ignoring trigger")
            return False
        loop = asyncio.get_running_loop()
        self._current = loop.create_task(self._refresh())
        self.refreshing = True
        self.crawls_started += 1
        return True

    async def check_staleness(self) -> bool:
        """Trigger a refresh when the document is older than the threshold."""
        last_import = await self.last_refresh_time()
        age = (datetime.now(timezone.utc) - last_import).total_seconds()
        if age > self.staleness_threshold and not self.refreshing:
            logger.info(f"Problem document is {age / 3600:.1f}h old, refreshing")
            return self.trigger_refresh()
        return False

    async def wait_for_refresh(self) -> None:
        """Wait for the refresh in progress, if any."""
        if self._current:
            await asyncio.shield(self._current)

    async def run_periodic(self) -> None:
        """Check staleness now and then every check interval, forever."""
        while True:
            try:
                await self.check_staleness()
            except OSError as e:
                logger.error(f"Staleness check failed: {e}")
            await asyncio.sleep(self.check_interval)

    def start(self) -> None:
        if self._periodic is None or self._periodic.done():
            self._periodic = asyncio.create_task(self.run_periodic())

    async def stop(self) -> None:
        for task in (self._periodic, self._current):
            if task and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._periodic = None

    async def _refresh(self) -> None:
        start_time = time.monotonic()
        try:
            makes = await self.import_catalog()
            template = await load_template(self.template_path)
            problem = map_catalog(makes, template)
            await self.store.write_raw(makes)
            await self.store.write_problem(problem)
            self.last_error = None

            duration = int(time.monotonic() - start_time)
            logger.info(f"Duration: {duration // 60}M:{duration % 60}s")
        except CatalogError as e:
            self.last_error = e
            logger.error(f"import failed. \n{e}")
        except Exception as e:
            self.last_error = e
            logger.error(f"import failed unexpectedly: {e}", exc_info=True)
        finally:
            self.refreshing = False
            self.current_job = None

    async def _import_from_service(self) -> list[dict]:
        """Crawl the live catalog service."""
        job = ImportJob()
        self.current_job = job
        async with CatalogClient(transport=self.transport, audit=self.audit, run_id=job.run_id) as client:
            importer = CatalogImporter(client, tick_seconds=self.tick_seconds, job=job)
            try:
                return await importer.run()
            finally:
                await self._export_history(job)

    async def _export_history(self, job: ImportJob) -> None:
        if not self.history:
            return
        stats = None
        try:
            if self.audit:
                stats = await self.audit.get_stats(job.run_id)
            await self.history.export_run(job, stats)
        except Exception as e:
            logger.warning(f"Failed to export run history for {job.run_id}: {e}")
