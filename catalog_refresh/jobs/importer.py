"""Crawl of the Edmunds catalog: makes -> models -> first style -> rating."""
import asyncio
import logging
from functools import partial
from typing import Any, Callable, Optional

from catalog_refresh.config import config
from catalog_refresh.exceptions import CatalogError, CrawlAborted
from catalog_refresh.fetch.client import CatalogClient
from catalog_refresh.fetch.endpoints import make_model_listing_path, rating_path, styles_path
from catalog_refresh.jobs.run_control import ImportJob
from catalog_refresh.jobs.scheduler import Task, WorkQueueScheduler

logger = logging.getLogger(__name__)

# Sub-fields too large to keep in the snapshot
STYLE_DROPPED_FIELDS = ("colors",)
RATING_DROPPED_FIELDS = ("reviews",)


class CatalogImporter:
    """Builds the catalog tree for one year.

    The tree is the listing's ``makes`` array, with the first style of each
    model stored under ``model["years"][0]["styles"]`` and its rating under
    ``style["rating"]``. Any fatal request error discards the whole tree.
    """

    def __init__(
        self,
        client: CatalogClient,
        year: Optional[int] = None,
        tick_seconds: Optional[float] = None,
        api_key: Optional[str] = None,
        job: Optional[ImportJob] = None,
    ):
        self.client = client
        self.year = year or config.CATALOG_YEAR
        self.tick_seconds = config.tick_seconds if tick_seconds is None else tick_seconds
        self.api_key = api_key
        self.job = job or ImportJob()
        self.scheduler: Optional[WorkQueueScheduler] = None
        self._makes: Optional[list[dict]] = None

    async def run(
        self,
        on_success: Optional[Callable[[list[dict]], Any]] = None,
        on_failure: Optional[Callable[[CatalogError], Any]] = None,
    ) -> list[dict]:
        """Crawl the catalog. Returns the makes tree or raises CrawlAborted."""
        self.job.start()
        logger.info(f"Start to import data for {self.year}.")
        self._makes = None
        self.scheduler = WorkQueueScheduler(self.client.fetch, self.tick_seconds, job=self.job)
        self.scheduler.enqueue(
            Task(
                path=make_model_listing_path(self.year, self.api_key),
                on_result=self._on_listing,
                label=f"makes/{self.year}",
            )
        )

        try:
            await self.scheduler.run()
        except CrawlAborted as e:
            self._makes = None
            self.job.mark_failed(e.reason)
            logger.error(f"Import failed after {self.job.dispatched} requests: {e.reason}")
            if on_failure:
                on_failure(e)
            raise
        except asyncio.CancelledError:
            self._makes = None
            self.job.mark_failed("cancelled")
            logger.warning(f"Import cancelled after {self.job.dispatched} requests")
            if on_failure:
                on_failure(CrawlAborted("cancelled"))
            raise

        makes = self._makes or []
        self.job.mark_succeeded()
        logger.info(f"Import done in {self.job.format_duration()}.")
        logger.info(f"number of requests: {self.job.dispatched}")
        if on_success:
            on_success(makes)
        return makes

    def _on_listing(self, listing: Optional[dict]) -> list[Task]:
        if not isinstance(listing, dict) or not isinstance(listing.get("makes"), list):
            raise CrawlAborted("Error obtaining car models")

        self._makes = listing["makes"]
        tasks = []
        for make in self._makes:
            for model in make.get("models") or []:
                tasks.append(self._styles_task(make, model))
        logger.info(f"Listed {len(self._makes)} makes, {len(tasks)} models")
        return tasks

    def _styles_task(self, make: dict, model: dict) -> Task:
        return Task(
            path=styles_path(make["niceName"], model["niceName"], self.year, self.api_key),
            on_result=partial(self._on_styles, make, model),
            label=f"styles/{make['niceName']}/{model['niceName']}",
        )

    def _on_styles(self, make: dict, model: dict, payload: Optional[dict]) -> list[Task]:
        if payload is None:
            self.job.record_not_found()
        styles = (payload or {}).get("styles") or []
        if not styles:
            logger.info(f"No styles for: {make['niceName']}\t{model['niceName']}")
            return []

        # Only the first style of a model/year is kept.
        style = styles[0]
        for key in STYLE_DROPPED_FIELDS:
            style.pop(key, None)

        years = model.get("years")
        if not years:
            years = model["years"] = [{"year": self.year}]
        years[0]["styles"] = [style]

        return [
            Task(
                path=rating_path(make["niceName"], model["niceName"], self.year, self.api_key),
                on_result=partial(self._on_rating, style),
                label=f"rating/{make['niceName']}/{model['niceName']}",
            )
        ]

    def _on_rating(self, style: dict, rating: Optional[dict]) -> list[Task]:
        if rating is None:
            self.job.record_not_found()
            return []
        if isinstance(rating, dict):
            for key in RATING_DROPPED_FIELDS:
                rating.pop(key, None)
        style["rating"] = rating
        return []
