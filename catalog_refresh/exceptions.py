"""Error taxonomy for the catalog import pipeline."""
from pathlib import Path
from typing import Optional


class CatalogError(Exception):
    """Base exception for catalog import errors."""

    pass


class TransportError(CatalogError):
    """Network-level failure talking to the catalog service."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Transport error for {url}: {reason}")


class ServerError(CatalogError):
    """Catalog service answered with a status other than 200 or 404."""

    def __init__(self, status_code: int, url: str, body: str = ""):
        self.status_code = status_code
        self.url = url
        self.body = body
        msg = f"Server error {status_code} for {url}"
        if body:
            msg += f": {body[:200]}"
        super().__init__(msg)


class CrawlAborted(CatalogError):
    """The crawl was aborted; partial results were discarded."""

    def __init__(self, reason: str, cause: Optional[Exception] = None):
        self.reason = reason
        self.cause = cause
        super().__init__(f"Import aborted: {reason}")


class MapperInputMissing(CatalogError):
    """The problem template could not be read or parsed."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Problem template unavailable at {path}: {reason}")
