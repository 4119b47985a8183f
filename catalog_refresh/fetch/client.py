"""HTTP client for the Edmunds catalog service."""
import logging
from typing import Any, Optional

import httpx
import orjson

from catalog_refresh.config import config
from catalog_refresh.exceptions import ServerError, TransportError
from catalog_refresh.fetch.redact import redact_string
from catalog_refresh.store.audit import RequestAudit

logger = logging.getLogger(__name__)


class CatalogClient:
    """Issues single GET requests and classifies the response.

    200 returns the decoded JSON body, 404 returns ``None`` and anything else
    raises. Pacing is the scheduler's job; this client never retries.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        audit: Optional[RequestAudit] = None,
        run_id: str = "",
    ):
        self.base_url = (base_url or config.EDMUNDS_BASE_URL).rstrip("/")
        limits = httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        )
        self.client = httpx.AsyncClient(
            http2=True,
            timeout=timeout or config.TIMEOUT,
            limits=limits,
            transport=transport,
        )
        self.audit = audit
        self.run_id = run_id
        self.request_count = 0

    async def __aenter__(self):
        if self.audit:
            await self.audit.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.client.aclose()

    async def fetch(self, path: str) -> Optional[Any]:
        """GET `path` relative to the service base URL."""
        url = f"{self.base_url}{path}"
        safe_url = redact_string(url)

        try:
            response = await self.client.get(url)
        except httpx.TransportError as e:
            seq = self._next_seq()
            logger.warning(f"{seq}\terror\t{safe_url}: {e}")
            await self._record(seq, None, safe_url)
            raise TransportError(safe_url, redact_string(str(e)) or type(e).__name__) from e

        seq = self._next_seq()
        logger.info(f"{seq}\t{response.status_code}\t{safe_url}")
        await self._record(seq, response.status_code, safe_url)

        if response.status_code == 404:
            logger.debug(f"Not found: {safe_url}")
            return None
        if response.status_code != 200:
            raise ServerError(response.status_code, safe_url, redact_string(response.text))

        try:
            return orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            raise ServerError(response.status_code, safe_url, f"invalid JSON body: {e}") from e

    def _next_seq(self) -> int:
        self.request_count += 1
        return self.request_count

    async def _record(self, seq: int, status: Optional[int], url: str) -> None:
        if not self.audit:
            return
        try:
            await self.audit.record(self.run_id, seq, status, url)
        except Exception as e:
            logger.warning(f"Failed to record audit entry {seq} for {url}: {e}")
