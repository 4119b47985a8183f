"""FastAPI control surface: manual refresh and last refresh time."""
import logging
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import PlainTextResponse
from fastapi.security import APIKeyHeader
from pydantic import BaseModel

from catalog_refresh.config import config, Config
from catalog_refresh.jobs.metrics_exporter import MetricsExporter
from catalog_refresh.jobs.refresh import RefreshService
from catalog_refresh.store.artifacts import ArtifactStore
from catalog_refresh.store.audit import RequestAudit

logger = logging.getLogger(__name__)

app = FastAPI(title="Vehicle Catalog Refresh API", version="0.1.0")

# API Key security (if configured)
API_KEY_HEADER = APIKeyHeader(name="X-API-KEY", auto_error=False)


def verify_api_key(api_key: str = Depends(API_KEY_HEADER)) -> bool:
    """Verify API key if configured."""
    expected_key = config.API_KEY
    if expected_key:
        if not api_key or api_key != expected_key:
            raise HTTPException(status_code=403, detail="Invalid API key")
    return True


def build_refresh_service() -> RefreshService:
    """Refresh service wired to the configured artifacts, audit db and run history."""
    return RefreshService(
        store=ArtifactStore(),
        audit=RequestAudit(),
        history=MetricsExporter(),
    )


# Initialize components
refresh_service = build_refresh_service()


def format_timestamp(value: datetime) -> str:
    """UTC ISO-8601 with milliseconds, e.g. ``1970-01-01T00:00:00.000Z``."""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@app.on_event("startup")
async def startup():
    """Start the periodic staleness check."""
    try:
        Config.validate()
    except ValueError as e:
        logger.warning(f"Configuration error: {e}")
    refresh_service.start()


@app.on_event("shutdown")
async def shutdown():
    await refresh_service.stop()


class RefreshResponse(BaseModel):
    """Response model for a refresh trigger."""
    started: bool
    state: str


@app.get("/health")
async def health():
    """Health check endpoint (no auth required)."""
    return {
        "status": "ok",
        "timestamp": format_timestamp(datetime.now(timezone.utc)),
        "refreshing": refresh_service.refreshing,
    }


@app.get("/refresh", response_model=RefreshResponse)
async def refresh(_: bool = Depends(verify_api_key)):
    """Start a catalog refresh in the background. No-op while one is running."""
    started = refresh_service.trigger_refresh()
    return RefreshResponse(started=started, state=refresh_service.state.value)


@app.get("/last_refresh", response_class=PlainTextResponse)
async def last_refresh():
    """Modification time of the problem document, epoch if never written."""
    return format_timestamp(await refresh_service.last_refresh_time())


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
