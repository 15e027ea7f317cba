from contextlib import asynccontextmanager
import asyncio
from typing import Optional

from fastapi import FastAPI

from dcp_ingest.api.deps import get_ingest_service
from dcp_ingest.api.routes import health, ingest, stations
from dcp_ingest.core.config import settings
from dcp_ingest.core.errors import TransportError
from dcp_ingest.core.logging import get_logger


log = get_logger("dcp_ingest")

# Background task handle
_ingest_task: Optional[asyncio.Task] = None


async def run_ingest_cycle() -> None:
    """Run one ingestion cycle for all configured stations."""
    log.info("Starting scheduled ingestion cycle...")
    service = get_ingest_service()
    try:
        report = await service.run_cycle()
    except TransportError as exc:
        log.error(f"Ingestion cycle aborted, will retry next interval: {exc}")
        return

    for result in report.stations:
        if result.status == "failed":
            log.error(f"Station {result.station_code}: failed - {result.error}")
        else:
            log.info(f"Station {result.station_code}: {result.status} saved={result.saved}")


async def scheduled_ingest_task() -> None:
    """Background task that runs a cycle at the configured interval."""
    interval = settings.INGEST_INTERVAL_SECONDS
    log.info(f"Scheduled ingestion started (interval: {interval}s)")

    while True:
        try:
            await run_ingest_cycle()
            await asyncio.sleep(interval)
        except asyncio.CancelledError:
            log.info("Scheduled ingestion cancelled")
            break
        except Exception as exc:
            log.exception(f"Scheduled ingestion error: {exc}")
            # Continue running despite errors
            await asyncio.sleep(interval)


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _ingest_task

    log.info(f"Starting application in {settings.ENV.upper()} mode")

    # Fail fast on a broken config.json
    service = get_ingest_service()
    log.info(f"Loaded {len(service.stations)} stations, data dir {service.config.data_dir}")

    if settings.INGEST_SCHEDULE_ENABLED:
        log.info("Starting scheduled ingestion background task...")
        _ingest_task = asyncio.create_task(scheduled_ingest_task())
    else:
        log.info("Scheduled ingestion is disabled (INGEST_SCHEDULE_ENABLED=false)")

    yield

    log.info("Shutting down...")
    if _ingest_task:
        log.info("Cancelling scheduled ingestion task...")
        _ingest_task.cancel()
        try:
            await _ingest_task
        except asyncio.CancelledError:
            pass

    log.info("Application shutdown complete")


app = FastAPI(
    title="DCP Ingest",
    description="Incremental ingestion of telemetry station readings into per-station files",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.docs_enabled else None,
    redoc_url="/redoc" if settings.docs_enabled else None,
    openapi_url="/openapi.json" if settings.docs_enabled else None,
    debug=settings.is_development,
)


app.include_router(health.router)
app.include_router(ingest.router)
app.include_router(stations.router)
