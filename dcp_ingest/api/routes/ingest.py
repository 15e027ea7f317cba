"""Ingest routes - Trigger ingestion cycles."""

from fastapi import APIRouter, Depends, HTTPException

from dcp_ingest.api.deps import get_ingest_service
from dcp_ingest.core.errors import ConfigError, TransportError
from dcp_ingest.core.logging import get_logger
from dcp_ingest.schemas.api import CycleResponse, StationResultOut
from dcp_ingest.schemas.readings import CycleReport
from dcp_ingest.services.ingest_service import IngestService

router = APIRouter(prefix="/ingest", tags=["ingest"])
log = get_logger("ingest_routes")


def _to_response(report: CycleReport) -> CycleResponse:
    return CycleResponse(
        success=report.success,
        saved=report.saved_count,
        started_at=report.started_at,
        ended_at=report.ended_at,
        stations=[
            StationResultOut(
                station_code=r.station_code,
                status=r.status,
                matched=r.matched,
                saved=r.saved,
                file_name=r.file_path.name if r.file_path else None,
                watermark=r.watermark,
                reason=r.reason,
                error=r.error,
            )
            for r in report.stations
        ],
    )


@router.post("/run", response_model=CycleResponse)
async def run_cycle(service: IngestService = Depends(get_ingest_service)):
    """
    Run one ingestion cycle over all configured stations.

    Fetches the remote payload once, then for each station:
    1. Match its readings
    2. Drop readings at or before the watermark
    3. Append the rest to the station file
    4. Advance the watermark
    """
    log.info("Cycle triggered for all stations")
    try:
        report = await service.run_cycle()
    except TransportError as exc:
        log.error(f"Cycle aborted: {exc}")
        raise HTTPException(status_code=502, detail=str(exc))
    return _to_response(report)


@router.post("/run/{station_code}", response_model=CycleResponse)
async def run_station(station_code: str, service: IngestService = Depends(get_ingest_service)):
    """Run one ingestion cycle restricted to a single station."""
    log.info(f"Cycle triggered for station: {station_code}")
    try:
        report = await service.run_cycle([station_code])
    except ConfigError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except TransportError as exc:
        log.error(f"Cycle aborted: {exc}")
        raise HTTPException(status_code=502, detail=str(exc))
    return _to_response(report)
