"""Station routes - watermarks and stored files."""

from fastapi import APIRouter, Depends, HTTPException

from dcp_ingest.api.deps import get_ingest_service
from dcp_ingest.core.errors import ConfigError
from dcp_ingest.schemas.api import StationDetailOut, StationOut
from dcp_ingest.services.ingest_service import IngestService

router = APIRouter(prefix="/stations", tags=["stations"])


@router.get("", response_model=list[StationOut])
def list_stations(service: IngestService = Depends(get_ingest_service)):
    """
    Configured stations with their current watermark.

    The watermark is the timestamp of the newest reading saved for the
    station; it is null until the first successful save.
    """
    return [
        StationOut(
            station_code=status["station_code"],
            name=status["name"],
            watermark=status["watermark"],
        )
        for status in (service.station_status(station.station_code) for station in service.stations)
    ]


@router.get("/{station_code}", response_model=StationDetailOut)
def get_station(station_code: str, service: IngestService = Depends(get_ingest_service)):
    """Watermark and data files of a single station."""
    try:
        status = service.station_status(station_code)
    except ConfigError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return StationDetailOut(**status)
