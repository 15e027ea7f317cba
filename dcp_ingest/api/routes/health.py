"""Health routes - System health and readiness checks."""

import os
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response

from dcp_ingest.api.deps import get_ingest_service
from dcp_ingest.schemas.api import HealthResponse
from dcp_ingest.services.ingest_service import IngestService

router = APIRouter(prefix="/health", tags=["health"])


def _data_dir_status(service: IngestService) -> str:
    data_dir = service.config.data_dir
    if not data_dir.exists():
        # Created on the first cycle
        return "missing"
    if not os.access(data_dir, os.W_OK):
        return "not_writable"
    return "ok"


@router.get("", response_model=HealthResponse)
def health(response: Response, service: IngestService = Depends(get_ingest_service)):
    """
    Health check endpoint for load balancer and Docker health checks.

    Checks the data directory and the outcome of the last cycle.
    Returns 503 if the data directory is not writable.
    """
    data_dir = _data_dir_status(service)
    if data_dir == "not_writable":
        response.status_code = 503

    last = service.last_report
    last_status = None
    if last is not None:
        last_status = "success" if last.success else "partial_failure"

    return HealthResponse(
        data_dir=data_dir,
        last_cycle_status=last_status,
        last_cycle_at=last.ended_at if last else None,
    )


@router.get("/ready")
def readiness(response: Response, service: IngestService = Depends(get_ingest_service)):
    """Readiness probe - 200 when the data directory can be written."""
    status = _data_dir_status(service)
    if status == "not_writable":
        response.status_code = 503
        return {"status": "not_ready", "error": "data directory not writable", "timestamp": datetime.now(timezone.utc).isoformat()}
    return {"status": "ready", "timestamp": datetime.now(timezone.utc).isoformat()}
