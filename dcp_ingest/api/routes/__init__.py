from dcp_ingest.api.routes.health import router as health_router
from dcp_ingest.api.routes.ingest import router as ingest_router
from dcp_ingest.api.routes.stations import router as stations_router

__all__ = ["health_router", "ingest_router", "stations_router"]
