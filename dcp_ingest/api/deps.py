"""API dependencies"""

from typing import Optional

from dcp_ingest.core.config import load_ingest_config, settings
from dcp_ingest.services.ingest_service import IngestService

_service: Optional[IngestService] = None


def get_ingest_service() -> IngestService:
    """Process-wide ingest service built from CONFIG_PATH on first use"""
    global _service
    if _service is None:
        _service = IngestService(load_ingest_config(settings.CONFIG_PATH))
    return _service
