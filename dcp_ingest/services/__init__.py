# Services package
from dcp_ingest.services.ingest_service import IngestService
from dcp_ingest.services.record_sink import RecordSink

__all__ = [
    "IngestService",
    "RecordSink",
]
