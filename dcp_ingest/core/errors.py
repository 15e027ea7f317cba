"""Ingestion error taxonomy.

Cycle-level errors (TransportError) propagate to the caller. Station-level
errors (NoDataForStation, PersistenceError) are caught by the ingestion cycle
and recorded on the station's result.
"""


class IngestError(Exception):
    """Base class for all ingestion errors."""


class ConfigError(IngestError):
    """Required configuration is missing or invalid."""


class TransportError(IngestError):
    """The remote fetch failed (timeout, non-2xx, malformed payload)."""


class NoDataForStation(IngestError):
    """The remote payload holds no readings for a configured station."""

    def __init__(self, station_code: str):
        super().__init__(f"No readings for station {station_code}")
        self.station_code = station_code


class PersistenceError(IngestError):
    """A watermark or output file could not be read or written."""


class HeaderMismatchError(PersistenceError):
    """An existing output file's header disagrees with the batch field order."""


class WatermarkRegressionError(PersistenceError):
    """An attempt to move a station's watermark backwards."""
