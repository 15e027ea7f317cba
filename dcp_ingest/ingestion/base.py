"""Abstract source interface for ingestion."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from dcp_ingest.schemas.readings import RawReading


class BaseSource(ABC):
    """Abstract base class for reading sources."""

    name: str

    @abstractmethod
    async def fetch(self) -> List[RawReading]:
        """Fetch every reading the source currently exposes."""

    @staticmethod
    def filter_incremental(readings: List[RawReading], watermark: Optional[datetime]) -> List[RawReading]:
        """Readings strictly newer than the watermark, input order kept."""
        if watermark is None:
            return list(readings)
        return [reading for reading in readings if reading.timestamp > watermark]
