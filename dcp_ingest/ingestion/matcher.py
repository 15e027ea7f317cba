"""Partition fetched readings by station."""

from __future__ import annotations

from typing import Iterable, List

from dcp_ingest.core.errors import NoDataForStation
from dcp_ingest.schemas.readings import RawReading


def match_station(readings: Iterable[RawReading], station_code: str) -> List[RawReading]:
    """Readings of one station in the order the remote service sent them.

    Raises NoDataForStation when the station did not report.
    """
    matched = [reading for reading in readings if reading.station_code == station_code]
    if not matched:
        raise NoDataForStation(station_code)
    return matched
