"""Remote DCP feed source implementation."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from dcp_ingest.core.errors import TransportError
from dcp_ingest.core.logging import get_logger
from dcp_ingest.core.timestamps import parse_timestamp
from dcp_ingest.schemas.readings import IngestConfig, RawReading
from .base import BaseSource

log = get_logger("ingestion.remote")


class RemoteSource(BaseSource):
    """Fetches the current window of DCP readings from the telemetry service.

    The payload is a JSON object whose ``payload_key`` entry is a list of
    records, each carrying a station code and a timestamp field.
    """

    name = "remote"

    def __init__(
        self,
        url: str,
        *,
        payload_key: str = "cemaden",
        station_field: str = "codestacao",
        timestamp_field: str = "dataHora",
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.payload_key = payload_key
        self.station_field = station_field
        self.timestamp_field = timestamp_field
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_config(cls, config: IngestConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> "RemoteSource":
        return cls(
            config.url,
            payload_key=config.payload_key,
            station_field=config.station_field,
            timestamp_field=config.timestamp_field,
            timeout=config.timeout,
            transport=transport,
        )

    async def fetch(self) -> List[RawReading]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.get(self.url)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as exc:
            raise TransportError(f"Remote service answered {exc.response.status_code} for {self.url}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Request to {self.url} failed: {exc!r}") from exc
        except ValueError as exc:
            raise TransportError(f"Remote service returned invalid JSON: {exc}") from exc

        records = self._extract_records(data)

        results: List[RawReading] = []
        skipped = 0
        for item in records:
            reading = self._to_reading(item)
            if reading is None:
                skipped += 1
                continue
            results.append(reading)

        if skipped:
            log.warning(f"Skipped {skipped} records without station code or valid timestamp")
        log.info(f"Fetched {len(results)} readings from {self.url}")
        return results

    def _extract_records(self, data: Any) -> List[Any]:
        if not isinstance(data, dict):
            raise TransportError(f"Expected a JSON object from {self.url}, got {type(data).__name__}")
        records = data.get(self.payload_key)
        if not isinstance(records, list):
            raise TransportError(f"Payload from {self.url} has no '{self.payload_key}' list")
        return records

    def _to_reading(self, item: Any) -> Optional[RawReading]:
        if not isinstance(item, dict):
            return None
        code = item.get(self.station_field)
        raw_ts = item.get(self.timestamp_field)
        ts = parse_timestamp(raw_ts)
        if code in (None, "") or ts is None:
            return None
        fields: Dict[str, Any] = dict(item)
        return RawReading(station_code=str(code), timestamp=ts, raw_timestamp=str(raw_ts), fields=fields)
