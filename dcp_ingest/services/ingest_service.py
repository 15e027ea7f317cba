"""Ingestion cycle - fetch once, then match, filter and save per station."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from dcp_ingest.core.errors import ConfigError, NoDataForStation, PersistenceError
from dcp_ingest.core.logging import get_logger, get_station_logger
from dcp_ingest.core.watermarks import WatermarkStore
from dcp_ingest.ingestion.base import BaseSource
from dcp_ingest.ingestion.matcher import match_station
from dcp_ingest.ingestion.remote_source import RemoteSource
from dcp_ingest.schemas.readings import CycleReport, IngestConfig, RawReading, StationConfig, StationResult
from dcp_ingest.services.record_sink import RecordSink

log = get_logger("ingest_service")


class IngestService:
    """Runs incremental, idempotent ingestion for the configured stations.

    Responsibilities:
    - Fetch the remote payload once per cycle
    - Match readings to each configured station
    - Drop readings at or before the station watermark
    - Save new readings and advance the watermark
    - Keep one station's failure from aborting the others
    """

    def __init__(self, config: IngestConfig, source: Optional[BaseSource] = None):
        self.config = config
        self.source = source or RemoteSource.from_config(config)
        self.watermarks = WatermarkStore(config.data_dir)
        self.sink = RecordSink(config.data_dir, self.watermarks, config.exclude)
        self.last_report: Optional[CycleReport] = None
        self._lock = asyncio.Lock()

    @property
    def stations(self) -> List[StationConfig]:
        return list(self.config.stations)

    def _select_stations(self, station_codes: Optional[Iterable[str]]) -> List[StationConfig]:
        if station_codes is None:
            return self.stations
        by_code = {station.station_code: station for station in self.config.stations}
        selected: List[StationConfig] = []
        for code in station_codes:
            if code not in by_code:
                raise ConfigError(f"Station {code} is not configured")
            selected.append(by_code[code])
        return selected

    def _ensure_data_dir(self) -> None:
        data_dir = self.config.data_dir
        if not data_dir.exists():
            log.warning(f"The directory {data_dir} does not exist. Creating...")
            data_dir.mkdir(parents=True, exist_ok=True)

    async def run_cycle(self, station_codes: Optional[Iterable[str]] = None) -> CycleReport:
        """Run one cycle over all (or the given) stations.

        A TransportError propagates; every per-station error is recorded on
        the report instead.
        """
        stations = self._select_stations(station_codes)

        async with self._lock:
            report = CycleReport(started_at=datetime.now(timezone.utc))
            self._ensure_data_dir()

            readings = await self.source.fetch()
            log.info(f"Starting cycle | stations={len(stations)} fetched={len(readings)}")

            for station in stations:
                result = self._process_station(station, readings, report)
                report.stations.append(result)

            report.ended_at = datetime.now(timezone.utc)
            self.last_report = report

        log.info(
            f"Cycle finished | saved={report.saved_count} "
            f"ok={self._count(report, 'ok')} skipped={self._count(report, 'skipped')} "
            f"failed={self._count(report, 'failed')}"
        )
        return report

    def _process_station(self, station: StationConfig, readings: List[RawReading], report: CycleReport) -> StationResult:
        code = station.station_code
        station_log = get_station_logger("ingest_service", code)
        try:
            matched = match_station(readings, code)
        except NoDataForStation as exc:
            station_log.warning("No readings in this cycle; skipping")
            return StationResult(station_code=code, status="skipped", reason=str(exc))

        report.batches.append(matched)

        try:
            watermark = self.watermarks.read(code)
            fresh = self.source.filter_incremental(matched, watermark)
            if not fresh:
                station_log.info(f"No new readings among {len(matched)}; watermark unchanged")
                return StationResult(station_code=code, status="ok", matched=len(matched), watermark=watermark)

            saved = self.sink.save(code, fresh)
        except PersistenceError as exc:
            station_log.error(f"Persisting failed, batch will be retried next cycle: {exc}")
            return StationResult(station_code=code, status="failed", matched=len(matched), error=str(exc))
        except Exception as exc:  # noqa: BLE001
            station_log.exception(f"Unexpected error: {exc}")
            return StationResult(station_code=code, status="failed", matched=len(matched), error=str(exc))

        return StationResult(
            station_code=code,
            status="ok",
            matched=len(matched),
            saved=saved.written,
            file_path=saved.file_path,
            watermark=saved.watermark,
        )

    @staticmethod
    def _count(report: CycleReport, status: str) -> int:
        return sum(1 for result in report.stations if result.status == status)

    # -------------------------------------------------------------------------
    # Station inspection / maintenance
    # -------------------------------------------------------------------------
    def station_status(self, station_code: str) -> Dict[str, Any]:
        """Watermark and stored files for a configured station."""
        station = self._select_stations([station_code])[0]
        try:
            watermark = self.watermarks.read(station.station_code)
        except PersistenceError as exc:
            log.error(f"Unreadable watermark for station={station_code}: {exc}")
            watermark = None
        return {
            "station_code": station.station_code,
            "name": station.name,
            "watermark": watermark,
            "files": [path.name for path in self.sink.list_files(station.station_code)],
        }

    def purge_station(self, station_code: str) -> bool:
        """Delete everything stored for a station, watermark included."""
        station = self._select_stations([station_code])[0]
        return self.watermarks.purge(station.station_code)
