"""Per-station watermark persistence"""

from __future__ import annotations

import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional

from dcp_ingest.core.errors import PersistenceError, WatermarkRegressionError
from dcp_ingest.core.logging import get_logger
from dcp_ingest.core.timestamps import parse_timestamp

log = get_logger("watermarks")

WATERMARK_FILE = "lastDate.dat"


class WatermarkStore:
    """Stores the last saved timestamp of each station in <data_dir>/<station>/lastDate.dat.

    The file holds the raw source timestamp text of the newest persisted
    reading. Writes go through a temp file and an atomic rename.
    """

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir)

    def station_dir(self, station_code: str) -> Path:
        return self.data_dir / station_code

    def watermark_path(self, station_code: str) -> Path:
        return self.station_dir(station_code) / WATERMARK_FILE

    def read_raw(self, station_code: str) -> Optional[str]:
        """Raw watermark text, or None on first ingestion"""
        path = self.watermark_path(station_code)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise PersistenceError(f"Could not read watermark {path}: {exc}") from exc

    def read(self, station_code: str) -> Optional[datetime]:
        raw = self.read_raw(station_code)
        if raw is None:
            return None
        parsed = parse_timestamp(raw)
        if parsed is None:
            raise PersistenceError(f"Corrupt watermark for station {station_code}: {raw!r}")
        return parsed

    def write(self, station_code: str, raw_timestamp: str) -> datetime:
        """Persist a new watermark and return it parsed.

        Refuses to move the watermark backwards.
        """
        new_value = parse_timestamp(raw_timestamp)
        if new_value is None:
            raise PersistenceError(f"Refusing to store unparseable watermark {raw_timestamp!r}")

        current = self.read(station_code)
        if current is not None and new_value < current:
            raise WatermarkRegressionError(
                f"Watermark for station {station_code} would move back from {current.isoformat()} "
                f"to {new_value.isoformat()}"
            )

        station_dir = self.station_dir(station_code)
        tmp_name = None
        try:
            station_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".lastDate.", suffix=".tmp", dir=station_dir)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(str(raw_timestamp))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.watermark_path(station_code))
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Could not write watermark for station {station_code}: {exc}") from exc

        log.debug(f"Watermark station={station_code} -> {raw_timestamp}")
        return new_value

    def purge(self, station_code: str) -> bool:
        """Remove a station directory with all its files and its watermark"""
        station_dir = self.station_dir(station_code)
        if not station_dir.exists():
            return False
        shutil.rmtree(station_dir)
        log.info(f"Removed station directory {station_dir}")
        return True
