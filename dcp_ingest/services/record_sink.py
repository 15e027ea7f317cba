"""Record sink - writes new readings into per-station delimited files.

Layout under the data directory::

    <data_dir>/<station>/lastDate.dat
    <data_dir>/<station>/<station>_<YYYYMMDD_HHMMSS>.dat

Each .dat file is named by the newest reading of the batch that created it,
starts with a ``TIMESTAMP;<field>...`` header and uses ``;`` separators with
``\\r\\n`` line endings. Values never carry the delimiter or line breaks:
``;`` becomes ``,`` and CR/LF become spaces, so every row is as wide as
the header.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

from dcp_ingest.core.errors import HeaderMismatchError, PersistenceError
from dcp_ingest.core.logging import get_logger, get_station_logger
from dcp_ingest.core.timestamps import format_file_timestamp, format_line_timestamp
from dcp_ingest.core.watermarks import WatermarkStore
from dcp_ingest.schemas.readings import RawReading, SaveResult

log = get_logger("record_sink")

DELIMITER = ";"
LINE_END = "\r\n"
TIMESTAMP_COLUMN = "TIMESTAMP"
DATA_SUFFIX = ".dat"
# ';' inside a value would shift every column after it
VALUE_DELIMITER_SUBSTITUTE = ","


def build_field_order(reading: RawReading, excluded: Iterable[str]) -> List[str]:
    """Non-excluded keys of a reading, reversed from declaration order."""
    excluded_set = set(excluded)
    keys = [key for key in reading.fields.keys() if key not in excluded_set]
    keys.reverse()
    return keys


def build_header(fields: Sequence[str]) -> str:
    return DELIMITER.join([TIMESTAMP_COLUMN, *(_format_value(field) for field in fields)]) + LINE_END


def _format_value(value: Any) -> str:
    """Render one field; a value never contains the delimiter or a line break."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value)
    if DELIMITER in text or "\r" in text or "\n" in text:
        text = text.replace("\r\n", " ").replace("\r", " ").replace("\n", " ")
        text = text.replace(DELIMITER, VALUE_DELIMITER_SUBSTITUTE)
    return text


def build_line(reading: RawReading, fields: Sequence[str]) -> str:
    values = [format_line_timestamp(reading.timestamp)]
    values.extend(_format_value(reading.fields.get(field)) for field in fields)
    return DELIMITER.join(values) + LINE_END


def build_file_name(reading: RawReading) -> str:
    return f"{reading.station_code}_{format_file_timestamp(reading.timestamp)}{DATA_SUFFIX}"


class RecordSink:
    """Appends filtered readings to station files and advances the watermark.

    A save is all-or-nothing: if the append or the watermark update fails,
    the file is restored to its previous size and the watermark stays put.
    """

    def __init__(self, data_dir: str | Path, watermarks: WatermarkStore, excluded_fields: Sequence[str] = ()):
        self.data_dir = Path(data_dir)
        self.watermarks = watermarks
        self.excluded_fields = list(excluded_fields)

    def save(
        self,
        station_code: str,
        readings: Sequence[RawReading],
        excluded_fields: Optional[Sequence[str]] = None,
    ) -> SaveResult:
        if not readings:
            return SaveResult(station_code=station_code)

        excluded = self.excluded_fields if excluded_fields is None else list(excluded_fields)
        first, last = readings[0], readings[-1]

        fields = build_field_order(first, excluded)
        header = build_header(fields)
        body = "".join(build_line(reading, fields) for reading in readings)

        station_dir = self.data_dir / station_code
        path = station_dir / build_file_name(last)
        try:
            station_dir.mkdir(parents=True, exist_ok=True)
            existed = path.exists()
            previous_size = path.stat().st_size if existed else 0
        except OSError as exc:
            raise PersistenceError(f"Could not prepare {path}: {exc}") from exc

        if previous_size:
            self._check_header(path, header)

        # Encode before touching the file so a bad character cannot leave a partial write
        payload = ((header if previous_size == 0 else "") + body).encode("utf-8", errors="replace")

        try:
            self._append(path, payload)
        except OSError as exc:
            self._rollback(path, existed, previous_size)
            raise PersistenceError(f"Could not append to {path}: {exc}") from exc
        except Exception:
            self._rollback(path, existed, previous_size)
            raise

        try:
            watermark = self.watermarks.write(station_code, last.raw_timestamp)
        except PersistenceError:
            self._rollback(path, existed, previous_size)
            raise

        get_station_logger("record_sink", station_code).info(f"Saved {len(readings)} readings into {path.name}")
        return SaveResult(station_code=station_code, written=len(readings), file_path=path, watermark=watermark)

    @staticmethod
    def _append(path: Path, payload: bytes) -> None:
        with path.open("ab") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())

    @staticmethod
    def _check_header(path: Path, expected: str) -> None:
        try:
            with path.open("r", encoding="utf-8", newline="") as f:
                existing = f.readline()
        except OSError as exc:
            raise PersistenceError(f"Could not read header of {path}: {exc}") from exc

        if existing.rstrip("\r\n") != expected.rstrip("\r\n"):
            raise HeaderMismatchError(
                f"Header of {path.name} is {existing.rstrip()!r} but batch fields give {expected.rstrip()!r}; "
                "was the exclude list changed?"
            )

    @staticmethod
    def _rollback(path: Path, existed: bool, previous_size: int) -> None:
        try:
            if not existed:
                if path.exists():
                    path.unlink()
            else:
                os.truncate(path, previous_size)
        except OSError as exc:
            log.error(f"Could not roll back {path} to {previous_size} bytes: {exc}")

    def list_files(self, station_code: str) -> List[Path]:
        """Data files of a station, oldest name first"""
        station_dir = self.data_dir / station_code
        if not station_dir.exists():
            return []
        return sorted(p for p in station_dir.glob(f"*{DATA_SUFFIX}") if p.name.startswith(f"{station_code}_"))
