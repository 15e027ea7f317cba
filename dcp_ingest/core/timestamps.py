"""Timestamp parsing and formatting for DCP readings.

Every timestamp is normalised to UTC: naive source values are read as UTC
and offset-bearing values are converted. Line timestamps, file names and
watermark comparisons all use that UTC value, so a feed that sends
"2024-03-01T07:00:00-03:00" is written as 03/01/2024 10:00:00. Feeds that
send naive local times (the CEMADEN feed does) are written unchanged.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

# Output formats used in the delimited files
LINE_TIMESTAMP_FORMAT = "%m/%d/%Y %H:%M:%S"
FILE_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

_FALLBACK_FORMATS = (
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%d/%m/%Y %H:%M:%S",
    "%Y-%m-%d %H:%M",
)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a source timestamp into an aware UTC datetime.

    Naive values are taken as UTC. Returns None when the value is empty or
    does not match any known layout.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip().replace("Z", "+00:00")
        parsed = None
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            for fmt in _FALLBACK_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
        if parsed is None:
            return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_line_timestamp(value: datetime) -> str:
    return value.strftime(LINE_TIMESTAMP_FORMAT)


def format_file_timestamp(value: datetime) -> str:
    return value.strftime(FILE_TIMESTAMP_FORMAT)
