"""Reading, config and result schemas"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class StationConfig(BaseModel):
    """A configured station of interest."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    station_code: str = Field(validation_alias=AliasChoices("stationCode", "codEstacao", "station_code"))
    name: Optional[str] = None

    @field_validator("station_code", mode="before")
    @classmethod
    def _coerce_code(cls, value: Any) -> Any:
        # Station codes are sometimes written as numbers in config.json
        if isinstance(value, int):
            return str(value)
        return value


class IngestConfig(BaseModel):
    """Ingestion config as read from config.json."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    url: str = Field(min_length=1)
    data_dir: Path = Field(validation_alias=AliasChoices("dataDir", "data_dir"))
    stations: List[StationConfig] = Field(min_length=1)
    exclude: List[str] = Field(default_factory=list)

    # Payload layout of the remote feed
    payload_key: str = Field(default="cemaden", validation_alias=AliasChoices("payloadKey", "payload_key"))
    station_field: str = Field(default="codestacao", validation_alias=AliasChoices("stationField", "station_field"))
    timestamp_field: str = Field(default="dataHora", validation_alias=AliasChoices("timestampField", "timestamp_field"))
    timeout: float = Field(default=5.0, gt=0)

    @field_validator("exclude")
    @classmethod
    def _dedupe_exclude(cls, value: List[str]) -> List[str]:
        return list(dict.fromkeys(value))

    @property
    def station_codes(self) -> List[str]:
        return [station.station_code for station in self.stations]


class RawReading(BaseModel):
    """One record from the remote payload, immutable as received."""

    model_config = ConfigDict(frozen=True)

    station_code: str
    timestamp: datetime
    raw_timestamp: str
    fields: Dict[str, Any]


class SaveResult(BaseModel):
    station_code: str
    written: int = 0
    file_path: Optional[Path] = None
    watermark: Optional[datetime] = None


class StationResult(BaseModel):
    """Outcome of one station within a cycle: ok, skipped or failed."""

    station_code: str
    status: Literal["ok", "skipped", "failed"]
    matched: int = 0
    saved: int = 0
    file_path: Optional[Path] = None
    watermark: Optional[datetime] = None
    reason: Optional[str] = None
    error: Optional[str] = None


class CycleReport(BaseModel):
    started_at: datetime
    ended_at: Optional[datetime] = None
    stations: List[StationResult] = Field(default_factory=list)
    batches: List[List[RawReading]] = Field(default_factory=list)

    @property
    def saved_count(self) -> int:
        return sum(result.saved for result in self.stations)

    @property
    def success(self) -> bool:
        return all(result.status != "failed" for result in self.stations)
