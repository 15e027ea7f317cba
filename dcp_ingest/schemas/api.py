from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class HealthResponse(BaseModel):
    data_dir: str
    last_cycle_status: str | None
    last_cycle_at: datetime | None = None


class StationResultOut(BaseModel):
    station_code: str
    status: str
    matched: int
    saved: int
    file_name: Optional[str] = None
    watermark: Optional[datetime] = None
    reason: Optional[str] = None
    error: Optional[str] = None


class CycleResponse(BaseModel):
    success: bool
    saved: int
    started_at: datetime
    ended_at: datetime | None
    stations: list[StationResultOut]


class StationOut(BaseModel):
    station_code: str
    name: str | None = None
    watermark: datetime | None = None


class StationDetailOut(StationOut):
    files: list[str]
