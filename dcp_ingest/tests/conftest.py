"""Shared fixtures"""

import os

# Keep test runs from writing log files into the working tree
os.environ.setdefault("LOG_FILE", "")

import json
from typing import List, Optional

import pytest

from dcp_ingest.core.timestamps import parse_timestamp
from dcp_ingest.ingestion.base import BaseSource
from dcp_ingest.schemas.readings import IngestConfig, RawReading

T1 = "2024-03-01 10:00:00.0"
T2 = "2024-03-01 10:10:00.0"
T3 = "2024-03-01 10:20:00.0"


def make_record(code: str, data_hora: str, value=0.0, **extra) -> dict:
    record = {
        "codestacao": code,
        "cidade": "SAO JOSE DOS CAMPOS",
        "nome": f"Station {code}",
        "dataHora": data_hora,
        "valorMedida": value,
    }
    record.update(extra)
    return record


def make_reading(code: str, data_hora: str, value=0.0, **extra) -> RawReading:
    return RawReading(
        station_code=code,
        timestamp=parse_timestamp(data_hora),
        raw_timestamp=data_hora,
        fields=make_record(code, data_hora, value, **extra),
    )


class StaticSource(BaseSource):
    """Source returning a fixed list of readings, or raising a fixed error"""

    name = "static"

    def __init__(self, readings: Optional[List[RawReading]] = None, error: Optional[Exception] = None):
        self.readings = readings or []
        self.error = error
        self.calls = 0

    async def fetch(self) -> List[RawReading]:
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.readings)


@pytest.fixture
def reading():
    """Factory for RawReading objects"""
    return make_reading


@pytest.fixture
def record():
    """Factory for raw payload records"""
    return make_record


@pytest.fixture
def static_source():
    return StaticSource


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def ingest_config(data_dir):
    return IngestConfig.model_validate(
        {
            "url": "http://dcp.example.test/resources/dados/311_1.json",
            "dataDir": str(data_dir),
            "stations": [{"codEstacao": "S1"}, {"codEstacao": "S2"}, {"codEstacao": "S3"}],
            "exclude": ["cidade"],
        }
    )


@pytest.fixture
def config_file(tmp_path, data_dir):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "url": "http://dcp.example.test/resources/dados/311_1.json",
                "dataDir": str(data_dir),
                "stations": [{"codEstacao": "S1"}, {"codEstacao": "S2"}],
                "exclude": ["cidade"],
            }
        ),
        encoding="utf-8",
    )
    return path
