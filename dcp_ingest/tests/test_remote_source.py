"""Remote fetcher and station matcher tests"""

from datetime import datetime, timezone

import httpx
import pytest

from dcp_ingest.core.errors import NoDataForStation, TransportError
from dcp_ingest.ingestion.matcher import match_station
from dcp_ingest.ingestion.remote_source import RemoteSource

URL = "http://dcp.example.test/resources/dados/311_1.json"
T1 = "2024-03-01 10:00:00.0"
T2 = "2024-03-01 10:10:00.0"


def source_for(handler) -> RemoteSource:
    return RemoteSource(URL, transport=httpx.MockTransport(handler))


class TestRemoteSource:
    """Test fetching and parsing the remote payload"""

    @pytest.mark.asyncio
    async def test_fetch_parses_readings(self, record):
        payload = {"cemaden": [record("S1", T1, 1.0), record("S2", T2, 2.0)]}
        source = source_for(lambda request: httpx.Response(200, json=payload))

        readings = await source.fetch()

        assert [r.station_code for r in readings] == ["S1", "S2"]
        assert readings[0].timestamp == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)
        assert readings[0].raw_timestamp == T1
        assert list(readings[0].fields) == ["codestacao", "cidade", "nome", "dataHora", "valorMedida"]

    @pytest.mark.asyncio
    async def test_records_without_code_or_timestamp_are_skipped(self, record):
        payload = {
            "cemaden": [
                record("S1", T1),
                record("S1", "garbage"),
                {"dataHora": T1},
                "not a record",
            ]
        }
        source = source_for(lambda request: httpx.Response(200, json=payload))

        readings = await source.fetch()
        assert len(readings) == 1

    @pytest.mark.asyncio
    async def test_numeric_station_codes(self, record):
        payload = {"cemaden": [record(431450101, T1)]}
        source = source_for(lambda request: httpx.Response(200, json=payload))

        readings = await source.fetch()
        assert readings[0].station_code == "431450101"

    @pytest.mark.asyncio
    async def test_custom_payload_layout(self):
        payload = {"data": [{"station": "A", "ts": "2024-03-01T10:00:00Z", "level": 3}]}
        source = RemoteSource(
            URL,
            payload_key="data",
            station_field="station",
            timestamp_field="ts",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=payload)),
        )

        readings = await source.fetch()
        assert readings[0].station_code == "A"
        assert readings[0].timestamp == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_non_2xx_raises_transport_error(self):
        source = source_for(lambda request: httpx.Response(503, text="unavailable"))
        with pytest.raises(TransportError):
            await source.fetch()

    @pytest.mark.asyncio
    async def test_connection_error_raises_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError):
            await source_for(handler).fetch()

    @pytest.mark.asyncio
    async def test_timeout_raises_transport_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TransportError):
            await source_for(handler).fetch()

    @pytest.mark.asyncio
    async def test_invalid_json_raises_transport_error(self):
        source = source_for(lambda request: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(TransportError):
            await source.fetch()

    @pytest.mark.asyncio
    async def test_missing_collection_raises_transport_error(self):
        source = source_for(lambda request: httpx.Response(200, json={"other": []}))
        with pytest.raises(TransportError):
            await source.fetch()

    def test_from_config(self, ingest_config):
        source = RemoteSource.from_config(ingest_config)
        assert source.url == ingest_config.url
        assert source.payload_key == "cemaden"
        assert source.timeout == 5.0


class TestStationMatcher:
    """Test partitioning readings by station"""

    def test_match_keeps_remote_order(self, reading):
        readings = [reading("S1", T2), reading("S2", T1), reading("S1", T1)]

        matched = match_station(readings, "S1")
        assert [r.raw_timestamp for r in matched] == [T2, T1]

    def test_no_data_for_station(self, reading):
        with pytest.raises(NoDataForStation) as exc_info:
            match_station([reading("S1", T1)], "S2")
        assert exc_info.value.station_code == "S2"
