"""Logging setup tests"""

from loguru import logger

from dcp_ingest.core.logging import get_logger, get_station_logger


class TestLogging:
    """Test logger context binding"""

    def _capture(self, emit):
        records = []
        sink_id = logger.add(lambda message: records.append(message.record["extra"].copy()), level="INFO")
        try:
            emit()
        finally:
            logger.remove(sink_id)
        return records

    def test_station_logger_carries_station_code(self):
        records = self._capture(lambda: get_station_logger("record_sink", "S1").info("saved"))
        assert records[-1]["name"] == "record_sink"
        assert records[-1]["station"] == "S1"

    def test_plain_logger_has_default_station(self):
        records = self._capture(lambda: get_logger("ingest_service").info("cycle"))
        assert records[-1]["station"] == "-"
