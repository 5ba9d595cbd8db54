"""Tests for logging filters, context and formatters."""

import json
import logging

import pytest

from freightmatch.core.correlation import (
    CorrelationFilter,
    get_current_correlation_id,
    with_correlation,
)
from freightmatch.fm_logging import log_context, log_trip_context, setup_logging
from freightmatch.fm_logging.context import ContextFilter, LogContext
from freightmatch.fm_logging.filters import DefaultCorrelationFilter, PIIFilter
from freightmatch.fm_logging.formatters import DevFormatter, JSONFormatter


def make_record(msg: str) -> logging.LogRecord:
    return logging.LogRecord(
        name="freightmatch.test",
        level=logging.INFO,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )


@pytest.fixture
def captured_records():
    logger = logging.getLogger("freightmatch.test.context")
    logger.setLevel(logging.DEBUG)
    records: list[logging.LogRecord] = []

    class RecordCapture(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            records.append(record)

    handler = RecordCapture()
    handler.addFilter(CorrelationFilter())
    handler.addFilter(ContextFilter())
    handler.addFilter(DefaultCorrelationFilter())
    logger.addHandler(handler)
    yield logger, records
    logger.removeHandler(handler)
    LogContext.clear()


@pytest.mark.unit
class TestPIIFilter:
    def test_masks_email(self):
        record = make_record("receipt sent to asha@example.co.tz")
        PIIFilter().filter(record)

        assert record.msg == "receipt sent to [EMAIL]"

    @pytest.mark.parametrize("phone", ["+255 712 345 678", "0754-123-456", "255612345678"])
    def test_masks_tanzanian_mobile(self, phone):
        record = make_record(f"customer phone {phone}")
        PIIFilter().filter(record)

        assert "[PHONE]" in record.msg
        assert phone not in record.msg

    def test_leaves_amounts_alone(self):
        record = make_record("Trip completed: fare 31040 TZS")
        PIIFilter().filter(record)

        assert record.msg == "Trip completed: fare 31040 TZS"


@pytest.mark.unit
class TestLogContext:
    def test_trip_context_fields(self, captured_records):
        logger, records = captured_records

        with log_trip_context("trip-42", driver_id="driver_1"):
            logger.info("Trip accepted")

        assert records[0].trip_id == "trip-42"
        assert records[0].driver_id == "driver_1"
        assert records[0].correlation_id == "trip-42"

    def test_nested_context_restores_outer(self, captured_records):
        logger, records = captured_records

        with log_context(trip_id="outer"):
            with log_context(trip_id="inner"):
                logger.info("inner")
            logger.info("outer")

        assert [r.trip_id for r in records] == ["inner", "outer"]

    def test_default_correlation_outside_context(self, captured_records):
        logger, records = captured_records

        logger.info("no trip")

        assert records[0].correlation_id == "-"
        assert not hasattr(records[0], "trip_id")

    def test_correlation_reset_after_block(self):
        with with_correlation("trip-7"):
            assert get_current_correlation_id() == "trip-7"

        assert get_current_correlation_id() is None


@pytest.mark.unit
class TestFormatters:
    def test_json_formatter_includes_context(self):
        record = make_record("Trip created")
        record.trip_id = "trip-1"
        record.correlation_id = "trip-1"

        payload = json.loads(JSONFormatter(environment="test").format(record))

        assert payload["message"] == "Trip created"
        assert payload["level"] == "INFO"
        assert payload["environment"] == "test"
        assert payload["trip_id"] == "trip-1"

    def test_dev_formatter_suffix(self):
        record = make_record("Trip created")
        record.correlation_id = "trip-1"

        assert DevFormatter().format(record).endswith("Trip created [corr=trip-1]")


@pytest.mark.unit
class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_output_with_masking(self, capsys):
        setup_logging(level="DEBUG", json_output=True, environment="staging")

        with log_trip_context("trip-9"):
            logging.getLogger("freightmatch.test.setup").info("call 0754 123 456")

        payload = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert payload["message"] == "call [PHONE]"
        assert payload["trip_id"] == "trip-9"
        assert payload["correlation_id"] == "trip-9"
        assert payload["environment"] == "staging"

    def test_single_handler_and_level(self):
        setup_logging(level="warning")
        setup_logging(level="warning")

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
