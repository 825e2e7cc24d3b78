"""Tests for the structured logging system (livestock_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from livestock_kernel.domain.entities import AnimalStatus
from livestock_kernel.exceptions import InvalidStateError
from livestock_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests, restoring the suite configuration after."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "livestock.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("sold", extra={"count": 3, "status": "Sold"})

        record = _parse_log(stream)
        assert record["count"] == 3
        assert record["status"] == "Sold"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        with LogContext.bind(correlation_id="abc-123", business_id="biz-1"):
            get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["business_id"] == "biz-1"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise ValueError("boom")
        except ValueError:
            get_logger("test").error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_kernel_exception_code_extracted(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise InvalidStateError("animal-1", "Sold", "sell")
        except InvalidStateError:
            get_logger("test").error("sale_rejected", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "INVALID_STATE"
        assert record["exc_type"] == "InvalidStateError"
        assert record["exc_entity_id"] == "animal-1"
        assert record["exc_current_status"] == "Sold"
        assert record["exc_operation"] == "sell"

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "correlation_id" not in record
        assert "animal_id" not in record

    def test_uuid_decimal_and_enum_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info(
            "typed",
            extra={"animal_uuid": uid, "amount": Decimal("1650.50"), "state": AnimalStatus.SOLD},
        )

        record = _parse_log(stream)
        assert record["animal_uuid"] == str(uid)
        assert record["amount"] == "1650.50"
        assert record["state"] == "Sold"

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        # Default level is INFO
        assert len(logs) == 2
        for record in logs:
            assert {"ts", "level", "logger", "message"} <= set(record)


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    def test_bind_and_get(self):
        with LogContext.bind(correlation_id="x", animal_id="y", business_id=None):
            assert LogContext.get_all() == {"correlation_id": "x", "animal_id": "y"}

    def test_clear(self):
        with LogContext.bind(correlation_id="x"):
            LogContext.clear()
            assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        with LogContext.bind(business_id="outer"):
            with LogContext.bind(business_id="inner"):
                assert LogContext.get_all()["business_id"] == "inner"
            assert LogContext.get_all()["business_id"] == "outer"

    def test_bind_restores_none(self):
        """bind() restores to None if there was no previous value."""
        with LogContext.bind(animal_id="temp"):
            assert LogContext.get_all()["animal_id"] == "temp"
        assert "animal_id" not in LogContext.get_all()

    def test_bind_stringifies_uuid(self):
        uid = uuid4()
        with LogContext.bind(actor_id=uid):
            assert LogContext.get_all()["actor_id"] == str(uid)

    def test_bind_unknown_field(self):
        with pytest.raises(ValueError, match="producer"):
            LogContext.bind(producer="x")

    def test_all_fields(self):
        with LogContext.bind(correlation_id="c", business_id="b", animal_id="a", actor_id="u"):
            assert len(LogContext.get_all()) == 4

    def test_bind_restores_after_exception(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(animal_id="a"):
                raise RuntimeError("boom")
        assert LogContext.get_all() == {}


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)  # second call is no-op
        assert len(logging.getLogger("livestock").handlers) == 1

    def test_get_logger_returns_child(self):
        assert get_logger("services.sale").name == "livestock.services.sale"

    def test_logger_hierarchy(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "livestock.deep.nested.module"

    def test_level_by_name(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level="WARNING")
        logger = get_logger("test")
        logger.info("hidden")
        logger.warning("shown")

        assert [r["message"] for r in _parse_all_logs(stream)] == ["shown"]
