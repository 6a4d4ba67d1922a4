"""Tests for structured JSON logging."""

import json
import logging
import sys

import pytest

from leadcost_engine.common.logging import JSONFormatter, get_logger, setup_logging


@pytest.fixture
def clean_logger(leadcost_logger):
    leadcost_logger.handlers.clear()
    return leadcost_logger


def _json_handlers(logger):
    return [h for h in logger.handlers if isinstance(h.formatter, JSONFormatter)]


class TestJSONFormatter:
    def test_fields(self):
        record = logging.LogRecord(
            "leadcost_engine.costs", logging.WARNING, __file__, 1,
            "Cost alert for %s", ("2026-03",), None,
        )
        entry = json.loads(JSONFormatter().format(record))
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "leadcost_engine.costs"
        assert entry["message"] == "Cost alert for 2026-03"
        assert "timestamp" in entry

    def test_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord(
                "x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info(),
            )
        entry = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in entry["exception"]


class TestSetupLogging:
    def test_idempotent(self, clean_logger):
        setup_logging("DEBUG")
        setup_logging("DEBUG")
        assert len(_json_handlers(clean_logger)) == 1
        assert clean_logger.level == logging.DEBUG
        assert clean_logger.propagate is False

    def test_unknown_level_defaults_to_info(self, clean_logger):
        setup_logging("chatty")
        assert clean_logger.level == logging.INFO

    def test_get_logger_is_scoped(self):
        assert get_logger("cli").name == "leadcost_engine.cli"

    def test_setup_counts_only_its_own_handler(self, clean_logger):
        clean_logger.addHandler(logging.NullHandler())
        setup_logging("INFO")
        setup_logging("INFO")
        assert len(_json_handlers(clean_logger)) == 1
        assert len(clean_logger.handlers) == 2
