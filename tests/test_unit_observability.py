"""Tests for logging configuration."""

import json
import logging
import sys

import pytest

from blogdata.core.errors import ConcurrencyConflict
from blogdata.core.observability import PLAIN_FORMAT, StructuredFormatter, configure_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="blogdata.repos.crud",
        level=logging.WARNING,
        pathname="crud.py",
        lineno=42,
        msg="Version conflict on %s",
        args=("Post",),
        exc_info=None,
    )
    record.__dict__.update(extra)
    return record


def _record_with(exc: Exception) -> logging.LogRecord:
    try:
        raise exc
    except type(exc):
        record = _record()
        record.exc_info = sys.exc_info()
    return record


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.unit
class TestStructuredFormatter:
    def test_standard_fields(self):
        entry = json.loads(StructuredFormatter().format(_record()))

        assert entry["level"] == "WARNING"
        assert entry["logger"] == "blogdata.repos.crud"
        assert entry["message"] == "Version conflict on Post"
        assert entry["source"]["line"] == 42
        assert "timestamp" in entry
        assert "extra" not in entry
        assert "service" not in entry

    def test_service_name(self):
        entry = json.loads(StructuredFormatter("blogdata").format(_record()))

        assert entry["service"] == "blogdata"

    def test_extra_fields(self):
        entry = json.loads(StructuredFormatter().format(_record(details={"row_count": 2})))

        assert entry["extra"] == {"details": {"row_count": 2}}

    def test_plain_exception(self):
        entry = json.loads(StructuredFormatter().format(_record_with(KeyError("id"))))

        assert entry["error"]["type"] == "KeyError"
        assert "details" not in entry["error"]

    def test_data_access_error_details(self):
        conflict = ConcurrencyConflict("Post", "1234", expected_version=0, actual_version=1)

        entry = json.loads(StructuredFormatter().format(_record_with(conflict)))

        assert entry["error"]["type"] == "ConcurrencyConflict"
        assert entry["error"]["details"]["actual_version"] == 1


@pytest.mark.unit
class TestConfigureLogging:
    def test_structured_handler(self, restore_root_logger):
        configure_logging("DEBUG", service="blogdata")

        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        formatter = restore_root_logger.handlers[0].formatter
        assert isinstance(formatter, StructuredFormatter)
        assert formatter.service == "blogdata"

    def test_plain_handler(self, restore_root_logger):
        configure_logging("warning", structured=False)

        assert restore_root_logger.level == logging.WARNING
        assert restore_root_logger.handlers[0].formatter._fmt == PLAIN_FORMAT

    def test_unknown_level_falls_back_to_info(self, restore_root_logger):
        configure_logging("chatty")

        assert restore_root_logger.level == logging.INFO
