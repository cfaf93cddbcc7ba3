# tests/unit/logging/test_unit_logger.py - v2
"""Tests for logging/logger.py - formatters and setup."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from orcsindex.config.settings import Settings
from orcsindex.logging.context import clear_context, set_build_context, set_document_context
from orcsindex.logging.logger import (
    JsonFormatter,
    TextFormatter,
    get_logger,
    setup_from_settings,
    setup_logging,
)


def _record(msg: str = "Hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="orcsindex.test", level=logging.INFO, pathname="", lineno=0,
        msg=msg, args=(), exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def _reset():
    clear_context()
    yield
    clear_context()
    root = logging.getLogger("orcsindex")
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)


class TestJsonFormatter:
    def test_basic(self):
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert parsed["logger"] == "orcsindex.test"
        assert "timestamp" in parsed
        assert "context" not in parsed

    def test_context_attached(self):
        set_build_context("b-7", operation="rebuild")
        set_document_context("report.txt")
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["context"] == {"document_id": "report.txt", "build_id": "b-7", "operation": "rebuild"}

    def test_data_payload(self):
        parsed = json.loads(JsonFormatter().format(_record(data={"files": 3})))
        assert parsed["data"] == {"files": 3}

    def test_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record()
            record.exc_info = sys.exc_info()
        parsed = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in parsed["exception"]


class TestTextFormatter:
    def test_plain(self):
        text = TextFormatter().format(_record())
        assert "[INFO    ]" in text
        assert text.endswith("- Hello")

    def test_with_context(self):
        set_build_context("b-7")
        set_document_context("report.txt")
        text = TextFormatter().format(_record())
        assert "[build b-7]" in text
        assert "(report.txt)" in text


class TestSetup:
    def test_get_logger_prefix(self):
        assert get_logger("index").name == "orcsindex.index"

    def test_console_only(self):
        logger = setup_logging(level="DEBUG", log_format="text")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, TextFormatter)

    def test_reinit_does_not_stack_handlers(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger("orcsindex").handlers) == 1

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "index.log"
        logger = setup_logging(log_file=log_file)
        assert len(logger.handlers) == 2
        get_logger("test").warning("written to file")
        for handler in logger.handlers:
            handler.flush()
        assert "written to file" in log_file.read_text(encoding="utf-8")

    def test_from_settings(self, tmp_path):
        settings = Settings(_env_file=None, log_level="ERROR", log_format="json")
        logger = setup_from_settings(settings)
        assert logger.level == logging.ERROR
        assert isinstance(logger.handlers[0].formatter, JsonFormatter)
