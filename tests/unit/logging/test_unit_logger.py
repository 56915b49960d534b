# tests/unit/logging/test_unit_logger.py — v1
"""Tests for logging/logger.py and logging/handlers.py."""

from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler

import pytest

from shipwright.logging.context import set_phase_context, set_run_context
from shipwright.logging.handlers import create_rotating_handler, parse_size
from shipwright.logging.logger import ROOT_LOGGER, JsonFormatter, TextFormatter, setup_logging


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord("shipwright.test", logging.INFO, __file__, 1, msg, None, None)


class TestJsonFormatter:
    def test_basic_fields(self):
        data = json.loads(JsonFormatter().format(_record()))
        assert data["level"] == "INFO"
        assert data["logger"] == "shipwright.test"
        assert data["message"] == "hello"
        assert "context" not in data

    def test_includes_context(self):
        set_run_context("r1", "moon")
        set_phase_context("build", 2)
        data = json.loads(JsonFormatter().format(_record()))
        assert data["context"] == {"run_id": "r1", "slug": "moon", "phase": "build", "attempt": 2}


class TestTextFormatter:
    def test_shows_slug_and_phase(self):
        set_run_context("r1", "moon")
        set_phase_context("deploy", 3)
        text = TextFormatter().format(_record("shipping"))
        assert "[moon]" in text
        assert "(deploy#3)" in text
        assert text.endswith("- shipping")


class TestSetupLogging:
    def teardown_method(self):
        logging.getLogger(ROOT_LOGGER).handlers.clear()

    def test_reinit_does_not_duplicate(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger(ROOT_LOGGER).handlers) == 1

    def test_json_format(self):
        setup_logging(log_format="json")
        handler = logging.getLogger(ROOT_LOGGER).handlers[0]
        assert isinstance(handler.formatter, JsonFormatter)

    def test_file_handler(self, tmp_path):
        setup_logging(log_file=tmp_path / "logs" / "ship.log", rotation="1KB", retention=2)
        handlers = logging.getLogger(ROOT_LOGGER).handlers
        assert any(isinstance(h, RotatingFileHandler) for h in handlers)
        for h in handlers:
            h.close()


class TestHandlers:
    @pytest.mark.parametrize(
        "text, expected",
        [("10MB", 10 * 1024**2), ("512 kb", 512 * 1024), ("1GB", 1024**3), ("7B", 7)],
    )
    def test_parse_size(self, text, expected):
        assert parse_size(text) == expected

    def test_parse_size_invalid(self):
        with pytest.raises(ValueError, match="Invalid size"):
            parse_size("ten megs")

    def test_rotating_handler_creates_parent(self, tmp_path):
        handler = create_rotating_handler(tmp_path / "a" / "b.log", rotation="2KB", retention=3)
        try:
            assert (tmp_path / "a").is_dir()
            assert handler.maxBytes == 2048
            assert handler.backupCount == 3
        finally:
            handler.close()
