"""Tests for market_pulse/utils/logging.py."""

from __future__ import annotations

import json
import logging

import pytest

from market_pulse.config import LoggingConfig
from market_pulse.utils.logging import _JsonFormatter, configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestJsonFormatter:
    def test_payload_includes_extra(self):
        record = logging.LogRecord(
            "market_pulse.acquisition.fallback", logging.WARNING, __file__, 1,
            "quote provider %s failed", ("yahoo",), None,
        )
        record.provider = "yahoo"
        payload = json.loads(_JsonFormatter().format(record))

        assert payload["level"] == "WARNING"
        assert payload["msg"] == "quote provider yahoo failed"
        assert payload["provider"] == "yahoo"
        assert payload["ts"].endswith("Z")
        assert "args" not in payload


class TestConfigureLogging:
    def test_level_and_file(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "logs" / "app.log"
        configure_logging(LoggingConfig(level="DEBUG", log_file=str(log_file)))

        logging.getLogger("market_pulse.test").debug("hello")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert logging.getLogger().level == logging.DEBUG
        assert "hello" in log_file.read_text(encoding="utf-8")
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_json_format(self, restore_root_logger):
        configure_logging(LoggingConfig(json_format=True))
        assert all(
            isinstance(h.formatter, _JsonFormatter) for h in logging.getLogger().handlers
        )
