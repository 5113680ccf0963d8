"""
Tests for configuration and logging setup
"""

import json
import logging

from utils.config import Config
from utils.logging import JsonFormatter


class TestConfig:
    def test_defaults(self, monkeypatch):
        for name in ("HOST", "PORT", "DEBUG", "ALLOWED_ORIGINS", "LOG_LEVEL", "LOG_FORMAT"):
            monkeypatch.delenv(name, raising=False)

        config = Config.load()

        assert config.port == 8000
        assert config.debug is False
        assert config.log_level == "INFO"
        assert "http://localhost:8000" in config.allowed_origins

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("PORT", "9100")
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("ALLOWED_ORIGINS", "https://app.example.ma, https://admin.example.ma ,")

        config = Config.load()

        assert config.port == 9100
        assert config.debug is True
        assert config.allowed_origins == ["https://app.example.ma", "https://admin.example.ma"]
        assert config.to_dict()["port"] == 9100


class TestJsonFormatter:
    def test_one_json_object_per_record(self):
        record = logging.LogRecord(
            name="core.ledger.ledger",
            level=logging.WARNING,
            pathname=__file__,
            lineno=1,
            msg="Rejected out-of-order %s event",
            args=("price_updated",),
            exc_info=None,
        )

        data = json.loads(JsonFormatter().format(record))

        assert data["level"] == "WARNING"
        assert data["logger"] == "core.ledger.ledger"
        assert data["message"] == "Rejected out-of-order price_updated event"
