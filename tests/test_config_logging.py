"""Tests for settings and logging configuration."""

from __future__ import annotations

import logging

import pytest
import structlog
from structlog.testing import capture_logs

from chainschema import SchemaUsageError, schema
from chainschema.config import Settings, get_settings
from chainschema.logging import (
    LoggerRegistry,
    _censor_sensitive_keys,
    configure_logging,
    engine_logger,
    get_shared_processors,
)


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.LOG_LEVEL == "WARNING"
        assert settings.LOG_JSON is False
        assert settings.ASYNC_RULE_TIMEOUT is None

    def test_env_prefix(self, monkeypatch) -> None:
        monkeypatch.setenv("CHAINSCHEMA_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("CHAINSCHEMA_LOG_JSON", "true")
        settings = get_settings()
        assert settings.LOG_LEVEL == "DEBUG"
        assert settings.LOG_JSON is True

    def test_cached(self) -> None:
        assert get_settings() is get_settings()


class TestLogging:
    """Tests for structlog configuration."""

    def test_configure_logging_installs_handler(self) -> None:
        configure_logging(level="DEBUG", json_logs=True)
        package_logger = logging.getLogger("chainschema")
        assert package_logger.level == logging.DEBUG
        assert len(package_logger.handlers) == 1
        assert package_logger.propagate is False
        assert structlog.is_configured()

    def test_configure_logging_defaults_from_settings(self, monkeypatch) -> None:
        monkeypatch.setenv("CHAINSCHEMA_LOG_LEVEL", "ERROR")
        configure_logging()
        assert logging.getLogger("chainschema").level == logging.ERROR

    def test_sensitive_keys_redacted(self) -> None:
        event = _censor_sensitive_keys(None, "info", {
            "event": "x",
            "password": "hunter2",
            "nested": {"token": "abc", "ok": 1},
        })
        assert event["password"] == "[REDACTED]"
        assert event["nested"] == {"token": "[REDACTED]", "ok": 1}

    def test_shared_processors_include_redaction(self) -> None:
        assert _censor_sensitive_keys in get_shared_processors()

    def test_registry_reuses_loggers(self) -> None:
        assert LoggerRegistry.get("engine") is engine_logger()

    def test_raising_rule_logged_as_warning(self) -> None:
        with capture_logs() as logs:
            schema.number().custom(lambda v: 1 / v).validate(0)
        assert any(entry["event"] == "rule_raised" and entry["log_level"] == "warning" for entry in logs)

    def test_async_misuse_logged(self) -> None:
        async def check(value):
            return True

        field = schema.string().custom_async(check)
        with capture_logs() as logs:
            with pytest.raises(SchemaUsageError):
                field.validate("x")
        assert any(entry["event"] == "sync_validate_on_async_schema" for entry in logs)
