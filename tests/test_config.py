"""Settings loading and logging setup."""

import logging

import pytest
import structlog
from pydantic import ValidationError

from config import Settings, get_settings
from logs import setup_logging


def test_defaults(monkeypatch):
    monkeypatch.delenv("QMS_PORT", raising=False)
    settings = Settings()
    assert settings.port == 8000
    assert settings.api_prefix == "/api/v1"
    assert settings.cors_origin_list == ["*"]


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("QMS_PORT", "9001")
    monkeypatch.setenv("QMS_LOG_LEVEL", "debug")
    monkeypatch.setenv("QMS_CORS_ORIGINS", "http://a.example, http://b.example")
    monkeypatch.setenv("QMS_MCP_ENABLED", "false")

    settings = Settings()
    assert settings.port == 9001
    assert settings.log_level == "DEBUG"
    assert settings.cors_origin_list == ["http://a.example", "http://b.example"]
    assert settings.mcp_enabled is False


def test_invalid_values_are_rejected():
    with pytest.raises(ValidationError):
        Settings(log_level="verbose")
    with pytest.raises(ValidationError):
        Settings(log_format="xml")


def test_api_prefix_is_normalised():
    assert Settings(api_prefix="api/v2/").api_prefix == "/api/v2"


def test_get_settings_is_cached():
    get_settings.cache_clear()
    assert get_settings() is get_settings()
    get_settings.cache_clear()


def test_setup_logging_installs_single_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging("warning", "console")
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING
        structlog.get_logger("test").warning("config_test_event", key="value")
    finally:
        root.handlers = saved_handlers
        root.setLevel(saved_level)
        structlog.reset_defaults()
