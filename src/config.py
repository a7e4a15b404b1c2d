"""
config.py

Runtime configuration for the QMS compliance service.

Values come from environment variables prefixed with ``QMS_`` (or a local
``.env`` file), e.g. ``QMS_PORT=8080`` or ``QMS_LOG_FORMAT=console``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
VALID_LOG_FORMATS = {"json", "console"}


class Settings(BaseSettings):
    """Service settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="QMS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(default="ISO 9001:2015 QMS Compliance API")
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1, le=65535)
    reload: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    api_prefix: str = Field(default="/api/v1")
    # Comma-separated; "*" allows any origin
    cors_origins: str = Field(default="*")
    mcp_enabled: bool = Field(default=True)

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = (value or "INFO").upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(VALID_LOG_LEVELS)}")
        return level

    @field_validator("log_format", mode="before")
    @classmethod
    def _normalize_log_format(cls, value: str) -> str:
        fmt = (value or "json").lower()
        if fmt not in VALID_LOG_FORMATS:
            raise ValueError(f"log_format must be one of {sorted(VALID_LOG_FORMATS)}")
        return fmt

    @field_validator("api_prefix")
    @classmethod
    def _normalize_api_prefix(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if value and not value.startswith("/"):
            value = "/" + value
        return value

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide settings, read once from the environment."""
    return Settings()
