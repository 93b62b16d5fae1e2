"""
Application configuration models and helpers.

Centralizes settings management so the report session, the local HTTP surface
and the command-line chat share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path

import os

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class ForecastApiSettings(BaseSettings):
    """Connection settings for the remote forecasting service."""

    base_url: AnyHttpUrl = Field(
        "https://harideeshab-pharma-sales-api.hf.space",
        validation_alias="FORECAST_API_BASE_URL",
    )
    timeout_seconds: float = Field(
        120.0,
        validation_alias="FORECAST_API_TIMEOUT",
        description="Report generation runs server-side and can take a while.",
    )
    retry_attempts: int = Field(
        2,
        ge=1,
        validation_alias="FORECAST_API_RETRY_ATTEMPTS",
        description="Attempts per call; only transport failures are retried.",
    )
    retry_backoff_seconds: float = Field(
        1.0, ge=0, validation_alias="FORECAST_API_RETRY_BACKOFF"
    )

    @property
    def root_url(self) -> str:
        """Base URL without a trailing slash; endpoint paths start with one."""
        return str(self.base_url).rstrip("/")


class AppSettings(BaseSettings):
    """Root settings object for the forecast client."""

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    api: ForecastApiSettings = Field(default_factory=ForecastApiSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "ForecastApiSettings",
    "get_settings",
]
