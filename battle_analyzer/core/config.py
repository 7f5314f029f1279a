"""
Application configuration models and helpers.

Centralizes settings management so the proxy endpoints, the analysis services
and the command-line tooling share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file into the environment."""
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


class AnthropicSettings(BaseSettings):
    """Configuration for the upstream vision inference service."""

    model_config = SettingsConfigDict(env_prefix="ANTHROPIC_")

    api_key: Optional[str] = Field(
        None,
        description=(
            "Server-held credential. Missing credentials fail each analyze call "
            "with a 500 instead of preventing startup."
        ),
    )
    base_url: str = Field("https://api.anthropic.com")
    model: str = Field("claude-sonnet-4-20250514")
    version: str = Field("2023-06-01", description="Value of the anthropic-version header.")
    max_tokens: int = Field(4096, ge=1)
    timeout_seconds: float = Field(60.0, gt=0)

    @field_validator("api_key", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        """Treat an empty variable the same as an unset one."""
        if isinstance(value, str) and not value.strip():
            return None
        return value


class QuotaSettings(BaseSettings):
    """Per-client rate limit and global daily budget for upstream calls."""

    daily_limit: int = Field(50, ge=0, validation_alias="DAILY_LIMIT")
    rate_limit_max_requests: int = Field(
        5, ge=1, validation_alias="RATE_LIMIT_MAX_REQUESTS"
    )
    rate_limit_window_seconds: float = Field(
        60.0, gt=0, validation_alias="RATE_LIMIT_WINDOW_SECONDS"
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    cors_allow_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        ("*",),
        validation_alias="CORS_ALLOW_ORIGINS",
        description="Origins allowed to call the proxy from a browser.",
    )
    anthropic: AnthropicSettings = Field(default_factory=AnthropicSettings)
    quota: QuotaSettings = Field(default_factory=QuotaSettings)

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing origins as a comma-separated string."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(value)
        return tuple(origin.strip() for origin in value.split(",") if origin.strip())


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AnthropicSettings",
    "AppSettings",
    "QuotaSettings",
    "get_settings",
]
