"""
Configuration management using pydantic-settings.

Loads configuration from environment variables and .env files.
Validates fields and provides typed access to settings.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Optional:
        CACHE_DIR: Directory holding cached files
        DEFAULT_EXTENSION: Extension used when a URI has none
        FETCH_TIMEOUT: HTTP timeout in seconds
        FETCH_MAX_ATTEMPTS: Attempts per download on transport errors
        FETCH_BACKOFF: Exponential backoff multiplier between attempts
        USER_AGENT: User-Agent header sent with every download
        SINGLE_FLIGHT: Collapse concurrent downloads of the same URI
        LOG_LEVEL: Logging level
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    CACHE_DIR: Path = Field(
        default=Path(".cache") / "image-cache",
        description="Directory holding cached files",
    )
    DEFAULT_EXTENSION: str = Field(
        default=".jpg",
        description="Extension for URIs whose file name has no dot",
    )

    # Fetching
    FETCH_TIMEOUT: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    FETCH_MAX_ATTEMPTS: int = Field(
        default=3, ge=1, description="Attempts per download on transport errors"
    )
    FETCH_BACKOFF: float = Field(
        default=1.0, ge=0, description="Backoff multiplier between attempts"
    )
    USER_AGENT: str = Field(
        default="imgcache/0.1",
        description="User-Agent header sent with every download",
    )
    SINGLE_FLIGHT: bool = Field(
        default=True,
        description="Share one in-flight download between concurrent requests for a URI",
    )

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )

    @field_validator("DEFAULT_EXTENSION")
    @classmethod
    def validate_default_extension(cls, v: str) -> str:
        """Validate that DEFAULT_EXTENSION looks like a file extension."""
        if not v.startswith(".") or len(v) < 2:
            raise ValueError("DEFAULT_EXTENSION must start with '.' (e.g. '.jpg')")
        if "/" in v:
            raise ValueError("DEFAULT_EXTENSION must not contain a path separator")
        return v

    def ensure_directories(self) -> None:
        """Create the cache directory if it doesn't exist."""
        self.CACHE_DIR.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
