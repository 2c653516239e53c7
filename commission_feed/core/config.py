from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    This uses pydantic-settings so that we get type validation and defaults.
    Settings are loaded from environment variables with optional .env file override.
    """

    # App basics
    ENV: Literal["development", "staging", "production"] = "development"
    """Environment mode: affects logging and which API client is acceptable."""

    DEBUG: bool = True
    """Enable debug mode: verbose logging and development features."""

    # Commission service
    TRANSACTIONS_API_BASE_URL: str = "http://localhost:8080/api"
    """Base URL of the commission service; `/transactions` is appended."""

    TRANSACTIONS_API_CLIENT: Literal["http", "mock"] = "http"
    """Which transaction API client to build (`mock` keeps everything in memory)."""

    TRANSACTIONS_API_TIMEOUT: float = 10.0
    """Transport timeout in seconds for each request to the commission service."""

    # Feed
    FEED_POLL_INTERVAL_MS: int = 5000
    """Milliseconds between periodic refreshes of the transaction feed."""

    # Model config
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance to avoid re-parsing .env repeatedly."""
    return Settings()
