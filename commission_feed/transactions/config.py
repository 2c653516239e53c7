"""
Transaction feed configuration.

Defines settings for the refresh interval, the API client used to reach
the commission service, and metrics retention.
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field

from commission_feed.core.config import Settings, get_settings


class FeedConfig(BaseModel):
    """Main transaction feed configuration."""

    # Refresh behavior
    poll_interval_ms: int = Field(
        default=5000, ge=1, description="Milliseconds between periodic refreshes"
    )

    # API client settings
    api_client_type: Literal["http", "mock"] = Field(
        default="http", description="Type of API client (http, mock)"
    )
    api_base_url: str = Field(
        default="http://localhost:8080/api",
        description="Base URL of the commission service",
    )
    api_timeout: float = Field(
        default=10.0, gt=0, description="API request timeout in seconds"
    )

    # Metrics
    metrics_history_size: int = Field(
        default=100, ge=1, description="Fetch cycles kept in memory"
    )

    def get_poll_interval_seconds(self) -> float:
        """Get poll interval in seconds."""
        return self.poll_interval_ms / 1000.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "FeedConfig":
        """Build the feed configuration from application settings."""
        return cls(
            poll_interval_ms=settings.FEED_POLL_INTERVAL_MS,
            api_client_type=settings.TRANSACTIONS_API_CLIENT,
            api_base_url=settings.TRANSACTIONS_API_BASE_URL,
            api_timeout=settings.TRANSACTIONS_API_TIMEOUT,
        )


def get_feed_config(settings: Optional[Settings] = None) -> FeedConfig:
    """Get feed configuration from the environment-backed settings."""
    return FeedConfig.from_settings(settings or get_settings())
