"""
Transaction feed service.

Wires the commission service client, refresh trigger, loader, shared
cache and creation submitter into one object.
"""

from typing import Any, Dict, Optional

import structlog

from commission_feed.transactions.cache import FeedSubscription, Observer, SharedFeedCache
from commission_feed.transactions.clients.base import BaseTransactionClient
from commission_feed.transactions.clients.http_client import HttpTransactionClient
from commission_feed.transactions.clients.mock_client import MockTransactionClient
from commission_feed.transactions.config import FeedConfig, get_feed_config
from commission_feed.transactions.loader import FeedLoader
from commission_feed.transactions.metrics import FeedMetrics
from commission_feed.transactions.models import CreationState
from commission_feed.transactions.submitter import CreationSubmitter
from commission_feed.transactions.trigger import RefreshTrigger

logger = structlog.get_logger()


def create_client(config: FeedConfig) -> BaseTransactionClient:
    """Create the API client selected by ``config.api_client_type``."""
    if config.api_client_type == "mock":
        return MockTransactionClient(timeout=config.api_timeout)
    return HttpTransactionClient(base_url=config.api_base_url, timeout=config.api_timeout)


class TransactionFeed:
    """
    Live view of the commission service's transactions.

    Observers share one refresh pipeline through :attr:`cache`; new
    transactions go through :attr:`submitter`, which refreshes the feed
    when the server confirms them.
    """

    def __init__(
        self,
        client: Optional[BaseTransactionClient] = None,
        config: Optional[FeedConfig] = None,
    ):
        """
        Initialize the feed.

        Args:
            client: Commission service client (defaults to the configured one)
            config: Feed configuration (defaults to loaded config)
        """
        self.config = config or get_feed_config()
        self.client = client or create_client(self.config)
        self.metrics = FeedMetrics(history_size=self.config.metrics_history_size)
        self.trigger = RefreshTrigger(
            interval_seconds=self.config.get_poll_interval_seconds()
        )
        self.loader = FeedLoader(self.client, metrics=self.metrics)
        self.cache = SharedFeedCache(self.trigger, self.loader)
        self.submitter = CreationSubmitter(self.client, self.trigger)

        logger.info(
            "feed.initialized",
            client_type=self.client.get_source_name(),
            poll_interval_ms=self.config.poll_interval_ms,
        )

    def subscribe(self, observer: Optional[Observer] = None) -> FeedSubscription:
        return self.cache.subscribe(observer)

    def refresh_now(self) -> bool:
        """Request an immediate refresh; ignored while nobody observes the feed."""
        return self.trigger.request_refresh(reason="user")

    async def submit(self, amount: Any = None) -> CreationState:
        return await self.submitter.submit(amount)

    def get_status(self) -> Dict[str, Any]:
        """
        Get current feed status and metrics.

        Returns:
            Status dictionary
        """
        latest = self.cache.latest
        return {
            "active": self.cache.active,
            "subscribers": self.cache.subscriber_count,
            "state": latest.to_dict() if latest else None,
            "creation": self.submitter.state.to_dict(),
            "config": {
                "poll_interval_ms": self.config.poll_interval_ms,
                "source": self.client.get_source_name(),
            },
        }

    async def aclose(self):
        """Tear down the pipeline and release the client."""
        await self.cache.aclose()
        await self.client.aclose()


# Global feed instance
_feed_instance: Optional[TransactionFeed] = None


def get_feed() -> TransactionFeed:
    """
    Get or create the global feed instance.

    Returns:
        TransactionFeed singleton
    """
    global _feed_instance
    if _feed_instance is None:
        _feed_instance = TransactionFeed()
    return _feed_instance


def set_feed(feed: Optional[TransactionFeed]):
    """Replace the global feed instance (used by tests and the app lifespan)."""
    global _feed_instance
    _feed_instance = feed
