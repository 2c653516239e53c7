"""
Transaction feed module.

Keeps a continuously refreshed view of the commission service's
transactions and lets callers register new ones, with periodic and
manual refreshes sharing one latest-wins fetch pipeline.
"""

from commission_feed.transactions.cache import FeedSubscription, SharedFeedCache
from commission_feed.transactions.clients.base import BaseTransactionClient
from commission_feed.transactions.clients.http_client import HttpTransactionClient
from commission_feed.transactions.clients.mock_client import MockTransactionClient
from commission_feed.transactions.feed import TransactionFeed, get_feed
from commission_feed.transactions.loader import FeedLoader
from commission_feed.transactions.metrics import FeedMetrics
from commission_feed.transactions.models import CreationState, FeedState, Transaction
from commission_feed.transactions.submitter import CreationSubmitter
from commission_feed.transactions.trigger import RefreshTrigger, TriggerEvent

__all__ = [
    "BaseTransactionClient",
    "CreationState",
    "CreationSubmitter",
    "FeedLoader",
    "FeedMetrics",
    "FeedState",
    "FeedSubscription",
    "HttpTransactionClient",
    "MockTransactionClient",
    "RefreshTrigger",
    "SharedFeedCache",
    "Transaction",
    "TransactionFeed",
    "TriggerEvent",
    "get_feed",
]
