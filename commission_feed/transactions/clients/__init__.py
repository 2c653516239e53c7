"""Commission service client implementations."""

from commission_feed.transactions.clients.base import (
    APIConnectionError,
    APIError,
    APIResponseError,
    APIValidationError,
    BaseTransactionClient,
)
from commission_feed.transactions.clients.http_client import HttpTransactionClient
from commission_feed.transactions.clients.mock_client import MockTransactionClient

__all__ = [
    "APIConnectionError",
    "APIError",
    "APIResponseError",
    "APIValidationError",
    "BaseTransactionClient",
    "HttpTransactionClient",
    "MockTransactionClient",
]
