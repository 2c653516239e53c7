"""
Base transaction API client interface.

Defines the contract that all commission service clients must implement.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from commission_feed.transactions.models import Transaction


class BaseTransactionClient(ABC):
    """
    Abstract base class for commission service clients.

    The feed only needs two operations: list every transaction and
    register a new one.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: float = 10.0):
        """
        Initialize the client.

        Args:
            base_url: Base URL for the API
            timeout: Request timeout in seconds
        """
        self.base_url = base_url
        self.timeout = timeout

    @abstractmethod
    async def list_transactions(self) -> List[Transaction]:
        """
        Fetch every transaction, in the order the server returns them.

        Raises:
            APIConnectionError: If the service cannot be reached
            APIResponseError: If the service answers with a non-2xx status
            APIValidationError: If the payload does not match the schema
        """
        pass

    @abstractmethod
    async def create_transaction(self, amount: float) -> Transaction:
        """
        Register a new transaction for ``amount``.

        Returns:
            The created record, with server-assigned id and commission
        """
        pass

    @abstractmethod
    def get_source_name(self) -> str:
        """
        Get the name of this transaction source.

        Returns:
            Source identifier (e.g., 'http', 'mock')
        """
        pass

    async def aclose(self) -> None:
        """Release transport resources. Nothing to do by default."""
        return None


class APIError(Exception):
    """
    Base exception for API client errors.

    ``user_message`` is set only when the text is fit to show to a user;
    transport and server failures leave it empty.
    """

    def __init__(self, message: str = "", user_message: Optional[str] = None):
        super().__init__(message)
        self.user_message = user_message


class APIConnectionError(APIError):
    """Raised when connection to API fails."""

    pass


class APIResponseError(APIError):
    """Raised when the API answers with a non-2xx status."""

    def __init__(self, status_code: int, body: str = ""):
        super().__init__(f"HTTP {status_code}: {body[:200]}")
        self.status_code = status_code


class APIValidationError(APIError):
    """Raised when API returns invalid data."""

    pass
