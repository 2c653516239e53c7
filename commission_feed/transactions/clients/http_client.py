"""
HTTP client for the commission service.

Talks JSON over httpx to ``<base_url>/transactions``.
"""

from typing import Any, List, Optional

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from commission_feed.transactions.clients.base import (
    APIConnectionError,
    APIResponseError,
    APIValidationError,
    BaseTransactionClient,
)
from commission_feed.transactions.models import Transaction

logger = structlog.get_logger()

INVALID_PAYLOAD_MESSAGE = "El servicio de comisiones envio una respuesta invalida"

_transaction_list = TypeAdapter(List[Transaction])


class HttpTransactionClient(BaseTransactionClient):
    """Commission service client backed by a shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        base_url: str = "http://localhost:8080/api",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Base URL of the service, without the ``/transactions`` suffix
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
        """
        super().__init__(base_url.rstrip("/"), timeout)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/transactions"

    def get_source_name(self) -> str:
        return "http"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            )
        return self._client

    async def list_transactions(self) -> List[Transaction]:
        payload = await self._request("GET", self.endpoint)
        try:
            return _transaction_list.validate_python(payload)
        except ValidationError as e:
            raise APIValidationError(str(e), user_message=INVALID_PAYLOAD_MESSAGE) from e

    async def create_transaction(self, amount: float) -> Transaction:
        payload = await self._request("POST", self.endpoint, json={"amount": amount})
        try:
            return Transaction.model_validate(payload)
        except ValidationError as e:
            raise APIValidationError(str(e), user_message=INVALID_PAYLOAD_MESSAGE) from e

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._get_client().request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(
                "http_client.transport_error",
                method=method,
                url=url,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise APIConnectionError(f"{method} {url} failed: {e}") from e

        if not response.is_success:
            logger.warning(
                "http_client.bad_status",
                method=method,
                url=url,
                status=response.status_code,
            )
            raise APIResponseError(response.status_code, response.text)

        try:
            return response.json()
        except ValueError as e:
            raise APIValidationError(
                f"{method} {url} returned non-JSON body",
                user_message=INVALID_PAYLOAD_MESSAGE,
            ) from e

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
