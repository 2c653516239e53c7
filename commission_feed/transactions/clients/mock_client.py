"""
Mock commission service client for testing and development.

Keeps transactions in memory and computes commissions with the same
threshold rule the commission service applies, so the feed can be
exercised without a running backend.
"""

import asyncio
import random
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, List, Optional

from commission_feed.transactions.clients.base import (
    APIConnectionError,
    BaseTransactionClient,
)
from commission_feed.transactions.models import Transaction

COMMISSION_THRESHOLD = Decimal("10000")
HIGH_RATE = Decimal("0.05")
LOW_RATE = Decimal("0.02")


def calculate_commission(amount: float) -> float:
    """
    Commission charged for ``amount``.

    Amounts above the threshold pay the high rate, everything else the low
    rate; the result is rounded half-up to cents.
    """
    value = Decimal(str(amount))
    rate = HIGH_RATE if value > COMMISSION_THRESHOLD else LOW_RATE
    return float((value * rate).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class MockTransactionClient(BaseTransactionClient):
    """
    Mock API client holding transactions in memory.

    Simulates latency and occasional failures of the commission service.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        failure_rate: float = 0.0,
        latency_ms: int = 100,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize mock client.

        Args:
            base_url: Ignored (mock doesn't make real requests)
            timeout: Simulated timeout
            failure_rate: Probability of simulated failure (0.0 to 1.0)
            latency_ms: Simulated network latency in milliseconds
            clock: Source of ``executedAt`` for created transactions
        """
        super().__init__(base_url, timeout)
        self.failure_rate = failure_rate
        self.latency_ms = latency_ms
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._transactions: List[Transaction] = []
        self._next_id = 1

    def get_source_name(self) -> str:
        """Return source identifier."""
        return "mock"

    async def list_transactions(self) -> List[Transaction]:
        """Return stored transactions in insertion order."""
        await self._simulate_latency()
        self._maybe_fail("list")
        return list(self._transactions)

    async def create_transaction(self, amount: float) -> Transaction:
        """Store a transaction, assigning id, commission and execution time."""
        await self._simulate_latency()
        self._maybe_fail("create")
        return self._store(amount)

    def seed(self, amounts: List[float]) -> List[Transaction]:
        """Insert transactions directly, bypassing latency and failures."""
        return [self._store(amount) for amount in amounts]

    def _store(self, amount: float) -> Transaction:
        transaction = Transaction(
            id=self._next_id,
            amount=amount,
            commission=calculate_commission(amount),
            executed_at=self._clock(),
        )
        self._next_id += 1
        self._transactions.append(transaction)
        return transaction

    def _maybe_fail(self, operation: str):
        if self.failure_rate and random.random() < self.failure_rate:
            raise APIConnectionError(f"Simulated {operation} failure")

    async def _simulate_latency(self):
        """Simulate network latency."""
        if self.latency_ms > 0:
            await asyncio.sleep(self.latency_ms / 1000.0)
