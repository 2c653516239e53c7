"""Scripted commission service clients for testing the feed pipeline."""

import asyncio
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Optional

from commission_feed.transactions.clients.base import BaseTransactionClient
from commission_feed.transactions.models import Transaction


def make_tx(tx_id: int, executed_at: str, amount: float = 100.0) -> Transaction:
    """Build a transaction the way the service would serialize it."""
    return Transaction.model_validate(
        {
            "id": tx_id,
            "amount": amount,
            "commission": round(amount * 0.02, 2),
            "executedAt": executed_at,
        }
    )


class ScriptedTransactionClient(BaseTransactionClient):
    """
    Client whose list responses are scripted call by call.

    Each script entry is ``(delay_seconds, outcome)`` where ``outcome`` is a
    list of transactions or an exception to raise. Once the script runs out,
    ``transactions`` is returned immediately.
    """

    def __init__(
        self,
        transactions: Optional[Iterable[Transaction]] = None,
        list_script: Optional[Iterable[tuple]] = None,
        created: Optional[Transaction] = None,
        create_error: Optional[Exception] = None,
    ):
        super().__init__(base_url="http://commission.test/api")
        self.transactions: List[Transaction] = list(transactions or [])
        self.list_script = deque(list_script or [])
        self.created = created
        self.create_error = create_error
        self.list_calls = 0
        self.create_calls: List[float] = []
        self.on_create: Optional[Callable[[float], None]] = None

    def get_source_name(self) -> str:
        return "scripted"

    async def list_transactions(self) -> List[Transaction]:
        self.list_calls += 1
        delay, outcome = self.list_script.popleft() if self.list_script else (0, self.transactions)
        if delay:
            await asyncio.sleep(delay)
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)

    async def create_transaction(self, amount: float) -> Transaction:
        self.create_calls.append(amount)
        if self.on_create is not None:
            self.on_create(amount)
        await asyncio.sleep(0)
        if self.create_error is not None:
            raise self.create_error
        if self.created is not None:
            return self.created
        return Transaction(
            id=len(self.create_calls),
            amount=amount,
            commission=round(amount * 0.02, 2),
            executed_at=datetime.now(timezone.utc),
        )


class StubbornTransactionClient(ScriptedTransactionClient):
    """Ignores cancellation and delivers its (stale) result anyway."""

    async def list_transactions(self) -> List[Transaction]:
        self.list_calls += 1
        delay, outcome = self.list_script.popleft()
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            pass
        return list(outcome)


async def wait_until(predicate: Callable[[], Any], timeout: float = 1.0, step: float = 0.005):
    """Poll ``predicate`` on the running loop until it holds or ``timeout`` expires."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(step)
