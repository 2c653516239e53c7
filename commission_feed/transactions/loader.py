"""
Feed loader.

Turns trigger events into fetch cycles against the commission service and
keeps the single authoritative Feed State.
"""

import asyncio
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable, Dict, Optional

import structlog

from commission_feed.transactions.clients.base import BaseTransactionClient
from commission_feed.transactions.errors import FetchError, describe_error, wrap_error
from commission_feed.transactions.metrics import CycleStatus, FeedMetrics
from commission_feed.transactions.models import FeedState, sort_snapshot
from commission_feed.transactions.trigger import TriggerEvent

logger = structlog.get_logger()


class FeedLoader:
    """
    Runs one fetch cycle per trigger, latest trigger wins.

    Every trigger bumps a generation counter and cancels the fetch still
    outstanding from the previous one. A cycle only writes Feed State while
    its generation is current, so a stale result that still arrives is
    dropped. Fetch failures are recovered into ``error`` plus an empty
    snapshot and never escape the loader.
    """

    def __init__(
        self,
        client: BaseTransactionClient,
        metrics: Optional[FeedMetrics] = None,
        on_state: Optional[Callable[[FeedState], None]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the loader.

        Args:
            client: Commission service client
            metrics: Metrics tracker (a private one is created when omitted)
            on_state: Called with each new Feed State
            clock: Source of ``last_updated`` timestamps
        """
        self.client = client
        self.metrics = metrics or FeedMetrics()
        self.on_state = on_state
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._state = FeedState()
        self._generation = 0
        self._inflight: Optional[asyncio.Task] = None

    @property
    def state(self) -> FeedState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    def dispatch(self, event: TriggerEvent) -> asyncio.Task:
        """
        Start the fetch cycle for ``event``, superseding any cycle in flight.

        ``loading`` is raised and ``error`` cleared before this returns.

        Returns:
            Task resolving to the Feed State once the cycle ends
        """
        self._supersede()
        self._generation += 1
        generation = self._generation

        self.metrics.start_cycle(generation, event.source.value)
        self._apply(generation, loading=True, error=None)

        task = asyncio.create_task(self._fetch_cycle(event, generation))
        self._inflight = task
        return task

    async def load(self, event: TriggerEvent) -> FeedState:
        """Run one fetch cycle to completion."""
        return await self.dispatch(event)

    async def run(self, triggers: AsyncIterator[TriggerEvent]):
        """Dispatch a cycle for every trigger until cancelled."""
        try:
            async for event in triggers:
                self.dispatch(event)
        finally:
            self.abandon()

    def abandon(self):
        """Invalidate the cycle in flight; its result will never be applied."""
        self._supersede()
        self._generation += 1

    def reset(self):
        """Abandon any cycle in flight and return to the initial state."""
        self.abandon()
        self._state = FeedState()

    def _supersede(self):
        task, self._inflight = self._inflight, None
        if task is not None and not task.done():
            task.cancel()
            self.metrics.end_cycle(self._generation, CycleStatus.SUPERSEDED)
            logger.debug("feed.cycle_superseded", generation=self._generation)

    async def _fetch_cycle(self, event: TriggerEvent, generation: int) -> FeedState:
        log = logger.bind(
            generation=generation,
            trigger=event.source.value,
            sequence=event.sequence,
        )
        log.debug("feed.cycle_started")

        changes: Dict[str, Any] = {}
        status = CycleStatus.FAILED
        failure: Optional[str] = None
        try:
            transactions = await self.client.list_transactions()
            snapshot = sort_snapshot(transactions)
            changes = {"snapshot": snapshot, "last_updated": self._clock(), "error": None}
            status = CycleStatus.SUCCESS
        except Exception as e:
            error = wrap_error(e, FetchError)
            failure = str(e)
            changes = {"snapshot": (), "error": describe_error(error)}
            log.warning(
                "feed.cycle_failed",
                error=failure,
                error_type=type(e).__name__,
            )
        finally:
            applied = self._apply(generation, loading=False, **changes)

        if applied:
            self.metrics.end_cycle(
                generation,
                status,
                transactions_fetched=len(changes["snapshot"]),
                error=failure,
            )
            log.info(
                "feed.cycle_completed",
                status=status.value,
                transactions=len(changes["snapshot"]),
            )
        else:
            log.debug("feed.result_discarded")
        return self._state

    def _apply(self, generation: int, **changes: Any) -> bool:
        """Replace Feed State if ``generation`` is still the latest one."""
        if generation != self._generation:
            return False

        self._state = replace(self._state, **changes)
        if self.on_state is not None:
            self.on_state(self._state)
        return True
