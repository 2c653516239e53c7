"""
Refresh trigger for the transaction feed.

Merges a periodic timer and manual refresh requests into one stream of
trigger events, consumed by a single loop.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import AsyncIterator, Optional

import structlog

logger = structlog.get_logger()


class TriggerSource(str, Enum):
    """Where a trigger event came from."""

    PERIODIC = "periodic"
    MANUAL = "manual"


@dataclass(frozen=True)
class TriggerEvent:
    """A request to re-fetch the feed."""

    sequence: int
    source: TriggerSource
    fired_at: datetime
    reason: Optional[str] = None


class RefreshTrigger:
    """
    Lazy, restartable stream of refresh triggers.

    Nothing fires until :meth:`activate` is called. Once active, a timer
    task fires immediately and then every ``interval_seconds``, and
    :meth:`request_refresh` adds manual triggers to the same queue. Every
    fire is a distinct event; nothing is coalesced. Deactivating stops the
    timer and drops whatever was queued.
    """

    def __init__(self, interval_seconds: float = 5.0):
        """
        Initialize the trigger.

        Args:
            interval_seconds: Delay between periodic triggers
        """
        self.interval_seconds = interval_seconds
        self._queue: Optional[asyncio.Queue] = None
        self._timer: Optional[asyncio.Task] = None
        self._sequence = 0

    @property
    def active(self) -> bool:
        return self._queue is not None

    def activate(self):
        """Start the periodic source. Must be called from a running event loop."""
        if self._queue is not None:
            logger.debug("trigger.already_active")
            return

        queue: asyncio.Queue = asyncio.Queue()
        self._queue = queue
        self._timer = asyncio.create_task(self._run_timer(queue))
        logger.info("trigger.activated", interval_seconds=self.interval_seconds)

    def deactivate(self) -> Optional[asyncio.Task]:
        """
        Stop the periodic source and drop pending triggers.

        Returns:
            The cancelled timer task, for callers that want to await it
        """
        if self._queue is None:
            return None

        dropped = self._queue.qsize()
        timer, self._timer = self._timer, None
        self._queue = None
        if timer:
            timer.cancel()

        logger.info("trigger.deactivated", dropped_triggers=dropped)
        return timer

    def request_refresh(self, reason: Optional[str] = None) -> bool:
        """
        Fire a manual trigger.

        Returns:
            False when the trigger is inactive; the request is lost, not queued
        """
        if self._queue is None:
            logger.debug("trigger.refresh_ignored", reason=reason)
            return False

        event = self._emit(self._queue, TriggerSource.MANUAL, reason)
        logger.debug("trigger.manual_refresh", sequence=event.sequence, reason=reason)
        return True

    def events(self) -> AsyncIterator[TriggerEvent]:
        """
        Iterate trigger events in arrival order.

        The iterator is bound to the current activation; it never ends on its
        own and is stopped by cancelling the task consuming it.
        """
        if self._queue is None:
            raise RuntimeError("RefreshTrigger is not active")
        return self._drain(self._queue)

    async def _drain(self, queue: asyncio.Queue) -> AsyncIterator[TriggerEvent]:
        while True:
            yield await queue.get()

    async def _run_timer(self, queue: asyncio.Queue):
        while True:
            self._emit(queue, TriggerSource.PERIODIC)
            await asyncio.sleep(self.interval_seconds)

    def next_event(
        self, source: TriggerSource = TriggerSource.MANUAL, reason: Optional[str] = None
    ) -> TriggerEvent:
        """Build the next event in sequence without queueing it (one-off loads)."""
        self._sequence += 1
        return TriggerEvent(
            sequence=self._sequence,
            source=source,
            fired_at=datetime.now(timezone.utc),
            reason=reason,
        )

    def _emit(
        self, queue: asyncio.Queue, source: TriggerSource, reason: Optional[str] = None
    ) -> TriggerEvent:
        event = self.next_event(source, reason)
        queue.put_nowait(event)
        return event
