"""
Shared feed cache.

Multicasts Feed State from one refresh pipeline to any number of
observers, with reference-counted pipeline lifetime.
"""

import asyncio
from contextlib import aclosing
from typing import AsyncIterator, Callable, List, Optional

import structlog

from commission_feed.transactions.loader import FeedLoader
from commission_feed.transactions.models import FeedState
from commission_feed.transactions.trigger import RefreshTrigger

logger = structlog.get_logger()

Observer = Callable[[FeedState], None]


class FeedSubscription:
    """
    One observer's handle on the shared feed.

    States are pushed to the optional ``observer`` callback as they are
    produced. The subscription can also be iterated with ``async for``;
    each iteration starts from the latest state, ends once the
    subscription is closed, and only buffers states while it is running.
    """

    def __init__(self, cache: "SharedFeedCache", observer: Optional[Observer] = None):
        self._cache = cache
        self._observer = observer
        self._queues: List[asyncio.Queue] = []
        self.latest: Optional[FeedState] = None
        self.closed = False

    @property
    def pending_states(self) -> int:
        """States buffered for running iterations and not yet consumed."""
        return sum(queue.qsize() for queue in self._queues)

    def deliver(self, state: FeedState):
        self.latest = state
        for queue in self._queues:
            queue.put_nowait(state)
        if self._observer is not None:
            try:
                self._observer(state)
            except Exception as e:
                logger.error(
                    "feed.observer_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )

    async def close(self):
        """Stop receiving updates. Closing twice is a no-op."""
        if self.closed:
            return
        self.closed = True
        for queue in self._queues:
            queue.put_nowait(None)
        await self._cache.unsubscribe(self)

    async def wait_for(
        self, predicate: Callable[[FeedState], bool], timeout: Optional[float] = None
    ) -> FeedState:
        """Wait for the first state (latest included) matching ``predicate``."""

        async def _wait() -> FeedState:
            async with aclosing(self._iterate()) as states:
                async for state in states:
                    if predicate(state):
                        return state
            raise RuntimeError("Subscription closed before a matching state arrived")

        return await asyncio.wait_for(_wait(), timeout)

    def __aiter__(self) -> AsyncIterator[FeedState]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[FeedState]:
        if self.closed:
            return
        queue: asyncio.Queue = asyncio.Queue()
        if self.latest is not None:
            queue.put_nowait(self.latest)
        self._queues.append(queue)
        try:
            while True:
                state = await queue.get()
                if state is None:
                    return
                yield state
        finally:
            self._queues.remove(queue)

    async def __aenter__(self) -> "FeedSubscription":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()


class SharedFeedCache:
    """
    Broadcast point between one refresh pipeline and its observers.

    The first subscriber activates the trigger and starts the pipeline;
    later subscribers get the last produced state replayed synchronously
    without causing a fetch. When the last subscriber leaves, the timer is
    stopped, the in-flight fetch abandoned and the state forgotten, so the
    next subscriber starts with a fresh fetch.
    """

    def __init__(self, trigger: RefreshTrigger, loader: FeedLoader):
        self.trigger = trigger
        self.loader = loader
        self.loader.on_state = self._publish
        self._subscribers: List[FeedSubscription] = []
        self._latest: Optional[FeedState] = None
        self._pipeline: Optional[asyncio.Task] = None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def active(self) -> bool:
        return self._pipeline is not None

    @property
    def latest(self) -> Optional[FeedState]:
        return self._latest

    def subscribe(self, observer: Optional[Observer] = None) -> FeedSubscription:
        """
        Register an observer. Must be called from a running event loop.

        Returns:
            Subscription to close (or use as an async context manager)
        """
        subscription = FeedSubscription(self, observer)
        self._subscribers.append(subscription)
        logger.debug("feed.subscribed", subscribers=len(self._subscribers))

        if self._pipeline is None:
            self._activate()
        elif self._latest is not None:
            subscription.deliver(self._latest)
        return subscription

    async def unsubscribe(self, subscription: FeedSubscription):
        if subscription not in self._subscribers:
            return
        self._subscribers.remove(subscription)
        logger.debug("feed.unsubscribed", subscribers=len(self._subscribers))

        if not self._subscribers:
            await self._deactivate()

    async def aclose(self):
        """Close every subscription, tearing the pipeline down."""
        for subscription in list(self._subscribers):
            await subscription.close()

    def _activate(self):
        self.trigger.activate()
        self._pipeline = asyncio.create_task(self.loader.run(self.trigger.events()))
        logger.info("feed.pipeline_started")

    async def _deactivate(self):
        pipeline, self._pipeline = self._pipeline, None
        timer = self.trigger.deactivate()
        self.loader.reset()
        self._latest = None

        for task in (pipeline, timer):
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info("feed.pipeline_stopped")

    def _publish(self, state: FeedState):
        self._latest = state
        for subscription in list(self._subscribers):
            subscription.deliver(state)
