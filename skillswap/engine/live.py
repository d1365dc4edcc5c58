"""
skillswap.engine.live — In-Process Live Query Hub
===================================================

Push updates for the WebSocket endpoints.  A consumer subscribes to a
collection with a synchronous *query*; the hub runs it once immediately and
again after every change to that collection, yielding full snapshots.

Flow::

    service commit ──► hub.publish("swapRequests")        (worker thread)
                          │  loop.call_soon_threadsafe
                          ▼
    Subscription._mark_dirty()                           (event loop)
                          │
    async for snapshot in sub  ──►  run_db(query)  ──►  websocket.send_json

Several publishes that land before the consumer reads again coalesce into a
single re-query.  Snapshots carry no ordering guarantee relative to the
publisher's own response; readers reconcile by entity id.

The hub lives in one process.  Several API workers each keep their own hub
and only see writes made through themselves.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from typing import Generic, TypeVar

from skillswap.database.engine import run_db

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Collection names accepted by subscribe() / publish()
COLLECTIONS: frozenset[str] = frozenset({
    "users",
    "swapRequests",
    "feedbacks",
    "notifications",
    "reports",
})


class Subscription(Generic[T]):
    """Async iterator over snapshots of one live query.

    Usage::

        sub = hub.subscribe("notifications", partial(list_for_user, engine, uid))
        async for snapshot in sub:
            ...
        sub.cancel()   # from anywhere on the loop; ends the iteration
    """

    def __init__(
        self,
        hub: LiveQueryHub,
        collection: str,
        query: Callable[[], T],
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self._hub = hub
        self.collection = collection
        self._query = query
        self._loop = loop
        self._event = asyncio.Event()
        self._dirty = True
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _mark_dirty(self) -> None:
        if self._closed:
            return
        self._dirty = True
        self._event.set()

    def cancel(self) -> None:
        """Stop the subscription.  Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._event.set()
        self._hub._remove(self)
        logger.debug("Live subscription on %s cancelled", self.collection)

    def __aiter__(self) -> Subscription[T]:
        return self

    async def __anext__(self) -> T:
        while not self._closed:
            if self._dirty:
                self._dirty = False
                snapshot = await run_db(self._query)
                if self._closed:
                    break
                return snapshot
            self._event.clear()
            await self._event.wait()
        raise StopAsyncIteration


class LiveQueryHub:
    """Registry of live subscriptions keyed by collection name."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subs: dict[str, set[Subscription]] = {name: set() for name in COLLECTIONS}

    def subscribe(self, collection: str, query: Callable[[], T]) -> Subscription[T]:
        """Register a live query.  Must be called from a running event loop."""
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection!r}")
        loop = asyncio.get_running_loop()
        sub: Subscription[T] = Subscription(self, collection, query, loop)
        with self._lock:
            self._subs[collection].add(sub)
        logger.debug("Live subscription on %s opened", collection)
        return sub

    def publish(self, *collections: str) -> None:
        """Mark every subscription on *collections* dirty.

        Callable from any thread.  Unknown names are rejected so a typo in a
        service cannot silently stop live updates.
        """
        for collection in collections:
            if collection not in COLLECTIONS:
                raise ValueError(f"Unknown collection: {collection!r}")
            with self._lock:
                targets = list(self._subs[collection])
            for sub in targets:
                try:
                    sub._loop.call_soon_threadsafe(sub._mark_dirty)
                except RuntimeError:
                    # Owning loop already closed; the consumer is gone.
                    self._remove(sub)
                    logger.debug("Dropped live subscription on closed loop (%s)", collection)

    def subscriber_count(self, collection: str | None = None) -> int:
        with self._lock:
            if collection is not None:
                return len(self._subs.get(collection, ()))
            return sum(len(s) for s in self._subs.values())

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            self._subs.get(sub.collection, set()).discard(sub)


def notify_changed(hub: LiveQueryHub | None, *collections: str) -> None:
    """Publish *collections* on *hub* if one is wired in.

    Services call this after their transaction has committed.
    """
    if hub is not None:
        hub.publish(*collections)
