"""Best-effort fan-out of snapshot messages to live subscribers."""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import logging
import threading

from n26a_bt._constants import SUBSCRIBER_BUFFER

_logger = logging.getLogger(__name__)

_CLOSED = object()
_ids = itertools.count(1)


class Subscription:
    """Handle returned by :meth:`BroadcastHub.subscribe`.

    Iterate it (``async for message in subscription``) to receive pushed
    messages; iteration ends once the subscription is unsubscribed.
    """

    def __init__(self, buffer_size: int) -> None:
        self.id = next(_ids)
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=buffer_size + 1)
        self._buffer_size = buffer_size
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _offer(self, message: str) -> bool:
        # one queue slot is reserved for the close marker; a full buffer
        # sheds its oldest message so the reader resumes at the newest
        if self._closed:
            return False
        while self._queue.qsize() >= self._buffer_size:
            self._queue.get_nowait()
        self._queue.put_nowait(message)
        return True

    def _close(self) -> None:
        if self._closed:
            return
        self._closed = True
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
        self._queue.put_nowait(_CLOSED)

    async def get(self) -> str | None:
        """Wait for the next message; ``None`` once unsubscribed."""
        if self._closed and self._queue.empty():
            return None
        item = await self._queue.get()
        if item is _CLOSED:
            # keep the marker for any other waiter
            with contextlib.suppress(asyncio.QueueFull):
                self._queue.put_nowait(_CLOSED)
            return None
        assert isinstance(item, str)  # noqa: S101
        return item

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> str:
        message = await self.get()
        if message is None:
            raise StopAsyncIteration
        return message

    def __repr__(self) -> str:
        return f"Subscription(id={self.id}, closed={self._closed})"


class BroadcastHub:
    """Registry of subscribers plus a non-blocking ``publish``.

    All registry access holds one lock and none of it awaits, so a slow
    subscriber can never stall ``publish``: a subscriber whose buffer is
    full loses its oldest pending message and keeps the newest.
    """

    def __init__(self, *, buffer_size: int = SUBSCRIBER_BUFFER) -> None:
        if buffer_size < 1:
            raise ValueError(f"buffer_size must be at least 1, got {buffer_size}")
        self._buffer_size = buffer_size
        self._subscribers: dict[int, Subscription] = {}
        self._lock = threading.Lock()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> Subscription:
        """Register a new subscriber and return its handle."""
        subscription = Subscription(self._buffer_size)
        with self._lock:
            self._subscribers[subscription.id] = subscription
            count = len(self._subscribers)
        _logger.debug("Subscriber %d joined (%d active)", subscription.id, count)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove *subscription*; calling it twice is harmless."""
        with self._lock:
            removed = self._subscribers.pop(subscription.id, None)
            subscription._close()
            count = len(self._subscribers)
        if removed is not None:
            _logger.debug("Subscriber %d left (%d active)", subscription.id, count)

    def publish(self, message: str) -> int:
        """Offer *message* to every subscriber without blocking.

        Returns the number of subscribers that accepted it.
        """
        delivered = 0
        with self._lock:
            for subscription in self._subscribers.values():
                if subscription._offer(message):
                    delivered += 1
        return delivered

    def close(self) -> None:
        """Unsubscribe everyone, ending their streams."""
        with self._lock:
            subscriptions = list(self._subscribers.values())
            self._subscribers.clear()
            for subscription in subscriptions:
                subscription._close()
        if subscriptions:
            _logger.debug("Closed %d subscriber(s)", len(subscriptions))
