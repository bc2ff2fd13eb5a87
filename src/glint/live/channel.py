"""Live channel — bounded fan-out of live messages to push connections.

One producer side (the change watcher) and one :class:`Subscription` per
open push connection.  Each subscription owns a fixed-size buffer: when a
slow client falls behind, its oldest pending messages are dropped.  The
producer never waits on a consumer.

Thread Safety:
    The subscriber set is protected by a ``threading.Lock``.  ``publish``
    wakes consumers through ``asyncio.Event`` and must be called from the
    event loop that runs them.

"""

from __future__ import annotations

import asyncio
import itertools
import threading
from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from glint.live.messages import LiveMessage

DEFAULT_CAPACITY = 64

_ids = itertools.count(1)


class Subscription:
    """One push connection's view of the channel.

    Iterate with ``async for``; iteration ends once the subscription or the
    channel is closed and the buffer has been drained.

    Args:
        capacity: Maximum number of undelivered messages kept.

    """

    __slots__ = ("_buffer", "_closed", "_ready", "dropped", "id")

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self.id = next(_ids)
        self.dropped = 0
        self._buffer: deque[LiveMessage] = deque(maxlen=capacity)
        self._ready = asyncio.Event()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Number of buffered, undelivered messages."""
        return len(self._buffer)

    def push(self, message: LiveMessage) -> bool:
        """Buffer *message*, evicting the oldest one when full.

        Returns False if the subscription is closed.
        """
        if self._closed:
            return False
        if len(self._buffer) == self._buffer.maxlen:
            self.dropped += 1
        self._buffer.append(message)
        self._ready.set()
        return True

    def close(self) -> None:
        self._closed = True
        self._ready.set()

    async def get(self) -> LiveMessage:
        """Wait for the next message.

        Raises:
            StopAsyncIteration: The subscription is closed and drained.

        """
        while not self._buffer:
            if self._closed:
                raise StopAsyncIteration
            self._ready.clear()
            await self._ready.wait()
        return self._buffer.popleft()

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> LiveMessage:
        return await self.get()


class LiveChannel:
    """Broadcasts live messages to every current subscription.

    New subscriptions only see messages published after they subscribed.

    Args:
        capacity: Per-subscription buffer size.

    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self._capacity = capacity
        self._subscribers: set[Subscription] = set()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> Subscription:
        """Open a new subscription."""
        sub = Subscription(self._capacity)
        with self._lock:
            if self._closed:
                sub.close()
            else:
                self._subscribers.add(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        """Close *sub* and stop delivering to it."""
        with self._lock:
            self._subscribers.discard(sub)
        sub.close()

    def publish(self, message: LiveMessage) -> int:
        """Deliver *message* to all subscriptions.

        Returns:
            Number of subscriptions the message was buffered for.

        """
        with self._lock:
            subscribers = tuple(self._subscribers)

        return sum(1 for sub in subscribers if sub.push(message))

    def close(self) -> None:
        """Close the channel and end every subscription's iteration."""
        with self._lock:
            self._closed = True
            subscribers = tuple(self._subscribers)
            self._subscribers.clear()
        for sub in subscribers:
            sub.close()
