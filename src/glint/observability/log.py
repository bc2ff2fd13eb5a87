"""In-memory record of what the live pipeline did.

The watcher and the push endpoint append events; ``/_live/stats`` reads
them back as per-type counts and a filtered list of the latest entries.
Old entries fall off the front once ``max_events`` is reached.

Appends come from the event loop, reads may come from anywhere, so every
access goes through one ``threading.Lock``.
"""

import threading
from collections import deque
from typing import Any

from glint.observability.events import LiveEvent


class EventLog:
    """Fixed-size ring of :data:`LiveEvent` records.

    Args:
        max_events: How many events to keep before dropping the oldest.

    """

    __slots__ = ("_events", "_lock", "_max_events")

    def __init__(self, max_events: int = 10_000) -> None:
        self._max_events = max_events
        self._events: deque[LiveEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def append(self, event: LiveEvent) -> None:
        with self._lock:
            self._events.append(event)

    def query(
        self,
        *,
        event_type: type | None = None,
        since_ns: int = 0,
        path: str | None = None,
        limit: int = 100,
    ) -> list[LiveEvent]:
        """Newest-first events matching every given filter.

        *path* is a substring match against events that carry a ``path``;
        events without one never match a path filter.

        """
        with self._lock:
            snapshot = tuple(self._events)

        matched: list[LiveEvent] = []
        for event in reversed(snapshot):
            if len(matched) >= limit:
                break
            if event_type is not None and not isinstance(event, event_type):
                continue
            if event.timestamp_ns < since_ns:
                continue
            if path is not None and path not in getattr(event, "path", ""):
                continue
            matched.append(event)
        return matched

    def stats(self) -> dict[str, Any]:
        """Total, capacity and per-type counts of the retained events."""
        with self._lock:
            snapshot = tuple(self._events)

        by_type: dict[str, int] = {}
        for event in snapshot:
            name = type(event).__name__
            by_type[name] = by_type.get(name, 0) + 1

        return {"total": len(snapshot), "max_events": self._max_events, "by_type": by_type}
