"""Event model for the live-update pipeline.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import asdict, dataclass
from typing import Any, TypeAlias


@dataclass(frozen=True, slots=True)
class ChangeDetected:
    """A raw filesystem event was classified after its debounce delay.

    Attributes:
        kind: Raw event kind (``EventKind`` value).
        path: First affected path.
        messages: Number of live messages the event produced.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    kind: str
    path: str
    messages: int
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class MessageBroadcast:
    """A live message was published on the channel.

    Attributes:
        message_type: ``"reload"`` or ``"diff"``.
        path: Web path for diffs, empty for reloads.
        subscribers: Number of subscriptions it reached.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    message_type: str
    path: str
    subscribers: int
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class WatcherFault:
    """The watch backend reported an error; a reload was broadcast instead."""

    error: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ClientConnected:
    """A push connection subscribed to the live channel."""

    client_id: int
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ClientDisconnected:
    """A push connection closed.

    Attributes:
        client_id: Subscription id.
        dropped: Messages discarded because the client fell behind.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    client_id: int
    dropped: int
    timestamp_ns: int


LiveEvent: TypeAlias = (
    ChangeDetected | MessageBroadcast | WatcherFault | ClientConnected | ClientDisconnected
)


def now_ns() -> int:
    """Return the current monotonic time in nanoseconds."""
    return time.monotonic_ns()


EVENT_TYPES: dict[str, type] = {
    cls.__name__: cls
    for cls in (ChangeDetected, MessageBroadcast, WatcherFault, ClientConnected, ClientDisconnected)
}


def event_to_dict(event: LiveEvent) -> dict[str, Any]:
    """JSON-ready form of *event*, tagged with its type name."""
    return {"type": type(event).__name__, **asdict(event)}
