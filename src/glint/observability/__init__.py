"""Observability — structured events for the live-update pipeline.

Records what the watcher saw, what the classifier decided and who got
notified, in a bounded in-memory log served by ``/_live/stats``.

Quick Start:
    >>> from glint.observability import EventLog, MessageBroadcast, now_ns
    >>> log = EventLog()
    >>> log.append(MessageBroadcast("reload", "", 2, now_ns()))

"""

from glint.observability.events import (
    EVENT_TYPES,
    ChangeDetected,
    ClientConnected,
    ClientDisconnected,
    LiveEvent,
    MessageBroadcast,
    WatcherFault,
    event_to_dict,
    now_ns,
)
from glint.observability.log import EventLog

__all__ = [
    "EVENT_TYPES",
    "ChangeDetected",
    "ClientConnected",
    "ClientDisconnected",
    "EventLog",
    "LiveEvent",
    "MessageBroadcast",
    "WatcherFault",
    "event_to_dict",
    "now_ns",
]
