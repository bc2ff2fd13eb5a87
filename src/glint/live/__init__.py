"""Live layer — change detection and push notifications.

Connects filesystem changes to browser updates: the watcher debounces raw
events, the classifier decides between reload and targeted diff, and the
channel fans the result out to every open push connection.
"""

from glint.live.channel import LiveChannel, Subscription
from glint.live.classifier import EventKind, RawChangeEvent, classify_event, to_web_path
from glint.live.messages import RELOAD, Diff, DiffResource, LiveMessage, Reload
from glint.live.watcher import ChangeWatcher

__all__ = [
    "RELOAD",
    "ChangeWatcher",
    "Diff",
    "DiffResource",
    "EventKind",
    "LiveChannel",
    "LiveMessage",
    "RawChangeEvent",
    "Reload",
    "Subscription",
    "classify_event",
    "to_web_path",
]
