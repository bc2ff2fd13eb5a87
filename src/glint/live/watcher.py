"""Change watcher — filesystem events to live messages.

Subscribes to every change under the base directory with watchfiles.  Each
raw change is held back for a fixed quiescence delay on its own, then
classified and published on the live channel.  Editors that save through a
temp file, a rename and a metadata touch emit several events for one edit;
the delay lets the file settle before anyone reads it.

Failing to set up the subscription is fatal: ``start()`` waits for the
backend to come up and raises ``WatchError`` otherwise.  Backend errors after
that are reported, turned into a ``Reload`` for every client, and the
subscription is re-created with a growing delay.  After too many failures in
a row the watcher gives up.
"""

from __future__ import annotations

import asyncio
import contextlib
import sys
from typing import TYPE_CHECKING

from watchfiles import awatch

from glint._errors import WatchError
from glint.live.classifier import RawChangeEvent, classify_event
from glint.live.messages import RELOAD, Diff
from glint.observability.events import (
    ChangeDetected,
    MessageBroadcast,
    WatcherFault,
    now_ns,
)

if TYPE_CHECKING:
    from pathlib import Path

    from glint.live.channel import LiveChannel
    from glint.live.messages import LiveMessage
    from glint.observability.events import LiveEvent
    from glint.observability.log import EventLog

DEFAULT_DEBOUNCE_MS = 120

# watchfiles batching window and poll step; one step, so the backend adds no
# shared delay on top of the per-event one.
_STEP_MS = 50

# Idle time after which the backend yields an empty batch; the first yield
# proves the subscription is live.
_IDLE_TIMEOUT_MS = 200

# Pause before re-subscribing after the backend failed; doubles per failure.
_RESTART_DELAY_S = 0.5
_MAX_RESTART_DELAY_S = 8.0
_MAX_RESTARTS = 5


class ChangeWatcher:
    """Watches the base directory and feeds the live channel.

    Args:
        base_dir: Canonical directory to watch recursively.
        channel: Where classified messages are published.
        diff_mode: Whether HTML/CSS changes become targeted diffs.
        debounce_ms: Delay applied to every raw event before classifying it.
        event_log: Optional log receiving pipeline events.

    """

    def __init__(
        self,
        base_dir: Path,
        channel: LiveChannel,
        *,
        diff_mode: bool = False,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        event_log: EventLog | None = None,
    ) -> None:
        self._base_dir = base_dir
        self._channel = channel
        self._diff_mode = diff_mode
        self._delay = debounce_ms / 1000
        self._log = event_log
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._ready: asyncio.Future[None] | None = None
        self._pending: set[asyncio.Task[tuple[LiveMessage, ...]]] = set()

    @property
    def is_running(self) -> bool:
        """Whether the background watch task is active."""
        return self._task is not None and not self._task.done()

    @property
    def pending_count(self) -> int:
        """Raw events still waiting out their debounce delay."""
        return len(self._pending)

    async def start(self) -> None:
        """Start watching in a background task.

        Returns once the backend subscription is live.

        Raises:
            WatchError: If the base directory can't be watched.

        """
        if self.is_running:
            return

        if not self._base_dir.is_dir():
            msg = f"cannot watch {self._base_dir}: not a directory"
            raise WatchError(msg)

        self._stop_event.clear()
        self._ready = asyncio.get_running_loop().create_future()
        self._task = asyncio.create_task(self._watch_loop(), name="glint-watcher")

        try:
            await self._ready
        except WatchError:
            await self._task
            self._task = None
            raise

    async def stop(self) -> None:
        """Stop watching and drop events still waiting to be dispatched."""
        self._stop_event.set()
        if self._ready is not None and not self._ready.done():
            self._ready.cancel()
        for task in tuple(self._pending):
            task.cancel()
        self._pending.clear()

        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    def schedule(self, event: RawChangeEvent) -> asyncio.Task[tuple[LiveMessage, ...]]:
        """Dispatch *event* once its debounce delay has elapsed."""
        task = asyncio.create_task(self._dispatch_later(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def dispatch(self, event: RawChangeEvent) -> tuple[LiveMessage, ...]:
        """Classify *event* now and publish the resulting messages."""
        messages = classify_event(
            event, base_dir=self._base_dir, diff_mode=self._diff_mode,
        )
        path = str(event.paths[0]) if event.paths else ""
        self._record(ChangeDetected(event.kind.value, path, len(messages), now_ns()))

        for message in messages:
            self._publish(message)
        if messages:
            self._log_change(event, messages)
        return messages

    def report_fault(self, exc: BaseException) -> None:
        """Treat a backend error as "something changed": reload everyone."""
        print(f"  Watcher error: {exc}", file=sys.stderr)
        self._record(WatcherFault(error=str(exc), timestamp_ns=now_ns()))
        self._publish(RELOAD)

    async def _dispatch_later(self, event: RawChangeEvent) -> tuple[LiveMessage, ...]:
        await asyncio.sleep(self._delay)
        return self.dispatch(event)

    async def _watch_loop(self) -> None:
        """Background task: run watchfiles and schedule every raw change."""
        failures = 0
        try:
            while not self._stop_event.is_set():
                try:
                    async for raw_changes in awatch(
                        self._base_dir,
                        stop_event=self._stop_event,
                        debounce=_STEP_MS,
                        step=_STEP_MS,
                        rust_timeout=_IDLE_TIMEOUT_MS,
                        yield_on_timeout=True,
                        recursive=True,
                    ):
                        self._mark_ready()
                        if raw_changes:
                            failures = 0
                        for change_type, path_str in raw_changes:
                            self.schedule(RawChangeEvent.from_watchfiles(change_type, path_str))
                except Exception as exc:
                    if self._ready is not None and not self._ready.done():
                        msg = f"failed to watch {self._base_dir}: {exc}"
                        self._ready.set_exception(WatchError(msg))
                        return
                    failures += 1
                    self.report_fault(exc)
                    if failures >= _MAX_RESTARTS:
                        print(
                            f"  Watcher stopped after {failures} failures in a row; "
                            "restart glint to resume live updates",
                            file=sys.stderr,
                        )
                        return

                if not self._stop_event.is_set():
                    backoff = _RESTART_DELAY_S * 2 ** max(failures - 1, 0)
                    delay = min(backoff, _MAX_RESTART_DELAY_S)
                    with contextlib.suppress(TimeoutError):
                        await asyncio.wait_for(self._stop_event.wait(), delay)
        finally:
            self._mark_ready()

    def _mark_ready(self) -> None:
        if self._ready is not None and not self._ready.done():
            self._ready.set_result(None)

    def _publish(self, message: LiveMessage) -> int:
        count = self._channel.publish(message)
        path = message.path if isinstance(message, Diff) else ""
        self._record(MessageBroadcast(message.type, path, count, now_ns()))
        return count

    def _record(self, event: LiveEvent) -> None:
        if self._log is not None:
            self._log.append(event)

    def _log_change(self, event: RawChangeEvent, messages: tuple[LiveMessage, ...]) -> None:
        """Log a live update to stderr."""
        name = event.paths[0].name if event.paths else "?"
        clients = self._channel.subscriber_count
        label = "client" if clients == 1 else "clients"
        actions = ", ".join(
            f"{m.resource.value} {m.path}" if isinstance(m, Diff) else "reload"
            for m in messages
        )
        print(f"  {name} changed: {actions} ({clients} {label} notified)", file=sys.stderr)
