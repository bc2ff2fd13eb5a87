"""Tests for glint.live.watcher — debouncing, dispatch and fault handling."""

from __future__ import annotations

import asyncio
import io
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from glint._errors import WatchError
from glint.live.channel import LiveChannel
from glint.live.classifier import EventKind, RawChangeEvent
from glint.live.messages import RELOAD, Diff, DiffResource
from glint.live.watcher import _MAX_RESTARTS, _STEP_MS, ChangeWatcher
from glint.observability.events import ChangeDetected, MessageBroadcast, WatcherFault
from glint.observability.log import EventLog


def _watcher(
    base: Path, *, diff_mode: bool = True, debounce_ms: int = 0,
) -> tuple[ChangeWatcher, LiveChannel, EventLog]:
    channel = LiveChannel()
    log = EventLog()
    watcher = ChangeWatcher(
        base, channel, diff_mode=diff_mode, debounce_ms=debounce_ms, event_log=log,
    )
    return watcher, channel, log


class TestDispatch:
    def test_publishes_classified_messages(self, site_dir: Path) -> None:
        watcher, channel, log = _watcher(site_dir)
        sub = channel.subscribe()

        with patch.object(sys, "stderr", io.StringIO()):
            messages = watcher.dispatch(
                RawChangeEvent(EventKind.MODIFY_DATA, (site_dir / "styles" / "app.css",)),
            )

        expected = Diff(path="/styles/app.css", resource=DiffResource.CSS)
        assert messages == (expected,)
        assert sub.pending == 1
        assert log.query(event_type=ChangeDetected)[0].messages == 1
        broadcast = log.query(event_type=MessageBroadcast)[0]
        assert broadcast.path == "/styles/app.css"
        assert broadcast.subscribers == 1

    def test_dropped_event_publishes_nothing(self, site_dir: Path) -> None:
        watcher, channel, log = _watcher(site_dir)
        sub = channel.subscribe()

        assert watcher.dispatch(RawChangeEvent(EventKind.ACCESS, (site_dir / "index.html",))) == ()
        assert sub.pending == 0
        assert log.query(event_type=MessageBroadcast) == []

    def test_logs_change_to_stderr(self, site_dir: Path) -> None:
        watcher, _channel, _log = _watcher(site_dir, diff_mode=False)
        buf = io.StringIO()
        with patch.object(sys, "stderr", buf):
            watcher.dispatch(RawChangeEvent(EventKind.MODIFY_ANY, (site_dir / "app.js",)))
        assert "app.js changed: reload" in buf.getvalue()


class TestDebounce:
    @pytest.mark.asyncio
    async def test_event_waits_for_delay(self, site_dir: Path) -> None:
        watcher, channel, _log = _watcher(site_dir, debounce_ms=50)
        sub = channel.subscribe()

        with patch.object(sys, "stderr", io.StringIO()):
            task = watcher.schedule(RawChangeEvent(EventKind.REMOVE, (site_dir / "app.js",)))
            await asyncio.sleep(0)
            assert sub.pending == 0
            assert watcher.pending_count == 1

            assert await asyncio.wait_for(task, timeout=2) == (RELOAD,)

        assert sub.pending == 1
        assert watcher.pending_count == 0

    @pytest.mark.asyncio
    async def test_events_delayed_independently(self, site_dir: Path) -> None:
        """Each event gets its own timer; none is swallowed by another."""
        watcher, channel, _log = _watcher(site_dir, debounce_ms=10)
        sub = channel.subscribe()

        with patch.object(sys, "stderr", io.StringIO()):
            tasks = [
                watcher.schedule(RawChangeEvent(EventKind.CREATE, (site_dir / "index.html",))),
                watcher.schedule(
                    RawChangeEvent(EventKind.CREATE, (site_dir / "styles" / "app.css",)),
                ),
            ]
            await asyncio.wait_for(asyncio.gather(*tasks), timeout=2)

        received = {await sub.get(), await sub.get()}
        assert received == {
            Diff(path="/", resource=DiffResource.HTML),
            Diff(path="/styles/app.css", resource=DiffResource.CSS),
        }

    @pytest.mark.asyncio
    async def test_stop_cancels_pending(self, site_dir: Path) -> None:
        watcher, channel, _log = _watcher(site_dir, debounce_ms=10_000)
        sub = channel.subscribe()
        task = watcher.schedule(RawChangeEvent(EventKind.REMOVE, (site_dir / "app.js",)))

        await watcher.stop()
        await asyncio.sleep(0)

        assert task.cancelled()
        assert sub.pending == 0


class TestFaults:
    def test_fault_broadcasts_reload(self, site_dir: Path) -> None:
        watcher, channel, log = _watcher(site_dir)
        sub = channel.subscribe()
        buf = io.StringIO()

        with patch.object(sys, "stderr", buf):
            watcher.report_fault(OSError("inotify watch limit reached"))

        assert sub.pending == 1
        assert "Watcher error: inotify watch limit reached" in buf.getvalue()
        assert log.query(event_type=WatcherFault)[0].error == "inotify watch limit reached"

    @pytest.mark.asyncio
    async def test_fault_after_start_reloads_and_resumes(self, site_dir: Path) -> None:
        """A backend that fails once it is up is reported, then re-created."""
        watcher, channel, log = _watcher(site_dir)
        sub = channel.subscribe()
        calls = 0

        async def _flaky_awatch(*args: object, stop_event: asyncio.Event, **kwargs: object):
            nonlocal calls
            calls += 1
            yield set()
            if calls == 1:
                raise RuntimeError("backend exploded")
            while not stop_event.is_set():
                await asyncio.sleep(0.01)
                yield set()

        with (
            patch("glint.live.watcher.awatch", _flaky_awatch),
            patch("glint.live.watcher._RESTART_DELAY_S", 0.01),
            patch.object(sys, "stderr", io.StringIO()),
        ):
            await watcher.start()
            await asyncio.sleep(0.1)
            assert watcher.is_running
            await watcher.stop()

        assert calls == 2
        assert await sub.get() == RELOAD
        assert sub.pending == 0
        assert len(log.query(event_type=WatcherFault)) == 1

    @pytest.mark.asyncio
    async def test_persistent_fault_gives_up(self, site_dir: Path) -> None:
        """Repeated failures are capped instead of reloading clients forever."""
        watcher, channel, log = _watcher(site_dir)
        sub = channel.subscribe()
        calls = 0

        async def _failing_awatch(*args: object, **kwargs: object):
            nonlocal calls
            calls += 1
            if calls == 1:
                yield set()
            raise OSError(28, "inotify watch limit reached")

        buf = io.StringIO()
        with (
            patch("glint.live.watcher.awatch", _failing_awatch),
            patch("glint.live.watcher._RESTART_DELAY_S", 0.001),
            patch.object(sys, "stderr", buf),
        ):
            await watcher.start()
            await asyncio.sleep(0.2)
            assert not watcher.is_running
            await watcher.stop()

        assert calls == _MAX_RESTARTS
        assert sub.pending == _MAX_RESTARTS
        assert len(log.query(event_type=WatcherFault)) == _MAX_RESTARTS
        assert "Watcher stopped after" in buf.getvalue()


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_rejects_missing_directory(self, tmp_path: Path) -> None:
        watcher, _channel, _log = _watcher(tmp_path / "missing")
        with pytest.raises(WatchError):
            await watcher.start()
        assert not watcher.is_running

    @pytest.mark.asyncio
    async def test_start_fails_when_subscription_fails(self, site_dir: Path) -> None:
        """A backend that never comes up aborts startup instead of reloading."""
        watcher, channel, log = _watcher(site_dir)
        sub = channel.subscribe()

        async def _unavailable_awatch(*args: object, **kwargs: object):
            raise OSError(28, "inotify watch limit reached")
            yield  # pragma: no cover

        with (
            patch("glint.live.watcher.awatch", _unavailable_awatch),
            patch.object(sys, "stderr", io.StringIO()),
        ):
            with pytest.raises(WatchError, match="inotify watch limit reached"):
                await watcher.start()
            await asyncio.sleep(0.05)

        assert not watcher.is_running
        assert sub.pending == 0
        assert log.query(event_type=WatcherFault) == []

    @pytest.mark.asyncio
    async def test_backend_batching_stays_within_one_step(self, site_dir: Path) -> None:
        watcher, _channel, _log = _watcher(site_dir)
        seen: dict[str, object] = {}

        async def _recording_awatch(*args: object, stop_event: asyncio.Event, **kwargs: object):
            seen.update(kwargs)
            while not stop_event.is_set():
                yield set()
                await asyncio.sleep(0.01)

        with patch("glint.live.watcher.awatch", _recording_awatch):
            await watcher.start()
            await watcher.stop()

        assert seen["debounce"] == _STEP_MS
        assert seen["step"] == _STEP_MS
        assert seen["yield_on_timeout"] is True

    @pytest.mark.asyncio
    async def test_detects_real_file_change(self, site_dir: Path) -> None:
        watcher, channel, _log = _watcher(site_dir, debounce_ms=10)
        sub = channel.subscribe()
        loop = asyncio.get_running_loop()

        with patch.object(sys, "stderr", io.StringIO()):
            await watcher.start()
            try:
                await asyncio.sleep(0.1)
                written = loop.time()
                (site_dir / "styles" / "app.css").write_text("body { margin: 1px; }\n")
                message = await asyncio.wait_for(sub.get(), timeout=10)
                elapsed = loop.time() - written
            finally:
                await watcher.stop()

        assert message == Diff(path="/styles/app.css", resource=DiffResource.CSS)
        assert elapsed < 1.0
        assert not watcher.is_running

