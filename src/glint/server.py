"""HTTP/WebSocket front — serves the base directory and the live endpoints.

Routes::

    GET /_live/health      liveness probe, plain ``OK``
    GET /_live/script.js   the live client
    GET /_live/stats       channel summary and recent pipeline events (JSON)
    GET /_live/ws          push connection (websocket)
    GET /{tail}            files under the base directory

HTML documents get the live client injected and are never cached; every
other file goes through aiohttp's ``FileResponse`` with its usual
conditional-request handling.
"""

from __future__ import annotations

import asyncio
import contextlib
import functools
import sys
import weakref
from dataclasses import dataclass, field
from importlib import resources
from typing import TYPE_CHECKING

from aiohttp import WSCloseCode, WSMsgType, web

from glint._errors import ResolveError, ServeError
from glint.files.inject import LIVE_PREFIX, SCRIPT_PATH, WS_PATH, inject_live_client, is_html
from glint.files.resolver import resolve_request_path
from glint.live.watcher import DEFAULT_DEBOUNCE_MS
from glint.observability.events import (
    EVENT_TYPES,
    ClientConnected,
    ClientDisconnected,
    event_to_dict,
    now_ns,
)
from glint.observability.log import EventLog

if TYPE_CHECKING:
    from pathlib import Path

    from glint.live.channel import LiveChannel, Subscription
    from glint.live.watcher import ChangeWatcher

HEALTH_PATH = f"{LIVE_PREFIX}/health"
STATS_PATH = f"{LIVE_PREFIX}/stats"
STATS_EVENT_LIMIT = 20

HTML_HEADERS = {"Cache-Control": "no-cache, no-store, must-revalidate"}
SCRIPT_HEADERS = {"Cache-Control": "no-store, max-age=0"}


@dataclass(frozen=True, slots=True)
class ServerState:
    """Startup-time state shared by every request handler.

    Attributes:
        base_dir: Canonical directory being served.
        diff_mode: Whether clients receive targeted HTML/CSS updates.
        channel: Live channel push connections subscribe to.
        event_log: Pipeline events, summarised by ``/_live/stats``.
        debounce_ms: Watcher settle delay, reported by ``/_live/stats``.

    """

    base_dir: Path
    diff_mode: bool
    channel: LiveChannel
    event_log: EventLog = field(default_factory=EventLog)
    debounce_ms: int = DEFAULT_DEBOUNCE_MS


STATE_KEY = web.AppKey("glint_state", ServerState)
SOCKETS_KEY = web.AppKey("glint_sockets", weakref.WeakSet)


@functools.cache
def client_script() -> str:
    """Source of the bundled live client."""
    return (
        resources.files("glint.live")
        .joinpath("static", "client.js")
        .read_text(encoding="utf-8")
    )


async def render_html(path: Path, diff_mode: bool) -> str:
    """Read an HTML document and inject the live client.

    Raises:
        ServeError: The file could not be read or isn't valid UTF-8.

    """
    try:
        raw = await asyncio.to_thread(path.read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"failed to read {path.name}: {exc}"
        raise ServeError(msg) from exc
    return inject_live_client(raw, diff_mode)


def _open_for_read(path: Path) -> None:
    with path.open("rb"):
        pass


async def check_readable(path: Path) -> None:
    """Make sure *path* can be opened before handing it to ``FileResponse``.

    Raises:
        ServeError: The file exists but can't be read.

    """
    try:
        await asyncio.to_thread(_open_for_read, path)
    except OSError as exc:
        msg = f"failed to read {path.name}: {exc}"
        raise ServeError(msg) from exc


async def serve_file(request: web.Request) -> web.StreamResponse:
    state = request.app[STATE_KEY]
    tail = request.match_info.get("tail", "")

    try:
        target = resolve_request_path(state.base_dir, tail)
    except ResolveError:
        raise web.HTTPNotFound(text="Not Found") from None

    try:
        if not is_html(target):
            await check_readable(target)
            return web.FileResponse(target)
        body = await render_html(target, state.diff_mode)
    except ServeError as exc:
        print(f"  Serve error: {exc}", file=sys.stderr)
        raise web.HTTPInternalServerError(text="Internal Server Error") from exc

    return web.Response(
        text=body,
        content_type="text/html",
        charset="utf-8",
        headers=HTML_HEADERS,
    )


async def health(request: web.Request) -> web.Response:
    return web.Response(text="OK")


async def script(request: web.Request) -> web.Response:
    return web.Response(
        text=client_script(),
        content_type="application/javascript",
        headers=SCRIPT_HEADERS,
    )


async def stats(request: web.Request) -> web.Response:
    """Channel and event-log summary plus the latest matching events.

    Query parameters filter the ``events`` list: ``type`` (an event class
    name), ``path`` (substring), ``since_ns`` and ``limit`` (default 20).

    """
    state = request.app[STATE_KEY]
    params = request.query

    event_type = None
    if "type" in params:
        event_type = EVENT_TYPES.get(params["type"])
        if event_type is None:
            raise web.HTTPBadRequest(text=f"unknown event type: {params['type']}")
    try:
        since_ns = int(params.get("since_ns", 0))
        limit = int(params.get("limit", STATS_EVENT_LIMIT))
    except ValueError:
        raise web.HTTPBadRequest(text="since_ns and limit must be integers") from None

    events = state.event_log.query(
        event_type=event_type,
        since_ns=since_ns,
        path=params.get("path"),
        limit=max(limit, 0),
    )
    return web.json_response({
        "diff_mode": state.diff_mode,
        "debounce_ms": state.debounce_ms,
        "subscribers": state.channel.subscriber_count,
        "event_log": state.event_log.stats(),
        "events": [event_to_dict(event) for event in events],
    })


async def live_socket(request: web.Request) -> web.WebSocketResponse:
    """Push connection: forwards every live message as a JSON text frame.

    Pings are answered, a close frame ends the connection, and every other
    inbound frame is ignored.

    """
    state = request.app[STATE_KEY]
    ws = web.WebSocketResponse(autoping=False)
    await ws.prepare(request)

    request.app[SOCKETS_KEY].add(ws)
    sub = state.channel.subscribe()
    state.event_log.append(ClientConnected(client_id=sub.id, timestamp_ns=now_ns()))
    forwarder = asyncio.create_task(_forward(ws, sub), name=f"glint-push-{sub.id}")

    try:
        async for msg in ws:
            if msg.type is WSMsgType.PING:
                try:
                    await ws.pong(msg.data)
                except ConnectionResetError:
                    break
            elif msg.type is WSMsgType.ERROR:
                break
    finally:
        state.channel.unsubscribe(sub)
        forwarder.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await forwarder
        request.app[SOCKETS_KEY].discard(ws)
        state.event_log.append(
            ClientDisconnected(client_id=sub.id, dropped=sub.dropped, timestamp_ns=now_ns())
        )

    return ws


async def _forward(ws: web.WebSocketResponse, sub: Subscription) -> None:
    """Drain *sub* into *ws* until either side goes away."""
    async for message in sub:
        try:
            payload = message.to_json()
        except (TypeError, ValueError) as exc:
            print(f"  Failed to serialize live message: {exc}", file=sys.stderr)
            continue

        if ws.closed:
            break
        try:
            await ws.send_str(payload)
        except ConnectionResetError:
            break


async def _close_sockets(app: web.Application) -> None:
    app[STATE_KEY].channel.close()
    for ws in set(app[SOCKETS_KEY]):
        await ws.close(code=WSCloseCode.GOING_AWAY, message=b"Server shutdown")


def create_app(state: ServerState, *, watcher: ChangeWatcher | None = None) -> web.Application:
    """Build the aiohttp application.

    When *watcher* is given it is started with the application (a failure
    aborts startup) and stopped on cleanup.

    """
    app = web.Application()
    app[STATE_KEY] = state
    app[SOCKETS_KEY] = weakref.WeakSet()

    app.router.add_get(HEALTH_PATH, health)
    app.router.add_get(SCRIPT_PATH, script)
    app.router.add_get(STATS_PATH, stats)
    app.router.add_get(WS_PATH, live_socket)
    app.router.add_get("/{tail:.*}", serve_file)

    if watcher is not None:

        async def _start_watcher(app: web.Application) -> None:
            await watcher.start()

        async def _stop_watcher(app: web.Application) -> None:
            await watcher.stop()

        app.on_startup.append(_start_watcher)
        app.on_cleanup.append(_stop_watcher)

    app.on_shutdown.append(_close_sockets)
    return app
