"""Glint application — wires the live pipeline to the HTTP front.

:class:`Application` binds the port, validates the base directory and
assembles the channel, watcher and aiohttp app.  :func:`dev` is the public
entry point used by the CLI.
"""

from __future__ import annotations

import asyncio
import contextlib
from pathlib import Path
from typing import TYPE_CHECKING

from aiohttp import web

from glint.banner import StartupSummary
from glint.config import resolve_base_dir
from glint.config_loader import load_config
from glint.live.channel import LiveChannel
from glint.live.watcher import ChangeWatcher
from glint.observability.log import EventLog
from glint.ports import bind_listener
from glint.server import ServerState, create_app

if TYPE_CHECKING:
    import socket

    from glint.config import GlintConfig


class Application:
    """A bound, ready-to-run dev server.

    Use :meth:`build`; by the time it returns the port is bound and the base
    directory validated, so the summary can be printed before serving.

    """

    def __init__(
        self,
        config: GlintConfig,
        sock: socket.socket,
        port: int,
        state: ServerState,
        watcher: ChangeWatcher,
    ) -> None:
        self._config = config
        self._sock = sock
        self._port = port
        self._state = state
        self._watcher = watcher
        self._web_app = create_app(state, watcher=watcher)

    @classmethod
    def build(cls, config: GlintConfig) -> Application:
        """Bind the listener and assemble the server.

        Raises:
            BindError: The port can't be bound.
            ConfigError: The base directory is missing or not a directory.

        """
        sock, port = bind_listener(config.port, fallback=config.allows_port_fallback)

        try:
            base_dir = resolve_base_dir(config.root)
        except Exception:
            sock.close()
            raise

        channel = LiveChannel(capacity=config.backlog)
        state = ServerState(
            base_dir=base_dir,
            diff_mode=config.diff_mode,
            channel=channel,
            event_log=EventLog(),
            debounce_ms=config.debounce_ms,
        )
        watcher = ChangeWatcher(
            base_dir,
            channel,
            diff_mode=config.diff_mode,
            debounce_ms=config.debounce_ms,
            event_log=state.event_log,
        )
        return cls(config, sock, port, state, watcher)

    @property
    def port(self) -> int:
        return self._port

    @property
    def base_dir(self) -> Path:
        return self._state.base_dir

    @property
    def diff_mode(self) -> bool:
        return self._state.diff_mode

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def web_app(self) -> web.Application:
        return self._web_app

    def summary(self) -> StartupSummary:
        """Payload for the startup summary presenter."""
        return StartupSummary(
            base_dir=self.base_dir,
            port=self._port,
            diff_mode=self.diff_mode,
            no_open_browser=self._config.no_open_browser,
            requested_port=self._config.port,
        )

    @property
    def primary_url(self) -> str:
        return self.summary().url

    async def run_until_stopped(self, stop_event: asyncio.Event | None = None) -> None:
        """Serve until *stop_event* is set (or forever).

        The watcher is started before the socket starts accepting requests;
        if it fails, nothing is served.

        """
        runner = web.AppRunner(self._web_app)
        try:
            await runner.setup()
        except BaseException:
            self._sock.close()
            raise

        try:
            site = web.SockSite(runner, self._sock)
            await site.start()
            await (stop_event or asyncio.Event()).wait()
        finally:
            await runner.cleanup()
            self._sock.close()


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def dev(root: str | Path = ".", **kwargs: object) -> None:
    """Serve *root* with live updates until interrupted.

    Args:
        root: Directory to serve.
        **kwargs: Override GlintConfig fields (``None`` values are ignored).

    """
    from glint.banner import print_banner
    from glint.browser import launch_browser

    config = load_config(Path(root), **kwargs)
    app = Application.build(config)

    summary = app.summary()
    print_banner(summary)
    if not config.no_open_browser:
        launch_browser(summary.url)

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(app.run_until_stopped())
