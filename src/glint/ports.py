"""Port binding policy.

The server only ever listens on loop-back.  When the operator sticks with the
default port and it's taken, the next free port is used instead; an explicitly
chosen port is never second-guessed.
"""

from __future__ import annotations

import errno
import os
import socket

from glint._errors import BindError
from glint.config import LOOPBACK

MAX_PORT = 65535


def _listen(host: str, port: int) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        if os.name == "posix":
            # Lets a restarted server reuse a port still in TIME_WAIT; a live
            # listener still makes bind() fail with EADDRINUSE.
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(128)
    except OSError:
        sock.close()
        raise
    return sock


def bind_listener(
    port: int,
    *,
    host: str = LOOPBACK,
    fallback: bool = False,
) -> tuple[socket.socket, int]:
    """Bind a listening socket, optionally walking up from a busy port.

    Args:
        port: Requested port (0 lets the OS choose).
        host: Address to bind.
        fallback: Try the following ports when *port* is in use.  Only the
            default port gets this (see ``GlintConfig.allows_port_fallback``).

    Returns:
        The listening socket and the port it is bound to.

    Raises:
        BindError: The port is unavailable and no fallback applies, or every
            port up to 65535 is taken.

    """
    candidate = port

    while True:
        try:
            sock = _listen(host, candidate)
        except OSError as exc:
            if fallback and exc.errno == errno.EADDRINUSE:
                if candidate >= MAX_PORT:
                    msg = f"failed to find an available port starting at {port}"
                    raise BindError(msg) from exc
                candidate += 1
                continue
            msg = f"failed to bind to {host}:{candidate}: {exc}"
            raise BindError(msg) from exc

        return sock, sock.getsockname()[1]
