"""Best-effort browser launch.

Opening the browser happens on a daemon thread so a slow or missing browser
never delays startup; failures are printed and otherwise ignored.
"""

from __future__ import annotations

import sys
import threading
import webbrowser


def _open(url: str) -> None:
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as exc:
        print(f"  Failed to open browser: {exc}", file=sys.stderr)
        return
    if not opened:
        print(f"  Failed to open browser for {url}", file=sys.stderr)


def launch_browser(url: str) -> threading.Thread:
    """Open *url* in the default browser without blocking the caller."""
    thread = threading.Thread(target=_open, args=(url,), name="glint-browser", daemon=True)
    thread.start()
    return thread
