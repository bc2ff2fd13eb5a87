"""Live-client injection for served HTML documents.

Inserts a config ``<script>`` and a deferred reference to the live-client
script just before the last ``</head>`` (or at the end of the document).
The client tag's id doubles as a marker so injection runs at most once.
"""

from __future__ import annotations

import json
from pathlib import Path

CLIENT_MARKER = "__glint_client"
CONFIG_MARKER = "__glint_config"
CONFIG_GLOBAL = "__GLINT_CONFIG__"

LIVE_PREFIX = "/_live"
WS_PATH = f"{LIVE_PREFIX}/ws"
SCRIPT_PATH = f"{LIVE_PREFIX}/script.js"

_HTML_SUFFIXES = frozenset({".html", ".htm"})


def is_html(path: Path) -> bool:
    """Return True if *path* has an ``.html``/``.htm`` extension (any case)."""
    return path.suffix.lower() in _HTML_SUFFIXES


def client_config(diff_mode: bool) -> dict[str, object]:
    """The per-page config object read by the live client."""
    return {"wsPath": WS_PATH, "diffMode": diff_mode}


def build_snippet(diff_mode: bool) -> str:
    config = json.dumps(client_config(diff_mode), separators=(",", ":"))
    return (
        f'<script id="{CONFIG_MARKER}">window.{CONFIG_GLOBAL} = {config};</script>'
        f'<script id="{CLIENT_MARKER}" defer src="{SCRIPT_PATH}"></script>'
    )


def inject_live_client(html: str, diff_mode: bool) -> str:
    """Return *html* with the live-client snippet injected.

    Documents that already carry the client marker are returned unchanged.

    """
    if CLIENT_MARKER in html:
        return html

    snippet = build_snippet(diff_mode)
    idx = html.rfind("</head>")
    if idx != -1:
        return f"{html[:idx]}\n{snippet}\n{html[idx:]}"

    return html.rstrip("\n") + "\n" + snippet
