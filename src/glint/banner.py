"""Startup summary — what's being served, where, and how.

Prints the address, base directory and live-update mode once the server is
bound.  Detects ``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from glint.config import LOOPBACK


# ---------------------------------------------------------------------------
# ANSI helpers — respect NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_ITALIC = "\033[3m" if _COLOR else ""
_RED = "\033[91m" if _COLOR else ""
_GREEN = "\033[92m" if _COLOR else ""
_YELLOW = "\033[93m" if _COLOR else ""
_BLUE = "\033[94m" if _COLOR else ""
_CYAN = "\033[96m" if _COLOR else ""


@dataclass(frozen=True, slots=True)
class StartupSummary:
    """What the summary presenter needs from the core.

    Attributes:
        base_dir: Canonical directory being served.
        port: Port actually bound.
        diff_mode: Whether targeted HTML/CSS updates are enabled.
        no_open_browser: Whether browser auto-launch was disabled.
        requested_port: Port asked for (differs from *port* after a fallback).

    """

    base_dir: Path
    port: int
    diff_mode: bool
    no_open_browser: bool = False
    requested_port: int | None = None

    @property
    def url(self) -> str:
        return f"http://{LOOPBACK}:{self.port}"

    @property
    def alt_url(self) -> str:
        return f"http://localhost:{self.port}"

    @property
    def port_changed(self) -> bool:
        return self.requested_port not in (None, 0, self.port)


def _clickable_url(url: str) -> str:
    """Wrap *url* in an OSC 8 hyperlink escape if the terminal supports it."""
    if not _COLOR:
        return url
    return f"\033]8;;{url}\033\\{_BOLD}{url}{_RESET}\033]8;;\033\\"


def _rows(summary: StartupSummary) -> list[tuple[str, str]]:
    diff = f"{_BOLD}{_GREEN}ENABLED{_RESET}" if summary.diff_mode else f"{_BOLD}{_RED}disabled{_RESET}"
    watching = "Diff HTML/CSS updates" if summary.diff_mode else "Full page reloads"
    browser = "Manual (--no-open-browser)" if summary.no_open_browser else "Auto-open on start"
    return [
        ("Address", _clickable_url(summary.url)),
        ("Alt", f"{_DIM}{summary.alt_url}{_RESET}"),
        ("Base Dir", f"{_CYAN}{summary.base_dir}{_RESET}"),
        ("Diff Mode", diff),
        ("Watching", f"{_YELLOW}{watching}{_RESET}"),
        ("Browser", f"{_CYAN}{browser}{_RESET}"),
        ("Exit", f"{_CYAN}Press Ctrl+C to stop{_RESET}"),
    ]


def print_banner(summary: StartupSummary) -> None:
    """Print the startup summary to stderr."""
    from glint import __version__

    title = "GLINT DEV SERVER"
    border = "=" * (len(title) + 8)
    rows = _rows(summary)
    width = max(len(label) for label, _ in rows) + 1

    lines: list[str] = [
        f"{_DIM}{border}{_RESET}",
        f"  {_BOLD}{_CYAN}{title}{_RESET} {_DIM}v{__version__}{_RESET}",
        f"{_DIM}{border}{_RESET}",
    ]
    lines.extend(
        f"  {_BOLD}{_BLUE}{(label + ':').ljust(width + 1)}{_RESET} {value}"
        for label, value in rows
    )

    lines.append("")
    if summary.port_changed:
        lines.append(
            f"  {_YELLOW}!{_RESET} port {summary.requested_port} in use, switched to {summary.port}"
        )
    lines.append(f"  {_DIM}Serving {summary.base_dir}{_RESET}")
    if summary.no_open_browser:
        hint = "Browser launch disabled (--no-open-browser)."
    else:
        hint = "Copy the address above if your browser did not open automatically."
    lines.append(f"  {_DIM}{_ITALIC}{hint}{_RESET}")
    lines.append(
        f"  {_DIM}{_ITALIC}Leave this terminal open to keep the live server running.{_RESET}"
    )
    lines.append("")

    print("\n".join(lines), file=sys.stderr)
