"""Glint CLI — glint [BASE_DIR] [--port N] [--diff-mode] [--no-open-browser].

Entry point for the ``glint`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys

from glint.config import DEFAULT_PORT


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the glint CLI.

    Flags default to ``None`` so that values from ``glint.toml`` are only
    overridden when given on the command line.

    """
    parser = argparse.ArgumentParser(
        prog="glint",
        description="Serve a directory with live reload and HTML/CSS hot updates.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )
    parser.add_argument(
        "base_dir", nargs="?", default="./", help="Base directory for the development server",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help=f"Port to run the development server on (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "--diff-mode",
        action="store_true",
        default=None,
        help="Enable diff mode to update HTML/CSS without full page reloads",
    )
    parser.add_argument(
        "--no-open-browser",
        action="store_true",
        default=None,
        help="Disable automatically opening the default browser",
    )
    return parser


def _get_version() -> str:
    """Get the package version."""
    from glint import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    from glint._errors import GlintError
    from glint.app import dev

    try:
        dev(
            root=args.base_dir,
            port=args.port,
            diff_mode=args.diff_mode,
            no_open_browser=args.no_open_browser,
        )
    except GlintError as exc:
        print(f"glint: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
