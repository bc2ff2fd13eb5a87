"""File layer — sandboxed path resolution and live-client injection."""

from glint.files.inject import CLIENT_MARKER, inject_live_client, is_html
from glint.files.resolver import resolve_request_path

__all__ = [
    "CLIENT_MARKER",
    "inject_live_client",
    "is_html",
    "resolve_request_path",
]
