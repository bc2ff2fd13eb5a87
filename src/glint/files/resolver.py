"""Path resolver — maps request tails to files inside the serving root.

The sandbox is enforced by construction: every segment of the request tail
must be a plain name (or a no-op ``.``).  Parent references and anything that
could re-root the path are rejected before touching the filesystem, so the
check holds even for components that don't exist yet.

Resolution is repeated on every request; the filesystem may change between
two requests and nothing is cached.
"""

from __future__ import annotations

from pathlib import Path, PureWindowsPath
from typing import TYPE_CHECKING

from glint._errors import InvalidPathError, NotFoundError

if TYPE_CHECKING:
    from glint._types import RequestTail

INDEX_FILE = "index.html"


def _safe_segments(tail: RequestTail) -> list[str]:
    """Split *tail* into plain name segments.

    Raises:
        InvalidPathError: If any segment is a parent reference or carries a
            root, drive, separator or NUL character.

    """
    segments: list[str] = []
    for segment in tail.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            msg = "parent directory segment in request path"
            raise InvalidPathError(msg)
        if "\\" in segment or "\x00" in segment or PureWindowsPath(segment).drive:
            msg = "unsafe segment in request path"
            raise InvalidPathError(msg)
        segments.append(segment)
    return segments


def sanitize_path(base_dir: Path, tail: RequestTail) -> Path:
    """Join a request tail onto *base_dir* without leaving it.

    Does not check existence.  An empty tail, or one made only of ``/`` and
    ``.`` segments ending in ``/``, maps to the base ``index.html``.

    """
    trimmed = tail.lstrip("/")
    if not trimmed:
        return base_dir / INDEX_FILE

    segments = _safe_segments(trimmed)
    target = base_dir.joinpath(*segments)
    if not segments and tail.endswith("/"):
        target = target / INDEX_FILE
    return target


def resolve_request_path(base_dir: Path, tail: RequestTail) -> Path:
    """Resolve *tail* to an existing regular file under *base_dir*.

    Args:
        base_dir: Absolute, canonical serving root (validated at startup).
        tail: Raw request path, with or without a leading ``/``.

    Returns:
        Path of the file to serve.  Directories resolve to their
        ``index.html``.

    Raises:
        InvalidPathError: Traversal or absolute segment in *tail*.
        NotFoundError: Missing file, or directory without ``index.html``.

    """
    target = sanitize_path(base_dir, tail)

    if target.is_dir():
        index = target / INDEX_FILE
        if not index.is_file():
            msg = f"directory has no {INDEX_FILE}"
            raise NotFoundError(msg)
        return index

    if not target.is_file():
        msg = "file not found"
        raise NotFoundError(msg)
    return target
