"""Event classifier — raw filesystem changes to live messages.

A pure function of (mode, event).  The decision order is:

1. Access events and the old-name half of a rename are ignored.
2. Full-reload mode: everything else is a ``Reload``.
3. A backend that lost track of state (rescan) forces ``Reload``.
4. HTML/CSS paths become ``Diff`` messages when the change kind is
   diff-safe; otherwise the whole event degrades to one ``Reload``.
5. Unclassifiable paths still reload on removals and unknown kinds.
6. Anything else is dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from watchfiles import Change

from glint.live.messages import RELOAD, Diff, DiffResource

if TYPE_CHECKING:
    from collections.abc import Iterable

    from glint._types import WebPath
    from glint.live.messages import LiveMessage


class EventKind(Enum):
    """Category of a raw filesystem notification."""

    ANY = "any"
    ACCESS = "access"
    CREATE = "create"
    MODIFY_ANY = "modify"
    MODIFY_DATA = "modify-data"
    MODIFY_METADATA = "modify-metadata"
    MODIFY_OTHER = "modify-other"
    RENAME_ANY = "rename"
    RENAME_FROM = "rename-from"
    RENAME_TO = "rename-to"
    RENAME_BOTH = "rename-both"
    RENAME_OTHER = "rename-other"
    REMOVE = "remove"
    OTHER = "other"


IGNORED_KINDS = frozenset({EventKind.ACCESS, EventKind.RENAME_FROM})

DIFF_SAFE_KINDS = frozenset({
    EventKind.CREATE,
    EventKind.MODIFY_DATA,
    EventKind.MODIFY_METADATA,
    EventKind.MODIFY_ANY,
    EventKind.RENAME_TO,
    EventKind.RENAME_BOTH,
    EventKind.RENAME_ANY,
    EventKind.RENAME_OTHER,
})

# RENAME_FROM never gets this far (IGNORED_KINDS).
RELOAD_WITHOUT_DIFF_KINDS = frozenset({
    EventKind.REMOVE,
    EventKind.OTHER,
    EventKind.ANY,
    EventKind.MODIFY_OTHER,
    EventKind.RENAME_ANY,
    EventKind.RENAME_TO,
    EventKind.RENAME_BOTH,
    EventKind.RENAME_OTHER,
})

_WATCHFILES_KINDS: dict[Change, EventKind] = {
    Change.added: EventKind.CREATE,
    Change.modified: EventKind.MODIFY_ANY,
    Change.deleted: EventKind.REMOVE,
}

_RESOURCE_SUFFIXES: dict[str, DiffResource] = {
    ".html": DiffResource.HTML,
    ".htm": DiffResource.HTML,
    ".css": DiffResource.CSS,
}

_INDEX_NAMES = frozenset({"index.html", "index.htm"})


@dataclass(frozen=True, slots=True)
class RawChangeEvent:
    """A filesystem notification as reported by the watch backend.

    Attributes:
        kind: What happened.
        paths: Affected paths, absolute or relative to the base directory.
        needs_rescan: The backend dropped events and its view is stale.

    """

    kind: EventKind
    paths: tuple[Path, ...]
    needs_rescan: bool = False

    @classmethod
    def from_watchfiles(cls, change: Change, path: str) -> RawChangeEvent:
        """Build an event from one ``(Change, path)`` pair yielded by watchfiles."""
        return cls(kind=_WATCHFILES_KINDS.get(change, EventKind.ANY), paths=(Path(path),))


def classify_event(
    event: RawChangeEvent,
    *,
    base_dir: Path,
    diff_mode: bool,
) -> tuple[LiveMessage, ...]:
    """Turn one raw event into the messages to broadcast.

    Args:
        event: The raw notification.
        base_dir: Canonical serving root; diffs outside it are dropped.
        diff_mode: Whether targeted HTML/CSS updates are enabled.

    Returns:
        Zero or more messages.  At most one ``Reload`` is ever returned.

    """
    kind = event.kind

    if kind in IGNORED_KINDS:
        return ()

    if not diff_mode or event.needs_rescan:
        return (RELOAD,)

    diffs = tuple(_classify_paths(base_dir, event.paths))
    if diffs:
        if kind in DIFF_SAFE_KINDS:
            return diffs
        return (RELOAD,)

    if kind in RELOAD_WITHOUT_DIFF_KINDS:
        return (RELOAD,)
    return ()


def _classify_paths(base_dir: Path, paths: Iterable[Path]) -> Iterable[Diff]:
    for path in paths:
        message = classify_path(base_dir, path)
        if message is not None:
            yield message


def classify_path(base_dir: Path, path: Path) -> Diff | None:
    """Map a changed file to a ``Diff`` message, or None if not HTML/CSS."""
    normalized = normalize_event_path(base_dir, path)
    resource = _RESOURCE_SUFFIXES.get(normalized.suffix.lower())
    if resource is None:
        return None

    web_path = to_web_path(base_dir, normalized, resource)
    if web_path is None:
        return None
    return Diff(path=web_path, resource=resource)


def normalize_event_path(base_dir: Path, path: Path) -> Path:
    """Best-effort absolute, canonical form of a reported path.

    Relative paths are taken relative to *base_dir*.  Deleted or
    renamed-away paths can't be canonicalized and are returned as joined.

    """
    joined = path if path.is_absolute() else base_dir / path
    try:
        return joined.resolve(strict=True)
    except OSError:
        return joined


def to_web_path(base_dir: Path, path: Path, resource: DiffResource) -> WebPath | None:
    """Express *path* as a web path rooted at *base_dir*.

    HTML index documents collapse to their directory with a trailing ``/``.
    Returns None when *path* is not under *base_dir*.

    """
    try:
        relative = path.relative_to(base_dir)
    except ValueError:
        return None

    rel = relative.as_posix().replace("\\", "/").lstrip("/")
    if rel in ("", "."):
        return "/"

    if resource is DiffResource.HTML and relative.name in _INDEX_NAMES:
        parent = relative.parent.as_posix()
        if parent in ("", "."):
            return "/"
        return f"/{parent.strip('/')}/"

    return f"/{rel}"
