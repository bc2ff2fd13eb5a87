"""Live messages — what push connections receive.

Two variants, serialized as JSON objects tagged by ``type``::

    {"type": "reload"}
    {"type": "diff", "path": "/about/", "resource": "html"}

"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, TypeAlias

from glint._types import MessageType, WebPath


class DiffResource(Enum):
    """Kind of resource a targeted update refers to."""

    HTML = "html"
    CSS = "css"


@dataclass(frozen=True, slots=True)
class Reload:
    """Ask clients to reload the current page."""

    type: ClassVar[MessageType] = "reload"

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))


@dataclass(frozen=True, slots=True)
class Diff:
    """Ask clients to refresh one HTML document or stylesheet in place.

    Attributes:
        path: Absolute web path; HTML index documents use their directory
            form (``/about/``).
        resource: Whether *path* is an HTML document or a stylesheet.

    """

    type: ClassVar[MessageType] = "diff"

    path: WebPath
    resource: DiffResource

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "path": self.path, "resource": self.resource.value}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))


LiveMessage: TypeAlias = Reload | Diff

RELOAD = Reload()
