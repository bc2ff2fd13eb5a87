"""Glint configuration.

GlintConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass, field
from pathlib import Path

from glint._errors import ConfigError

DEFAULT_PORT = 3000
LOOPBACK = "127.0.0.1"


@dataclass(frozen=True, slots=True)
class GlintConfig:
    """Configuration for a Glint dev server.

    Attributes:
        root: Directory to serve.  Always made absolute on construction; it is
              canonicalized and validated by :func:`resolve_base_dir`.
        port: Preferred bind port.  Only the default port falls back to the
              next free one when busy.
        diff_mode: Send targeted HTML/CSS updates instead of full reloads.
        no_open_browser: Skip launching the default browser on startup.
        debounce_ms: Quiescence delay applied to every filesystem event.
        backlog: Per-subscriber message buffer of the live channel.

    """

    root: Path = field(default_factory=Path.cwd)
    port: int = DEFAULT_PORT
    diff_mode: bool = False
    no_open_browser: bool = False
    debounce_ms: int = 120
    backlog: int = 64

    def __post_init__(self) -> None:
        if not isinstance(self.root, Path):
            object.__setattr__(self, "root", Path(self.root))
        if not self.root.is_absolute():
            object.__setattr__(self, "root", self.root.absolute())
        if not 0 <= self.port <= 65535:
            msg = f"port must be between 0 and 65535, got {self.port}"
            raise ConfigError(msg)
        if self.debounce_ms < 0:
            msg = f"debounce_ms must not be negative, got {self.debounce_ms}"
            raise ConfigError(msg)
        if self.backlog < 1:
            msg = f"backlog must be at least 1, got {self.backlog}"
            raise ConfigError(msg)

    @property
    def allows_port_fallback(self) -> bool:
        """Whether a busy port may be replaced by the next free one."""
        return self.port == DEFAULT_PORT


def resolve_base_dir(root: Path) -> Path:
    """Canonicalize the directory to serve.

    Raises:
        ConfigError: If the path does not exist or is not a directory.

    """
    try:
        canonical = root.resolve(strict=True)
    except OSError as exc:
        msg = f"failed to resolve base directory {root}: {exc}"
        raise ConfigError(msg) from exc

    if not canonical.is_dir():
        msg = f"base directory must be a directory: {canonical}"
        raise ConfigError(msg)
    return canonical
