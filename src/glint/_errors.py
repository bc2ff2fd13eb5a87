"""Glint error hierarchy.

All glint-specific errors inherit from GlintError for easy catching.
"""


class GlintError(Exception):
    """Base error for all glint operations."""


class ConfigError(GlintError):
    """Invalid or missing configuration (including the base directory)."""


class ResolveError(GlintError):
    """A request path could not be mapped to a file under the base directory."""


class InvalidPathError(ResolveError):
    """Request path contains a parent, root or otherwise unsafe segment."""


class NotFoundError(ResolveError):
    """Request path is safe but no servable file exists for it."""


class ServeError(GlintError):
    """A resolved file could not be read or rendered."""


class WatchError(GlintError):
    """The filesystem watch subscription could not be set up."""


class BindError(GlintError):
    """The listening socket could not be bound."""
