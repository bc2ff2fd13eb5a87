"""Glint — a live-reloading development file server.

Serves a directory over HTTP and pushes updates to every open tab when files
change: a full reload by default, or targeted HTML/CSS updates in diff mode.

Quick start::

    import glint

    glint.dev("site/")                    # full reloads
    glint.dev("site/", diff_mode=True)    # HTML/CSS hot updates

"""

__version__ = "0.1.0"
__all__ = [
    "Application",
    "GlintConfig",
    "__version__",
    "dev",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import glint`` fast; aiohttp and watchfiles are only imported
    when the server is actually used.
    """
    if name == "GlintConfig":
        from glint.config import GlintConfig

        return GlintConfig

    if name == "Application":
        from glint.app import Application

        return Application

    if name == "dev":
        from glint.app import dev

        return dev

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
