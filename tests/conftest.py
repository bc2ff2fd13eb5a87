"""Shared test fixtures for glint."""

from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """Create a small static site and return its canonical root.

    Layout::

        index.html
        about/index.html
        blog/post.html
        styles/app.css
        app.js
        empty/

    """
    root = tmp_path.resolve()
    (root / "index.html").write_text(
        "<!DOCTYPE html>\n<html>\n<head><title>Home</title></head>\n"
        "<body><h1>Home</h1></body>\n</html>\n"
    )

    about = root / "about"
    about.mkdir()
    (about / "index.html").write_text("<html><head></head><body>About</body></html>")

    blog = root / "blog"
    blog.mkdir()
    (blog / "post.html").write_text("<p>No head here</p>")

    styles = root / "styles"
    styles.mkdir()
    (styles / "app.css").write_text("body { margin: 0; }\n")

    (root / "app.js").write_text("console.log('hi');\n")
    (root / "empty").mkdir()
    return root
