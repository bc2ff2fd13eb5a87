"""Tests for glint package exports and metadata."""

import pytest

import glint


class TestPackageMetadata:
    """Package-level exports and metadata."""

    def test_version_string(self) -> None:
        assert isinstance(glint.__version__, str)
        assert "0.1.0" in glint.__version__

    def test_all_exports_resolvable(self) -> None:
        for name in glint.__all__:
            getattr(glint, name)

    def test_invalid_attribute_raises(self) -> None:
        with pytest.raises(AttributeError, match="no attribute"):
            glint.nonexistent_thing  # type: ignore[attr-defined]  # noqa: B018
