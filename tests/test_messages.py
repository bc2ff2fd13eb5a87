"""Tests for glint.live.messages — wire format of live messages."""

from __future__ import annotations

import json

import pytest

from glint.live.messages import RELOAD, Diff, DiffResource, Reload


class TestWireFormat:
    def test_reload(self) -> None:
        assert RELOAD.to_json() == '{"type":"reload"}'

    def test_html_diff_lowercase_resource(self) -> None:
        payload = Diff(path="/", resource=DiffResource.HTML).to_json()
        assert '"resource":"html"' in payload
        assert '"type":"diff"' in payload

    def test_css_diff(self) -> None:
        payload = json.loads(Diff(path="/styles/app.css", resource=DiffResource.CSS).to_json())
        assert payload == {"type": "diff", "path": "/styles/app.css", "resource": "css"}


class TestMessageValues:
    def test_reloads_are_equal(self) -> None:
        assert Reload() == RELOAD

    def test_diff_frozen(self) -> None:
        diff = Diff(path="/", resource=DiffResource.HTML)
        with pytest.raises(AttributeError):
            diff.path = "/other"  # type: ignore[misc]

    def test_diff_hashable(self) -> None:
        a = Diff(path="/a/", resource=DiffResource.HTML)
        b = Diff(path="/a/", resource=DiffResource.HTML)
        assert {a, b} == {a}

    def test_type_tags(self) -> None:
        assert Reload.type == "reload"
        assert Diff.type == "diff"
