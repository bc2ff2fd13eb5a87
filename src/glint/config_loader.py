"""Load GlintConfig from glint.toml / glint.yaml if present.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import yaml

from glint._errors import ConfigError
from glint.config import GlintConfig

_KNOWN_KEYS = frozenset({"port", "diff_mode", "no_open_browser", "debounce_ms", "backlog"})


def load_config(root: Path, **overrides: object) -> GlintConfig:
    """Load GlintConfig for root, optionally merging a glint config file.

    Looks for glint.toml, glint.yaml or glint.yml in root. If found, loads
    and merges with overrides. Overrides whose value is ``None`` are treated
    as "not given" so that unset CLI flags don't mask file values.

    Raises:
        ConfigError: If a config file exists but cannot be parsed, or a
            value has the wrong type.

    """
    file_config = _read_glint_config(root)
    given = {k: v for k, v in overrides.items() if v is not None}
    merged = {**file_config, **given}
    try:
        return GlintConfig(root=root, **merged)  # type: ignore[arg-type]
    except TypeError as exc:
        msg = f"invalid configuration: {exc}"
        raise ConfigError(msg) from exc


def _read_glint_config(root: Path) -> dict[str, object]:
    """Read glint config from toml/yaml if present. Returns empty dict otherwise."""
    toml_path = root / "glint.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    for name in ("glint.yaml", "glint.yml"):
        path = root / name
        if path.is_file():
            return _parse_yaml(path)
    return {}


def _parse_toml(path: Path) -> dict[str, object]:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        msg = f"failed to read {path.name}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_glint_section(data)


def _parse_yaml(path: Path) -> dict[str, object]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        msg = f"failed to read {path.name}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{path.name} must contain a mapping, got {type(data).__name__}"
        raise ConfigError(msg)
    return _flatten_glint_section(data)


def _flatten_glint_section(data: dict[str, object]) -> dict[str, object]:
    """Extract glint.* keys and known top-level keys into one flat dict."""
    result: dict[str, object] = {
        k: v for k, v in data.items() if k in _KNOWN_KEYS
    }
    section = data.get("glint")
    if isinstance(section, dict):
        result.update((k, v) for k, v in section.items() if k in _KNOWN_KEYS)
    return result
