"""Load SitemillConfig from sitemill.yaml or sitemill.toml if present.

Merges file config with keyword overrides. Overrides take precedence.
"""

from __future__ import annotations

import tomllib
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from sitemill._errors import ConfigurationError
from sitemill.config import SitemillConfig, SourceSpec, StaticPage
from sitemill.sources.base import Condition

_CONFIG_KEYS = frozenset(f.name for f in fields(SitemillConfig)) - {"sources", "static_pages"}


def load_config(root: Path, **overrides: object) -> SitemillConfig:
    """Load SitemillConfig from root, optionally merging sitemill.yaml.

    Looks for sitemill.yaml, sitemill.yml, or sitemill.toml in root.  A
    relative ``document_root`` (and relative source databases) are resolved
    against ``root``.  *None* overrides are ignored so CLI flags that were
    not given do not mask the file.
    """
    file_config = _read_config_file(root)
    merged: dict[str, Any] = {
        **file_config,
        **{k: v for k, v in overrides.items() if v is not None},
    }

    unknown = set(merged) - _CONFIG_KEYS - {"sources", "static"}
    if unknown:
        msg = f"Unknown configuration option(s): {', '.join(sorted(unknown))}"
        raise ConfigurationError(msg)

    if merged.get("document_root") is not None:
        merged["document_root"] = _resolve(root, merged["document_root"])

    sources = tuple(_source_spec(root, item) for item in merged.pop("sources", None) or ())
    static = tuple(_static_page(item) for item in merged.pop("static", None) or ())

    try:
        return SitemillConfig(sources=sources, static_pages=static, **merged)
    except TypeError as exc:
        raise ConfigurationError(str(exc)) from exc


def _resolve(root: Path, value: object) -> Path:
    path = Path(str(value))
    return path if path.is_absolute() else (root / path).resolve()


def _read_config_file(root: Path) -> dict[str, Any]:
    """Read sitemill config from yaml/toml if present. Returns empty dict otherwise."""
    for name in ("sitemill.yaml", "sitemill.yml"):
        path = root / name
        if path.is_file():
            return _parse_yaml(path)
    toml_path = root / "sitemill.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    return {}


def _parse_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        msg = f"Cannot parse {path.name}: {exc}"
        raise ConfigurationError(msg) from exc
    return _flatten_sitemill_section(path, data)


def _parse_toml(path: Path) -> dict[str, Any]:
    try:
        data = tomllib.loads(path.read_text())
    except tomllib.TOMLDecodeError as exc:
        msg = f"Cannot parse {path.name}: {exc}"
        raise ConfigurationError(msg) from exc
    return _flatten_sitemill_section(path, data)


def _flatten_sitemill_section(path: Path, data: object) -> dict[str, Any]:
    """Extract sitemill.* keys (or known top-level keys) into one dict."""
    if not isinstance(data, dict):
        msg = f"{path.name} must contain a mapping at the top level"
        raise ConfigurationError(msg)
    result: dict[str, Any] = {}
    for k, v in data.items():
        if k != "sitemill" and (k in _CONFIG_KEYS or k in ("sources", "static")):
            result[k] = v
    section = data.get("sitemill")
    if isinstance(section, dict):
        result.update(section)
    return result


def _conditions(value: object) -> tuple[Condition, ...]:
    """Accept ``{field: value}`` equality maps or ``[field, op, value]`` lists."""
    if value is None:
        return ()
    if isinstance(value, dict):
        return tuple(Condition(k, "=", v) for k, v in value.items())
    if isinstance(value, list):
        result: list[Condition] = []
        for item in value:
            if not isinstance(item, list | tuple) or len(item) != 3:
                msg = f"Condition must be [field, op, value], got {item!r}"
                raise ConfigurationError(msg)
            result.append(Condition(*item))
        return tuple(result)
    msg = f"Invalid conditions: {value!r}"
    raise ConfigurationError(msg)


def _source_spec(root: Path, item: object) -> SourceSpec:
    if not isinstance(item, dict) or "database" not in item or "table" not in item:
        msg = f"Each source needs 'database' and 'table', got {item!r}"
        raise ConfigurationError(msg)
    options = dict(item)
    options["database"] = _resolve(root, options["database"])
    options["conditions"] = _conditions(options.get("conditions"))
    try:
        return SourceSpec(**options)
    except TypeError as exc:
        msg = f"Invalid source {item!r}: {exc}"
        raise ConfigurationError(msg) from exc


def _static_page(item: object) -> StaticPage:
    if isinstance(item, str):
        return StaticPage(url=item)
    if not isinstance(item, dict) or "url" not in item:
        msg = f"Each static page needs a 'url', got {item!r}"
        raise ConfigurationError(msg)
    try:
        return StaticPage(**item)
    except TypeError as exc:
        msg = f"Invalid static page {item!r}: {exc}"
        raise ConfigurationError(msg) from exc
