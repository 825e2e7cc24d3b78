"""
Configuration loader (``livestock_config.loader``).

Responsibility
--------------
Reads one YAML file and parses it into the frozen dataclasses of
``livestock_config.schema``.  Runtime callers go through
``livestock_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown section or key, wrong value type  -> ``ValueError`` naming it.
"""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from livestock_config.schema import (
    DatabaseConfig,
    LivestockConfig,
    LoggingConfig,
    SalesConfig,
)

_SECTIONS: dict[str, type] = {
    "database": DatabaseConfig,
    "logging": LoggingConfig,
    "sales": SalesConfig,
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its top-level mapping ({} when empty)."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def _parse_section(name: str, cls: type, data: Any) -> Any:
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ValueError(f"{name} must be a mapping, got {type(data).__name__}")
    allowed = {f.name: f for f in fields(cls)}
    unknown = sorted(set(data) - set(allowed))
    if unknown:
        raise ValueError(f"Unknown {name} keys: {unknown}")

    values: dict[str, Any] = {}
    for key, raw in data.items():
        expected = allowed[key].type
        values[key] = _coerce(f"{name}.{key}", expected, raw)
    return cls(**values)


def _coerce(path: str, expected: Any, raw: Any) -> Any:
    # Field annotations are strings under postponed evaluation
    expected = expected if isinstance(expected, str) else getattr(expected, "__name__", "")
    match expected:
        case "bool":
            if not isinstance(raw, bool):
                raise ValueError(f"{path} must be true or false, got {raw!r}")
            return raw
        case "int":
            if isinstance(raw, bool) or not isinstance(raw, int):
                raise ValueError(f"{path} must be an integer, got {raw!r}")
            return raw
        case "float":
            if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                raise ValueError(f"{path} must be a number, got {raw!r}")
            return float(raw)
        case "str":
            if not isinstance(raw, str):
                raise ValueError(f"{path} must be a string, got {raw!r}")
            return raw
    return raw


def parse_config(data: dict[str, Any], source: str = "<dict>") -> LivestockConfig:
    """Build a LivestockConfig from a parsed YAML mapping."""
    unknown = sorted(set(data) - set(_SECTIONS) - {"reporting"})
    if unknown:
        raise ValueError(f"Unknown configuration sections: {unknown}")

    reporting = data.get("reporting") or {}
    if not isinstance(reporting, dict):
        raise ValueError(f"reporting must be a mapping, got {type(reporting).__name__}")

    sections = {name: _parse_section(name, cls, data.get(name)) for name, cls in _SECTIONS.items()}
    return LivestockConfig(reporting=dict(reporting), source=source, **sections)


def load_config_file(path: Path) -> LivestockConfig:
    """Load and parse one configuration file."""
    return parse_config(load_yaml_file(path), source=str(path))
