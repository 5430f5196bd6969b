"""Import limits and their loading from YAML/JSON override files."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from .codec.constants import (
    MAX_GLYPH_BLOCK_SIZE,
    MAX_GLYPH_COUNT,
    MAX_GLYPH_TABLE_SIZE,
    MAX_MODEL_BLOCK_SIZE,
    MAX_MODEL_COUNT,
    MAX_MODEL_TABLE_SIZE,
)

__all__ = [
    "ConfigError",
    "ImportLimits",
    "MODEL_LIMITS",
    "GLYPH_LIMITS",
    "LIMITS_ENV_VAR",
    "load_limits",
    "limits_from_env",
]

LIMITS_ENV_VAR = "KALADATA_LIMITS"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class ImportLimits:
    max_entry_count: int
    max_table_size: int
    max_block_size: int

    def with_overrides(self, overrides: Mapping[str, Any]) -> "ImportLimits":
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigError(f"Unknown limit keys: {', '.join(unknown)}")
        values: Dict[str, int] = {}
        for key, raw in overrides.items():
            if isinstance(raw, bool) or not isinstance(raw, int):
                raise ConfigError(f"Limit '{key}' must be an integer")
            if raw <= 0:
                raise ConfigError(f"Limit '{key}' must be positive, got {raw}")
            values[key] = raw
        return replace(self, **values)


MODEL_LIMITS = ImportLimits(
    max_entry_count=MAX_MODEL_COUNT,
    max_table_size=MAX_MODEL_TABLE_SIZE,
    max_block_size=MAX_MODEL_BLOCK_SIZE,
)

GLYPH_LIMITS = ImportLimits(
    max_entry_count=MAX_GLYPH_COUNT,
    max_table_size=MAX_GLYPH_TABLE_SIZE,
    max_block_size=MAX_GLYPH_BLOCK_SIZE,
)

_DEFAULTS = {"model": MODEL_LIMITS, "glyph": GLYPH_LIMITS}


def load_limits(path: str | Path) -> Dict[str, ImportLimits]:
    """Read per-format overrides, e.g. ``{"model": {"max_entry_count": 64}}``.

    Formats missing from the file keep their defaults.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        data: Any = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Root of limits file must be an object")
    unknown = sorted(set(data) - set(_DEFAULTS))
    if unknown:
        raise ConfigError(f"Unknown formats in limits file: {', '.join(unknown)}")
    result = dict(_DEFAULTS)
    for name, overrides in data.items():
        if overrides is None:
            continue
        if not isinstance(overrides, dict):
            raise ConfigError(f"Limits for '{name}' must be an object")
        result[name] = _DEFAULTS[name].with_overrides(overrides)
    return result


def limits_from_env() -> Dict[str, ImportLimits] | None:
    value = os.getenv(LIMITS_ENV_VAR)
    if not value:
        return None
    return load_limits(value)
