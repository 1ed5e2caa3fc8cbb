"""
Loader for the bundled rule presets.

Each preset is a JSON file in ``presets/`` with optional ``categories``,
``domains``, ``paths`` and ``keywords`` lists.  Presets are parsed into
immutable ``RuleSet`` objects on first use and cached for the life of the
process.
"""

from __future__ import annotations

import json
import pathlib
from typing import Any

from trafficwarden.interception.rule_set import RuleSet
from trafficwarden.utils.errors import ConfigurationError

# Resolve path to the presets directory (next to this module)
_PRESETS_DIR = pathlib.Path(__file__).resolve().parent / "presets"

_PRESET_KEYS = frozenset({"description", "categories", "domains", "paths", "keywords"})


def _load_json(path: pathlib.Path) -> Any:
    """Load and parse a JSON file.

    Raises:
        ConfigurationError: If the file is missing or not valid JSON.
    """
    if not path.exists():
        raise ConfigurationError(f"Preset file not found: {path.name}")
    with open(path, encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Invalid JSON in {path.name}: {exc.msg}") from exc


def available_presets() -> list[str]:
    """Names of every bundled preset."""
    return sorted(p.stem for p in _PRESETS_DIR.glob("*.json"))


def parse_preset(name: str, raw: Any) -> RuleSet:
    """Validate a decoded preset document and build its rule set."""
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Preset {name!r} must be a JSON object")
    unknown = set(raw) - _PRESET_KEYS
    if unknown:
        raise ConfigurationError(f"Preset {name!r} has unknown keys: {', '.join(sorted(unknown))}")
    for key in ("categories", "domains", "paths", "keywords"):
        if not isinstance(raw.get(key, []), list):
            raise ConfigurationError(f"Preset {name!r}: {key!r} must be a list")
    try:
        return RuleSet(
            blocked_categories=raw.get("categories", []),
            blocked_domains=raw.get("domains", []),
            blocked_paths=raw.get("paths", []),
            blocked_keywords=raw.get("keywords", []),
        )
    except ConfigurationError as exc:
        raise ConfigurationError(f"Preset {name!r}: {exc}") from exc


_preset_cache: dict[str, RuleSet] = {}


def get_preset(name: str) -> RuleSet:
    """Get a bundled preset by name (lazy loaded and cached)."""
    key = name.strip().lower()
    if key not in _preset_cache:
        if key not in available_presets():
            raise ConfigurationError(
                f"Unknown rule preset {name!r}. Available: {', '.join(available_presets())}"
            )
        _preset_cache[key] = parse_preset(key, _load_json(_PRESETS_DIR / f"{key}.json"))
    return _preset_cache[key]
