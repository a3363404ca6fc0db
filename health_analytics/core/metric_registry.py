"""
Central metric family registry - single source of truth for family metadata.

This module provides:
- YAML-based configuration loading and validation
- MetricFamily dataclass (key, label, unit, colour, required fields, normal range)
- Lookup by canonical key or alias
- Resolution of user-supplied ?metrics= filters

YAML access is encapsulated here - no other module reads metrics.yaml directly.

Usage:
    from health_analytics.core.metric_registry import get_family, resolve_family_filter

    family = get_family("tekanan_darah")          # -> blood_pressure
    keys = resolve_family_filter(["weight", "x"])  # -> ("weight",)
"""

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

BLOOD_PRESSURE = "blood_pressure"
BLOOD_SUGAR = "blood_sugar"
WEIGHT = "weight"
HEART_RATE = "heart_rate"
ACTIVITY = "activity"


# =============================================================================
# METRIC FAMILY DATACLASS
# =============================================================================

@dataclass(frozen=True)
class MetricFamily:
    """
    Immutable definition of a metric family.

    Attributes:
        key: Canonical identifier (e.g. "blood_pressure")
        display_name: Human-readable label
        unit: Measurement unit
        color: Hex colour used in charts
        fields: Record fields that must all be present for a record to count
        summarized: Whether the family gets a statistics summary
        normal_range: Printable normal range, or None
        aliases: Alternative names accepted in filters
    """
    key: str
    display_name: str
    unit: str
    color: str
    fields: Tuple[str, ...]
    summarized: bool
    normal_range: Optional[str]
    aliases: Tuple[str, ...]


# =============================================================================
# YAML CONFIGURATION LOADING & VALIDATION
# =============================================================================

def _get_config_path() -> Path:
    """Get the path to the metrics configuration file."""
    return Path(__file__).parent / "metrics.yaml"


def _load_yaml_config() -> Dict[str, Any]:
    """
    Load and parse the YAML configuration file.

    Raises:
        FileNotFoundError: If metrics.yaml is not found
        yaml.YAMLError: If YAML parsing fails
    """
    config_path = _get_config_path()
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except FileNotFoundError:
        logger.error("Metrics config file not found", extra={"path": str(config_path)})
        raise
    except yaml.YAMLError as e:
        logger.error("Failed to parse metrics config", extra={"path": str(config_path), "error": str(e)})
        raise


def _validate_family_entry(raw: Dict[str, Any], index: int) -> None:
    """
    Validate a single family entry from YAML.

    Raises:
        ValueError: If required fields are missing or invalid
    """
    for field in ("key", "fields", "color"):
        if field not in raw:
            raise ValueError(f"Metric family at index {index} is missing required field: '{field}'")

    color = raw.get("color", "")
    if not re.match(r"^#[0-9A-Fa-f]{6}$", color):
        raise ValueError(f"Metric family '{raw['key']}' has invalid color format: '{color}'")

    if not raw["fields"]:
        raise ValueError(f"Metric family '{raw['key']}' must list at least one field")


def _parse_family_entry(raw: Dict[str, Any]) -> MetricFamily:
    """Parse a single family entry from YAML into a MetricFamily."""
    key = raw["key"]
    return MetricFamily(
        key=key,
        display_name=raw.get("display_name", key.replace("_", " ").title()),
        unit=raw.get("unit", ""),
        color=raw["color"],
        fields=tuple(raw["fields"]),
        summarized=bool(raw.get("summarized", False)),
        normal_range=raw.get("normal_range"),
        aliases=tuple(raw.get("aliases") or ()),
    )


@lru_cache(maxsize=1)
def _load_registry() -> Tuple[MetricFamily, ...]:
    """Load and cache every family definition, in file order."""
    config = _load_yaml_config()
    families: List[MetricFamily] = []
    for i, raw in enumerate(config.get("families", [])):
        _validate_family_entry(raw, i)
        families.append(_parse_family_entry(raw))
    return tuple(families)


# =============================================================================
# NORMALIZATION & LOOKUP
# =============================================================================

def _normalize_name(name: str) -> str:
    """Lowercase, trim, and treat spaces, dashes and underscores alike."""
    if not name:
        return ""
    normalized = name.lower().strip()
    normalized = re.sub(r"[\s\-]+", "_", normalized)
    return re.sub(r"[^a-z0-9_]", "", normalized)


@lru_cache(maxsize=1)
def _build_lookup() -> Dict[str, MetricFamily]:
    """Build a normalized lookup map from keys and aliases."""
    lookup: Dict[str, MetricFamily] = {}
    for family in _load_registry():
        lookup[_normalize_name(family.key)] = family
        for alias in family.aliases:
            alias_normalized = _normalize_name(alias)
            existing = lookup.get(alias_normalized)
            if existing is not None and existing != family:
                logger.warning(
                    "Alias collision detected",
                    extra={"alias": alias_normalized, "existing": existing.key}
                )
                continue
            lookup[alias_normalized] = family
    return lookup


# =============================================================================
# PUBLIC API
# =============================================================================

def list_families() -> Tuple[MetricFamily, ...]:
    """All families in registry order."""
    return _load_registry()


def summarized_family_keys() -> Tuple[str, ...]:
    """Keys of families that get a statistics summary, in registry order."""
    return tuple(f.key for f in _load_registry() if f.summarized)


def get_family(name: str) -> Optional[MetricFamily]:
    """Look up a family by key or alias (case-insensitive). Returns None if unknown."""
    return _build_lookup().get(_normalize_name(name))


def require_family(key: str) -> MetricFamily:
    """Look up a family that must exist (internal callers pass canonical keys)."""
    family = get_family(key)
    if family is None:
        raise KeyError(f"Unknown metric family '{key}'")
    return family


def resolve_family_filter(names: Optional[Iterable[str]]) -> Tuple[str, ...]:
    """
    Turn a user-supplied metrics filter into canonical summarized family keys.

    An empty or missing filter selects every summarized family. Unknown names
    are ignored with a warning; a filter made only of unknown names selects
    nothing.
    """
    all_keys = summarized_family_keys()
    names = [n for n in (names or []) if n and n.strip()]
    if not names:
        return all_keys

    selected = set()
    for name in names:
        family = get_family(name)
        if family is None or not family.summarized:
            logger.warning("Ignoring unknown metric in filter", extra={"metric": name})
            continue
        selected.add(family.key)
    return tuple(k for k in all_keys if k in selected)
