"""Vulnerability-type ranking from heterogeneous backend payloads.

The ``/vulnerability-types`` and ``/top-vulnerability-types`` endpoints have
returned several shapes over time. Each shape is recognised by a predicate and
mapped to ``(label, count)`` pairs by one constructor; the first matching
predicate wins.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from typing import Any

from ciaa_dashboard.errors import is_not_found
from ciaa_dashboard.models import VulnerabilityTypeCount

# Shown whenever the backend has nothing usable; never render an empty chart.
FALLBACK_VULNERABILITY_TYPES: tuple[tuple[str, int], ...] = (
    ("Use-After-Free", 143),
    ("Buffer Overflow", 112),
    ("Type Confusion", 87),
    ("Memory Corruption", 76),
    ("Cross-Site Scripting", 54),
)

DEFAULT_VULNERABILITY_TYPE_OPTIONS: tuple[str, ...] = (
    "Use-After-Free",
    "Buffer Overflow",
    "Type Confusion",
    "Memory Corruption",
    "Cross-Site Scripting",
    "Integer Overflow",
    "Heap Corruption",
    "Race Condition",
    "Null Pointer Dereference",
    "Double Free",
)

_RESERVED_KEYS = frozenset({"types", "notFound"})
_OPTIONS_LIMIT = 1000

Pair = tuple[str, int]


def _number(value: Any) -> int | None:
    """Finite numeric count or None. Booleans are not counts."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return int(value)


def _label(item: Any) -> str | None:
    """Label from a plain string or number, or from a ``type``/``name`` entry."""
    if isinstance(item, dict):
        item = item.get("type") or item.get("name")
    if isinstance(item, bool) or not isinstance(item, (str, int, float)):
        return None
    return str(item) if item != "" else None


# --- Shape predicates ---

def _types_list(raw: Any) -> list | None:
    if isinstance(raw, dict) and isinstance(raw.get("types"), list):
        return raw["types"]
    return None


def _is_canonical(raw: Any) -> bool:
    types = _types_list(raw)
    return bool(types) and isinstance(types[0], dict) and "type" in types[0] and "count" in types[0]


def _is_types_with_counts(raw: Any) -> bool:
    return _types_list(raw) is not None and isinstance(raw.get("counts"), dict)


def _is_types_only(raw: Any) -> bool:
    return _types_list(raw) is not None


def _is_entry_list(raw: Any) -> bool:
    return isinstance(raw, list)


def _is_count_mapping(raw: Any) -> bool:
    return isinstance(raw, dict)


# --- Constructors ---

def _from_canonical(raw: dict) -> list[Pair]:
    pairs = []
    for item in raw["types"]:
        label = _label(item.get("type")) if isinstance(item, dict) else None
        if label is None:
            continue
        pairs.append((label, _number(item.get("count")) or 0))
    return pairs


def _from_types_with_counts(raw: dict) -> list[Pair]:
    counts = raw["counts"]
    pairs = []
    for item in raw["types"]:
        label = _label(item)
        if label is None:
            continue
        count = _number(counts.get(label))
        if count is None and isinstance(item, dict):
            count = _number(item.get("count"))
        pairs.append((label, count or 0))
    return pairs


def _from_types_only(raw: dict) -> list[Pair]:
    # Synthetic counts only preserve display order; they are not real data.
    labels = [label for label in map(_label, raw["types"]) if label is not None]
    return [(label, max(100 - index * 20, 0)) for index, label in enumerate(labels)]


def _from_entry_list(raw: list) -> list[Pair]:
    pairs = []
    for item in raw:
        label = _label(item) if isinstance(item, dict) else None
        if label is None:
            continue
        pairs.append((label, _number(item.get("count")) or 0))
    return pairs


def _from_count_mapping(raw: dict) -> list[Pair]:
    pairs = []
    for label, value in raw.items():
        if label in _RESERVED_KEYS:
            continue
        count = _number(value)
        if count is None:
            continue
        pairs.append((str(label), count))
    return pairs


_SHAPES: tuple[tuple[Callable[[Any], bool], Callable[[Any], list[Pair]]], ...] = (
    (_is_canonical, _from_canonical),
    (_is_types_with_counts, _from_types_with_counts),
    (_is_types_only, _from_types_only),
    (_is_entry_list, _from_entry_list),
    (_is_count_mapping, _from_count_mapping),
)


def resolve_shape(raw: Any) -> list[Pair]:
    """Decode ``raw`` with the first matching shape. Unrecognised input yields []."""
    if raw is None or is_not_found(raw):
        return []
    if isinstance(raw, dict) and raw.get("notFound"):
        return []
    for matches, build in _SHAPES:
        if matches(raw):
            return build(raw)
    return []


def _rank(pairs: list[Pair], limit: int) -> list[Pair]:
    # sorted() is stable, so ties keep input order.
    ranked = sorted(pairs, key=lambda pair: pair[1], reverse=True)[: max(limit, 0)]
    seen: set[str] = set()
    unique = []
    for label, count in ranked:
        if label in seen:
            continue
        seen.add(label)
        unique.append((label, count))
    return unique


def fallback_vulnerability_types() -> list[VulnerabilityTypeCount]:
    return [VulnerabilityTypeCount(label=label, count=count) for label, count in FALLBACK_VULNERABILITY_TYPES]


def normalize_vulnerability_types(raw: Any, limit: int = 5) -> list[VulnerabilityTypeCount]:
    """Canonical ``label``/``count`` list, sorted by count, at most ``limit`` long.

    Never raises: empty, missing, not-found or unusable payloads produce the
    fixed fallback catalog.
    """
    pairs = _rank(resolve_shape(raw), limit)
    if not pairs:
        return fallback_vulnerability_types()
    return [VulnerabilityTypeCount(label=label, count=count) for label, count in pairs]


def vulnerability_type_options(raw: Any) -> list[str]:
    """Checkbox labels for the vulnerability-type filter."""
    pairs = _rank(resolve_shape(raw), _OPTIONS_LIMIT)
    if not pairs:
        return list(DEFAULT_VULNERABILITY_TYPE_OPTIONS)
    return [label for label, _ in pairs]
