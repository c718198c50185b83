"""Array helpers.

Every helper returns a new sequence and never mutates its argument. A
non-sequence where a sequence is expected degrades to an empty sequence
($find degrades to Undefined).

Usage:
    {{ $filter users "status" "active" }}
    {{ $find users "id" 123 }}
    {{ $pluck users "email" }}
    {{ $unique tags }}
    {{ $sort users "name" }}
    {{ $reverse items }}  {{ $slice items 0 5 }}
    {{ $concat a b }}  {{ $flatten nested 2 }}
"""

from __future__ import annotations

import math
from functools import cmp_to_key
from typing import TYPE_CHECKING, Any

from ..values import (
    UNDEFINED,
    ValueKind,
    compare_values,
    kind_of,
    property_key,
    same_value,
    strict_equals,
    to_display_string,
    to_number,
)

if TYPE_CHECKING:
    from ..registry import HelperRegistry

FAMILY = "array"


def _is_sequence(value: Any) -> bool:
    return kind_of(value) is ValueKind.SEQUENCE


def _property(item: Any, key: Any) -> Any:
    """item[key] for mappings, UNDEFINED for everything else."""
    if kind_of(item) is not ValueKind.MAPPING:
        return UNDEFINED
    name = property_key(key)
    if name is None:
        return UNDEFINED
    return item.get(name, UNDEFINED)


def _matches(item: Any, key: Any, value: Any) -> bool:
    return kind_of(item) is ValueKind.MAPPING and strict_equals(_property(item, key), value)


def filter_items(seq: Any = UNDEFINED, key: Any = UNDEFINED, value: Any = UNDEFINED) -> list[Any]:
    """Keep mapping items whose property strictly equals a value."""
    if not _is_sequence(seq):
        return []
    return [item for item in seq if _matches(item, key, value)]


def find(seq: Any = UNDEFINED, key: Any = UNDEFINED, value: Any = UNDEFINED) -> Any:
    """First mapping item whose property strictly equals a value."""
    if not _is_sequence(seq):
        return UNDEFINED
    return next((item for item in seq if _matches(item, key, value)), UNDEFINED)


def pluck(seq: Any = UNDEFINED, key: Any = UNDEFINED) -> list[Any]:
    """Extract one property from every item (Undefined where missing)."""
    if not _is_sequence(seq):
        return []
    return [_property(item, key) for item in seq]


def _identity_key(value: Any) -> tuple[str, Any] | None:
    """Hashable identity for primitives; None for containers."""
    kind = kind_of(value)
    if kind is ValueKind.NUMBER and isinstance(value, float) and math.isnan(value):
        return (kind.value, "NaN")
    if kind in (ValueKind.SEQUENCE, ValueKind.MAPPING):
        return None
    return (kind.value, value)


def unique(seq: Any = UNDEFINED) -> list[Any]:
    """Remove duplicates, keeping first occurrences."""
    if not _is_sequence(seq):
        return []

    seen: set[tuple[str, Any]] = set()
    seen_containers: list[Any] = []
    result: list[Any] = []
    for item in seq:
        identity = _identity_key(item)
        if identity is not None:
            if identity in seen:
                continue
            seen.add(identity)
        else:
            # Containers compare structurally
            if any(same_value(item, other) for other in seen_containers):
                continue
            seen_containers.append(item)
        result.append(item)
    return result


def sort(seq: Any = UNDEFINED, key: Any = UNDEFINED) -> list[Any]:
    """Stable sort, by stringified property when a key is given."""
    if not _is_sequence(seq):
        return []
    if key is UNDEFINED or key is None or key == "":
        return sorted(seq, key=cmp_to_key(compare_values))
    return sorted(seq, key=lambda item: to_display_string(_property(item, key)))


def reverse(seq: Any = UNDEFINED) -> list[Any]:
    """Reverse a sequence."""
    if not _is_sequence(seq):
        return []
    return list(reversed(seq))


def _relative_index(value: Any, length: int, default: int) -> int:
    """Resolve a slice bound like Array.prototype.slice does."""
    if value is UNDEFINED:
        return default
    number = to_number(value)
    if math.isnan(number):
        return 0
    if math.isinf(number):
        return length if number > 0 else 0
    index = int(number)  # truncates toward zero
    if index < 0:
        return max(length + index, 0)
    return min(index, length)


def slice_items(seq: Any = UNDEFINED, start: Any = UNDEFINED, end: Any = UNDEFINED) -> list[Any]:
    """Slice a sequence (negative indices count from the end)."""
    if not _is_sequence(seq):
        return []
    length = len(seq)
    begin = _relative_index(start, length, 0)
    finish = _relative_index(end, length, length)
    return list(seq[begin:finish])


def concat(*sequences: Any) -> list[Any]:
    """Concatenate sequences; other arguments are dropped."""
    result: list[Any] = []
    for seq in sequences:
        if _is_sequence(seq):
            result.extend(seq)
    return result


def _flatten(seq: Any, depth: float) -> list[Any]:
    result: list[Any] = []
    for item in seq:
        if depth >= 1 and _is_sequence(item):
            result.extend(_flatten(item, depth - 1))
        else:
            result.append(item)
    return result


def flatten(seq: Any = UNDEFINED, depth: Any = UNDEFINED) -> list[Any]:
    """Flatten nested sequences (one level by default)."""
    if not _is_sequence(seq):
        return []
    levels = 1.0 if depth is UNDEFINED or depth is None else to_number(depth)
    if math.isnan(levels):
        levels = 0.0
    return _flatten(seq, levels)


def register(registry: HelperRegistry) -> None:
    registry.register("$filter", filter_items, family=FAMILY)
    registry.register("$find", find, family=FAMILY)
    registry.register("$pluck", pluck, family=FAMILY)
    registry.register("$unique", unique, family=FAMILY)
    registry.register("$sort", sort, family=FAMILY)
    registry.register("$reverse", reverse, family=FAMILY)
    registry.register("$slice", slice_items, family=FAMILY)
    registry.register("$concat", concat, family=FAMILY)
    registry.register("$flatten", flatten, family=FAMILY)
