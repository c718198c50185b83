"""Data helpers: node access and basic collection accessors.

Usage:
    {{ $json "HTTP Request" "data.users" }}
    {{ $node "HTTP Request" "type" }}
    {{ $first items }}  {{ $last items }}
    {{ $get user "email" "N/A" }}
    {{ $keys data }}  {{ $values data }}  {{ $length items }}
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..paths import resolve_json, resolve_node
from ..values import UNDEFINED, ValueKind, kind_of, property_key

if TYPE_CHECKING:
    from ..registry import HelperRegistry
    from ..snapshot import ContextSnapshot

FAMILY = "data"


def json_output(snapshot: ContextSnapshot, node_name: Any = UNDEFINED, path: Any = UNDEFINED) -> Any:
    """Access node output by name and optional dotted path."""
    return resolve_json(snapshot, node_name, path)


def node_metadata(
    snapshot: ContextSnapshot, node_name: Any = UNDEFINED, property: Any = UNDEFINED
) -> Any:
    """Access node metadata by name and optional property."""
    return resolve_node(snapshot, node_name, property)


def first(seq: Any = UNDEFINED) -> Any:
    """First item of a sequence."""
    if kind_of(seq) is not ValueKind.SEQUENCE or not seq:
        return UNDEFINED
    return seq[0]


def last(seq: Any = UNDEFINED) -> Any:
    """Last item of a sequence."""
    if kind_of(seq) is not ValueKind.SEQUENCE or not seq:
        return UNDEFINED
    return seq[-1]


def get(mapping: Any = UNDEFINED, key: Any = UNDEFINED, default: Any = UNDEFINED) -> Any:
    """Get a mapping property, falling back to a default."""
    if kind_of(mapping) is not ValueKind.MAPPING:
        return default
    name = property_key(key)
    if name is None:
        return default
    value = mapping.get(name, UNDEFINED)
    return default if value is UNDEFINED else value


def keys(mapping: Any = UNDEFINED) -> list[Any]:
    """Keys of a mapping, in insertion order."""
    if kind_of(mapping) is not ValueKind.MAPPING:
        return []
    return list(mapping.keys())


def values(mapping: Any = UNDEFINED) -> list[Any]:
    """Values of a mapping, in insertion order."""
    if kind_of(mapping) is not ValueKind.MAPPING:
        return []
    return list(mapping.values())


def length(value: Any = UNDEFINED) -> int:
    """Length of a sequence or string (0 for anything else)."""
    if kind_of(value) in (ValueKind.SEQUENCE, ValueKind.STRING):
        return len(value)
    return 0


def register(registry: HelperRegistry) -> None:
    registry.register("$json", json_output, family=FAMILY, context_aware=True)
    registry.register("$node", node_metadata, family=FAMILY, context_aware=True)
    registry.register("$first", first, family=FAMILY)
    registry.register("$last", last, family=FAMILY)
    registry.register("$get", get, family=FAMILY)
    registry.register("$keys", keys, family=FAMILY)
    registry.register("$values", values, family=FAMILY)
    registry.register("$length", length, family=FAMILY)
