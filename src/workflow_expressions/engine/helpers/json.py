"""JSON and mapping helpers.

Usage:
    {{ $stringify data }}
    {{ $parse body }}
    {{ $merge defaults overrides }}
    {{ $pick user "name" "email" }}
    {{ $omit user "password" }}
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from ..values import UNDEFINED, ValueKind, json_dumps, kind_of

if TYPE_CHECKING:
    from ..registry import HelperRegistry

FAMILY = "json"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def stringify(value: Any = UNDEFINED) -> str:
    """Serialize to JSON with 2-space indentation."""
    if value is UNDEFINED:
        return ""
    return json_dumps(value, indent=2)


def parse(text: Any = UNDEFINED) -> Any:
    """Parse a JSON string (Undefined when the string is not valid JSON)."""
    if not isinstance(text, str):
        return text
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        return UNDEFINED


def merge(*mappings: Any) -> dict[str, Any]:
    """Shallow merge of mappings; later mappings win."""
    result: dict[str, Any] = {}
    for mapping in mappings:
        if kind_of(mapping) is ValueKind.MAPPING:
            result.update(mapping)
    return result


def pick(mapping: Any = UNDEFINED, *keys: Any) -> dict[str, Any]:
    """Keep only the given keys."""
    if kind_of(mapping) is not ValueKind.MAPPING:
        return {}
    return {key: mapping[key] for key in keys if isinstance(key, str) and key in mapping}


def omit(mapping: Any = UNDEFINED, *keys: Any) -> dict[str, Any]:
    """Drop the given keys."""
    if kind_of(mapping) is not ValueKind.MAPPING:
        return {}
    dropped = {key for key in keys if isinstance(key, str)}
    return {key: value for key, value in mapping.items() if key not in dropped}


def register(registry: HelperRegistry) -> None:
    registry.register("$stringify", stringify, family=FAMILY)
    registry.register("$parse", parse, family=FAMILY)
    registry.register("$merge", merge, family=FAMILY)
    registry.register("$pick", pick, family=FAMILY)
    registry.register("$omit", omit, family=FAMILY)
