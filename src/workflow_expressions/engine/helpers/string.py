"""String helpers.

Usage:
    {{ $uppercase name }}  {{ $lowercase email }}  {{ $capitalize title }}
    {{ $trim input }}
    {{ $split text "," }}  {{ $join items ", " }}
    {{ $replace text "old" "new" }}
    {{ $substring text 0 10 }}
    {{ $startsWith url "https" }}  {{ $endsWith file ".json" }}
    {{ $includes text "keyword" }}
    {{ $template "Hello, {name}!" user }}
"""

from __future__ import annotations

import math
import re
from typing import TYPE_CHECKING, Any

from ..values import (
    UNDEFINED,
    ValueKind,
    is_truthy,
    kind_of,
    to_display_string,
    to_number,
)

if TYPE_CHECKING:
    from ..registry import HelperRegistry

FAMILY = "string"

_PLACEHOLDER_PATTERN = re.compile(r"\{(\w+)\}", re.ASCII)


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else to_display_string(value)


def uppercase(text: Any = UNDEFINED) -> Any:
    """Convert to uppercase."""
    return text.upper() if isinstance(text, str) else text


def lowercase(text: Any = UNDEFINED) -> Any:
    """Convert to lowercase."""
    return text.lower() if isinstance(text, str) else text


def capitalize(text: Any = UNDEFINED) -> Any:
    """Uppercase the first character, leave the rest unchanged."""
    if not isinstance(text, str) or not text:
        return text
    return text[0].upper() + text[1:]


def trim(text: Any = UNDEFINED) -> Any:
    """Strip surrounding whitespace."""
    return text.strip() if isinstance(text, str) else text


def split(text: Any = UNDEFINED, separator: Any = UNDEFINED) -> list[str]:
    """Split a string (separator defaults to ",")."""
    if not isinstance(text, str):
        return []
    sep = _as_text(separator) if is_truthy(separator) else ","
    return text.split(sep)


def join(seq: Any = UNDEFINED, separator: Any = UNDEFINED) -> str:
    """Join sequence items into a string (separator defaults to ",")."""
    if kind_of(seq) is not ValueKind.SEQUENCE:
        return ""
    sep = _as_text(separator) if is_truthy(separator) else ","
    return sep.join(to_display_string(item) for item in seq)


def replace(text: Any = UNDEFINED, search: Any = UNDEFINED, replacement: Any = UNDEFINED) -> Any:
    """Replace every occurrence of search."""
    if not isinstance(text, str) or search is UNDEFINED:
        return text
    needle = _as_text(search)
    pieces = text.split(needle) if needle else list(text)
    return _as_text(replacement).join(pieces)


def _substring_bound(value: Any, length: int, default: int) -> int:
    if value is UNDEFINED:
        return default
    number = to_number(value)
    if math.isnan(number):
        return 0
    if math.isinf(number):
        return length if number > 0 else 0
    return min(max(int(number), 0), length)


def substring(text: Any = UNDEFINED, start: Any = UNDEFINED, end: Any = UNDEFINED) -> Any:
    """Characters between two indices (clamped, swapped when reversed)."""
    if not isinstance(text, str):
        return text
    begin = _substring_bound(start, len(text), 0)
    finish = _substring_bound(end, len(text), len(text))
    if begin > finish:
        begin, finish = finish, begin
    return text[begin:finish]


def starts_with(text: Any = UNDEFINED, prefix: Any = UNDEFINED) -> bool:
    """Check if a string starts with a prefix."""
    if not isinstance(text, str):
        return False
    return text.startswith(_as_text(prefix))


def ends_with(text: Any = UNDEFINED, suffix: Any = UNDEFINED) -> bool:
    """Check if a string ends with a suffix."""
    if not isinstance(text, str):
        return False
    return text.endswith(_as_text(suffix))


def includes(text: Any = UNDEFINED, search: Any = UNDEFINED) -> bool:
    """Check if a string contains a substring."""
    if not isinstance(text, str):
        return False
    return _as_text(search) in text


def template(text: Any = UNDEFINED, data: Any = UNDEFINED) -> Any:
    """Replace {word} placeholders with values from a mapping."""
    if not isinstance(text, str) or kind_of(data) is not ValueKind.MAPPING:
        return text

    def substitute(match: re.Match[str]) -> str:
        return to_display_string(data.get(match.group(1), UNDEFINED))

    return _PLACEHOLDER_PATTERN.sub(substitute, text)


def register(registry: HelperRegistry) -> None:
    registry.register("$uppercase", uppercase, family=FAMILY)
    registry.register("$lowercase", lowercase, family=FAMILY)
    registry.register("$capitalize", capitalize, family=FAMILY)
    registry.register("$trim", trim, family=FAMILY)
    registry.register("$split", split, family=FAMILY)
    registry.register("$join", join, family=FAMILY)
    registry.register("$replace", replace, family=FAMILY)
    registry.register("$substring", substring, family=FAMILY)
    registry.register("$startsWith", starts_with, family=FAMILY)
    registry.register("$endsWith", ends_with, family=FAMILY)
    registry.register("$includes", includes, family=FAMILY)
    registry.register("$template", template, family=FAMILY)
