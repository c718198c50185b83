"""
Property path navigation over snapshot data.

Two path syntaxes exist:

1. ``$json`` paths: plain dotted strings (``"data.users.0.email"``), split on
   every ``.``. There is no escape syntax, so keys containing a literal dot are
   unreachable through ``$json``. This limitation is kept on purpose.

2. Bare reference paths inside expressions: dotted segments plus bracket
   segments, for keys that are not plain identifiers:
       users[0].email
       $json["HTTP Request"].data
       config['key.with.dots']

Navigation is total: any gap (missing key, index out of range, stepping into a
scalar) yields UNDEFINED and never raises.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from .exceptions import TemplateSyntaxError
from .values import UNDEFINED, ValueKind, kind_of

if TYPE_CHECKING:
    from .snapshot import ContextSnapshot

# Match: [quoted-string] or [digits]
_BRACKET_PATTERN = re.compile(
    r"\["  # Opening bracket
    r"(?:"
    r'"((?:[^"\\]|\\.)*)"|'  # Double-quoted string
    r"'((?:[^'\\]|\\.)*)'|"  # Single-quoted string
    r"(\d+)"  # Numeric index
    r")"
    r"\]"  # Closing bracket
)
_ESCAPE_PATTERN = re.compile(r"\\(.)")


def split_dotted_path(path: str) -> list[str]:
    """
    Split a ``$json`` path on dots.

    Examples:
        >>> split_dotted_path("data.users.0.email")
        ['data', 'users', '0', 'email']
        >>> split_dotted_path("a..b")
        ['a', '', 'b']
    """
    return path.split(".")


def parse_reference_path(path: str) -> list[str]:
    """
    Parse a bare reference path into segments, handling bracket notation.

    Converts mixed dot and bracket notation into a list of segments:
    - "items" → ["items"]
    - "users[0].email" → ["users", "0", "email"]
    - '$json["HTTP Request"].data' → ["$json", "HTTP Request", "data"]

    Args:
        path: Reference path text

    Returns:
        List of segments for navigation

    Raises:
        TemplateSyntaxError: If bracket notation is malformed or a segment is empty
    """
    segments: list[str] = []
    current = ""  # Accumulator for current segment being parsed
    expect_segment = True
    i = 0

    while i < len(path):
        char = path[i]

        if char == ".":
            if current:
                segments.append(current)
                current = ""
            elif expect_segment:
                raise TemplateSyntaxError("Empty path segment", path, i)
            expect_segment = True
            i += 1

        elif char == "[":
            if current:
                segments.append(current)
                current = ""

            match = _BRACKET_PATTERN.match(path, i)
            if not match:
                raise TemplateSyntaxError("Invalid bracket notation", path, i)

            double_quoted, single_quoted, numeric = match.groups()
            if numeric is not None:
                segments.append(numeric)
            else:
                quoted = double_quoted if double_quoted is not None else single_quoted
                segments.append(_ESCAPE_PATTERN.sub(r"\1", quoted))

            expect_segment = False
            i = match.end()

        else:
            if not expect_segment and not current:
                # Identifier directly after a closing bracket, e.g. a[0]b
                raise TemplateSyntaxError("Expected '.' or '[' after ']'", path, i)
            current += char
            i += 1

    if current:
        segments.append(current)
    elif expect_segment:
        raise TemplateSyntaxError("Path ends with an empty segment", path, len(path))

    return segments


def _sequence_index(part: str, length: int) -> int | None:
    """Canonical non-negative integer index ("0", "12"; not "01" or "-1")."""
    if not part.isdigit() or not part.isascii():
        return None
    if len(part) > 1 and part.startswith("0"):
        return None
    index = int(part)
    return index if index < length else None


def walk(value: Any, parts: list[str]) -> Any:
    """
    Navigate ``parts`` starting at ``value``.

    At every step a Null/Undefined or non-container value stops navigation
    with UNDEFINED. Mappings advance by key, sequences by index.

    Examples:
        >>> walk({"data": {"users": [{"email": "a@b.com"}]}}, ["data", "users", "0", "email"])
        'a@b.com'
        >>> walk({"data": None}, ["data", "x"])
        UNDEFINED
    """
    current = value
    for part in parts:
        kind = kind_of(current)
        if kind is ValueKind.MAPPING:
            current = current.get(part, UNDEFINED)
        elif kind is ValueKind.SEQUENCE:
            index = _sequence_index(part, len(current))
            if index is None:
                return UNDEFINED
            current = current[index]
        else:
            return UNDEFINED
    return current


def resolve_json(snapshot: ContextSnapshot, node_name: Any, path: Any = UNDEFINED) -> Any:
    """
    Resolve a node's output, optionally navigating a dotted path.

    Args:
        snapshot: Context snapshot
        node_name: Node name (non-strings resolve to UNDEFINED)
        path: Optional dotted path; omitted, empty or non-string returns the
            whole output

    Returns:
        Resolved value or UNDEFINED
    """
    if not isinstance(node_name, str):
        return UNDEFINED
    record = snapshot.get_node(node_name)
    if record is None:
        return UNDEFINED
    if not isinstance(path, str) or not path:
        return record.output
    return walk(record.output, split_dotted_path(path))


def resolve_node(snapshot: ContextSnapshot, node_name: Any, property: Any = UNDEFINED) -> Any:
    """
    Resolve a node's metadata, or a single metadata property.

    Args:
        snapshot: Context snapshot
        node_name: Node name (non-strings resolve to UNDEFINED)
        property: Optional property name

    Returns:
        Metadata mapping, property value, or UNDEFINED
    """
    if not isinstance(node_name, str):
        return UNDEFINED
    record = snapshot.get_node(node_name)
    if record is None:
        return UNDEFINED
    if is_blank_argument(property):
        return record.metadata
    if not isinstance(property, str):
        return UNDEFINED
    return record.metadata.get(property, UNDEFINED)


def is_blank_argument(value: Any) -> bool:
    """True when an optional argument was omitted (UNDEFINED, None or "")."""
    return value is UNDEFINED or value is None or value == ""


def resolve_reference(snapshot: ContextSnapshot, parts: list[str]) -> Any:
    """Resolve a bare reference path against the snapshot root scope."""
    return walk(snapshot.root_scope(), parts)
