"""
Detection utilities for template expressions in node configuration.

These never evaluate anything and never raise on malformed syntax, so they are
safe to call on arbitrary user input (for example to decide whether a field
needs resolving at execution time).
"""

from collections.abc import Mapping
from typing import Any

from .template import OPEN, TextSegment, segment_template


def has_expressions(value: Any) -> bool:
    """
    Check if a value is a string containing template braces.

    Args:
        value: Value to check

    Returns:
        True if value is a string containing ``{{``

    Examples:
        >>> has_expressions("{{ $json \\"Fetch\\" }}")
        True
        >>> has_expressions("plain text")
        False
        >>> has_expressions(42)
        False
    """
    return isinstance(value, str) and OPEN in value


def extract_expressions(text: str) -> list[str]:
    """
    List expression bodies in a template, in order of appearance.

    Comments, escaped braces and unterminated braces are not expressions.

    Examples:
        >>> extract_expressions("Hi {{ name }}, {{ $length items }}")
        ['name', '$length items']
    """
    if not has_expressions(text):
        return []
    return [
        item[0].strip() for item in segment_template(text) if not isinstance(item, TextSegment)
    ]


def contains_expressions(data: Any) -> bool:
    """Check recursively whether any string inside data contains expressions."""
    if isinstance(data, str):
        return has_expressions(data)
    if isinstance(data, Mapping):
        return any(contains_expressions(value) for value in data.values())
    if isinstance(data, (list, tuple)):
        return any(contains_expressions(item) for item in data)
    return False
