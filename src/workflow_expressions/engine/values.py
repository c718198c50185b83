"""
Value model shared by every helper and by the template evaluator.

The model is a closed union of kinds:

    Undefined  - absent data (the UNDEFINED singleton)
    Null       - None
    Bool       - bool
    Number     - int or float (IEEE-754 semantics, bool is never a Number)
    String     - str
    Sequence   - list or tuple
    Mapping    - dict (string keys)

Helpers dispatch on ``kind_of`` instead of duck-typing, so a host object
outside the union fails loudly rather than falling through silently.

Coercion Rules:
    is_truthy       - Null/Undefined, False, 0, NaN, "", [] and {} are false
    strict_equals   - same kind and same content, no cross-kind coercion
    to_number       - JavaScript Number() coercion (non-numeric strings -> NaN)
    to_display_string - inline rendering used when concatenating templates
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel

from .exceptions import ValueConversionError


class _UndefinedType:
    """Singleton type for absent data. Falsy, and distinct from None."""

    __slots__ = ()
    _instance: _UndefinedType | None = None

    def __new__(cls) -> _UndefinedType:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __copy__(self) -> _UndefinedType:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _UndefinedType:
        return self

    def __reduce__(self) -> str:
        return "UNDEFINED"


UNDEFINED = _UndefinedType()


class ValueKind(Enum):
    """Kinds of the expression value model."""

    UNDEFINED = "undefined"
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


# Default sort order across kinds (undefined sorts last, like JavaScript)
_KIND_RANK = {
    ValueKind.NULL: 0,
    ValueKind.BOOL: 1,
    ValueKind.NUMBER: 2,
    ValueKind.STRING: 3,
    ValueKind.SEQUENCE: 4,
    ValueKind.MAPPING: 5,
    ValueKind.UNDEFINED: 6,
}

_DECIMAL_PATTERN = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_RADIX_PATTERN = re.compile(r"^0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$")
_INFINITY_LITERALS = {"Infinity": math.inf, "+Infinity": math.inf, "-Infinity": -math.inf}


def kind_of(value: Any) -> ValueKind:
    """
    Classify a value into its kind.

    Args:
        value: Value to classify

    Returns:
        ValueKind of the value

    Raises:
        TypeError: If value is outside the expression value model

    Examples:
        >>> kind_of(True)
        <ValueKind.BOOL: 'bool'>
        >>> kind_of(1.5)
        <ValueKind.NUMBER: 'number'>
    """
    if value is UNDEFINED:
        return ValueKind.UNDEFINED
    if value is None:
        return ValueKind.NULL
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.SEQUENCE
    if isinstance(value, Mapping):
        return ValueKind.MAPPING
    raise TypeError(f"{type(value).__name__} is not an expression value")


def is_nullish(value: Any) -> bool:
    """True for None and UNDEFINED."""
    return value is None or value is UNDEFINED


def is_sequence(value: Any) -> bool:
    return kind_of(value) is ValueKind.SEQUENCE


def is_mapping(value: Any) -> bool:
    return kind_of(value) is ValueKind.MAPPING


def _is_nan(value: Any) -> bool:
    return isinstance(value, float) and value != value


def to_value(obj: Any) -> Any:
    """
    Normalize host data into the expression value model.

    Used when a context snapshot is built, so helpers only ever see values of
    the closed union.

    Conversions:
        - Enum members -> their value
        - datetime/date/time -> ISO 8601 string
        - Decimal -> float
        - Pydantic models -> dumped dict (JSON mode)
        - tuples -> lists, mappings -> dicts with string keys

    Args:
        obj: Host object to normalize

    Returns:
        Equivalent value inside the union

    Raises:
        ValueConversionError: If obj (or anything nested in it) has no equivalent
    """
    if obj is UNDEFINED or obj is None or isinstance(obj, bool):
        return obj
    if isinstance(obj, Enum):
        return to_value(obj.value)
    if isinstance(obj, (int, float, str)):
        return obj
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, BaseModel):
        return to_value(obj.model_dump(mode="json"))
    if isinstance(obj, Mapping):
        normalized: dict[str, Any] = {}
        for key, item in obj.items():
            if isinstance(key, str):
                normalized[key] = to_value(item)
            elif isinstance(key, (bool, int, float)):
                normalized[to_display_string(key)] = to_value(item)
            else:
                raise ValueConversionError(
                    f"Mapping key of type {type(key).__name__} is not supported: {key!r}"
                )
        return normalized
    if isinstance(obj, (list, tuple)):
        return [to_value(item) for item in obj]
    raise ValueConversionError(
        f"Cannot convert {type(obj).__name__} to an expression value: {obj!r}"
    )


def is_truthy(value: Any) -> bool:
    """
    Truthiness rule of the value model.

    Null/Undefined, False, 0, NaN, "" and empty sequences/mappings are false.
    Everything else is true.
    """
    kind = kind_of(value)
    if kind in (ValueKind.UNDEFINED, ValueKind.NULL):
        return False
    if kind is ValueKind.BOOL:
        return value
    if kind is ValueKind.NUMBER:
        return value != 0 and not _is_nan(value)
    return len(value) > 0


def is_empty(value: Any) -> bool:
    """
    Emptiness rule used by $isEmpty/$isNotEmpty.

    Null/Undefined and "" are empty; sequences and mappings are empty when they
    have no elements; booleans and numbers are never empty.
    """
    kind = kind_of(value)
    if kind in (ValueKind.UNDEFINED, ValueKind.NULL):
        return True
    if kind in (ValueKind.STRING, ValueKind.SEQUENCE, ValueKind.MAPPING):
        return len(value) == 0
    return False


def strict_equals(a: Any, b: Any) -> bool:
    """
    Strict structural equality.

    Values are equal only when they have the same kind and the same content.
    ``1`` never equals ``"1"``, ``True`` never equals ``1`` and None never
    equals UNDEFINED. NaN is not equal to itself.
    """
    kind = kind_of(a)
    if kind is not kind_of(b):
        return False
    if kind is ValueKind.SEQUENCE:
        return len(a) == len(b) and all(strict_equals(x, y) for x, y in zip(a, b))
    if kind is ValueKind.MAPPING:
        if a.keys() != b.keys():
            return False
        return all(strict_equals(a[key], b[key]) for key in a)
    if kind is ValueKind.UNDEFINED or kind is ValueKind.NULL:
        return True
    return a == b


def same_value(a: Any, b: Any) -> bool:
    """Like strict_equals, except NaN equals NaN (SameValueZero)."""
    if _is_nan(a) and _is_nan(b):
        return True
    kind = kind_of(a)
    if kind is not kind_of(b):
        return False
    if kind is ValueKind.SEQUENCE:
        return len(a) == len(b) and all(same_value(x, y) for x, y in zip(a, b))
    if kind is ValueKind.MAPPING:
        if a.keys() != b.keys():
            return False
        return all(same_value(a[key], b[key]) for key in a)
    return strict_equals(a, b)


def to_number(value: Any) -> float:
    """
    Coerce a value to a number using JavaScript ``Number()`` rules.

    Examples:
        >>> to_number("42")
        42.0
        >>> to_number(" ")
        0.0
        >>> math.isnan(to_number("abc"))
        True
        >>> to_number(None)
        0.0
    """
    kind = kind_of(value)
    if kind is ValueKind.NUMBER:
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    if kind is ValueKind.UNDEFINED:
        return math.nan
    if kind is ValueKind.NULL:
        return 0.0
    if kind is ValueKind.BOOL:
        return 1.0 if value else 0.0
    if kind is ValueKind.STRING:
        return _string_to_number(value)
    if kind is ValueKind.SEQUENCE:
        if len(value) == 0:
            return 0.0
        if len(value) == 1:
            item = value[0]
            if is_nullish(item):
                return 0.0
            if isinstance(item, bool):
                return math.nan
            return to_number(item)
        return math.nan
    return math.nan


def _string_to_number(text: str) -> float:
    stripped = text.strip()
    if not stripped:
        return 0.0
    if stripped in _INFINITY_LITERALS:
        return _INFINITY_LITERALS[stripped]
    if _RADIX_PATTERN.match(stripped):
        return float(int(stripped, 0))
    if _DECIMAL_PATTERN.match(stripped):
        return float(stripped)
    return math.nan


def number_result(value: float) -> int | float:
    """Return integral finite floats as int so rendered results stay clean."""
    if isinstance(value, float) and value.is_integer() and abs(value) < 2**53:
        return int(value)
    return value


def format_number(value: int | float) -> str:
    """
    Render a number the way JavaScript's String() does.

    Floats use the shortest digits that round-trip (``repr``) and switch to
    exponent notation below 1e-6 or from 1e21 upwards. Python ints are
    rendered exactly.

    Examples:
        >>> format_number(1e-6)
        '0.000001'
        >>> format_number(1e-7)
        '1e-7'
        >>> format_number(123456789012345680000.0)
        '123456789012345680000'
    """
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    shortest = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(str(d) for d in shortest.digits)
    # Position of the decimal point relative to the first digit
    point = len(digits) + shortest.exponent

    if len(digits) <= point <= 21:
        return sign + digits + "0" * (point - len(digits))
    if 0 < point <= 21:
        return sign + digits[:point] + "." + digits[point:]
    if -6 < point <= 0:
        return sign + "0." + "0" * -point + digits

    exponent = point - 1
    mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
    return f"{sign}{mantissa}e{'+' if exponent >= 0 else '-'}{abs(exponent)}"


def to_display_string(value: Any) -> str:
    """
    Render a value for inline substitution in a template.

    Null and Undefined render as an empty string; sequences and mappings render
    as compact JSON.

    Examples:
        >>> to_display_string(None)
        ''
        >>> to_display_string(3.0)
        '3'
        >>> to_display_string({"a": [1, True]})
        '{"a":[1,true]}'
    """
    kind = kind_of(value)
    if kind in (ValueKind.UNDEFINED, ValueKind.NULL):
        return ""
    if kind is ValueKind.BOOL:
        return "true" if value else "false"
    if kind is ValueKind.NUMBER:
        return format_number(value)
    if kind is ValueKind.STRING:
        return value
    return json_dumps(value)


def to_json_compatible(value: Any) -> Any:
    """
    Convert a value into plain JSON data.

    Follows JSON.stringify: Undefined inside a sequence becomes null, inside a
    mapping the key is dropped; NaN and infinities become null.
    """
    kind = kind_of(value)
    if kind is ValueKind.UNDEFINED:
        return None
    if kind is ValueKind.NUMBER:
        return None if isinstance(value, float) and not math.isfinite(value) else value
    if kind is ValueKind.SEQUENCE:
        return [to_json_compatible(item) for item in value]
    if kind is ValueKind.MAPPING:
        return {
            key: to_json_compatible(item) for key, item in value.items() if item is not UNDEFINED
        }
    return value


def json_dumps(value: Any, indent: int | None = None) -> str:
    """Serialize a value to JSON (compact unless indent is given)."""
    separators = (",", ":") if indent is None else (",", ": ")
    return json.dumps(
        to_json_compatible(value),
        indent=indent,
        separators=separators,
        ensure_ascii=False,
    )


def property_key(value: Any) -> str | None:
    """
    Convert a lookup key argument into a mapping key.

    Strings are used as-is and numbers use their display form (``0`` -> ``"0"``).
    Other kinds cannot address a property and return None.
    """
    kind = kind_of(value)
    if kind is ValueKind.STRING:
        return value
    if kind is ValueKind.NUMBER:
        return format_number(value)
    return None


def compare_values(a: Any, b: Any) -> int:
    """
    Default total ordering, used by $sort without a key.

    Kinds are ordered Null < Bool < Number < String < Sequence < Mapping <
    Undefined. Within a kind: False < True, numeric order with NaN last,
    code-point order for strings, element-wise order for sequences. Mappings
    compare equal, so a stable sort keeps their input order.

    Returns:
        Negative, zero or positive like a classic cmp function
    """
    kind_a, kind_b = kind_of(a), kind_of(b)
    if kind_a is not kind_b:
        return -1 if _KIND_RANK[kind_a] < _KIND_RANK[kind_b] else 1

    if kind_a is ValueKind.NUMBER:
        a_nan, b_nan = _is_nan(a), _is_nan(b)
        if a_nan or b_nan:
            return int(a_nan) - int(b_nan)
        return (a > b) - (a < b)
    if kind_a in (ValueKind.BOOL, ValueKind.STRING):
        return (a > b) - (a < b)
    if kind_a is ValueKind.SEQUENCE:
        for x, y in zip(a, b):
            result = compare_values(x, y)
            if result:
                return result
        return (len(a) > len(b)) - (len(a) < len(b))
    return 0
