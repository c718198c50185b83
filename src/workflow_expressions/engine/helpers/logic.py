"""Logic helpers.

Conditions use the value-model truthiness rule, and the boolean helpers
always return a plain bool rather than one of their operands.

Note the deliberate asymmetry between $default and $isDefined:
    {{ $default 0 "fallback" }}   -> "fallback"  (0 is falsy)
    {{ $isDefined 0 }}            -> true        (0 is defined)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..values import UNDEFINED, is_empty, is_nullish, is_truthy, strict_equals, to_number

if TYPE_CHECKING:
    from ..registry import HelperRegistry

FAMILY = "logic"


def if_(condition: Any = UNDEFINED, then: Any = UNDEFINED, otherwise: Any = UNDEFINED) -> Any:
    """Ternary: then if condition is truthy, else otherwise."""
    return then if is_truthy(condition) else otherwise


def and_(a: Any = UNDEFINED, b: Any = UNDEFINED) -> bool:
    """True when both operands are truthy."""
    return is_truthy(a) and is_truthy(b)


def or_(a: Any = UNDEFINED, b: Any = UNDEFINED) -> bool:
    """True when either operand is truthy."""
    return is_truthy(a) or is_truthy(b)


def not_(value: Any = UNDEFINED) -> bool:
    """Negated truthiness."""
    return not is_truthy(value)


def eq(a: Any = UNDEFINED, b: Any = UNDEFINED) -> bool:
    """Strict equality."""
    return strict_equals(a, b)


def ne(a: Any = UNDEFINED, b: Any = UNDEFINED) -> bool:
    """Strict inequality."""
    return not strict_equals(a, b)


# NaN compares False against everything, so non-numeric operands are never ordered
def gt(a: Any = UNDEFINED, b: Any = UNDEFINED) -> bool:
    """Numeric greater-than."""
    return to_number(a) > to_number(b)


def gte(a: Any = UNDEFINED, b: Any = UNDEFINED) -> bool:
    """Numeric greater-than-or-equal."""
    return to_number(a) >= to_number(b)


def lt(a: Any = UNDEFINED, b: Any = UNDEFINED) -> bool:
    """Numeric less-than."""
    return to_number(a) < to_number(b)


def lte(a: Any = UNDEFINED, b: Any = UNDEFINED) -> bool:
    """Numeric less-than-or-equal."""
    return to_number(a) <= to_number(b)


def is_empty_value(value: Any = UNDEFINED) -> bool:
    """True for null, undefined, "" and empty sequences/mappings."""
    return is_empty(value)


def is_not_empty_value(value: Any = UNDEFINED) -> bool:
    """Negation of $isEmpty."""
    return not is_empty(value)


def is_defined(value: Any = UNDEFINED) -> bool:
    """False only for null and undefined."""
    return not is_nullish(value)


def default(value: Any = UNDEFINED, fallback: Any = UNDEFINED) -> Any:
    """Fallback when value is falsy (0, "" and false included)."""
    return value if is_truthy(value) else fallback


def register(registry: HelperRegistry) -> None:
    registry.register("$if", if_, family=FAMILY)
    registry.register("$and", and_, family=FAMILY)
    registry.register("$or", or_, family=FAMILY)
    registry.register("$not", not_, family=FAMILY)
    registry.register("$eq", eq, family=FAMILY)
    registry.register("$ne", ne, family=FAMILY)
    registry.register("$gt", gt, family=FAMILY)
    registry.register("$gte", gte, family=FAMILY)
    registry.register("$lt", lt, family=FAMILY)
    registry.register("$lte", lte, family=FAMILY)
    registry.register("$isEmpty", is_empty_value, family=FAMILY)
    registry.register("$isNotEmpty", is_not_empty_value, family=FAMILY)
    registry.register("$isDefined", is_defined, family=FAMILY)
    registry.register("$default", default, family=FAMILY)
