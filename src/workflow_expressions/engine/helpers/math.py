"""Math helpers.

Every operand is coerced with ``to_number`` (JavaScript ``Number()`` rules),
so numeric strings work and anything else turns into NaN instead of raising.
Integral results come back as ``int``.

Usage:
    {{ $add a b }}  {{ $subtract total discount }}
    {{ $multiply price quantity }}  {{ $divide total count }}
    {{ $mod n 2 }}  {{ $round price 2 }}
    {{ $min a b c }}  {{ $max a b c }}
    {{ $sum prices }}  {{ $avg scores }}
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

from ..values import UNDEFINED, ValueKind, is_nullish, kind_of, number_result, to_number

if TYPE_CHECKING:
    from ..registry import HelperRegistry

FAMILY = "math"


def add(a: Any = UNDEFINED, b: Any = UNDEFINED) -> int | float:
    """Addition."""
    return number_result(to_number(a) + to_number(b))


def subtract(a: Any = UNDEFINED, b: Any = UNDEFINED) -> int | float:
    """Subtraction."""
    return number_result(to_number(a) - to_number(b))


def multiply(a: Any = UNDEFINED, b: Any = UNDEFINED) -> int | float:
    """Multiplication."""
    return number_result(to_number(a) * to_number(b))


def divide(a: Any = UNDEFINED, b: Any = UNDEFINED) -> int | float:
    """Division (a zero divisor gives 0)."""
    divisor = to_number(b)
    if divisor == 0:
        return 0
    return number_result(to_number(a) / divisor)


def mod(a: Any = UNDEFINED, b: Any = UNDEFINED) -> int | float:
    """Remainder with the sign of the dividend (a zero divisor gives NaN)."""
    dividend, divisor = to_number(a), to_number(b)
    if divisor == 0 or math.isnan(divisor) or not math.isfinite(dividend):
        return math.nan
    return number_result(math.fmod(dividend, divisor))


def _round_half_up(value: float) -> float:
    if not math.isfinite(value):
        return value
    return float(math.floor(value + 0.5))


def round_(value: Any = UNDEFINED, decimals: Any = UNDEFINED) -> int | float:
    """Round to a number of decimals (halves round toward +infinity)."""
    number = to_number(value)
    places = 0.0 if is_nullish(decimals) else to_number(decimals)
    try:
        factor = math.pow(10, places)
    except OverflowError:
        factor = math.inf
    if factor == 0:
        return math.nan
    return number_result(_round_half_up(number * factor) / factor)


def floor(value: Any = UNDEFINED) -> int | float:
    """Round down."""
    number = to_number(value)
    return number_result(float(math.floor(number))) if math.isfinite(number) else number


def ceil(value: Any = UNDEFINED) -> int | float:
    """Round up."""
    number = to_number(value)
    return number_result(float(math.ceil(number))) if math.isfinite(number) else number


def abs_(value: Any = UNDEFINED) -> int | float:
    """Absolute value."""
    return number_result(abs(to_number(value)))


def _numeric_arguments(args: tuple[Any, ...]) -> list[float]:
    """Numbers and strings coerced to numbers; other kinds are skipped."""
    return [
        to_number(arg) for arg in args if kind_of(arg) in (ValueKind.NUMBER, ValueKind.STRING)
    ]


def min_(*args: Any) -> int | float:
    """Smallest argument (+Infinity without arguments)."""
    numbers = _numeric_arguments(args)
    if any(math.isnan(number) for number in numbers):
        return math.nan
    return number_result(min(numbers, default=math.inf))


def max_(*args: Any) -> int | float:
    """Largest argument (-Infinity without arguments)."""
    numbers = _numeric_arguments(args)
    if any(math.isnan(number) for number in numbers):
        return math.nan
    return number_result(max(numbers, default=-math.inf))


def sum_(seq: Any = UNDEFINED) -> int | float:
    """Sum of a sequence (0 for anything else)."""
    if kind_of(seq) is not ValueKind.SEQUENCE:
        return 0
    return number_result(sum((to_number(item) for item in seq), 0.0))


def avg(seq: Any = UNDEFINED) -> int | float:
    """Average of a sequence (0 when empty or not a sequence)."""
    if kind_of(seq) is not ValueKind.SEQUENCE or not seq:
        return 0
    total = sum((to_number(item) for item in seq), 0.0)
    return number_result(total / len(seq))


def register(registry: HelperRegistry) -> None:
    registry.register("$add", add, family=FAMILY)
    registry.register("$subtract", subtract, family=FAMILY)
    registry.register("$multiply", multiply, family=FAMILY)
    registry.register("$divide", divide, family=FAMILY)
    registry.register("$mod", mod, family=FAMILY)
    registry.register("$round", round_, family=FAMILY)
    registry.register("$floor", floor, family=FAMILY)
    registry.register("$ceil", ceil, family=FAMILY)
    registry.register("$abs", abs_, family=FAMILY)
    registry.register("$min", min_, family=FAMILY)
    registry.register("$max", max_, family=FAMILY)
    registry.register("$sum", sum_, family=FAMILY)
    registry.register("$avg", avg, family=FAMILY)
