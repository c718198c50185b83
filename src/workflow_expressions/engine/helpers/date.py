"""Date helpers.

Dates are ISO 8601 strings or epoch milliseconds. Naive datetimes are UTC and
all results are rendered in UTC, so a given snapshot always evaluates the same
way. ``$now`` and ``$today`` read the snapshot clock instead of the system one.

Usage:
    {{ $now }}  {{ $today }}
    {{ $formatDate createdAt "DD/MM/YYYY HH:mm" }}
    {{ $parseDate "2024-01-01" }}
    {{ $addDays date 7 }}  {{ $addHours date 24 }}
    {{ $diffDays start end }}
    {{ $isAfter date1 date2 }}  {{ $isBefore date1 date2 }}
"""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from ..snapshot import format_timestamp
from ..values import UNDEFINED, ValueKind, kind_of, to_number

if TYPE_CHECKING:
    from ..registry import HelperRegistry
    from ..snapshot import ContextSnapshot

FAMILY = "date"

_MS_PER_DAY = 24 * 60 * 60 * 1000


def parse_date(value: Any) -> datetime | None:
    """
    Parse an ISO 8601 string or epoch milliseconds.

    Returns:
        Aware UTC datetime, or None when the value is not a valid date
    """
    kind = kind_of(value)
    try:
        if kind is ValueKind.STRING:
            parsed = datetime.fromisoformat(value.strip())
        elif kind is ValueKind.NUMBER:
            if not math.isfinite(value):
                return None
            return datetime.fromtimestamp(value / 1000, tz=UTC)
        else:
            return None
    except (ValueError, OverflowError, OSError):
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _shift(value: Any, amount: Any, unit: str) -> str:
    moment = parse_date(value)
    number = to_number(amount)
    if moment is None or not math.isfinite(number):
        return ""
    try:
        return format_timestamp(moment + timedelta(**{unit: int(number)}))
    except OverflowError:
        return ""


def now(snapshot: ContextSnapshot) -> str:
    """Evaluation time as an ISO 8601 UTC timestamp."""
    return format_timestamp(snapshot.now)


def today(snapshot: ContextSnapshot) -> str:
    """Evaluation date as YYYY-MM-DD (UTC)."""
    return snapshot.now.astimezone(UTC).date().isoformat()


def format_date(value: Any = UNDEFINED, fmt: Any = UNDEFINED) -> str:
    """Format a date with YYYY, MM, DD, HH, mm and ss tokens."""
    moment = parse_date(value)
    if moment is None:
        return ""
    pattern = fmt if isinstance(fmt, str) and fmt else "YYYY-MM-DD"
    # Each token is replaced once, left to right in this order
    return (
        pattern.replace("YYYY", str(moment.year), 1)
        .replace("MM", f"{moment.month:02d}", 1)
        .replace("DD", f"{moment.day:02d}", 1)
        .replace("HH", f"{moment.hour:02d}", 1)
        .replace("mm", f"{moment.minute:02d}", 1)
        .replace("ss", f"{moment.second:02d}", 1)
    )


def parse_date_helper(value: Any = UNDEFINED) -> str:
    """Normalize a date to an ISO 8601 UTC timestamp."""
    moment = parse_date(value)
    return format_timestamp(moment) if moment else ""


def add_days(value: Any = UNDEFINED, days: Any = UNDEFINED) -> str:
    """Add whole days to a date."""
    return _shift(value, days, "days")


def add_hours(value: Any = UNDEFINED, hours: Any = UNDEFINED) -> str:
    """Add whole hours to a date."""
    return _shift(value, hours, "hours")


def diff_days(start: Any = UNDEFINED, end: Any = UNDEFINED) -> int:
    """Whole days between two dates, ignoring direction."""
    first, second = parse_date(start), parse_date(end)
    if first is None or second is None:
        return 0
    delta = abs(second - first)
    return int(delta.total_seconds() * 1000 // _MS_PER_DAY)


def is_after(first: Any = UNDEFINED, second: Any = UNDEFINED) -> bool:
    """True when the first date is later than the second."""
    a, b = parse_date(first), parse_date(second)
    return a is not None and b is not None and a > b


def is_before(first: Any = UNDEFINED, second: Any = UNDEFINED) -> bool:
    """True when the first date is earlier than the second."""
    a, b = parse_date(first), parse_date(second)
    return a is not None and b is not None and a < b


def register(registry: HelperRegistry) -> None:
    registry.register("$now", now, family=FAMILY, context_aware=True)
    registry.register("$today", today, family=FAMILY, context_aware=True)
    registry.register("$formatDate", format_date, family=FAMILY)
    registry.register("$parseDate", parse_date_helper, family=FAMILY)
    registry.register("$addDays", add_days, family=FAMILY)
    registry.register("$addHours", add_hours, family=FAMILY)
    registry.register("$diffDays", diff_days, family=FAMILY)
    registry.register("$isAfter", is_after, family=FAMILY)
    registry.register("$isBefore", is_before, family=FAMILY)
