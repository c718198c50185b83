"""Built-in helper families.

Each family module exposes ``register(registry)``, which adds its helpers to a
HelperRegistry. ``create_default_registry`` calls them in the order below.
"""

from collections.abc import Callable

from ..registry import HelperRegistry
from . import array, data, date, json, logic, math, string

HELPER_FAMILIES: dict[str, Callable[[HelperRegistry], None]] = {
    "data": data.register,
    "array": array.register,
    "logic": logic.register,
    "string": string.register,
    "math": math.register,
    "json": json.register,
    "date": date.register,
}

__all__ = ["HELPER_FAMILIES"]
