"""Helper registry for template expressions.

Helpers are pure functions over the expression value model. Each helper
family module (data, array, logic, ...) contributes its helpers exactly once
through a ``register(registry)`` function. The registry is then frozen and is
read-only for the rest of the process lifetime.

Key principles:
- Names follow the ``$identifier`` convention and are unique
- Collisions are configuration errors raised while building the registry
- Helpers never see the snapshot unless registered as context-aware
- Registration after freeze() is a programming error

Example:
    registry = HelperRegistry()
    registry.register("$double", lambda value=UNDEFINED: to_number(value) * 2)
    registry.freeze()
    registry.invoke("$double", [21], snapshot)  # 42.0
"""

from __future__ import annotations

import inspect
import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, PrivateAttr

from .exceptions import ExpressionConfigError, HelperRegistrationError

if TYPE_CHECKING:
    from .snapshot import ContextSnapshot

logger = logging.getLogger(__name__)

HELPER_NAME_PATTERN = re.compile(r"^\$[A-Za-z_][A-Za-z0-9_]*$")

HelperFunction = Callable[..., Any]


def _max_positional_args(func: HelperFunction, context_aware: bool) -> int | None:
    """
    Count the positional template arguments a helper accepts.

    Returns None for variadic helpers. The snapshot parameter of context-aware
    helpers is not a template argument.
    """
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return None

    count = 0
    for parameter in signature.parameters.values():
        if parameter.kind is inspect.Parameter.VAR_POSITIONAL:
            return None
        if parameter.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            count += 1

    if context_aware:
        count -= 1
    return max(count, 0)


@dataclass(frozen=True, slots=True)
class Helper:
    """A registered helper function."""

    name: str
    func: HelperFunction
    family: str
    context_aware: bool
    max_args: int | None
    description: str

    def __call__(self, args: list[Any], snapshot: ContextSnapshot) -> Any:
        """Invoke with template arguments; surplus arguments are ignored."""
        if self.max_args is not None:
            args = args[: self.max_args]
        if self.context_aware:
            return self.func(snapshot, *args)
        return self.func(*args)


class HelperRegistry(BaseModel):
    """
    Registry of template helpers.

    Maps helper names to Helper records.
    """

    model_config = {"arbitrary_types_allowed": True}

    _helpers: dict[str, Helper] = PrivateAttr(default_factory=dict)
    _frozen: bool = PrivateAttr(default=False)

    def register(
        self,
        name: str,
        func: HelperFunction,
        *,
        family: str = "custom",
        context_aware: bool = False,
    ) -> None:
        """
        Register a helper under a unique name.

        Args:
            name: Helper name (``$identifier``)
            func: Pure function over values; context-aware helpers take the
                snapshot as first parameter
            family: Family label used for listing
            context_aware: Pass the current snapshot as first argument

        Raises:
            HelperRegistrationError: Duplicate or invalid name, or frozen registry
        """
        if self._frozen:
            raise HelperRegistrationError(name, "registry is frozen")
        if not HELPER_NAME_PATTERN.match(name):
            raise HelperRegistrationError(name, "helper names must look like '$identifier'")
        if name in self._helpers:
            existing = self._helpers[name]
            raise HelperRegistrationError(
                name, f"already registered by the '{existing.family}' family"
            )
        if not callable(func):
            raise HelperRegistrationError(name, f"{type(func).__name__} is not callable")

        doc = inspect.getdoc(func) or ""
        self._helpers[name] = Helper(
            name=name,
            func=func,
            family=family,
            context_aware=context_aware,
            max_args=_max_positional_args(func, context_aware),
            description=doc.splitlines()[0] if doc else "",
        )
        logger.debug(f"Registered helper {name} ({family})")

    def freeze(self) -> None:
        """Make the registry read-only."""
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> Helper:
        """Get helper by name."""
        if name not in self._helpers:
            raise KeyError(f"Unknown helper: {name}")
        return self._helpers[name]

    def has(self, name: str) -> bool:
        """Check if helper is registered."""
        return name in self._helpers

    def list_names(self, family: str | None = None) -> list[str]:
        """List registered helper names, optionally for one family."""
        return [
            helper.name
            for helper in self._helpers.values()
            if family is None or helper.family == family
        ]

    def list_helpers(self) -> list[Helper]:
        """List registered helpers in registration order."""
        return list(self._helpers.values())

    def families(self) -> list[str]:
        """List family names in registration order."""
        return list(dict.fromkeys(helper.family for helper in self._helpers.values()))

    def invoke(self, name: str, args: list[Any], snapshot: ContextSnapshot) -> Any:
        """Invoke a helper by name."""
        return self.get(name)(args, snapshot)

    def __contains__(self, name: object) -> bool:
        return name in self._helpers

    def __len__(self) -> int:
        return len(self._helpers)


def create_default_registry(families: Iterable[str] | None = None) -> HelperRegistry:
    """
    Build and freeze a registry with the built-in helper families.

    Args:
        families: Family names to include (default: all built-in families)

    Returns:
        Frozen HelperRegistry

    Raises:
        ExpressionConfigError: If an unknown family is requested
        HelperRegistrationError: If two families register the same name
    """
    from .helpers import HELPER_FAMILIES

    selected = list(HELPER_FAMILIES) if families is None else list(dict.fromkeys(families))
    unknown = [family for family in selected if family not in HELPER_FAMILIES]
    if unknown:
        raise ExpressionConfigError(
            f"Unknown helper families: {', '.join(unknown)}. "
            f"Available: {', '.join(HELPER_FAMILIES)}"
        )

    registry = HelperRegistry()
    for family in selected:
        HELPER_FAMILIES[family](registry)

    registry.freeze()
    logger.info(f"Helper registry built: {len(registry)} helpers from {len(selected)} families")
    return registry
