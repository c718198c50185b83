"""Tests for the helper registry."""

import pytest

from workflow_expressions.engine import (
    UNDEFINED,
    ContextSnapshot,
    ExpressionConfigError,
    HelperRegistrationError,
    HelperRegistry,
    create_default_registry,
)
from workflow_expressions.engine.helpers import HELPER_FAMILIES


def double(value=UNDEFINED):
    """Double a number.

    Longer description that is not part of the listing.
    """
    return value * 2


class TestRegister:
    def test_register_and_invoke(self) -> None:
        registry = HelperRegistry()
        registry.register("$double", double)

        assert registry.has("$double")
        assert "$double" in registry
        assert len(registry) == 1
        assert registry.invoke("$double", [21], ContextSnapshot()) == 42

    def test_description_is_first_docstring_line(self) -> None:
        registry = HelperRegistry()
        registry.register("$double", double, family="math")

        helper = registry.get("$double")
        assert helper.description == "Double a number."
        assert helper.family == "math"
        assert helper.max_args == 1

    def test_duplicate_name_is_config_error(self) -> None:
        registry = HelperRegistry()
        registry.register("$double", double, family="first")

        with pytest.raises(HelperRegistrationError, match="already registered by the 'first'"):
            registry.register("$double", double, family="second")

    def test_duplicate_is_raised_as_value_error(self) -> None:
        registry = HelperRegistry()
        registry.register("$x", double)
        with pytest.raises(ValueError):
            registry.register("$x", double)

    @pytest.mark.parametrize("name", ["double", "$", "$1x", "$has-dash", "$ spaced"])
    def test_invalid_names(self, name: str) -> None:
        with pytest.raises(HelperRegistrationError, match="identifier"):
            HelperRegistry().register(name, double)

    def test_not_callable(self) -> None:
        with pytest.raises(HelperRegistrationError, match="not callable"):
            HelperRegistry().register("$x", 42)  # type: ignore[arg-type]

    def test_frozen_registry_rejects_registration(self) -> None:
        registry = HelperRegistry()
        registry.freeze()

        assert registry.is_frozen
        with pytest.raises(HelperRegistrationError, match="frozen"):
            registry.register("$double", double)

    def test_unknown_helper_lookup(self) -> None:
        with pytest.raises(KeyError):
            HelperRegistry().get("$missing")


class TestInvoke:
    def test_surplus_arguments_are_ignored(self) -> None:
        registry = HelperRegistry()
        registry.register("$double", double)
        assert registry.invoke("$double", [2, 99, 100], ContextSnapshot()) == 4

    def test_missing_arguments_use_defaults(self) -> None:
        registry = HelperRegistry()
        registry.register("$echo", lambda value=UNDEFINED: value)
        assert registry.invoke("$echo", [], ContextSnapshot()) is UNDEFINED

    def test_variadic_helpers_get_everything(self) -> None:
        registry = HelperRegistry()
        registry.register("$count", lambda *args: len(args))
        assert registry.get("$count").max_args is None
        assert registry.invoke("$count", [1, 2, 3, 4], ContextSnapshot()) == 4

    def test_context_aware_helpers_receive_snapshot(self) -> None:
        snapshot = ContextSnapshot(variables={"answer": 42})
        registry = HelperRegistry()
        registry.register(
            "$var",
            lambda snap, name=UNDEFINED: snap.variables.get(name, UNDEFINED),
            context_aware=True,
        )

        assert registry.get("$var").max_args == 1
        assert registry.invoke("$var", ["answer", "surplus"], snapshot) == 42


class TestDefaultRegistry:
    def test_contains_every_family(self) -> None:
        registry = create_default_registry()

        assert registry.is_frozen
        assert registry.families() == list(HELPER_FAMILIES)
        for name in ["$json", "$node", "$filter", "$if", "$uppercase", "$add", "$parse", "$now"]:
            assert name in registry

    def test_listing_by_family(self) -> None:
        registry = create_default_registry()
        assert registry.list_names("data") == [
            "$json",
            "$node",
            "$first",
            "$last",
            "$get",
            "$keys",
            "$values",
            "$length",
        ]
        assert len(registry.list_helpers()) == len(registry.list_names())

    def test_family_subset(self) -> None:
        registry = create_default_registry(["data", "logic"])
        assert registry.families() == ["data", "logic"]
        assert "$filter" not in registry

    def test_unknown_family(self) -> None:
        with pytest.raises(ExpressionConfigError, match="Unknown helper families: nope"):
            create_default_registry(["data", "nope"])

    def test_family_contributing_twice_collides(self) -> None:
        registry = HelperRegistry()
        HELPER_FAMILIES["array"](registry)
        with pytest.raises(HelperRegistrationError, match="already registered"):
            HELPER_FAMILIES["array"](registry)
