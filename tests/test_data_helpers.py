"""Tests for data helpers ($json, $node and collection accessors)."""

from workflow_expressions.engine import UNDEFINED, ContextSnapshot, HelperRegistry
from workflow_expressions.engine.helpers.data import first, get, keys, last, length, values


class TestNodeAccess:
    def test_json_with_path(self, registry: HelperRegistry, snapshot: ContextSnapshot) -> None:
        result = registry.invoke("$json", ["HTTP Request", "data.users.1.email"], snapshot)
        assert result == "c@d.com"

    def test_json_whole_output(self, registry: HelperRegistry, snapshot: ContextSnapshot) -> None:
        assert registry.invoke("$json", ["User"], snapshot)["tags"] == ["admin", "ops"]

    def test_json_missing(self, registry: HelperRegistry, snapshot: ContextSnapshot) -> None:
        assert registry.invoke("$json", ["Ghost", "a"], snapshot) is UNDEFINED
        assert registry.invoke("$json", [], snapshot) is UNDEFINED

    def test_node_property(self, registry: HelperRegistry, snapshot: ContextSnapshot) -> None:
        assert registry.invoke("$node", ["HTTP Request", "type"], snapshot) == "HTTP_REQUEST"
        assert registry.invoke("$node", ["User", "id"], snapshot) == "n2"

    def test_node_without_output_still_has_metadata(
        self, registry: HelperRegistry, snapshot: ContextSnapshot
    ) -> None:
        assert registry.invoke("$node", ["Empty", "type"], snapshot) == "NOOP"
        assert registry.invoke("$json", ["Empty"], snapshot) is UNDEFINED


class TestFirstLast:
    def test_sequences(self) -> None:
        assert first([1, 2, 3]) == 1
        assert last([1, 2, 3]) == 3

    def test_empty_and_non_sequence(self) -> None:
        assert first([]) is UNDEFINED
        assert last([]) is UNDEFINED
        assert first("abc") is UNDEFINED
        assert last(None) is UNDEFINED


class TestGet:
    def test_present_key(self) -> None:
        assert get({"a": 1}, "a", "dflt") == 1

    def test_falls_back_to_default(self) -> None:
        assert get({"a": 1}, "b", "dflt") == "dflt"
        assert get(None, "b", "dflt") == "dflt"
        assert get([1, 2], 0, "dflt") == "dflt"

    def test_null_value_is_not_replaced(self) -> None:
        assert get({"a": None}, "a", "dflt") is None

    def test_without_default(self) -> None:
        assert get({"a": 1}, "b") is UNDEFINED


class TestKeysValuesLength:
    def test_keys_and_values_keep_order(self) -> None:
        data = {"z": 1, "a": 2}
        assert keys(data) == ["z", "a"]
        assert values(data) == [1, 2]

    def test_non_mapping(self) -> None:
        assert keys([1, 2]) == []
        assert values("abc") == []

    def test_length(self) -> None:
        assert length([1, 2, 3]) == 3
        assert length("abc") == 3
        assert length({"a": 1}) == 0
        assert length(None) == 0
        assert length(UNDEFINED) == 0
