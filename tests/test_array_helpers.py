"""Tests for array helpers."""

import copy
import math

import pytest

from workflow_expressions.engine import UNDEFINED
from workflow_expressions.engine.helpers.array import (
    concat,
    filter_items,
    find,
    flatten,
    pluck,
    reverse,
    slice_items,
    sort,
    unique,
)

USERS = [
    {"id": 1, "name": "Carol", "status": "active"},
    {"id": 2, "name": "alice", "status": "closed"},
    {"id": 3, "name": "Bob", "status": "active"},
]


class TestFilterAndFind:
    def test_filter_by_property(self) -> None:
        result = filter_items([{"s": "a"}, {"s": "b"}, {"s": "a"}], "s", "a")
        assert result == [{"s": "a"}, {"s": "a"}]

    def test_filter_uses_strict_equality(self) -> None:
        assert filter_items([{"n": 1}, {"n": "1"}], "n", 1) == [{"n": 1}]

    def test_filter_skips_non_mappings(self) -> None:
        assert filter_items([1, None, {"s": "a"}], "s", "a") == [{"s": "a"}]

    def test_non_sequence_degrades(self) -> None:
        assert filter_items("not a list", "s", "a") == []
        assert filter_items(UNDEFINED, "s", "a") == []
        assert find(None, "id", 1) is UNDEFINED

    def test_find_first_match(self) -> None:
        assert find(USERS, "status", "active")["name"] == "Carol"
        assert find(USERS, "id", 99) is UNDEFINED

    def test_numeric_key(self) -> None:
        assert find([{"0": "zero"}], 0, "zero") == {"0": "zero"}


class TestPluck:
    def test_preserves_length(self) -> None:
        result = pluck([{"e": "a"}, {}, "x"], "e")
        assert len(result) == 3
        assert result[0] == "a"
        assert result[1] is UNDEFINED
        assert result[2] is UNDEFINED

    def test_non_sequence(self) -> None:
        assert pluck({"e": "a"}, "e") == []


class TestUnique:
    def test_keeps_first_occurrence_and_kind(self) -> None:
        assert unique([1, 1, 2, "2"]) == [1, 2, "2"]

    def test_bool_is_not_number(self) -> None:
        assert unique([1, True, 0, False]) == [1, True, 0, False]

    def test_int_and_float_are_equal(self) -> None:
        assert unique([1, 1.0]) == [1]

    def test_nan_deduplicated(self) -> None:
        result = unique([math.nan, math.nan, 1])
        assert len(result) == 2
        assert math.isnan(result[0])

    def test_containers_compare_structurally(self) -> None:
        assert unique([{"a": 1}, {"a": 1}, [1], [1], {"a": 2}]) == [{"a": 1}, [1], {"a": 2}]

    def test_null_and_undefined_differ(self) -> None:
        result = unique([None, UNDEFINED, None])
        assert result == [None, UNDEFINED]


class TestSort:
    def test_by_key_is_stable(self) -> None:
        rows = [{"k": "b", "i": 1}, {"k": "a", "i": 2}, {"k": "b", "i": 3}]
        assert [row["i"] for row in sort(rows, "k")] == [2, 1, 3]

    def test_by_key_compares_strings(self) -> None:
        assert sort([{"n": 9}, {"n": 10}], "n") == [{"n": 10}, {"n": 9}]

    def test_by_key_is_case_sensitive(self) -> None:
        assert [user["name"] for user in sort(USERS, "name")] == ["Bob", "Carol", "alice"]

    def test_missing_keys_sort_first(self) -> None:
        assert sort([{"n": "a"}, {}], "n") == [{}, {"n": "a"}]

    def test_without_key_numbers_are_numeric(self) -> None:
        assert sort([10, 9, 1]) == [1, 9, 10]

    def test_without_key_mixed_kinds(self) -> None:
        assert sort(["b", 2, None, "a", 1]) == [None, 1, 2, "a", "b"]

    def test_non_sequence(self) -> None:
        assert sort("abc") == []


class TestReverseAndSlice:
    def test_reverse_twice_is_identity(self) -> None:
        items = [1, "two", {"three": 3}]
        assert reverse(reverse(items)) == items
        assert reverse(items) == [{"three": 3}, "two", 1]

    @pytest.mark.parametrize(
        "start, end, expected",
        [
            (UNDEFINED, UNDEFINED, [0, 1, 2, 3, 4]),
            (1, 3, [1, 2]),
            (-2, UNDEFINED, [3, 4]),
            (0, -1, [0, 1, 2, 3]),
            (3, 1, []),
            ("1", "2", [1]),
            (1.9, 10, [1, 2, 3, 4]),
            (-100, 2, [0, 1]),
            ("abc", 2, [0, 1]),
        ],
    )
    def test_slice(self, start, end, expected) -> None:
        assert slice_items([0, 1, 2, 3, 4], start, end) == expected

    def test_slice_non_sequence(self) -> None:
        assert slice_items("abc", 0, 1) == []


class TestConcatAndFlatten:
    def test_concat_drops_non_sequences(self) -> None:
        assert concat([1], "x", None, [2, [3]], {"a": 1}) == [1, 2, [3]]
        assert concat() == []

    def test_flatten_one_level_by_default(self) -> None:
        assert flatten([1, [2, [3, [4]]]]) == [1, 2, [3, [4]]]

    def test_flatten_depth(self) -> None:
        assert flatten([1, [2, [3, [4]]]], 2) == [1, 2, 3, [4]]
        assert flatten([1, [2, [3, [4]]]], math.inf) == [1, 2, 3, 4]
        assert flatten([1, [2]], 0) == [1, [2]]

    def test_flatten_nan_depth_is_zero(self) -> None:
        assert flatten([[1]], "deep") == [[1]]


def test_inputs_are_never_mutated() -> None:
    original = copy.deepcopy(USERS)
    nested = [[1], [2, [3]]]
    nested_copy = copy.deepcopy(nested)

    filter_items(USERS, "status", "active")
    sort(USERS, "name")
    reverse(USERS)
    unique(USERS)
    slice_items(USERS, 1)
    concat(USERS, USERS)
    flatten(nested, 5)

    assert USERS == original
    assert nested == nested_copy
