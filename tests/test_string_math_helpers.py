"""Tests for string and math helpers."""

import math

import pytest

from workflow_expressions.engine import UNDEFINED
from workflow_expressions.engine.helpers import math as math_helpers
from workflow_expressions.engine.helpers import string as string_helpers


class TestCaseAndTrim:
    def test_case_conversion(self) -> None:
        assert string_helpers.uppercase("Ada") == "ADA"
        assert string_helpers.lowercase("ADA") == "ada"
        assert string_helpers.capitalize("hello world") == "Hello world"
        assert string_helpers.capitalize("") == ""
        assert string_helpers.trim("  padded \n") == "padded"

    def test_non_strings_pass_through(self) -> None:
        assert string_helpers.uppercase(42) == 42
        assert string_helpers.trim(None) is None
        assert string_helpers.capitalize(UNDEFINED) is UNDEFINED


class TestSplitJoin:
    def test_split(self) -> None:
        assert string_helpers.split("a,b,c") == ["a", "b", "c"]
        assert string_helpers.split("a b", " ") == ["a", "b"]
        assert string_helpers.split("a,b", "") == ["a", "b"]
        assert string_helpers.split(42, ",") == []

    def test_join(self) -> None:
        assert string_helpers.join(["a", 1, True, None]) == "a,1,true,"
        assert string_helpers.join(["a", "b"], " | ") == "a | b"
        assert string_helpers.join("ab", ",") == ""


class TestReplaceAndSubstring:
    def test_replace_all_occurrences(self) -> None:
        assert string_helpers.replace("a-b-c", "-", "+") == "a+b+c"

    def test_replace_with_empty_needle(self) -> None:
        assert string_helpers.replace("abc", "", "-") == "a-b-c"

    def test_replace_renders_replacement(self) -> None:
        assert string_helpers.replace("v?", "?", 2) == "v2"
        assert string_helpers.replace("a-b", "-") == "ab"

    def test_replace_without_search(self) -> None:
        assert string_helpers.replace("abc") == "abc"
        assert string_helpers.replace(5, "5", "6") == 5

    @pytest.mark.parametrize(
        "start, end, expected",
        [
            (0, 3, "hel"),
            (3, 1, "el"),
            (-5, 2, "he"),
            (2, UNDEFINED, "llo"),
            (1, 100, "ello"),
            ("1", "3", "el"),
        ],
    )
    def test_substring(self, start, end, expected) -> None:
        assert string_helpers.substring("hello", start, end) == expected


class TestPredicates:
    def test_prefix_suffix_contains(self) -> None:
        assert string_helpers.starts_with("https://x", "https") is True
        assert string_helpers.ends_with("data.json", ".json") is True
        assert string_helpers.includes("keyword here", "word") is True
        assert string_helpers.includes("abc", "z") is False

    def test_non_strings_are_false(self) -> None:
        assert string_helpers.starts_with(None, "a") is False
        assert string_helpers.ends_with(1, "1") is False
        assert string_helpers.includes(["a"], "a") is False


class TestTemplate:
    def test_placeholders(self) -> None:
        result = string_helpers.template("Hello, {name}! You are {age}.", {"name": "Ada", "age": 36})
        assert result == "Hello, Ada! You are 36."

    def test_missing_placeholder_is_empty(self) -> None:
        assert string_helpers.template("[{missing}]", {}) == "[]"

    def test_without_mapping(self) -> None:
        assert string_helpers.template("{name}", None) == "{name}"


class TestArithmetic:
    def test_basic_operations(self) -> None:
        assert math_helpers.add(1, 2) == 3
        assert math_helpers.add("1", "2") == 3
        assert math_helpers.subtract(5, 7) == -2
        assert math_helpers.multiply(2.5, 2) == 5
        assert math_helpers.divide(7, 2) == 3.5

    def test_integral_results_are_ints(self) -> None:
        assert isinstance(math_helpers.add(1.5, 1.5), int)

    def test_non_numeric_operand_is_nan(self) -> None:
        assert math.isnan(math_helpers.add("abc", 1))
        assert math.isnan(math_helpers.multiply(UNDEFINED, 2))

    def test_divide_by_zero_is_zero(self) -> None:
        assert math_helpers.divide(5, 0) == 0
        assert math_helpers.divide(5, "0") == 0

    def test_mod(self) -> None:
        assert math_helpers.mod(7, 3) == 1
        assert math_helpers.mod(-7, 3) == -1
        assert math.isnan(math_helpers.mod(7, 0))
        assert math.isnan(math_helpers.mod(math.inf, 2))


class TestRounding:
    @pytest.mark.parametrize(
        "value, decimals, expected",
        [
            (2.5, UNDEFINED, 3),
            (-2.5, UNDEFINED, -2),
            (3.14159, 2, 3.14),
            (1234.5, -2, 1200),
            ("2.4", None, 2),
        ],
    )
    def test_round(self, value, decimals, expected) -> None:
        assert math_helpers.round_(value, decimals) == expected

    def test_floor_ceil_abs(self) -> None:
        assert math_helpers.floor(2.7) == 2
        assert math_helpers.ceil(2.1) == 3
        assert math_helpers.floor(-2.1) == -3
        assert math_helpers.abs_(-4) == 4
        assert math_helpers.ceil(math.inf) == math.inf


class TestAggregates:
    def test_min_max(self) -> None:
        assert math_helpers.min_(3, "1", 2) == 1
        assert math_helpers.max_(3, "10", 2) == 10

    def test_min_max_without_numbers(self) -> None:
        assert math_helpers.min_() == math.inf
        assert math_helpers.max_() == -math.inf
        assert math_helpers.min_([1, 2]) == math.inf

    def test_min_with_non_numeric_string(self) -> None:
        assert math.isnan(math_helpers.min_(1, "abc"))

    def test_sum_and_avg(self) -> None:
        assert math_helpers.sum_([1, 2, "3"]) == 6
        assert math_helpers.sum_("123") == 0
        assert math_helpers.avg([1, 2, 3, 4]) == 2.5
        assert math_helpers.avg([]) == 0
