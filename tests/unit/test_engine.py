"""
Tests for the filter/sort engine and function resolution.
"""

import pytest

from linkview import NamedFunction, UnresolvedFunctionError, compute, resolve_function, select
from linkview.engine import bind_filter, order_key


def alphabetical(a, b):
    return (a > b) - (a < b)


@pytest.mark.unit
class TestCompute:
    def test_no_functions_copies_source_order(self):
        source = ["c", "a", "b"]
        result = compute(source)
        assert result == ["c", "a", "b"]
        assert result is not source

    def test_none_source_is_empty(self):
        assert compute(None, lambda x: True, alphabetical) == []

    def test_filter_then_sort(self):
        source = ["pear", "", "apple", "fig", ""]
        result = compute(source, lambda s: len(s) > 0, alphabetical)
        assert result == ["apple", "fig", "pear"]

    def test_source_not_mutated(self):
        source = [3, 1, 2]
        compute(source, None, lambda a, b: a - b)
        assert source == [3, 1, 2]

    def test_elements_are_reference_identical(self):
        a, b = {"rank": 2}, {"rank": 1}
        result = compute([a, b], sort_fn=lambda x, y: x["rank"] - y["rank"])
        assert result[0] is b
        assert result[1] is a

    def test_sort_is_stable_for_ties(self):
        records = [{"id": i, "rank": rank} for i, rank in enumerate([2, 1, 2, 1, 2])]
        result = compute(records, sort_fn=lambda a, b: a["rank"] - b["rank"])
        assert [r["id"] for r in result] == [1, 3, 0, 2, 4]

    def test_three_argument_filter_receives_index_and_array(self):
        seen = []

        def every_other(element, index, array):
            seen.append(array)
            return index % 2 == 0

        source = ["a", "b", "c", "d"]
        assert compute(source, every_other) == ["a", "c"]
        assert all(array == source for array in seen)

    def test_predicate_errors_propagate(self):
        def broken(element):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            compute([1], broken)

    def test_comparator_errors_propagate(self):
        with pytest.raises(ZeroDivisionError):
            compute([1, 2], sort_fn=lambda a, b: 1 // 0)

    def test_select_returns_source_positions(self):
        assert select(["b", "", "a"], bool, alphabetical) == [2, 0]


@pytest.mark.unit
class TestResolution:
    def test_callable_passes_through(self):
        fn = lambda x: True
        assert resolve_function(fn) is fn

    def test_none_stays_none(self):
        assert resolve_function(None) is None

    def test_name_resolves_against_object(self):
        class Handlers:
            def only_even(self, value):
                return value % 2 == 0

        handlers = Handlers()
        fn = resolve_function("only_even", handlers)
        assert compute([1, 2, 3, 4], fn) == [2, 4]

    def test_named_function_resolves_against_mapping(self):
        fn = resolve_function(NamedFunction("desc"), {"desc": lambda a, b: b - a})
        assert compute([1, 3, 2], sort_fn=fn) == [3, 2, 1]

    def test_missing_name_raises(self):
        with pytest.raises(UnresolvedFunctionError):
            resolve_function("nope", {})

    def test_name_without_context_raises(self):
        with pytest.raises(UnresolvedFunctionError):
            resolve_function("by_rank")

    def test_non_callable_attribute_raises(self):
        with pytest.raises(UnresolvedFunctionError):
            resolve_function("value", {"value": 3})

    def test_other_types_rejected(self):
        with pytest.raises(TypeError):
            resolve_function(42)


@pytest.mark.unit
class TestOrdering:
    def test_single_argument_filter_is_wrapped(self):
        bound = bind_filter(lambda element: element > 1)
        assert bound(2, 0, [2]) is True
        assert bound(1, 0, [1]) is False

    def test_builtin_filter_is_wrapped(self):
        bound = bind_filter(bool)
        assert bound("x", 0, ["x"]) is True

    def test_order_key_without_sort_is_position(self):
        key = order_key(None)
        assert key("z", 1) < key("a", 2)

    def test_order_key_breaks_ties_by_position(self):
        key = order_key(lambda a, b: a - b)
        assert key(1, 5) < key(2, 0)
        assert key(1, 0) < key(1, 5)
