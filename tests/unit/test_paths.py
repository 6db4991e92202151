"""
Tests for observed path parsing, matching and dotted path access.
"""

from types import SimpleNamespace

import pytest

from linkview import ObservedPaths, get_path, set_path


@pytest.mark.unit
class TestObservedPaths:
    def test_parse_space_and_comma_delimited(self):
        paths = ObservedPaths("rank, address.city  name,,")
        assert paths.paths == ("rank", "address.city", "name")

    def test_parse_iterable_and_drop_duplicates(self):
        paths = ObservedPaths(["rank", "rank", " ", "name"])
        assert list(paths) == ["rank", "name"]

    def test_empty_configuration(self):
        paths = ObservedPaths(None)
        assert not paths
        assert len(paths) == 0
        assert not paths.matches("rank")

    def test_exact_match(self):
        assert ObservedPaths("rank").matches("rank")

    def test_deeper_change_matches(self):
        assert ObservedPaths("address").matches("address.city")

    def test_shallower_change_matches(self):
        assert ObservedPaths("address.city").matches("address")

    def test_partial_segment_does_not_match(self):
        paths = ObservedPaths("rank address.city")
        assert not paths.matches("ranking")
        assert not paths.matches("addr")
        assert not paths.matches("address.cityhall")

    def test_unrelated_path_does_not_match(self):
        assert not ObservedPaths("rank").matches("name")

    def test_contains_uses_matching(self):
        paths = ObservedPaths("address")
        assert "address.zip" in paths
        assert "zip" not in paths
        assert 3 not in paths

    def test_equality(self):
        assert ObservedPaths("a b") == ObservedPaths(["a", "b"])
        assert ObservedPaths("a b") != ObservedPaths("b a")


@pytest.mark.unit
class TestPathAccess:
    def test_get_nested_mapping_and_attribute(self):
        record = SimpleNamespace(address={"city": "Oslo"}, tags=["x", "y"])
        assert get_path(record, "address.city") == "Oslo"
        assert get_path(record, "tags.1") == "y"

    def test_set_nested(self):
        record = {"address": SimpleNamespace(city="Oslo")}
        set_path(record, "address.city", "Bergen")
        assert record["address"].city == "Bergen"

    def test_set_attribute_and_list_slot(self):
        record = SimpleNamespace(rank=1, tags=["a"])
        set_path(record, "rank", 9)
        set_path(record, "tags.0", "b")
        assert record.rank == 9
        assert record.tags == ["b"]

    def test_set_empty_path_raises(self):
        with pytest.raises(ValueError):
            set_path({}, "", 1)
