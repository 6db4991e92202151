"""Integration tests for writing through a DerivedView into its source."""

import pytest

from linkview import DerivedView


def by_rank(a, b):
    return a.rank - b.rank


def ids(view):
    return [record.id for record in view]


@pytest.mark.integration
def test_assignment_replaces_linked_source_member(items, ranked_view, records, make_record):
    """Assigning a derived slot swaps the source member and the view re-sorts"""
    replacement = make_record(6, 3)

    ranked_view[0] = replacement

    assert items[3] is replacement
    assert records[3] not in list(items)
    assert ids(ranked_view) == [5, 6, 2, 1, 3]


@pytest.mark.integration
def test_assignment_out_of_range(ranked_view, make_record):
    """Assigning beyond the derived length raises IndexError"""
    with pytest.raises(IndexError):
        ranked_view[10] = make_record(9, 9)


@pytest.mark.integration
def test_set_path_writes_member_and_repositions(items, ranked_view, records, published):
    """Writing an observed attribute through the view reorders the view"""
    ranked_view.subscribe(published)

    ranked_view.set_path(0, "rank", 8)

    assert records[3].rank == 8
    assert ids(ranked_view) == [5, 2, 1, 4, 3]
    assert published[0].path == "filtered.#0.rank"
    assert published[0].value == 8


@pytest.mark.integration
def test_set_path_is_published_by_the_source(items, ranked_view, published):
    """The source list announces a write made through the view under its own key"""
    items.subscribe(published)

    ranked_view.set_path(1, "name", "five")

    assert items[4].name == "five"
    assert published.paths() == ["items.#4.name"]


@pytest.mark.integration
def test_member_changes_are_forwarded_under_derived_keys(items, ranked_view, published):
    """Member changes reach view subscribers addressed by derived key"""
    ranked_view.subscribe(published)

    items.set_path(2, "name", "third")

    assert published.paths() == ["filtered.#4.name"]
    assert published[0].value == "third"


@pytest.mark.integration
def test_member_change_of_excluded_element_is_not_forwarded(queue, items, published):
    """Members outside the view have no derived key to forward under"""
    view = DerivedView(items, filter=lambda r: r.rank > 4, scheduler=queue)
    queue.run_pending()
    view.subscribe(published)

    items.set_path(3, "name", "hidden")

    assert published == []


@pytest.mark.integration
def test_plain_list_source_write_through(queue, records, make_record):
    """Writes through a view over a plain list update the list and the view"""
    view = DerivedView(records, sort=by_rank, observe="rank", scheduler=queue)
    queue.run_pending()

    view[0] = make_record(6, 6)
    assert records[3].id == 6
    assert ids(view) == [5, 2, 6, 1, 3]

    view.set_path(0, "rank", 10)
    assert ids(view) == [2, 6, 1, 3, 5]
