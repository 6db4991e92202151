"""
Shared pytest fixtures and configuration for LinkView tests.
"""

import pytest

from linkview import DerivedView, ObservableList, TaskQueue


class Record:
    """Mutable member with identity semantics (no __eq__)."""

    def __init__(self, id, rank, name=""):
        self.id = id
        self.rank = rank
        self.name = name

    def __repr__(self):
        return f"Record(id={self.id}, rank={self.rank})"


def by_rank(a, b):
    return a.rank - b.rank


@pytest.fixture
def queue():
    """Explicit run loop for debounced recomputes."""
    return TaskQueue()


@pytest.fixture
def make_record():
    return Record


@pytest.fixture
def records():
    """Five records; rank order is ids 4, 5, 2, 1, 3."""
    return [Record(1, 7), Record(2, 5), Record(3, 9), Record(4, 1), Record(5, 2)]


@pytest.fixture
def items(records):
    return ObservableList(records, name="items")


@pytest.fixture
def ranked_view(items, queue):
    """View sorted by rank, observing rank, already computed."""
    view = DerivedView(items, sort=by_rank, observe="rank", scheduler=queue)
    queue.run_pending()
    return view


@pytest.fixture
def published():
    """Collects notifications from a subscribe() call."""

    class Recorder(list):
        def __call__(self, notification):
            self.append(notification)

        def paths(self):
            return [n.path for n in self]

    return Recorder()
