"""
LinkView Splice Translator - Source Edits to Derived Edits
==========================================================

Turns a batch of source splices into the smallest ordered list of derived
edits: removals first (located through one slot snapshot and applied in
descending slot order), then insertions in ascending target position, then a
single link reconciliation for the whole batch.

Cost model: the predicate runs once per inserted element and the comparator
O(log n) times per inserted element. Removed elements are found through their
links, never by comparing values. Key and index bookkeeping is linear, but
touches no user code.

Insertion targets are positions in the *final* view:

    target = (existing derived elements ordered before it)   # binary search
           + (new elements ordered before it)                # rank in batch

Applying targets in ascending order leaves every later target valid, since
each insert only shifts the positions at or after its own.
"""

import logging
from bisect import bisect_left
from typing import TYPE_CHECKING, Any, List, Optional, Sequence, Tuple

from .engine import order_key
from .exceptions import InvalidSpliceError
from .notifications import IndexSplice

if TYPE_CHECKING:
    from .view import DerivedView


def validate_splices(splices: Sequence[IndexSplice], mirror_size: Optional[int] = None) -> None:
    """
    Check a splice batch before anything is applied.

    Args:
        splices: Descriptors in the order the edits happened
        mirror_size: Slot count of a registry the batch will be replayed on;
            the edits are then checked one after another against it

    Raises:
        InvalidSpliceError: On a malformed or out-of-range descriptor
    """
    size = mirror_size
    for splice in splices:
        index, added_count = splice.index, splice.added_count
        if not _is_count(index):
            raise InvalidSpliceError(f"Splice index must be a non-negative int: {index!r}")
        if not _is_count(added_count):
            raise InvalidSpliceError(f"addedCount must be a non-negative int: {added_count!r}")
        if splice.added is not None and len(splice.added) != added_count:
            raise InvalidSpliceError(
                f"Splice at {index} announces {added_count} additions but carries {len(splice.added)}"
            )
        if splice.removed_keys is not None and len(splice.removed_keys) != len(splice.removed):
            raise InvalidSpliceError(f"Splice at {index} has mismatched removed keys")
        if splice.added_keys is not None and len(splice.added_keys) != added_count:
            raise InvalidSpliceError(f"Splice at {index} has mismatched added keys")

        if splice.added is None:
            if splice.object is None:
                raise InvalidSpliceError(f"Splice at {index} has no object to read additions from")
            if index + added_count > len(splice.object):
                raise InvalidSpliceError(
                    f"Splice at {index} adding {added_count} exceeds length {len(splice.object)}"
                )

        if size is not None:
            if index + len(splice.removed) > size:
                raise InvalidSpliceError(
                    f"Splice at {index} removing {len(splice.removed)} exceeds length {size}"
                )
            size = size - len(splice.removed) + added_count


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


class SpliceTranslator:
    """
    Applies source splices to one view incrementally.

    Works on the view's bookkeeping directly: source keyspace, derived list
    and keyspace, link table, and the view's insert/remove primitives (which
    publish one splice notification per derived edit).
    """

    def __init__(self, view: "DerivedView"):
        self._view = view
        self.batches = 0

    def apply(self, splices: Sequence[IndexSplice]) -> Tuple[int, int]:
        """
        Translate a batch of source splices.

        Returns:
            (derived removals, derived insertions)
        """
        view = self._view
        splices = [s for s in splices if self._is_current(s)]
        if not splices:
            return 0, 0

        registry = view._source_keys
        validate_splices(splices, len(registry) if view._owns_source_keys else None)

        removed_keys: List[str] = []
        added_keys: List[str] = []
        sweep = False
        for splice in splices:
            removed, added, known = self._source_keys_for(splice)
            removed_keys.extend(removed)
            added_keys.extend(added)
            sweep = sweep or not known

        try:
            removals = self._remove(removed_keys, sweep)
            insertions = self._insert(added_keys)
        finally:
            # also when a user function raised mid-batch
            view._relink()
        self.batches += 1
        logging.debug(
            f"View '{view.name}': {len(splices)} splices -> "
            f"{removals} removals, {insertions} insertions"
        )
        return removals, insertions

    def _is_current(self, splice: IndexSplice) -> bool:
        view = self._view
        if splice.object is None or splice.object is view._source or splice.object is view._source_items():
            return True
        logging.debug(f"View '{view.name}': dropping splice against a replaced collection")
        return False

    def _source_keys_for(self, splice: IndexSplice) -> Tuple[List[str], List[str], bool]:
        """Removed and added source keys, plus whether removals are fully known."""
        view = self._view
        registry = view._source_keys
        if view._owns_source_keys:
            removed, added = registry.splice(splice.index, len(splice.removed), splice.inserted)
            return removed, added, True

        if splice.removed_keys is not None and splice.added_keys is not None:
            return list(splice.removed_keys), list(splice.added_keys), True

        # host keeps the keys but did not say which; read what is there now
        stop = min(splice.index + splice.added_count, len(registry))
        added = [registry.key_at(i) for i in range(splice.index, stop)]
        return [], added, not splice.removed

    # ========================================================================
    # REMOVALS
    # ========================================================================

    def _remove(self, removed_keys: List[str], sweep: bool) -> int:
        view = self._view
        links = view._links
        slots = view._derived_keys.positions()

        doomed = set()
        for source_key in removed_keys:
            derived_key = links.derived_key_for(source_key)
            if derived_key in slots:
                doomed.add(slots[derived_key])

        if sweep:
            registry = view._source_keys
            doomed.update(
                slot
                for derived_key, slot in slots.items()
                if links.source_key_for(derived_key) not in registry
            )

        # descending, so every remaining slot in the snapshot stays valid
        for index in sorted(doomed, reverse=True):
            view._remove_at(index)
        return len(doomed)

    # ========================================================================
    # INSERTIONS
    # ========================================================================

    def _insert(self, added_keys: List[str]) -> int:
        view = self._view
        registry = view._source_keys
        positions = registry.positions()
        items = view._source_items()

        candidates = sorted(
            (positions[key], key) for key in dict.fromkeys(added_keys) if key in positions
        )
        if not candidates:
            return 0

        predicate = view._filter_bound
        members = []
        for position, key in candidates:
            element = registry[key]
            if predicate is None or predicate(element, position, items):
                members.append((element, position, key))
        if not members:
            return 0

        order = order_key(view._sort)
        members.sort(key=lambda member: order(member[0], member[1]))

        derived = view._derived
        probe = self._existing_order(order, positions)
        targets = [
            (bisect_left(range(len(derived)), order(element, position), key=probe) + rank, element, key)
            for rank, (element, position, key) in enumerate(members)
        ]

        for target, element, key in targets:
            view._insert_at(target, element, key)
        return len(targets)

    def _existing_order(self, order, positions):
        view = self._view
        derived = view._derived
        derived_keys = view._derived_keys
        links = view._links
        registry = view._source_keys

        def probe(index: int):
            element = derived[index]
            source_key = links.source_key_for(derived_keys.key_at(index))
            position = positions.get(source_key)
            if position is None:
                position = registry.index_of(element)
            return order(element, position)

        return probe


__all__ = ["SpliceTranslator", "validate_splices"]
