"""
LinkView Link Table - Derived/Source Correspondence
===================================================

Keeps one link per derived element: the derived key, the source key of the
same object, and the index pair they occupy. Links are keyed, so they survive
edits elsewhere; the index arrays are refreshed by ``relink`` after every
recompute, splice batch or reposition.

The index view is held as numpy integer arrays:
- ``derived_to_source[i]`` is the source slot linked to derived slot ``i``
- ``source_to_derived[j]`` is the derived slot linked to source slot ``j``
Unlinked slots hold -1.
"""

import logging
from typing import Dict, List, Optional, Set, Tuple

import numpy as np

from .identity import IdentityRegistry

UNLINKED = -1


class LinkTable:
    """
    Bidirectional derived <-> source link table.

    Invariant (after ``relink``): a derived key is linked iff it is present in
    the derived registry and its element is present in the source registry,
    and the linked source slot holds the very same object.
    """

    def __init__(self):
        self._forward: Dict[str, str] = {}  # derived key -> source key
        self._reverse: Dict[str, str] = {}  # source key -> derived key
        self._derived_to_source = np.empty(0, dtype=np.intp)
        self._source_to_derived = np.empty(0, dtype=np.intp)
        self.relink_count = 0

    # ========================================================================
    # LINK LIFECYCLE
    # ========================================================================

    def establish(self, derived_key: str, source_key: str) -> None:
        """Link ``derived_key`` to ``source_key``, superseding older links of either."""
        self.retract(derived_key)
        stale = self._reverse.get(source_key)
        if stale is not None:
            self.retract(stale)
        self._forward[derived_key] = source_key
        self._reverse[source_key] = derived_key

    def retract(self, derived_key: str) -> Optional[str]:
        """Drop the link of ``derived_key``; returns the source key it pointed to."""
        source_key = self._forward.pop(derived_key, None)
        if source_key is not None and self._reverse.get(source_key) == derived_key:
            del self._reverse[source_key]
        return source_key

    def clear(self) -> None:
        self._forward.clear()
        self._reverse.clear()
        self._derived_to_source = np.empty(0, dtype=np.intp)
        self._source_to_derived = np.empty(0, dtype=np.intp)

    def relink(self, source: IdentityRegistry, derived: IdentityRegistry) -> int:
        """
        Reconcile every link with the current slots of both registries.

        Each derived element keeps its link while the linked source key still
        holds the same object; otherwise it is re-linked to an unclaimed source
        key of that object. Elements with no source counterpart stay unlinked.

        Returns:
            Number of links after reconciliation
        """
        positions = source.positions()
        derived_keys = derived.keys()
        derived_to_source = np.full(len(derived_keys), UNLINKED, dtype=np.intp)
        claimed: Set[str] = set()

        for derived_index, derived_key in enumerate(derived_keys):
            element = derived[derived_key]
            source_key = self._forward.get(derived_key)
            self.retract(derived_key)

            if (
                source_key is None
                or source_key in claimed
                or source.get(source_key) is not element
            ):
                source_key = self._unclaimed_key(source, element, claimed)

            if source_key is None or source_key not in positions:
                logging.debug(f"No source slot for derived '{derived_key}', unlinked")
                continue

            self.establish(derived_key, source_key)
            claimed.add(source_key)
            derived_to_source[derived_index] = positions[source_key]

        live = set(derived_keys)
        for stale in [key for key in self._forward if key not in live]:
            self.retract(stale)

        self._derived_to_source = derived_to_source
        self._source_to_derived = self._invert(derived_to_source, len(positions))
        self.relink_count += 1
        return len(self._forward)

    @staticmethod
    def _unclaimed_key(
        source: IdentityRegistry, element: object, claimed: Set[str]
    ) -> Optional[str]:
        for key in source.keys_of(element):
            if key not in claimed:
                return key
        return None

    @staticmethod
    def _invert(derived_to_source: np.ndarray, source_size: int) -> np.ndarray:
        inverse = np.full(source_size, UNLINKED, dtype=np.intp)
        linked = derived_to_source >= 0
        inverse[derived_to_source[linked]] = np.flatnonzero(linked)
        return inverse

    # ========================================================================
    # LOOKUP
    # ========================================================================

    def source_key_for(self, derived_key: str) -> Optional[str]:
        return self._forward.get(derived_key)

    def derived_key_for(self, source_key: str) -> Optional[str]:
        return self._reverse.get(source_key)

    def source_index(self, derived_index: int) -> int:
        if 0 <= derived_index < len(self._derived_to_source):
            return int(self._derived_to_source[derived_index])
        return UNLINKED

    def derived_index(self, source_index: int) -> int:
        if 0 <= source_index < len(self._source_to_derived):
            return int(self._source_to_derived[source_index])
        return UNLINKED

    @property
    def derived_to_source(self) -> np.ndarray:
        return self._derived_to_source.copy()

    @property
    def source_to_derived(self) -> np.ndarray:
        return self._source_to_derived.copy()

    def as_array(self) -> np.ndarray:
        """Linked ``(derived_index, source_index)`` pairs, shape ``(n, 2)``."""
        linked = np.flatnonzero(self._derived_to_source >= 0)
        return np.column_stack((linked, self._derived_to_source[linked]))

    def items(self) -> List[Tuple[str, str]]:
        return list(self._forward.items())

    def __contains__(self, derived_key: object) -> bool:
        return derived_key in self._forward

    def __len__(self) -> int:
        return len(self._forward)

    def __repr__(self) -> str:
        return f"LinkTable(links={len(self._forward)}, passes={self.relink_count})"
