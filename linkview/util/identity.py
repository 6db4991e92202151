"""
LinkView Identity Registry - Stable Keys for Collection Members
===============================================================

Assigns each slot of one collection an opaque key that survives insertions and
removals elsewhere in the collection. Keys are plain strings (``"#0"``,
``"#1"``, ...) drawn from a per-registry counter, so they can appear in change
paths such as ``items.#4.rank``.

Lookups by element use object identity, never equality: two equal records are
two members. When the very same object occupies several slots, ``key_of``
answers with the oldest of its keys.

Usage:
    registry = IdentityRegistry(["a", "b"])
    registry.key_of(element)          # "#0"
    registry.splice(1, 0, ["c"])      # ([], ["#2"])
    registry.index_of_key("#1")       # 2
    registry["#2"]                    # "c"
"""

from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

KEY_PREFIX = "#"


class IdentityRegistry:
    """
    Keyspace for one ordered collection.

    The registry mirrors the collection slot for slot; callers keep it in step
    with ``reset`` and ``splice``. Keys are never reused: a removed element
    that comes back receives a fresh key.

    Cost: ``key_of`` and ``[]`` are O(1). Slot lookups (``index_of_key``,
    ``index_of``, ``positions``) read a key -> slot map that is rebuilt in
    O(n) on the first lookup after a structural edit and is O(1) until the
    next one. Callers that remove several slots should take one
    ``positions()`` snapshot and remove in descending slot order.
    """

    __slots__ = ("_keys", "_store", "_by_ref", "_counter", "_slots")

    def __init__(self, elements: Optional[Iterable[Any]] = None):
        self._keys: List[str] = []  # slot order
        self._store: Dict[str, Any] = {}  # key -> element
        self._by_ref: Dict[int, List[str]] = {}  # id(element) -> keys, oldest first
        self._counter = 0
        self._slots: Optional[Dict[str, int]] = None  # key -> slot, rebuilt lazily
        if elements is not None:
            self.reset(elements)

    # ========================================================================
    # KEY ALLOCATION
    # ========================================================================

    def _allocate(self, element: Any) -> str:
        key = f"{KEY_PREFIX}{self._counter}"
        self._counter += 1
        self._store[key] = element
        self._by_ref.setdefault(id(element), []).append(key)
        return key

    def _release(self, key: str) -> Any:
        element = self._store.pop(key)
        refs = self._by_ref.get(id(element))
        if refs is not None:
            refs.remove(key)
            if not refs:
                del self._by_ref[id(element)]
        return element

    # ========================================================================
    # MUTATION
    # ========================================================================

    def reset(self, elements: Iterable[Any]) -> List[str]:
        """Forget every key and key ``elements`` afresh, in order."""
        self._store = {}
        self._by_ref = {}
        self._keys = [self._allocate(element) for element in elements]
        self._slots = None
        return list(self._keys)

    def splice(
        self, index: int, removed_count: int, inserted: Sequence[Any] = ()
    ) -> Tuple[List[str], List[str]]:
        """
        Mirror a contiguous edit: drop ``removed_count`` slots at ``index``
        and key ``inserted`` in their place.

        Returns:
            (removed_keys, added_keys)

        Raises:
            IndexError: If the edit does not fit the current slots
        """
        size = len(self._keys)
        if index < 0 or removed_count < 0 or index + removed_count > size:
            raise IndexError(
                f"Splice at {index} removing {removed_count} outside 0..{size}"
            )

        removed_keys = self._keys[index : index + removed_count]
        for key in removed_keys:
            self._release(key)
        added_keys = [self._allocate(element) for element in inserted]
        self._keys[index : index + removed_count] = added_keys
        if removed_keys or added_keys:
            self._slots = None
        return removed_keys, added_keys

    def insert(self, index: int, element: Any) -> str:
        _, added = self.splice(index, 0, [element])
        return added[0]

    def remove_at(self, index: int) -> str:
        removed, _ = self.splice(index, 1)
        return removed[0]

    def clear(self) -> None:
        self.reset(())

    # ========================================================================
    # LOOKUP
    # ========================================================================

    def key_of(self, element: Any) -> Optional[str]:
        """Key of ``element``, or None when it is not a member."""
        refs = self._by_ref.get(id(element))
        if not refs:
            return None
        return refs[0]

    def keys_of(self, element: Any) -> List[str]:
        """Every key held by ``element``, oldest first."""
        return list(self._by_ref.get(id(element), ()))

    def get(self, key: str, default: Any = None) -> Any:
        return self._store.get(key, default)

    def __getitem__(self, key: str) -> Any:
        try:
            return self._store[key]
        except KeyError:
            raise KeyError(f"Key not found: {key}") from None

    def index_of_key(self, key: str) -> int:
        """Current slot of ``key``, -1 when absent."""
        return self._slot_map().get(key, -1)

    def index_of(self, element: Any) -> int:
        key = self.key_of(element)
        if key is None:
            return -1
        return self._slot_map()[key]

    def key_at(self, index: int) -> str:
        return self._keys[index]

    def positions(self) -> Dict[str, int]:
        """Snapshot of key -> slot for every live key."""
        return dict(self._slot_map())

    def _slot_map(self) -> Dict[str, int]:
        if self._slots is None:
            self._slots = {key: slot for slot, key in enumerate(self._keys)}
        return self._slots

    def keys(self) -> List[str]:
        return list(self._keys)

    def elements(self) -> List[Any]:
        return [self._store[key] for key in self._keys]

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._keys))

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return f"IdentityRegistry(size={len(self._keys)}, next={self._counter})"
