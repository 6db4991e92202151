"""
LinkView ObservableList - Splice-Emitting Source Collection
===========================================================

A list that reports every mutation as path-addressed notifications, so a
``DerivedView`` can follow it incrementally:

    items = ObservableList(["b", "c"], name="items")
    items.subscribe(print)

    items.insert(0, "a")
    # Notification('items.splices')   {"indexSplices": [IndexSplice(...)]}
    # Notification('items.length')    3

    items.set_path(0, "rank", 4)      # Notification('items.#2.rank')
    items.replace(["x"])              # Notification('items')

The list owns the identity keyspace of its members (``registry``); keys are
updated before subscribers hear about a change, and each splice carries the
keys it removed and added.

Mutations inside ``with items.batch():`` are published together as one
``items.splices`` notification when the outermost batch exits.
"""

from typing import Any, Callable, Iterable, Iterator, List, Optional, Union

from .notifications import IndexSplice, Notification, member_path, splice_notification
from .paths import set_path
from .util.identity import KEY_PREFIX, IdentityRegistry

Selector = Union[int, str]


class ObservableList:
    """Mutable sequence publishing splice, length, replace and member notifications."""

    def __init__(self, items: Optional[Iterable[Any]] = None, name: str = "items"):
        self.name = name
        self._items: List[Any] = list(items) if items is not None else []
        self.registry = IdentityRegistry(self._items)
        self._callbacks: List[Callable[[Notification], None]] = []
        self._batch_depth = 0
        self._batched: List[IndexSplice] = []

    # ========================================================================
    # SUBSCRIPTION
    # ========================================================================

    def subscribe(self, callback: Callable[[Notification], None]) -> Callable[[], None]:
        """
        Register ``callback`` for every notification of this list.

        Returns:
            Unsubscribe function
        """
        self._callbacks.append(callback)

        def unsubscribe():
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def _notify(self, notification: Notification) -> None:
        for callback in list(self._callbacks):
            callback(notification)

    def batch(self) -> "SpliceBatch":
        """Group mutations into one splices notification."""
        return SpliceBatch(self)

    # ========================================================================
    # STRUCTURAL EDITS
    # ========================================================================

    def splice(self, index: int, delete_count: Optional[int] = None, *items: Any) -> List[Any]:
        """
        Remove ``delete_count`` elements at ``index`` and insert ``items`` there.

        Negative indexes count from the end; out-of-range arguments are
        clamped the way list slicing clamps them.

        Returns:
            The removed elements
        """
        size = len(self._items)
        if index < 0:
            index = max(size + index, 0)
        index = min(index, size)
        if delete_count is None:
            delete_count = size - index
        delete_count = max(0, min(delete_count, size - index))

        if delete_count == 0 and not items:
            return []

        removed = self._items[index : index + delete_count]
        self._items[index : index + delete_count] = items
        removed_keys, added_keys = self.registry.splice(index, delete_count, items)

        self._emit(
            IndexSplice(
                object=self._items,
                index=index,
                removed=tuple(removed),
                added_count=len(items),
                added=tuple(items),
                removed_keys=tuple(removed_keys),
                added_keys=tuple(added_keys),
            )
        )
        return removed

    def append(self, item: Any) -> None:
        self.splice(len(self._items), 0, item)

    def extend(self, items: Iterable[Any]) -> None:
        self.splice(len(self._items), 0, *items)

    def insert(self, index: int, item: Any) -> None:
        self.splice(index, 0, item)

    def pop(self, index: int = -1) -> Any:
        if not self._items:
            raise IndexError("pop from empty list")
        if index < 0:
            index += len(self._items)
        if not 0 <= index < len(self._items):
            raise IndexError("pop index out of range")
        return self.splice(index, 1)[0]

    def remove(self, item: Any) -> None:
        self.splice(self._items.index(item), 1)

    def clear(self) -> None:
        self.splice(0, len(self._items))

    def replace(self, items: Iterable[Any]) -> None:
        """Swap the whole content; published as a whole-collection change."""
        self._items = list(items)
        self.registry.reset(self._items)
        self._notify(Notification(self.name, self._items))

    def __setitem__(self, index: Union[int, slice], value: Any) -> None:
        if isinstance(index, slice):
            start, stop, step = index.indices(len(self._items))
            if step != 1:
                raise ValueError("Extended slice assignment is not supported")
            self.splice(start, max(stop - start, 0), *value)
            return
        position = self._position(index)
        self.splice(position, 1, value)

    def __delitem__(self, index: Union[int, slice]) -> None:
        if isinstance(index, slice):
            start, stop, step = index.indices(len(self._items))
            if step != 1:
                raise ValueError("Extended slice deletion is not supported")
            self.splice(start, max(stop - start, 0))
            return
        self.splice(self._position(index), 1)

    def _position(self, index: int) -> int:
        position = index + len(self._items) if index < 0 else index
        if not 0 <= position < len(self._items):
            raise IndexError("list index out of range")
        return position

    # ========================================================================
    # MEMBER CHANGES
    # ========================================================================

    def key_for(self, selector: Selector) -> str:
        """Identity key of the member addressed by an index or a key."""
        if isinstance(selector, str) and selector.startswith(KEY_PREFIX):
            if selector not in self.registry:
                raise KeyError(f"Key not found: {selector}")
            return selector
        return self.registry.key_at(self._position(int(selector)))

    def set_path(self, selector: Selector, subpath: str, value: Any) -> None:
        """Write ``value`` at ``subpath`` of one member and publish the change."""
        key = self.key_for(selector)
        set_path(self.registry[key], subpath, value)
        self.notify_path(key, subpath, value)

    def notify_path(self, selector: Selector, subpath: str, value: Any = None) -> None:
        """Publish a member change that was written elsewhere."""
        key = self.key_for(selector)
        self._notify(Notification(member_path(self.name, key, subpath), value))

    # ========================================================================
    # PUBLICATION
    # ========================================================================

    def _emit(self, splice: IndexSplice) -> None:
        if self._batch_depth > 0:
            self._batched.append(splice)
            return
        self._publish([splice])

    def _publish(self, splices: List[IndexSplice]) -> None:
        self._notify(splice_notification(self.name, splices))
        self._notify(Notification(f"{self.name}.length", len(self._items)))

    # ========================================================================
    # READ ACCESS
    # ========================================================================

    @property
    def value(self) -> List[Any]:
        return self._items

    def index(self, item: Any, *args: int) -> int:
        return self._items.index(item, *args)

    def count(self, item: Any) -> int:
        return self._items.count(item)

    def __getitem__(self, index):
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ObservableList):
            return self._items == other._items
        if isinstance(other, list):
            return self._items == other
        return NotImplemented

    __hash__ = None

    def __repr__(self) -> str:
        return f"ObservableList({self.name}={self._items!r})"


class SpliceBatch:
    """Context manager deferring splice publication to the outermost exit."""

    def __init__(self, items: ObservableList):
        self._list = items

    def __enter__(self):
        self._list._batch_depth += 1
        if self._list._batch_depth == 1:
            self._list._batched = []
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._list._batch_depth -= 1

        if self._list._batch_depth == 0:
            pending = self._list._batched
            self._list._batched = []
            if pending:
                self._list._publish(pending)

        return False


__all__ = ["ObservableList", "SpliceBatch"]
