"""
LinkView Notifications - Path-Addressed Change Events
=====================================================

Change events exchanged between a source collection, a derived view and the
view's subscribers. Every event is a ``Notification(path, value)`` where
``path`` is one of:

- ``"<name>"``: the whole collection was replaced, ``value`` is the new one
- ``"<name>.length"``: the length changed, ``value`` is the new length
- ``"<name>.splices"``: structural edit, ``value`` is
  ``{"indexSplices": [IndexSplice, ...]}``
- ``"<name>.<selector>.<subpath>"``: an attribute of one member changed,
  ``selector`` is an identity key (``#3``) or a decimal index
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

SPLICES = "splices"
LENGTH = "length"


class ChangeKind(Enum):
    """Classification of a notification relative to a collection name."""

    REPLACE = "replace"
    LENGTH = "length"
    SPLICES = "splices"
    MEMBER = "member"
    UNRELATED = "unrelated"


@dataclass(frozen=True, slots=True)
class IndexSplice:
    """
    Contiguous edit applied to ``object``.

    ``removed`` elements were taken out at ``index`` and ``added_count`` new
    elements now occupy ``object[index:index + added_count]``. Hosts that
    know more may also pass the inserted elements and the identity keys of
    both sides; they are used instead of re-reading ``object``.
    """

    object: Any
    index: int
    removed: Tuple[Any, ...] = ()
    added_count: int = 0
    added: Optional[Tuple[Any, ...]] = None
    removed_keys: Optional[Tuple[str, ...]] = None
    added_keys: Optional[Tuple[str, ...]] = None

    @property
    def inserted(self) -> List[Any]:
        if self.added is not None:
            return list(self.added)
        return list(self.object[self.index : self.index + self.added_count])

    @property
    def is_insertion(self) -> bool:
        return not self.removed and self.added_count > 0

    @property
    def is_removal(self) -> bool:
        return bool(self.removed) and self.added_count == 0

    def __repr__(self) -> str:
        return (
            f"IndexSplice(index={self.index}, removed={len(self.removed)}, "
            f"added={self.added_count})"
        )


@dataclass(frozen=True, slots=True)
class Notification:
    """Immutable path-addressed change event."""

    path: str
    value: Any = None

    def classify(self, name: str) -> Tuple[ChangeKind, Optional[str], Optional[str]]:
        """
        Classify this notification against collection ``name``.

        Returns ``(kind, selector, subpath)``; selector and subpath are only
        set for ``ChangeKind.MEMBER``.
        """
        path = self.path
        if path == name:
            return ChangeKind.REPLACE, None, None
        prefix = name + "."
        if not path.startswith(prefix):
            return ChangeKind.UNRELATED, None, None

        rest = path[len(prefix) :]
        if rest == LENGTH:
            return ChangeKind.LENGTH, None, None
        if rest == SPLICES:
            return ChangeKind.SPLICES, None, None

        selector, _, subpath = rest.partition(".")
        if not subpath:
            # "<name>.#3" alone means the member itself was swapped
            return ChangeKind.MEMBER, selector, ""
        return ChangeKind.MEMBER, selector, subpath

    @property
    def splices(self) -> List[IndexSplice]:
        """Splice descriptors carried by a ``.splices`` notification."""
        return splices_from_value(self.value)

    def __repr__(self) -> str:
        return f"Notification({self.path!r})"


def splices_from_value(value: Any) -> List[IndexSplice]:
    """Accept ``{"indexSplices": [...]}``, a single splice or a sequence of them."""
    if value is None:
        return []
    if isinstance(value, IndexSplice):
        return [value]
    if isinstance(value, dict):
        value = value.get("indexSplices") or []
    return [_coerce_splice(item) for item in value]


def _coerce_splice(item: Any) -> IndexSplice:
    if isinstance(item, IndexSplice):
        return item
    if isinstance(item, dict):
        return IndexSplice(
            object=item.get("object"),
            index=item.get("index"),
            removed=tuple(item.get("removed") or ()),
            added_count=item.get("addedCount", item.get("added_count", 0)),
        )
    raise TypeError(f"Cannot interpret {type(item).__name__} as a splice")


def splice_notification(name: str, splices: Sequence[IndexSplice]) -> Notification:
    return Notification(f"{name}.{SPLICES}", {"indexSplices": list(splices)})


def member_path(name: str, key: str, subpath: str) -> str:
    if not subpath:
        return f"{name}.{key}"
    return f"{name}.{key}.{subpath}"


__all__ = [
    "ChangeKind",
    "IndexSplice",
    "Notification",
    "member_path",
    "splice_notification",
    "splices_from_value",
]
