"""
LinkView Paths - Observed Attribute Paths
=========================================

Dotted attribute paths address data inside collection members
(``"address.city"``). A view observes a set of such paths; a member change
matters when the changed path and an observed path lie on one line:

- exact: observed ``rank``, changed ``rank``
- deeper change: observed ``address``, changed ``address.city``
- shallower change: observed ``address.city``, changed ``address``
  (the whole sub-object was replaced)

``rank`` and ``ranking`` are unrelated: matching is by whole segments.

Match results are memoised per configuration in a ``cachetools.LRUCache``.
"""

import re
from typing import Any, Iterable, Iterator, Optional, Union

from cachetools import LRUCache

_DELIMITERS = re.compile(r"[\s,]+")


def split_path(path: str) -> list:
    return [segment for segment in path.split(".") if segment]


def get_path(obj: Any, path: str) -> Any:
    """Read a dotted path from nested mappings and attributes."""
    current = obj
    for segment in split_path(path):
        current = _get_segment(current, segment)
    return current


def set_path(obj: Any, path: str, value: Any) -> None:
    """
    Write ``value`` at a dotted path.

    Raises:
        ValueError: If ``path`` is empty
    """
    segments = split_path(path)
    if not segments:
        raise ValueError("Cannot set an empty path")
    target = obj
    for segment in segments[:-1]:
        target = _get_segment(target, segment)
    last = segments[-1]
    if isinstance(target, dict):
        target[last] = value
    elif isinstance(target, list):
        target[int(last)] = value
    else:
        setattr(target, last, value)


def _get_segment(obj: Any, segment: str) -> Any:
    if isinstance(obj, dict):
        return obj[segment]
    if isinstance(obj, (list, tuple)):
        return obj[int(segment)]
    return getattr(obj, segment)


class ObservedPaths:
    """
    Ordered set of observed attribute paths.

    Accepts a space- or comma-delimited string (``"rank, address.city"``) or
    any iterable of path strings. Empty and duplicate entries are dropped.
    """

    def __init__(self, paths: Union[str, Iterable[str], None] = None, cache_size: int = 256):
        if paths is None:
            parsed: Iterable[str] = ()
        elif isinstance(paths, str):
            parsed = _DELIMITERS.split(paths)
        else:
            parsed = paths
        self._paths = tuple(dict.fromkeys(p.strip() for p in parsed if p and p.strip()))
        self._matches: LRUCache = LRUCache(maxsize=cache_size)

    def matches(self, changed: Optional[str]) -> bool:
        """Whether a change at ``changed`` affects any observed path."""
        if not self._paths or not changed:
            return False
        try:
            return self._matches[changed]
        except KeyError:
            pass
        result = any(_related(observed, changed) for observed in self._paths)
        self._matches[changed] = result
        return result

    @property
    def paths(self) -> tuple:
        return self._paths

    def __contains__(self, changed: object) -> bool:
        return isinstance(changed, str) and self.matches(changed)

    def __iter__(self) -> Iterator[str]:
        return iter(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def __bool__(self) -> bool:
        return bool(self._paths)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ObservedPaths):
            return self._paths == other._paths
        return NotImplemented

    def __repr__(self) -> str:
        return f"ObservedPaths({' '.join(self._paths)!r})"


def _related(observed: str, changed: str) -> bool:
    if observed == changed:
        return True
    return changed.startswith(observed + ".") or observed.startswith(changed + ".")


__all__ = [
    "ObservedPaths",
    "get_path",
    "set_path",
    "split_path",
]
