"""
LinkView Filter/Sort Engine
===========================

Pure projection of a source sequence through an optional predicate and an
optional comparator. Nothing here mutates its input or keeps state.

Ordering contract:
- filter first, in source order
- then a stable sort by the comparator (negative / zero / positive)
- ties keep their source-relative order

The same ordering is exposed as ``order_key`` so incremental paths can binary
search a derived list without re-sorting it.

Functions may be given by value or by name. Names are resolved once, when the
view is configured, against a context namespace:

    resolve_function("by_rank", context=handlers)     # handlers.by_rank
    resolve_function(NamedFunction("by_rank"), {"by_rank": fn})
"""

import inspect
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Callable, List, Mapping, Optional, Sequence

from .exceptions import UnresolvedFunctionError

FilterFn = Callable[..., bool]
SortFn = Callable[[Any, Any], int]


@dataclass(frozen=True, slots=True)
class NamedFunction:
    """Late-bound function reference, resolved against a context by name."""

    name: str


def resolve_function(spec: Any, context: Any = None) -> Optional[Callable]:
    """
    Resolve a filter/sort specification to a callable.

    Args:
        spec: None, a callable, a method name, or a NamedFunction
        context: Mapping or object the name is looked up in

    Returns:
        The callable, or None when ``spec`` is None

    Raises:
        UnresolvedFunctionError: If the name does not resolve to a callable
        TypeError: If ``spec`` is neither callable nor a name
    """
    if spec is None:
        return None
    if isinstance(spec, NamedFunction):
        name = spec.name
    elif isinstance(spec, str):
        name = spec
    elif callable(spec):
        return spec
    else:
        raise TypeError(f"Expected a callable or a function name, got {spec!r}")

    if context is None:
        raise UnresolvedFunctionError(f"No context to resolve '{name}' against")
    if isinstance(context, Mapping):
        target = context.get(name)
    else:
        target = getattr(context, name, None)
    if not callable(target):
        raise UnresolvedFunctionError(f"'{name}' is not a callable of {context!r}")
    return target


def bind_filter(filter_fn: Optional[FilterFn]) -> Optional[Callable[[Any, int, Sequence], bool]]:
    """
    Normalise a predicate to the ``(element, index, array)`` calling form.

    Predicates that take one positional argument are called with the element
    only.
    """
    if filter_fn is None:
        return None
    if _accepts_three(filter_fn):
        return filter_fn
    return lambda element, index, array: filter_fn(element)


def _accepts_three(fn: Callable) -> bool:
    try:
        parameters = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return False
    positional = 0
    for parameter in parameters:
        if parameter.kind is inspect.Parameter.VAR_POSITIONAL:
            return True
        if parameter.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            positional += 1
    return positional >= 3


def order_key(sort_fn: Optional[SortFn]) -> Callable[[Any, int], Any]:
    """
    Key for ``(element, source_position)`` that reproduces the view order.

    Without a comparator the view keeps source order, so the position alone
    is the key.
    """
    if sort_fn is None:
        return lambda element, position: position
    to_key = cmp_to_key(sort_fn)
    return lambda element, position: (to_key(element), position)


def select(
    source: Optional[Sequence[Any]],
    filter_fn: Optional[FilterFn] = None,
    sort_fn: Optional[SortFn] = None,
) -> List[int]:
    """Source positions of the projected elements, in view order."""
    if source is None:
        return []
    items = list(source)
    predicate = bind_filter(filter_fn)
    if predicate is None:
        positions = list(range(len(items)))
    else:
        positions = [
            index for index, element in enumerate(items) if predicate(element, index, items)
        ]
    if sort_fn is not None:
        to_key = cmp_to_key(sort_fn)
        positions.sort(key=lambda index: to_key(items[index]))
    return positions


def compute(
    source: Optional[Sequence[Any]],
    filter_fn: Optional[FilterFn] = None,
    sort_fn: Optional[SortFn] = None,
) -> List[Any]:
    """
    Filtered and sorted projection of ``source``.

    ``None`` is treated as an empty source. Exceptions raised by the
    predicate or the comparator propagate unchanged.
    """
    if source is None:
        return []
    items = list(source)
    return [items[index] for index in select(items, filter_fn, sort_fn)]


__all__ = [
    "NamedFunction",
    "bind_filter",
    "compute",
    "order_key",
    "resolve_function",
    "select",
]
