"""
LinkView DerivedView - Incrementally Maintained Filtered/Sorted View
====================================================================

A ``DerivedView`` follows a source collection and keeps a filtered and/or
sorted projection of it, element for element identical to the source members.

    items = ObservableList([{"id": 1, "rank": 5}, {"id": 2, "rank": 3}])
    view = DerivedView(items, sort=lambda a, b: a["rank"] - b["rank"], observe="rank")
    view.flush()                       # first recompute is debounced
    view.value                         # [{"id": 2, ...}, {"id": 1, ...}]

    items.set_path(0, "rank", 0)       # view repositions one member
    view.value                         # [{"id": 1, ...}, {"id": 2, ...}]

Change routing, per incoming notification on the source name:

- ``items``            whole replacement -> debounced full recompute
- ``items.length``     ignored, the matching splices carry the detail
- ``items.splices``    incremental splice translation
- ``items.#k.<path>``  forwarded to view subscribers through the link, then
                       the member is repositioned when ``<path>`` touches an
                       observed path and a filter or sort is configured

Published notifications use ``view.name``: a full replacement after each
recompute, one ``.splices`` + ``.length`` pair per targeted insert or remove,
and forwarded member changes under derived keys.

Processing is single threaded. A notification that arrives while another is
being handled (for instance from a subscriber writing back into the source)
is queued and handled afterwards.
"""

import logging
from collections import deque
from typing import Any, Callable, Deque, Iterable, Iterator, List, Optional, Union

from .engine import bind_filter, resolve_function, select
from .notifications import (
    ChangeKind,
    IndexSplice,
    Notification,
    member_path,
    splice_notification,
)
from .observable_list import ObservableList
from .paths import ObservedPaths, set_path
from .scheduler import Debouncer, TaskQueue
from .splices import SpliceTranslator
from .util.identity import KEY_PREFIX, IdentityRegistry
from .util.links import UNLINKED, LinkTable

_OPTIONS = ("source", "filter", "sort", "observe", "context")


class DerivedView:
    """
    Filtered/sorted view of a source collection with bidirectional links.

    Args:
        source: ObservableList, plain sequence, or None (treated as empty)
        filter: Predicate, ``f(element)`` or ``f(element, index, array)``,
            or the name of one in ``context``
        sort: Comparator ``f(a, b) -> int`` or the name of one in ``context``
        observe: Observed member paths, ``"rank, address.city"`` or iterable
        context: Namespace named functions are resolved against
        scheduler: Turn scheduler with ``call_soon``; a private TaskQueue
            by default
        name: Path name of the view in published notifications
        source_name: Path name of the source in incoming notifications;
            taken from an ObservableList source when omitted
    """

    def __init__(
        self,
        source: Any = None,
        filter: Any = None,
        sort: Any = None,
        observe: Union[str, Iterable[str], None] = None,
        context: Any = None,
        scheduler: Any = None,
        name: str = "filtered",
        source_name: Optional[str] = None,
    ):
        self.name = name
        self._explicit_source_name = source_name
        self.source_name = source_name or "items"

        self._scheduler = scheduler if scheduler is not None else TaskQueue()
        self._debouncer = Debouncer(self._scheduler, self._run_recompute)

        self._derived: List[Any] = []
        self._derived_keys = IdentityRegistry()
        self._links = LinkTable()
        self._translator = SpliceTranslator(self)

        self._callbacks: List[Callable[[Notification], None]] = []
        self._queue: Deque[Callable[[], None]] = deque()
        self._processing = False

        self._source: Any = None
        self._source_keys = IdentityRegistry()
        self._owns_source_keys = True
        self._unsubscribe_source: Optional[Callable[[], None]] = None

        self._context = context
        self._filter_spec = filter
        self._sort_spec = sort
        self._resolve_functions()
        self._observed = ObservedPaths(observe)

        self._bind_source(source)
        self._debouncer.trigger()

    # ========================================================================
    # CONFIGURATION
    # ========================================================================

    def _resolve_functions(self) -> None:
        self._filter = resolve_function(self._filter_spec, self._context)
        self._filter_bound = bind_filter(self._filter)
        self._sort = resolve_function(self._sort_spec, self._context)

    @property
    def source(self) -> Any:
        return self._source

    @source.setter
    def source(self, source: Any) -> None:
        self._bind_source(source)
        self.update()

    @property
    def filter(self) -> Optional[Callable]:
        return self._filter

    @filter.setter
    def filter(self, spec: Any) -> None:
        self.configure(filter=spec)

    @property
    def sort(self) -> Optional[Callable]:
        return self._sort

    @sort.setter
    def sort(self, spec: Any) -> None:
        self.configure(sort=spec)

    @property
    def observe(self) -> ObservedPaths:
        return self._observed

    @observe.setter
    def observe(self, paths: Union[str, Iterable[str], None]) -> None:
        self.configure(observe=paths)

    @property
    def context(self) -> Any:
        return self._context

    @context.setter
    def context(self, context: Any) -> None:
        self.configure(context=context)

    def configure(self, **options: Any) -> None:
        """
        Change several options at once; one debounced recompute follows.

        Raises:
            TypeError: On an unknown option
            UnresolvedFunctionError: If a named function does not resolve
        """
        unknown = set(options) - set(_OPTIONS)
        if unknown:
            raise TypeError(f"Unknown view options: {', '.join(sorted(unknown))}")

        if "context" in options:
            self._context = options["context"]
        if "filter" in options:
            self._filter_spec = options["filter"]
        if "sort" in options:
            self._sort_spec = options["sort"]
        if {"context", "filter", "sort"} & set(options):
            self._resolve_functions()
        if "observe" in options:
            self._observed = ObservedPaths(options["observe"])
        if "source" in options:
            self._bind_source(options["source"])
        self.update()

    def _bind_source(self, source: Any) -> None:
        if self._unsubscribe_source is not None:
            self._unsubscribe_source()
            self._unsubscribe_source = None

        self._source = source
        if isinstance(source, ObservableList):
            self._source_keys = source.registry
            self._owns_source_keys = False
            if self._explicit_source_name is None:
                self.source_name = source.name
            self._unsubscribe_source = source.subscribe(self.handle)
        else:
            self._source_keys = IdentityRegistry(self._source_items())
            self._owns_source_keys = True

    def _source_items(self) -> List[Any]:
        source = self._source
        if source is None:
            return []
        if isinstance(source, ObservableList):
            return source.value
        if isinstance(source, list):
            return source
        return list(source)

    # ========================================================================
    # RECOMPUTE
    # ========================================================================

    def update(self) -> None:
        """Request a full re-evaluation on the next scheduling turn."""
        self._debouncer.trigger()

    def flush(self) -> bool:
        """Run a pending recompute now; returns whether one ran."""
        return self._debouncer.flush()

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    @property
    def recompute_count(self) -> int:
        return self._debouncer.runs

    def _run_recompute(self) -> None:
        self._exclusive(self._recompute)

    def _recompute(self) -> None:
        items = self._source_items()
        if self._owns_source_keys:
            self._source_keys.reset(items)

        positions = select(items, self._filter_bound, self._sort)
        self._derived = [items[position] for position in positions]

        self._links.clear()
        derived_keys = self._derived_keys.reset(self._derived)
        for derived_key, position in zip(derived_keys, positions):
            self._links.establish(derived_key, self._source_keys.key_at(position))
        self._relink()

        logging.debug(
            f"View '{self.name}': recomputed {len(self._derived)} of {len(items)} elements"
        )
        self._notify(Notification(self.name, self._derived))

    def _relink(self) -> None:
        self._links.relink(self._source_keys, self._derived_keys)

    # ========================================================================
    # CHANGE ROUTING
    # ========================================================================

    def handle(self, notification: Notification) -> None:
        """Route one change notification of the source collection."""
        self._exclusive(lambda: self._route(notification))

    def _exclusive(self, task: Callable[[], None]) -> None:
        self._queue.append(task)
        if self._processing:
            return

        self._processing = True
        try:
            while self._queue:
                self._queue.popleft()()
        finally:
            self._processing = False

    def _route(self, notification: Notification) -> None:
        kind, selector, subpath = notification.classify(self.source_name)

        if kind is ChangeKind.REPLACE:
            value = notification.value
            if self._owns_source_keys and value is not self._source:
                self._bind_source(value)
            self.update()
        elif kind is ChangeKind.SPLICES:
            self._translator.apply(notification.splices)
        elif kind is ChangeKind.MEMBER:
            self._member_changed(selector, subpath, notification.value)
        elif kind is ChangeKind.LENGTH:
            pass
        else:
            logging.debug(f"View '{self.name}': ignoring {notification.path!r}")

    def _member_changed(self, selector: str, subpath: str, value: Any) -> None:
        source_key = self._resolve_selector(selector)
        if source_key is None:
            logging.debug(f"View '{self.name}': no source member {selector!r}")
            return

        derived_key = self._links.derived_key_for(source_key)
        if derived_key is not None:
            self._notify(Notification(member_path(self.name, derived_key, subpath), value))

        if self._filter is None and self._sort is None:
            return
        if not self._observed:
            return
        # a bare selector means the member object itself was swapped
        if subpath and not self._observed.matches(subpath):
            return
        self.reposition(self._source_keys[source_key])

    def _resolve_selector(self, selector: str) -> Optional[str]:
        registry = self._source_keys
        if selector.startswith(KEY_PREFIX):
            return selector if selector in registry else None
        if selector.isdigit() and int(selector) < len(registry):
            return registry.key_at(int(selector))
        return None

    # ========================================================================
    # POSITION RECONCILER
    # ========================================================================

    def reposition(self, element: Any) -> bool:
        """
        Move, insert or remove one source member after an attribute change.

        Does nothing while a full recompute is pending; that recompute places
        every member.

        Returns:
            True when the derived collection changed
        """
        if self.pending:
            logging.debug(f"View '{self.name}': recompute pending, reposition deferred")
            return False
        source_key = self._source_keys.key_of(element)
        if source_key is None:
            return False

        source_index = self._source_keys.index_of_key(source_key)
        positions = select(self._source_items(), self._filter_bound, self._sort)
        try:
            target = positions.index(source_index)
        except ValueError:
            target = UNLINKED

        derived_key = self._links.derived_key_for(source_key)
        current = self._derived_keys.index_of_key(derived_key) if derived_key else UNLINKED
        if target == current:
            return False

        try:
            if current != UNLINKED:
                self._remove_at(current)
            if target != UNLINKED:
                self._insert_at(min(target, len(self._derived)), element, source_key)
        finally:
            self._relink()
        return True

    # ========================================================================
    # DERIVED EDITS
    # ========================================================================

    def _remove_at(self, index: int) -> None:
        derived_key = self._derived_keys.remove_at(index)
        self._links.retract(derived_key)
        element = self._derived.pop(index)
        self._publish_splice(
            IndexSplice(
                object=self._derived,
                index=index,
                removed=(element,),
                removed_keys=(derived_key,),
                added_keys=(),
            )
        )

    def _insert_at(self, index: int, element: Any, source_key: str) -> None:
        self._derived.insert(index, element)
        derived_key = self._derived_keys.insert(index, element)
        self._links.establish(derived_key, source_key)
        self._publish_splice(
            IndexSplice(
                object=self._derived,
                index=index,
                added_count=1,
                added=(element,),
                removed_keys=(),
                added_keys=(derived_key,),
            )
        )

    def _publish_splice(self, splice: IndexSplice) -> None:
        self._notify(splice_notification(self.name, [splice]))
        self._notify(Notification(f"{self.name}.length", len(self._derived)))

    # ========================================================================
    # SUBSCRIPTION
    # ========================================================================

    def subscribe(self, callback: Callable[[Notification], None]) -> Callable[[], None]:
        """
        Register ``callback`` for every notification this view publishes.

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

    def close(self) -> None:
        """Detach from the source and drop any pending recompute."""
        if self._unsubscribe_source is not None:
            self._unsubscribe_source()
            self._unsubscribe_source = None
        self._debouncer.cancel()
        self._callbacks.clear()

    # ========================================================================
    # LINKS AND WRITE-THROUGH
    # ========================================================================

    @property
    def links(self) -> LinkTable:
        return self._links

    @property
    def derived_keys(self) -> IdentityRegistry:
        return self._derived_keys

    @property
    def source_keys(self) -> IdentityRegistry:
        return self._source_keys

    def source_index(self, index: int) -> int:
        """Source slot linked to derived slot ``index``, -1 if unlinked."""
        return self._links.source_index(self._position(index))

    def derived_index(self, source_index: int) -> int:
        """Derived slot linked to source slot ``source_index``, -1 if absent."""
        return self._links.derived_index(source_index)

    def __setitem__(self, index: int, element: Any) -> None:
        """Replace the linked source member; the view follows through its splice."""
        source_index = self.source_index(index)
        if source_index == UNLINKED:
            raise IndexError(f"Derived slot {index} is not linked to the source")

        source = self._source
        if isinstance(source, ObservableList):
            source[source_index] = element
            return

        removed = source[source_index]
        source[source_index] = element
        splice = IndexSplice(object=source, index=source_index, removed=(removed,), added_count=1)
        self.handle(splice_notification(self.source_name, [splice]))

    def set_path(self, index: int, subpath: str, value: Any) -> None:
        """Write a member attribute through the view, as if written on the source."""
        position = self._position(index)
        element = self._derived[position]
        source_key = self._links.source_key_for(self._derived_keys.key_at(position))
        set_path(element, subpath, value)

        if source_key is None:
            logging.debug(f"View '{self.name}': slot {position} unlinked, change not forwarded")
            return
        if isinstance(self._source, ObservableList):
            self._source.notify_path(source_key, subpath, value)
        else:
            self.handle(Notification(member_path(self.source_name, source_key, subpath), value))

    def _position(self, index: int) -> int:
        position = index + len(self._derived) if index < 0 else index
        if not 0 <= position < len(self._derived):
            raise IndexError("derived index out of range")
        return position

    # ========================================================================
    # READ ACCESS
    # ========================================================================

    @property
    def value(self) -> List[Any]:
        return self._derived

    def __getitem__(self, index):
        return self._derived[index]

    def __len__(self) -> int:
        return len(self._derived)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._derived)

    def __repr__(self) -> str:
        state = "pending" if self.pending else "current"
        return f"DerivedView({self.name}={len(self._derived)} of {self.source_name}, {state})"


__all__ = ["DerivedView"]
