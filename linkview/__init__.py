"""
LinkView - Linked, Incrementally Maintained Collection Views

Keeps a filtered and/or sorted view of a source collection up to date with
work proportional to each edit, while every view element stays linked to its
source slot.
"""

# Views and the source host
from .view import DerivedView
from .observable_list import ObservableList, SpliceBatch

# Notification model
from .notifications import ChangeKind, IndexSplice, Notification

# Building blocks
from .engine import NamedFunction, compute, resolve_function, select
from .paths import ObservedPaths, get_path, set_path
from .scheduler import AsyncioScheduler, Debouncer, TaskQueue
from .splices import SpliceTranslator, validate_splices
from .util import UNLINKED, IdentityRegistry, LinkTable

# Exceptions
from .exceptions import InvalidSpliceError, LinkViewError, UnresolvedFunctionError

__all__ = [
    # Views
    "DerivedView",
    "ObservableList",
    "SpliceBatch",
    # Notifications
    "ChangeKind",
    "IndexSplice",
    "Notification",
    # Engine
    "NamedFunction",
    "compute",
    "resolve_function",
    "select",
    # Paths
    "ObservedPaths",
    "get_path",
    "set_path",
    # Scheduling
    "AsyncioScheduler",
    "Debouncer",
    "TaskQueue",
    # Splices
    "SpliceTranslator",
    "validate_splices",
    # Bookkeeping
    "IdentityRegistry",
    "LinkTable",
    "UNLINKED",
    # Exceptions
    "InvalidSpliceError",
    "LinkViewError",
    "UnresolvedFunctionError",
]
