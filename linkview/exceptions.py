"""
LinkView Exceptions
===================

Failures raised by the view layer. Most irregular states (absent source,
registry misses) are tolerated silently; only boundary precondition
violations are raised.
"""


class LinkViewError(Exception):
    """Base class for LinkView errors."""

    pass


class InvalidSpliceError(LinkViewError, ValueError):
    """Splice descriptor is malformed or out of range for its collection."""

    pass


class UnresolvedFunctionError(LinkViewError, LookupError):
    """Named filter or sort function not found in the context."""

    pass
