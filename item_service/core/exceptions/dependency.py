"""
Dependency Exceptions

Exceptions raised while establishing or supervising connections to external
dependencies (the durable store and the cache).
"""

from item_service.core.exceptions.base import ItemServiceError


class DependencyError(ItemServiceError):
    """Base exception for external dependency errors."""
    pass


class DependencyExhaustedError(DependencyError):
    """
    Raised when a bounded retry budget has been consumed.

    Fatal at startup for the durable store: the process does not begin
    serving. Details carry the dependency name and the attempt count.
    """
    pass


class DependencyDegradedError(DependencyError):
    """
    Logged when an optional dependency (the cache) gives up reconnecting.

    Never surfaced to HTTP callers; the connector logs it and switches to
    permanent no-op mode until the process restarts.
    """
    pass
