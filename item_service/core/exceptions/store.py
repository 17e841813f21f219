"""
Store Exceptions

Errors raised by record operations against the durable store.
"""

from item_service.core.exceptions.base import ItemServiceError


class StoreError(ItemServiceError):
    """Base exception for durable store errors."""
    pass


class TransientStoreError(StoreError):
    """
    Raised when a single durable-store query fails.

    Surfaced to the caller as a server error. Individual queries are not
    retried; only the initial connection is.
    """
    pass


class RecordNotFoundError(StoreError):
    """Raised when the requested item does not exist."""
    pass
