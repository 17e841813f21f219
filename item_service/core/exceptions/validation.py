"""
Validation Exceptions

All exceptions related to request validation
"""

from item_service.core.exceptions.base import ItemServiceError


class ValidationError(ItemServiceError):
    """
    Raised when request validation fails.

    Surfaced as a 400 response and never retried. Malformed request bodies
    and path parameters are reported through this class.
    """
    pass

