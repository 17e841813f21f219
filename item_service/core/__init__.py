"""
Core Module

Foundational components: configuration, logging, exceptions and connection resilience.
"""

from .exceptions import (
    ConfigurationError,
    DependencyDegradedError,
    DependencyExhaustedError,
    ItemServiceError,
    RecordNotFoundError,
    TransientStoreError,
    ValidationError,
)
from .logging import (
    clear_request_id,
    get_logger,
    get_request_id,
    set_request_id,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "set_request_id",
    "get_request_id",
    "clear_request_id",
    "ItemServiceError",
    "ConfigurationError",
    "DependencyExhaustedError",
    "DependencyDegradedError",
    "TransientStoreError",
    "RecordNotFoundError",
    "ValidationError",
]
