"""
Exception Module

Structured exception hierarchy for the item service.

Module Structure:
-----------------
- **base.py**: ItemServiceError base class + ConfigurationError
- **dependency.py**: Connection supervision errors (exhausted / degraded)
- **store.py**: Durable store errors (transient failure, record not found)
- **validation.py**: Request validation errors

Usage:
------
```python
from item_service.core.exceptions import DependencyExhaustedError, TransientStoreError
```
"""

# Base exception
from item_service.core.exceptions.base import ConfigurationError, ItemServiceError

# Dependency exceptions
from item_service.core.exceptions.dependency import (
    DependencyDegradedError,
    DependencyError,
    DependencyExhaustedError,
)

# Store exceptions
from item_service.core.exceptions.store import (
    RecordNotFoundError,
    StoreError,
    TransientStoreError,
)

# Validation exceptions
from item_service.core.exceptions.validation import ValidationError

__all__ = [
    # Base
    "ItemServiceError",
    "ConfigurationError",
    # Dependency
    "DependencyError",
    "DependencyExhaustedError",
    "DependencyDegradedError",
    # Store
    "StoreError",
    "TransientStoreError",
    "RecordNotFoundError",
    # Validation
    "ValidationError",
]
