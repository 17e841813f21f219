"""
Configuration Module

Centralized, type-safe configuration management for the item service.

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Enums, cache keys and header names

Usage:
------
```python
from item_service.core.config import get_settings
from item_service.core.config.constants import ConnectionStatus, ITEMS_ALL_KEY

settings = get_settings()
redis_host = settings.redis.REDIS_HOST
```

Environment Variables:
---------------------
```bash
# Durable store
DB_HOST=localhost
DB_PORT=3306
DB_USER=root
DB_PASSWORD=secret
DB_NAME=appdb
DB_POOL_SIZE=10

# Cache
REDIS_HOST=localhost
REDIS_PORT=6379
CACHE_DEFAULT_TTL=300

# Logging
LOG_LEVEL=INFO
LOG_FORMAT=json
```
"""

from item_service.core.config.constants import (
    CACHE,
    CACHED_FLAG,
    HEADER_REQUEST_ID,
    ITEM_NAME_MAX_LENGTH,
    ITEMS_ALL_KEY,
    PRIMARY_STORE,
    ConnectionStatus,
    LifecycleState,
    item_cache_key,
)
from item_service.core.config.settings import Settings, get_settings, reload_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "reload_settings",
    # Enums
    "ConnectionStatus",
    "LifecycleState",
    # Constants
    "CACHE",
    "CACHED_FLAG",
    "HEADER_REQUEST_ID",
    "ITEM_NAME_MAX_LENGTH",
    "ITEMS_ALL_KEY",
    "PRIMARY_STORE",
    "item_cache_key",
]
