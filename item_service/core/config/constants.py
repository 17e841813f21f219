"""
System Constants and Enumerations

This module defines system-wide constants and enumerations used across
the item service.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for cache keys and header names
- Type-safe enums for state management
"""

from enum import Enum

# ============================================================================
# Dependency Connection States
# ============================================================================


class ConnectionStatus(str, Enum):
    """
    Connection state of an external dependency.

    CONNECTING: An attempt (initial or reconnect) is in progress
    CONNECTED: Last attempt or probe succeeded
    DISCONNECTED: Connection lost or last probe failed
    FAILED: Retry budget exhausted, no further automatic attempts
    """

    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    FAILED = "failed"


class LifecycleState(str, Enum):
    """Process lifecycle. Transitions are one-way."""

    STARTING = "starting"
    SERVING = "serving"
    DRAINING = "draining"
    STOPPED = "stopped"


# ============================================================================
# Dependency Names (used in logs, metrics and health payloads)
# ============================================================================

PRIMARY_STORE = "primaryStore"
CACHE = "cache"


# ============================================================================
# Cache Keys
# ============================================================================

ITEMS_ALL_KEY = "items:all"
ITEM_KEY_PREFIX = "item"


def item_cache_key(item_id: int) -> str:
    """Cache key for a single item, e.g. ``item:42``."""
    return f"{ITEM_KEY_PREFIX}:{item_id}"


# Annotation added to every cache-aside read response
CACHED_FLAG = "cached"


# ============================================================================
# HTTP Headers
# ============================================================================

HEADER_REQUEST_ID = "X-Request-ID"


# ============================================================================
# Item Validation
# ============================================================================

ITEM_NAME_MAX_LENGTH = 255
