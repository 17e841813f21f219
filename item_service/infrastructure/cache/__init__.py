"""
Cache Module

Best-effort Redis connector and the cache-aside layer built on it.
"""

from item_service.infrastructure.cache.cache_aside import CacheAsideLayer, annotate
from item_service.infrastructure.cache.redis_client import CacheConnector, create_redis_client

__all__ = [
    "CacheAsideLayer",
    "CacheConnector",
    "annotate",
    "create_redis_client",
]
