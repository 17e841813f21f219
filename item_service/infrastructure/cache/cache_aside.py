#!/usr/bin/env python3
"""
Cache-Aside Layer

Pattern: Cache-aside (lazy loading)
- Look the key up in the cache
- On hit, return the stored value annotated ``cached: True``
- On miss, run the loader, schedule a fire-and-forget store with a TTL, and
  return the loader's value annotated ``cached: False``
- Writes invalidate the affected keys after they commit

Cache failures never reach the caller: a failed lookup is a miss and a failed
store is logged and dropped. Loader errors always propagate and are never
cached.

Read-your-writes within the process: invalidating a key waits for stores of
that key already in flight, and a store whose load began before an
invalidation of the same key is discarded. Generations are only tracked for
keys with a load or store in flight.
"""

import asyncio
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterable, Mapping
from functools import wraps
from typing import Any

from item_service.core.config.constants import CACHED_FLAG
from item_service.core.logging.logger import get_logger
from item_service.infrastructure.cache.redis_client import CacheConnector
from item_service.infrastructure.monitoring.metrics_collector import MetricsCollector

logger = get_logger(__name__)

Loader = Callable[[], Awaitable[Any]]


def annotate(value: Any, cached: bool) -> Any:
    """Return a copy of a mapping payload carrying the ``cached`` flag."""
    if isinstance(value, Mapping):
        return {**value, CACHED_FLAG: cached}
    return value


class CacheAsideLayer:
    """
    Read-through wrapper around the cache connector.

    Usage:
        layer = CacheAsideLayer(cache, default_ttl=300)

        body = await layer.fetch("items:all", load_items)

        @layer.cached(lambda item_id: f"item:{item_id}")
        async def get_item(item_id: int) -> dict: ...

        await layer.invalidate_many(["item:42", "items:all"])
    """

    def __init__(
        self,
        cache: CacheConnector,
        default_ttl: int,
        metrics: MetricsCollector | None = None,
    ):
        self._cache = cache
        self._default_ttl = default_ttl
        self._metrics = metrics
        self._pending: set[asyncio.Task] = set()
        self._pending_by_key: dict[str, set[asyncio.Task]] = defaultdict(set)
        self._generations: dict[str, int] = {}
        self._in_flight: dict[str, int] = {}

    @property
    def default_ttl(self) -> int:
        return self._default_ttl

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def fetch(self, key: str, loader: Loader, ttl: int | None = None) -> Any:
        """
        Serve ``key`` from the cache, falling back to ``loader``.

        Args:
            key: Cache key
            loader: Async callable producing the fresh value
            ttl: Seconds to keep the stored value (defaults to the layer TTL)

        Returns:
            The stored or loaded value, annotated with ``cached``
        """
        stored = await self._lookup(key)
        if stored is not None:
            logger.debug("Cache hit", key=key)
            if self._metrics:
                self._metrics.record_cache_hit()
            return annotate(stored, True)

        logger.debug("Cache miss", key=key)
        if self._metrics:
            self._metrics.record_cache_miss()

        generation = self._begin(key)
        try:
            value = await loader()
        except BaseException:
            self._end(key)
            raise

        if ttl is None:
            ttl = self._default_ttl
        self._schedule_store(key, value, ttl, generation)
        return annotate(value, False)

    def cached(self, key_fn: Callable[..., str], ttl: int | None = None):
        """
        Decorator form of :meth:`fetch`.

        ``key_fn`` receives the same arguments as the wrapped coroutine.
        """

        def decorator(func: Callable[..., Awaitable[Any]]):
            @wraps(func)
            async def wrapper(*args, **kwargs):
                key = key_fn(*args, **kwargs)
                return await self.fetch(key, lambda: func(*args, **kwargs), ttl)

            return wrapper

        return decorator

    def _begin(self, key: str) -> int:
        self._in_flight[key] = self._in_flight.get(key, 0) + 1
        return self._generations.get(key, 0)

    def _end(self, key: str) -> None:
        remaining = self._in_flight.get(key, 0) - 1
        if remaining > 0:
            self._in_flight[key] = remaining
        else:
            self._in_flight.pop(key, None)
            self._generations.pop(key, None)

    async def _lookup(self, key: str) -> Any | None:
        try:
            return await self._cache.get(key)
        except Exception as e:
            logger.warning("Cache lookup failed, treating as miss", key=key, error=str(e))
            return None

    # -------------------------------------------------------------------------
    # Background stores
    # -------------------------------------------------------------------------

    def _schedule_store(self, key: str, value: Any, ttl: int, generation: int) -> None:
        task = asyncio.create_task(self._store(key, value, ttl, generation))
        self._pending.add(task)
        self._pending_by_key[key].add(task)
        task.add_done_callback(lambda t: self._forget(key, t))

    def _forget(self, key: str, task: asyncio.Task) -> None:
        self._pending.discard(task)
        self._end(key)
        by_key = self._pending_by_key.get(key)
        if by_key is not None:
            by_key.discard(task)
            if not by_key:
                del self._pending_by_key[key]

    async def _store(self, key: str, value: Any, ttl: int, generation: int) -> None:
        if self._generations.get(key, 0) != generation:
            logger.debug("Discarding stale cache store", key=key)
            return

        try:
            stored = await self._cache.set(key, value, ttl)
        except Exception as e:
            logger.warning("Cache store failed", key=key, error=str(e))
            stored = False

        if not stored and self._metrics:
            self._metrics.record_cache_store_failure()

    async def drain(self) -> None:
        """Wait for every in-flight store to finish."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    # -------------------------------------------------------------------------
    # Invalidation
    # -------------------------------------------------------------------------

    async def invalidate(self, key: str) -> bool:
        """
        Delete ``key`` from the cache.

        Returns:
            True if the delete reached the cache
        """
        if key in self._in_flight:
            self._generations[key] = self._generations.get(key, 0) + 1

        in_flight = self._pending_by_key.get(key)
        if in_flight:
            await asyncio.gather(*in_flight, return_exceptions=True)

        try:
            deleted = await self._cache.delete(key)
        except Exception as e:
            logger.warning("Cache invalidation failed", key=key, error=str(e))
            deleted = False

        if self._metrics:
            self._metrics.record_cache_invalidation()
        logger.debug("Cache invalidated", key=key, deleted=deleted)
        return deleted

    async def invalidate_many(self, keys: Iterable[str]) -> None:
        """Invalidate keys one after another, in order."""
        for key in keys:
            await self.invalidate(key)
