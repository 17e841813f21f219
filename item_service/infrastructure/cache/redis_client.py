"""
Cache Connector - Best-Effort Redis Client

Architecture:
    CacheConnector (Public API: get / set / delete / is_connected)
        ├── StatusTracker (ConnectionStatus of the cache)
        ├── BackoffSupervisor (linear reconnect policy, bounded attempts)
        └── redis.asyncio client over a ConnectionPool

Every public operation is total: it never raises. When the cache is not
CONNECTED the operation short-circuits without network I/O and returns the
"absent" value (None / False). A connection-level error during an operation
marks the cache DISCONNECTED and starts one background reconnect. Deletes
that could not be sent in the meantime are replayed before the cache is
CONNECTED again, so no invalidation is lost to a brief outage. Once the
reconnect budget is exhausted the cache stays FAILED for the life of the
process.
"""

import asyncio
import contextlib
import time
from collections.abc import Callable
from typing import Any

import orjson
import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import ConnectionError, RedisError, TimeoutError

from item_service.core.config.constants import CACHE, ConnectionStatus
from item_service.core.config.settings import RedisSettings
from item_service.core.exceptions import DependencyDegradedError, DependencyExhaustedError
from item_service.core.logging.logger import get_logger
from item_service.core.resilience.backoff import BackoffPolicy, BackoffSupervisor
from item_service.core.resilience.status import StatusListener, StatusTracker

logger = get_logger(__name__)

ClientFactory = Callable[[RedisSettings], redis.Redis]

_CONNECTION_ERRORS = (ConnectionError, TimeoutError, OSError)


def create_redis_client(settings: RedisSettings) -> redis.Redis:
    """
    Build a pooled client. No connection is opened until the first command.

    Responses are decoded to str; values are stored as JSON.
    """
    pool = ConnectionPool(
        host=settings.REDIS_HOST,
        port=settings.REDIS_PORT,
        db=settings.REDIS_DB,
        password=settings.REDIS_PASSWORD,
        max_connections=settings.REDIS_MAX_CONNECTIONS,
        socket_connect_timeout=settings.REDIS_SOCKET_CONNECT_TIMEOUT,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        decode_responses=True,
    )
    return redis.Redis(connection_pool=pool)


class CacheConnector:
    """
    Best-effort connection to the key/value cache.

    Usage:
        cache = CacheConnector(settings.redis, supervisor)
        await cache.connect()            # False if the cache never came up

        await cache.set("items:all", {"items": [], "count": 0}, ttl=300)
        value = await cache.get("items:all")   # None on miss or outage
        await cache.delete("items:all")

        await cache.disconnect()
    """

    def __init__(
        self,
        settings: RedisSettings,
        supervisor: BackoffSupervisor,
        client_factory: ClientFactory = create_redis_client,
    ):
        self._settings = settings
        self._supervisor = supervisor
        self._client_factory = client_factory
        self._client: redis.Redis | None = None
        self._tracker = StatusTracker(CACHE)
        self._reconnect_task: asyncio.Task | None = None
        self._closing = False
        self._unsent_deletes: set[str] = set()
        self.policy = BackoffPolicy.linear(
            step=settings.REDIS_RECONNECT_STEP,
            ceiling=settings.REDIS_RECONNECT_MAX_DELAY,
            max_attempts=settings.REDIS_RECONNECT_MAX_ATTEMPTS,
        )

    # =========================================================================
    # Status
    # =========================================================================

    def status(self) -> ConnectionStatus:
        return self._tracker.status

    def is_connected(self) -> bool:
        return self._tracker.status == ConnectionStatus.CONNECTED

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        return self._tracker.subscribe(listener)

    # =========================================================================
    # Connection lifecycle
    # =========================================================================

    async def connect(self) -> bool:
        """
        Connect under the linear reconnect policy.

        Never raises. A cache that cannot be reached is logged as degraded and
        the service keeps running without caching.

        Returns:
            True if the cache is connected
        """
        if self._tracker.status == ConnectionStatus.FAILED:
            return False
        if self._client is None:
            self._client = self._client_factory(self._settings)

        self._closing = False
        self._tracker.transition(ConnectionStatus.CONNECTING, "startup")
        return await self._establish("startup")

    async def disconnect(self) -> None:
        """Stop any reconnect in progress and close the pool."""
        self._closing = True

        task = self._reconnect_task
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._reconnect_task = None

        if self._client is not None:
            try:
                await self._client.aclose()
            except RedisError as e:
                logger.warning("Error while closing Redis client", error=str(e))
            self._client = None

        self._unsent_deletes.clear()
        self._tracker.transition(ConnectionStatus.DISCONNECTED, "shutdown")
        logger.info("Redis disconnected")

    async def _establish(self, reason: str) -> bool:
        try:
            await self._supervisor.connect(CACHE, self._handshake, self.policy)
        except DependencyExhaustedError as e:
            degraded = DependencyDegradedError(
                "Cache unavailable, serving without cache", details=e.details
            )
            logger.error(degraded.message, error_type=type(degraded).__name__, **degraded.details)
            self._tracker.transition(ConnectionStatus.FAILED, "reconnect attempts exhausted")
            self._unsent_deletes.clear()
            return False

        self._tracker.transition(ConnectionStatus.CONNECTED, reason)
        return True

    async def _handshake(self) -> None:
        """Ping, then replay deletes that could not be sent while the link was down."""
        await self._client.ping()
        while self._unsent_deletes:
            keys = set(self._unsent_deletes)
            await self._client.delete(*keys)
            self._unsent_deletes -= keys
            logger.info("Replayed cache invalidations after reconnect", keys=sorted(keys))

    def _remember_delete(self, key: str) -> None:
        # Only while a reconnect can still succeed; FAILED never reconnects.
        if self._client is None or self._closing:
            return
        if self._tracker.status == ConnectionStatus.FAILED:
            return
        self._unsent_deletes.add(key)

    def _on_connection_lost(self, command: str, key: str, error: Exception) -> None:
        logger.warning("Redis connection lost", command=command, key=key, error=str(error))
        if not self._tracker.transition(ConnectionStatus.DISCONNECTED, "connection lost"):
            return
        if self._closing:
            return
        if self._reconnect_task is None or self._reconnect_task.done():
            self._reconnect_task = asyncio.create_task(self._reconnect())

    async def _reconnect(self) -> None:
        self._tracker.transition(ConnectionStatus.CONNECTING, "reconnecting")
        await self._establish("reconnected")

    # =========================================================================
    # Operations (total: never raise)
    # =========================================================================

    async def get(self, key: str) -> Any | None:
        """
        Fetch and decode a JSON value.

        Returns:
            The decoded value, or None on miss, outage or undecodable data
        """
        if not self.is_connected():
            return None

        try:
            raw = await self._client.get(key)
        except _CONNECTION_ERRORS as e:
            self._on_connection_lost("GET", key, e)
            return None
        except RedisError as e:
            logger.error("Redis GET failed", key=key, error=str(e))
            return None

        if raw is None:
            return None

        try:
            return orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            logger.warning("Discarding undecodable cache entry", key=key, error=str(e))
            return None

    async def set(self, key: str, value: Any, ttl: int) -> bool:
        """
        Store a value as JSON with a TTL in seconds.

        Returns:
            True if the value was written
        """
        if not self.is_connected():
            return False

        try:
            payload = orjson.dumps(value)
        except TypeError as e:
            logger.error("Cache value is not JSON serializable", key=key, error=str(e))
            return False

        try:
            await self._client.set(key, payload, ex=ttl)
        except _CONNECTION_ERRORS as e:
            self._on_connection_lost("SET", key, e)
            return False
        except RedisError as e:
            logger.error("Redis SET failed", key=key, error=str(e))
            return False
        return True

    async def delete(self, key: str) -> bool:
        """
        Remove a key. Deleting a missing key counts as success.

        A delete that cannot be sent during a recoverable outage is replayed
        before the cache reports CONNECTED again.

        Returns:
            True if the command was executed
        """
        if not self.is_connected():
            self._remember_delete(key)
            return False

        try:
            await self._client.delete(key)
        except _CONNECTION_ERRORS as e:
            self._remember_delete(key)
            self._on_connection_lost("DEL", key, e)
            return False
        except RedisError as e:
            logger.error("Redis DEL failed", key=key, error=str(e))
            return False
        return True

    # =========================================================================
    # Health
    # =========================================================================

    async def health_check(self) -> dict[str, Any]:
        """Connection details and ping latency for the detailed health report."""
        health: dict[str, Any] = {
            "status": self._tracker.status.value,
            "host": self._settings.REDIS_HOST,
            "port": self._settings.REDIS_PORT,
            "ping_latency_ms": None,
        }
        if not self.is_connected():
            return health

        start = time.perf_counter()
        try:
            await self._client.ping()
        except (RedisError, OSError) as e:
            health["error"] = str(e)
            return health
        health["ping_latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
        return health
