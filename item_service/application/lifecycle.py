#!/usr/bin/env python3
"""
Process Lifecycle Controller

States (one-way): STARTING -> SERVING -> DRAINING -> STOPPED

Startup:
    1. Connect the primary store (bounded retries). Exhaustion is fatal.
    2. Ensure the schema exists.
    3. Connect the cache (best effort). Failure leaves the service running
       without caching.

Shutdown:
    ``request_shutdown()`` may be called from a signal handler any number of
    times; only the first call acts. It moves to DRAINING and arms a watchdog
    that force-exits the process with status 1 if release has not finished
    within the shutdown timeout. ``shutdown()`` then waits for pending cache
    writes, closes the cache and disposes of the primary-store pool.
"""

import os
import threading
from collections.abc import Callable

from item_service.core.config.constants import LifecycleState
from item_service.core.exceptions import DependencyExhaustedError
from item_service.core.logging.logger import get_logger
from item_service.infrastructure.cache.cache_aside import CacheAsideLayer
from item_service.infrastructure.cache.redis_client import CacheConnector
from item_service.infrastructure.database.connector import DurableStoreConnector

logger = get_logger(__name__)

ExitFn = Callable[[int], None]
TimerFactory = Callable[[float, Callable[[], None]], threading.Timer]

FORCED_EXIT_STATUS = 1


class LifecycleController:
    """Drives startup and graceful shutdown of the service."""

    def __init__(
        self,
        primary_store: DurableStoreConnector,
        cache: CacheConnector,
        cache_layer: CacheAsideLayer,
        shutdown_timeout: float,
        cache_enabled: bool = True,
        exit_fn: ExitFn = os._exit,
        timer_factory: TimerFactory = threading.Timer,
    ):
        self._store = primary_store
        self._cache = cache
        self._cache_layer = cache_layer
        self._shutdown_timeout = shutdown_timeout
        self._cache_enabled = cache_enabled
        self._exit_fn = exit_fn
        self._timer_factory = timer_factory

        self._state = LifecycleState.STARTING
        self._lock = threading.Lock()
        self._watchdog: threading.Timer | None = None

    @property
    def state(self) -> LifecycleState:
        return self._state

    # -------------------------------------------------------------------------
    # Startup
    # -------------------------------------------------------------------------

    async def startup(self) -> None:
        """
        Bring dependencies up and start serving.

        Raises:
            DependencyExhaustedError: If the primary store never became reachable
            ConfigurationError: If the primary store settings are unusable
        """
        logger.info("Connecting to primary store")
        try:
            await self._store.connect()
            await self._store.initialize_schema()
        except DependencyExhaustedError:
            logger.critical("Primary store unreachable, refusing to serve")
            await self._abort_startup()
            raise
        except Exception as e:
            logger.critical(
                "Primary store setup failed, refusing to serve",
                error_type=type(e).__name__,
                error=str(e),
            )
            await self._abort_startup()
            raise

        if self._cache_enabled:
            if not await self._cache.connect():
                logger.warning("Starting without cache")
        else:
            logger.info("Cache disabled by configuration")

        self._set_state(LifecycleState.SERVING)
        logger.info("Service ready", cache_connected=self._cache.is_connected())

    async def _abort_startup(self) -> None:
        await self._store.disconnect()
        self._set_state(LifecycleState.STOPPED)

    # -------------------------------------------------------------------------
    # Shutdown
    # -------------------------------------------------------------------------

    def request_shutdown(self, reason: str) -> bool:
        """
        Begin draining. Safe to call from signal handlers and other threads.

        Returns:
            True for the call that started the shutdown, False otherwise
        """
        with self._lock:
            if self._state in (LifecycleState.DRAINING, LifecycleState.STOPPED):
                return False
            self._state = LifecycleState.DRAINING
            self._arm_watchdog()

        logger.info("Shutdown requested", reason=reason, timeout_seconds=self._shutdown_timeout)
        return True

    async def shutdown(self) -> None:
        """Release every dependency. Idempotent."""
        with self._lock:
            if self._state == LifecycleState.STOPPED:
                return
        self.request_shutdown("application shutdown")

        try:
            await self._cache_layer.drain()
            await self._cache.disconnect()
            await self._store.disconnect()
        finally:
            self._set_state(LifecycleState.STOPPED)
            self._disarm_watchdog()

        logger.info("All connections closed")

    def _set_state(self, state: LifecycleState) -> None:
        with self._lock:
            self._state = state

    def _arm_watchdog(self) -> None:
        timer = self._timer_factory(self._shutdown_timeout, self._force_exit)
        timer.daemon = True
        timer.start()
        self._watchdog = timer

    def _disarm_watchdog(self) -> None:
        with self._lock:
            timer, self._watchdog = self._watchdog, None
        if timer is not None:
            timer.cancel()

    def _force_exit(self) -> None:
        logger.error("Forced shutdown after timeout", timeout_seconds=self._shutdown_timeout)
        self._exit_fn(FORCED_EXIT_STATUS)
