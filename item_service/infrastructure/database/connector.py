#!/usr/bin/env python3
"""
Durable-Store Connector

Owns the pooled SQLAlchemy asyncio engine for the primary relational store.

Responsibilities:
- Establish the pool at startup under a bounded, fixed-delay BackoffPolicy.
  Exhaustion raises DependencyExhaustedError, which the lifecycle treats as
  fatal.
- ``probe()``: a live ``SELECT 1`` against the pool on every call (never
  cached). This connector alone decides whether the service is healthy.
- Track ConnectionStatus; driver-reported disconnects during request handling
  flip the status to DISCONNECTED.
- Hand transactional connections to the record repository.
"""

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, NoSuchModuleError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from item_service.core.config.constants import PRIMARY_STORE, ConnectionStatus
from item_service.core.config.settings import DatabaseSettings
from item_service.core.exceptions import (
    ConfigurationError,
    DependencyExhaustedError,
    TransientStoreError,
)
from item_service.core.logging.logger import get_logger
from item_service.core.resilience.backoff import BackoffPolicy, BackoffSupervisor
from item_service.core.resilience.status import StatusListener, StatusTracker
from item_service.infrastructure.database.models import metadata

logger = get_logger(__name__)

EngineFactory = Callable[..., AsyncEngine]

# Upper bound for a health probe so a hung server cannot hang /health
PROBE_TIMEOUT_SECONDS = 2.0


class DurableStoreConnector:
    """
    Pooled connection to the primary store.

    Usage:
        connector = DurableStoreConnector(settings.database, supervisor)
        await connector.connect()          # raises DependencyExhaustedError
        await connector.initialize_schema()

        async with connector.connection() as conn:
            await conn.execute(...)

        healthy = await connector.probe()
        await connector.disconnect()
    """

    def __init__(
        self,
        settings: DatabaseSettings,
        supervisor: BackoffSupervisor,
        engine_factory: EngineFactory = create_async_engine,
    ):
        self._settings = settings
        self._supervisor = supervisor
        self._engine_factory = engine_factory
        self._engine: AsyncEngine | None = None
        self._tracker = StatusTracker(PRIMARY_STORE)
        self.policy = BackoffPolicy.fixed(
            delay=settings.DB_CONNECT_RETRY_DELAY,
            max_attempts=settings.DB_CONNECT_MAX_ATTEMPTS,
        )

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def status(self) -> ConnectionStatus:
        return self._tracker.status

    def is_connected(self) -> bool:
        return self._tracker.status == ConnectionStatus.CONNECTED

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Observe status transitions."""
        return self._tracker.subscribe(listener)

    # -------------------------------------------------------------------------
    # Connection lifecycle
    # -------------------------------------------------------------------------

    def _create_engine(self) -> AsyncEngine:
        try:
            url = make_url(self._settings.url)
        except ArgumentError as e:
            # the parse error echoes the raw URL, password included
            raise ConfigurationError("Invalid primary store URL") from e

        options: dict[str, Any] = {"pool_pre_ping": True}

        if url.get_backend_name() == "sqlite":
            if url.database in (None, "", ":memory:"):
                # One shared connection, otherwise every checkout sees an empty database
                options["poolclass"] = StaticPool
        else:
            options.update(
                pool_size=self._settings.DB_POOL_SIZE,
                max_overflow=self._settings.DB_POOL_MAX_OVERFLOW,
                pool_recycle=self._settings.DB_POOL_RECYCLE,
                pool_timeout=self._settings.DB_POOL_TIMEOUT,
            )

        try:
            engine = self._engine_factory(url, **options)
        except (NoSuchModuleError, ImportError) as e:
            raise ConfigurationError(
                "Primary store driver is not available",
                details={"driver": url.drivername, "error": str(e)},
            ) from e
        event.listen(engine.sync_engine, "handle_error", self._on_driver_error)

        logger.info(
            "Primary store engine created",
            url=url.render_as_string(hide_password=True),
            pool_size=options.get("pool_size"),
        )
        return engine

    async def connect(self) -> AsyncEngine:
        """
        Create the pool and verify it under the bounded retry policy.

        Returns:
            The connected engine

        Raises:
            ConfigurationError: If the URL or driver is unusable
            DependencyExhaustedError: If every attempt failed
        """
        if self._engine is None:
            self._engine = self._create_engine()

        self._tracker.transition(ConnectionStatus.CONNECTING, "startup")
        try:
            await self._supervisor.connect(PRIMARY_STORE, self._verify, self.policy)
        except DependencyExhaustedError:
            self._tracker.transition(ConnectionStatus.FAILED, "retry budget exhausted")
            raise

        self._tracker.transition(ConnectionStatus.CONNECTED, "startup")
        return self._engine

    async def initialize_schema(self) -> None:
        """Create the items table if it does not exist."""
        engine = self._require_engine()
        async with engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
        logger.info("Primary store schema initialized")

    async def disconnect(self) -> None:
        """Dispose of the pool."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            logger.info("Primary store pool disposed")
        self._tracker.transition(ConnectionStatus.DISCONNECTED, "shutdown")

    # -------------------------------------------------------------------------
    # Liveness
    # -------------------------------------------------------------------------

    async def probe(self) -> bool:
        """
        Run a cheap liveness query against the live pool.

        Returns:
            True if the store answered
        """
        if self._engine is None:
            return False

        try:
            await asyncio.wait_for(self._verify(), timeout=PROBE_TIMEOUT_SECONDS)
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            logger.warning("Primary store probe failed", error=str(e))
            self._tracker.transition(ConnectionStatus.DISCONNECTED, "probe failed")
            return False

        self._tracker.transition(ConnectionStatus.CONNECTED, "probe succeeded")
        return True

    async def _verify(self) -> None:
        engine = self._require_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    def _on_driver_error(self, context) -> None:
        if context.is_disconnect:
            self._tracker.transition(ConnectionStatus.DISCONNECTED, "driver reported disconnect")

    # -------------------------------------------------------------------------
    # Access for the repository
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[AsyncConnection]:
        """
        Yield a connection inside a transaction (committed on clean exit).

        Raises:
            TransientStoreError: If the pool has not been created
        """
        engine = self._require_engine()
        async with engine.begin() as conn:
            yield conn

    def _require_engine(self) -> AsyncEngine:
        if self._engine is None:
            raise TransientStoreError(
                "Primary store is not connected",
                details={"dependency": PRIMARY_STORE},
            )
        return self._engine

    def pool_status(self) -> str | None:
        """Human-readable pool statistics, if a pool exists."""
        if self._engine is None:
            return None
        return self._engine.pool.status()
