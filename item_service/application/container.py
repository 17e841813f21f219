"""
Component Wiring

Builds the connectors, the cache-aside layer, the item service, the health
aggregator and the lifecycle controller from settings. Every external seam
(engine factory, Redis client factory, sleep, exit) can be replaced, which is
how the tests run the full stack without MySQL or Redis.
"""

import asyncio
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import create_async_engine

from item_service.application.lifecycle import ExitFn, LifecycleController
from item_service.application.services.item_service import ItemService
from item_service.core.config.settings import Settings
from item_service.core.resilience.backoff import BackoffSupervisor
from item_service.infrastructure.cache.cache_aside import CacheAsideLayer
from item_service.infrastructure.cache.redis_client import (
    CacheConnector,
    ClientFactory,
    create_redis_client,
)
from item_service.infrastructure.database.connector import DurableStoreConnector, EngineFactory
from item_service.infrastructure.database.repository import ItemRepository
from item_service.infrastructure.monitoring.health_checker import HealthAggregator
from item_service.infrastructure.monitoring.metrics_collector import (
    MetricsCollector,
    get_metrics_collector,
)


@dataclass
class ServiceComponents:
    supervisor: BackoffSupervisor
    primary_store: DurableStoreConnector
    cache: CacheConnector
    cache_layer: CacheAsideLayer
    repository: ItemRepository
    item_service: ItemService
    health: HealthAggregator
    lifecycle: LifecycleController
    metrics: MetricsCollector


def build_components(
    settings: Settings,
    *,
    engine_factory: EngineFactory = create_async_engine,
    redis_client_factory: ClientFactory = create_redis_client,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    exit_fn: ExitFn = os._exit,
    metrics: MetricsCollector | None = None,
) -> ServiceComponents:
    """Create and wire every component. Nothing connects until startup."""
    metrics = metrics or get_metrics_collector()

    supervisor = BackoffSupervisor(sleep=sleep)
    supervisor.subscribe(metrics.record_connection_attempt)

    primary_store = DurableStoreConnector(settings.database, supervisor, engine_factory)
    cache = CacheConnector(settings.redis, supervisor, redis_client_factory)
    primary_store.subscribe(metrics.record_dependency_status)
    cache.subscribe(metrics.record_dependency_status)

    cache_layer = CacheAsideLayer(cache, settings.cache.CACHE_DEFAULT_TTL, metrics)
    repository = ItemRepository(primary_store)
    item_service = ItemService(repository, cache_layer)

    health = HealthAggregator(
        primary_store,
        cache,
        version=settings.app.APP_VERSION,
        environment=settings.app.ENVIRONMENT,
    )
    lifecycle = LifecycleController(
        primary_store,
        cache,
        cache_layer,
        shutdown_timeout=settings.lifecycle.SHUTDOWN_TIMEOUT,
        cache_enabled=settings.cache.CACHE_ENABLED,
        exit_fn=exit_fn,
    )

    return ServiceComponents(
        supervisor=supervisor,
        primary_store=primary_store,
        cache=cache,
        cache_layer=cache_layer,
        repository=repository,
        item_service=item_service,
        health=health,
        lifecycle=lifecycle,
        metrics=metrics,
    )
