#!/usr/bin/env python3
"""
Health Checker Module

Aggregates dependency status into the service health snapshot:
- Primary store: live probe on every call (decides overall health)
- Cache: last known status, informational only

The snapshot is a value; building one never raises.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from item_service.core.config.constants import CACHE, PRIMARY_STORE
from item_service.core.logging.logger import get_logger
from item_service.infrastructure.cache.redis_client import CacheConnector
from item_service.infrastructure.database.connector import DurableStoreConnector

logger = get_logger(__name__)

CONNECTED = "connected"
DISCONNECTED = "disconnected"


class HealthStatus(str, Enum):
    """Health status enumeration."""
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class HealthSnapshot:
    """Point-in-time health of the service."""

    status: HealthStatus
    services: dict[str, str]
    version: str
    timestamp: str

    @property
    def is_healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "version": self.version,
            "timestamp": self.timestamp,
            "services": dict(self.services),
        }


class HealthAggregator:
    """
    Health aggregation over the two dependency connectors.

    Usage:
        aggregator = HealthAggregator(primary_store, cache, version="1.0.0")

        snapshot = await aggregator.check_health()
        status_code = 200 if snapshot.is_healthy else 503
    """

    def __init__(
        self,
        primary_store: DurableStoreConnector,
        cache: CacheConnector,
        version: str,
        environment: str | None = None,
    ):
        self._store = primary_store
        self._cache = cache
        self._version = version
        self._environment = environment

    async def check_health(self) -> HealthSnapshot:
        """
        Probe the primary store and report the cache status.

        Cache status never affects the overall status.
        """
        store_ok = await self._probe_store()
        services = {
            PRIMARY_STORE: CONNECTED if store_ok else DISCONNECTED,
            CACHE: CONNECTED if self._cache.is_connected() else DISCONNECTED,
        }
        status = HealthStatus.HEALTHY if store_ok else HealthStatus.UNHEALTHY

        if not store_ok:
            logger.warning("Health check failed", services=services)

        return HealthSnapshot(
            status=status,
            services=services,
            version=self._version,
            timestamp=utc_timestamp(),
        )

    async def readiness_check(self) -> dict[str, Any]:
        """Ready while the primary store answers."""
        store_ok = await self._probe_store()
        return {
            "status": "ready" if store_ok else "not ready",
            "timestamp": utc_timestamp(),
        }

    def liveness_check(self) -> dict[str, Any]:
        """Alive as long as the process can answer."""
        return {
            "status": "alive",
            "timestamp": utc_timestamp(),
            "version": self._version,
        }

    async def detailed_health_report(self) -> dict[str, Any]:
        """
        Health snapshot plus per-dependency detail.

        Returns:
            Dict with the snapshot fields and a ``components`` section
        """
        snapshot = await self.check_health()
        report = snapshot.to_dict()
        report["environment"] = self._environment
        report["components"] = {
            PRIMARY_STORE: {
                "status": self._store.status().value,
                "pool": self._store.pool_status(),
            },
            CACHE: await self._cache.health_check(),
        }
        return report

    async def _probe_store(self) -> bool:
        try:
            return await self._store.probe()
        except Exception as e:
            logger.error("Primary store probe raised", error=str(e))
            return False
