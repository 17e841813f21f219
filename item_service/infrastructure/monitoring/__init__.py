"""
Monitoring Module

Health aggregation and Prometheus metrics.
"""

from item_service.infrastructure.monitoring.health_checker import (
    HealthAggregator,
    HealthSnapshot,
    HealthStatus,
)
from item_service.infrastructure.monitoring.metrics_collector import (
    MetricsCollector,
    get_metrics_collector,
)

__all__ = [
    "HealthAggregator",
    "HealthSnapshot",
    "HealthStatus",
    "MetricsCollector",
    "get_metrics_collector",
]
