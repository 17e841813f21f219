#!/usr/bin/env python3
"""
Metrics Collector with Prometheus Integration

This module provides metrics collection with:
- Cache hit/miss/error counters for the cache-aside layer
- Connection attempt counters fed by the Backoff Supervisor
- Dependency status gauges fed by connector status transitions
- HTTP request counters and latency histograms

Architectural Decision: prometheus-client for industry-standard metrics
- Compatible with Grafana dashboards
- Histogram buckets for latency percentiles
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from item_service.core.config.constants import ConnectionStatus
from item_service.core.logging.logger import get_logger
from item_service.core.resilience.backoff import AttemptEvent

logger = get_logger(__name__)


# ============================================================================
# Metric Definitions
# ============================================================================

# HTTP metrics
HTTP_REQUESTS = Counter(
    'item_service_http_requests_total',
    'Total HTTP requests',
    ['method', 'status']
)

HTTP_REQUEST_DURATION = Histogram(
    'item_service_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)
)

# Cache metrics
CACHE_HITS = Counter(
    'item_service_cache_hits_total',
    'Total cache-aside hits'
)

CACHE_MISSES = Counter(
    'item_service_cache_misses_total',
    'Total cache-aside misses'
)

CACHE_STORE_FAILURES = Counter(
    'item_service_cache_store_failures_total',
    'Cache writes after a miss that did not succeed'
)

CACHE_INVALIDATIONS = Counter(
    'item_service_cache_invalidations_total',
    'Cache keys invalidated by write operations'
)

# Dependency metrics
CONNECTION_ATTEMPTS = Counter(
    'item_service_connection_attempts_total',
    'Connection attempts by dependency and outcome',
    ['dependency', 'outcome']  # success, failure, exhausted
)

DEPENDENCY_UP = Gauge(
    'item_service_dependency_up',
    'Dependency connectivity (1=connected, 0=otherwise)',
    ['dependency']
)

# Error metrics
ERRORS = Counter(
    'item_service_errors_total',
    'Total errors by type',
    ['error_type']
)


class MetricsCollector:
    """
    Thin facade over the module-level Prometheus metrics.

    The collector is a telemetry collaborator: it is subscribed to the Backoff
    Supervisor (``record_connection_attempt``) and to connector status
    trackers (``record_dependency_status``) at startup.
    """

    def __init__(self):
        logger.debug("Metrics collector initialized")

    # ------------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------------

    def record_request(self, method: str, status_code: int, duration_seconds: float) -> None:
        HTTP_REQUESTS.labels(method=method, status=str(status_code)).inc()
        HTTP_REQUEST_DURATION.labels(method=method).observe(duration_seconds)

    # ------------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------------

    def record_cache_hit(self) -> None:
        CACHE_HITS.inc()

    def record_cache_miss(self) -> None:
        CACHE_MISSES.inc()

    def record_cache_store_failure(self) -> None:
        CACHE_STORE_FAILURES.inc()

    def record_cache_invalidation(self, count: int = 1) -> None:
        CACHE_INVALIDATIONS.inc(count)

    # ------------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------------

    def record_connection_attempt(self, event: AttemptEvent) -> None:
        """AttemptListener for the Backoff Supervisor."""
        CONNECTION_ATTEMPTS.labels(dependency=event.dependency, outcome=event.outcome.value).inc()

    def record_dependency_status(
        self, dependency: str, previous: ConnectionStatus, current: ConnectionStatus
    ) -> None:
        """StatusListener for connector status trackers."""
        DEPENDENCY_UP.labels(dependency=dependency).set(
            1 if current == ConnectionStatus.CONNECTED else 0
        )

    # ------------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------------

    def record_error(self, error_type: str) -> None:
        ERRORS.labels(error_type=error_type).inc()

    # ------------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------------

    def get_prometheus_metrics(self) -> bytes:
        """Render all metrics in Prometheus text format."""
        return generate_latest(REGISTRY)

    def get_content_type(self) -> str:
        return CONTENT_TYPE_LATEST


# Global metrics collector
_metrics_collector: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get global metrics collector."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector
