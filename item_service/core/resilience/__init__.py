"""
Resilience Module

Connection supervision primitives shared by the durable-store and cache connectors.
"""

from item_service.core.resilience.backoff import (
    AttemptEvent,
    AttemptListener,
    AttemptOutcome,
    BackoffPolicy,
    BackoffStrategy,
    BackoffSupervisor,
)
from item_service.core.resilience.status import StatusListener, StatusTracker

__all__ = [
    "AttemptEvent",
    "AttemptListener",
    "AttemptOutcome",
    "BackoffPolicy",
    "BackoffStrategy",
    "BackoffSupervisor",
    "StatusListener",
    "StatusTracker",
]
