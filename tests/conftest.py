"""
Pytest Configuration and Shared Test Fixtures

The full stack runs in-process: the primary store is an in-memory SQLite
database (sqlite+aiosqlite, one shared connection) and the cache is the
in-memory Redis double from ``test_fixtures.fake_redis``. Retry delays go
through a recording sleep, and the forced-exit watchdog calls a mock.
"""

import os
import sys
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from item_service.application.app import create_app  # noqa: E402
from item_service.application.container import build_components  # noqa: E402
from item_service.core.config.settings import Settings  # noqa: E402
from item_service.core.resilience.backoff import BackoffSupervisor  # noqa: E402
from tests.test_fixtures.fake_redis import FakeClock, FakeRedis, RecordingSleep  # noqa: E402
from tests.test_fixtures.stores import SQLITE_MEMORY_URL  # noqa: E402


# ============================================================================
# Settings
# ============================================================================


@pytest.fixture
def settings() -> Settings:
    """Settings for an in-process stack."""
    return Settings(
        ENVIRONMENT="test",
        APP_VERSION="1.2.3-test",
        DATABASE_URL=SQLITE_MEMORY_URL,
        DB_CONNECT_MAX_ATTEMPTS=5,
        DB_CONNECT_RETRY_DELAY=5.0,
        REDIS_RECONNECT_STEP=0.1,
        REDIS_RECONNECT_MAX_DELAY=3.0,
        REDIS_RECONNECT_MAX_ATTEMPTS=10,
        CACHE_DEFAULT_TTL=300,
        LOG_LEVEL="WARNING",
        LOG_FORMAT="console",
        SHUTDOWN_TIMEOUT=5.0,
    )


# ============================================================================
# Fakes
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_redis(clock) -> FakeRedis:
    return FakeRedis(clock)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def supervisor(recording_sleep) -> BackoffSupervisor:
    return BackoffSupervisor(sleep=recording_sleep)


@pytest.fixture
def exit_fn() -> MagicMock:
    return MagicMock(name="exit_fn")


# ============================================================================
# Application
# ============================================================================


@pytest.fixture
def components(settings, fake_redis, recording_sleep, exit_fn):
    """Wired components backed by SQLite and the Redis double."""
    return build_components(
        settings,
        redis_client_factory=lambda redis_settings: fake_redis,
        sleep=recording_sleep,
        exit_fn=exit_fn,
    )


@pytest.fixture
def app(settings, components):
    return create_app(settings, components)


@pytest.fixture
def client(app):
    """TestClient with the lifespan running (startup on enter, shutdown on exit)."""
    with TestClient(app) as test_client:
        yield test_client
