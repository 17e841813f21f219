"""
Unit Tests for LifecycleController and the signal-aware server.

The watchdog timer is replaced with a fake that only fires when told to.
"""

import signal
from unittest.mock import AsyncMock, MagicMock

import pytest
import uvicorn
from sqlalchemy.exc import OperationalError

from item_service.application.lifecycle import LifecycleController
from item_service.core.config.constants import LifecycleState
from item_service.core.exceptions import ConfigurationError, DependencyExhaustedError
from item_service.main import ManagedServer


class FakeTimer:
    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function()


class TimerFactory:
    def __init__(self):
        self.timers: list[FakeTimer] = []

    def __call__(self, interval, function):
        timer = FakeTimer(interval, function)
        self.timers.append(timer)
        return timer


@pytest.fixture
def parts():
    """Store, cache and cache layer mocks sharing one call log."""
    manager = MagicMock()
    manager.store.connect = AsyncMock()
    manager.store.initialize_schema = AsyncMock()
    manager.store.disconnect = AsyncMock()
    manager.cache.connect = AsyncMock(return_value=True)
    manager.cache.disconnect = AsyncMock()
    manager.cache.is_connected = MagicMock(return_value=True)
    manager.layer.drain = AsyncMock()
    return manager


@pytest.fixture
def timers() -> TimerFactory:
    return TimerFactory()


@pytest.fixture
def controller(parts, timers, exit_fn) -> LifecycleController:
    return LifecycleController(
        parts.store,
        parts.cache,
        parts.layer,
        shutdown_timeout=10.0,
        exit_fn=exit_fn,
        timer_factory=timers,
    )


@pytest.mark.unit
class TestStartup:
    @pytest.mark.asyncio
    async def test_startup_connects_store_then_cache(self, controller, parts):
        await controller.startup()

        assert controller.state == LifecycleState.SERVING
        names = [call[0] for call in parts.mock_calls if call[0].endswith(("connect", "initialize_schema"))]
        assert names == ["store.connect", "store.initialize_schema", "cache.connect"]

    @pytest.mark.asyncio
    async def test_cache_failure_does_not_block_serving(self, controller, parts):
        parts.cache.connect.return_value = False

        await controller.startup()

        assert controller.state == LifecycleState.SERVING

    @pytest.mark.asyncio
    async def test_cache_disabled(self, parts, timers, exit_fn):
        controller = LifecycleController(
            parts.store, parts.cache, parts.layer, 10.0, cache_enabled=False, exit_fn=exit_fn, timer_factory=timers
        )

        await controller.startup()

        parts.cache.connect.assert_not_awaited()
        assert controller.state == LifecycleState.SERVING

    @pytest.mark.asyncio
    async def test_store_exhaustion_is_fatal(self, controller, parts):
        parts.store.connect.side_effect = DependencyExhaustedError("gave up", details={"attempts": 5})

        with pytest.raises(DependencyExhaustedError):
            await controller.startup()

        assert controller.state == LifecycleState.STOPPED
        parts.store.disconnect.assert_awaited_once()
        parts.cache.connect.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_schema_failure_releases_store(self, controller, parts):
        parts.store.initialize_schema.side_effect = OperationalError("CREATE TABLE items", {}, Exception("denied"))

        with pytest.raises(OperationalError):
            await controller.startup()

        assert controller.state == LifecycleState.STOPPED
        parts.store.disconnect.assert_awaited_once()
        parts.cache.connect.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_configuration_error_is_fatal(self, controller, parts):
        parts.store.connect.side_effect = ConfigurationError("Invalid primary store URL")

        with pytest.raises(ConfigurationError):
            await controller.startup()

        assert controller.state == LifecycleState.STOPPED
        parts.store.disconnect.assert_awaited_once()
        parts.store.initialize_schema.assert_not_awaited()


@pytest.mark.unit
class TestShutdown:
    def test_request_shutdown_only_once(self, controller, timers):
        assert controller.request_shutdown("SIGTERM") is True
        assert controller.request_shutdown("SIGINT") is False

        assert controller.state == LifecycleState.DRAINING
        assert len(timers.timers) == 1
        assert timers.timers[0].started
        assert timers.timers[0].daemon
        assert timers.timers[0].interval == 10.0

    @pytest.mark.asyncio
    async def test_shutdown_releases_in_order(self, controller, parts, timers, exit_fn):
        await controller.startup()

        await controller.shutdown()

        names = [call[0] for call in parts.mock_calls if call[0] in ("layer.drain", "cache.disconnect", "store.disconnect")]
        assert names == ["layer.drain", "cache.disconnect", "store.disconnect"]
        assert controller.state == LifecycleState.STOPPED
        assert timers.timers[0].cancelled
        exit_fn.assert_not_called()

    @pytest.mark.asyncio
    async def test_shutdown_after_signal_reuses_watchdog(self, controller, timers):
        await controller.startup()
        controller.request_shutdown("SIGTERM")

        await controller.shutdown()

        assert len(timers.timers) == 1
        assert timers.timers[0].cancelled

    @pytest.mark.asyncio
    async def test_shutdown_is_idempotent(self, controller, parts):
        await controller.startup()
        await controller.shutdown()
        await controller.shutdown()

        parts.store.disconnect.assert_awaited_once()

    def test_watchdog_forces_exit(self, controller, timers, exit_fn):
        controller.request_shutdown("SIGTERM")

        timers.timers[0].fire()

        exit_fn.assert_called_once_with(1)

    @pytest.mark.asyncio
    async def test_release_failure_still_stops(self, controller, parts, timers):
        await controller.startup()
        parts.cache.disconnect.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await controller.shutdown()

        assert controller.state == LifecycleState.STOPPED
        assert timers.timers[0].cancelled


@pytest.mark.unit
class TestManagedServer:
    def test_exit_signal_requests_shutdown(self):
        lifecycle = MagicMock()
        server = ManagedServer(uvicorn.Config(app=MagicMock()), lifecycle)

        server.handle_exit(signal.SIGTERM, None)

        lifecycle.request_shutdown.assert_called_once_with("SIGTERM")
        assert server.should_exit
