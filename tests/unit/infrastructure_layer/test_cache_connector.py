"""
Unit Tests for CacheConnector

The Redis double fails every command once ``go_down()`` is called, the way a
dropped connection surfaces through redis-py.
"""

import pytest
from redis.exceptions import ResponseError

from item_service.core.config.constants import ConnectionStatus
from item_service.core.config.settings import Settings
from item_service.infrastructure.cache.redis_client import CacheConnector


@pytest.fixture
async def cache(supervisor, fake_redis):
    connector = CacheConnector(Settings().redis, supervisor, client_factory=lambda settings: fake_redis)
    yield connector
    await connector.disconnect()


@pytest.mark.unit
class TestConnect:
    @pytest.mark.asyncio
    async def test_connect_succeeds(self, cache, fake_redis):
        assert await cache.connect() is True
        assert cache.status() == ConnectionStatus.CONNECTED
        assert ("PING", None) in fake_redis.commands

    @pytest.mark.asyncio
    async def test_connect_gives_up_after_budget(self, cache, fake_redis, recording_sleep):
        fake_redis.go_down()

        assert await cache.connect() is False

        assert cache.status() == ConnectionStatus.FAILED
        assert fake_redis.commands.count(("PING", None)) == 10
        assert recording_sleep.delays == pytest.approx([0.1 * n for n in range(1, 10)])

    @pytest.mark.asyncio
    async def test_failed_cache_stays_failed(self, cache, fake_redis):
        fake_redis.go_down()
        await cache.connect()
        fake_redis.come_back()

        assert await cache.connect() is False
        assert cache.status() == ConnectionStatus.FAILED


@pytest.mark.unit
class TestOperations:
    @pytest.mark.asyncio
    async def test_set_then_get(self, cache):
        await cache.connect()

        assert await cache.set("item:1", {"id": 1, "name": "Widget"}, ttl=300) is True
        assert await cache.get("item:1") == {"id": 1, "name": "Widget"}

    @pytest.mark.asyncio
    async def test_values_expire_after_ttl(self, cache, clock):
        await cache.connect()
        await cache.set("items:all", {"items": [], "count": 0}, ttl=300)

        clock.advance(299)
        assert await cache.get("items:all") == {"items": [], "count": 0}

        clock.advance(1)
        assert await cache.get("items:all") is None

    @pytest.mark.asyncio
    async def test_delete(self, cache):
        await cache.connect()
        await cache.set("item:1", {"id": 1}, ttl=300)

        assert await cache.delete("item:1") is True
        assert await cache.get("item:1") is None
        assert await cache.delete("item:1") is True

    @pytest.mark.asyncio
    async def test_missing_key(self, cache):
        await cache.connect()
        assert await cache.get("item:404") is None

    @pytest.mark.asyncio
    async def test_undecodable_entry_is_a_miss(self, cache, fake_redis):
        await cache.connect()
        fake_redis.data["item:1"] = "{not json"

        assert await cache.get("item:1") is None

    @pytest.mark.asyncio
    async def test_unserializable_value_not_stored(self, cache, fake_redis):
        await cache.connect()

        assert await cache.set("item:1", {"handle": object()}, ttl=300) is False
        assert "item:1" not in fake_redis.data

    @pytest.mark.asyncio
    async def test_no_io_before_connect(self, cache, fake_redis):
        assert await cache.get("k") is None
        assert await cache.set("k", {"v": 1}, ttl=10) is False
        assert await cache.delete("k") is False
        assert fake_redis.commands == []

    @pytest.mark.asyncio
    async def test_command_errors_do_not_drop_connection(self, cache, fake_redis, monkeypatch):
        await cache.connect()

        async def wrong_type(key):
            raise ResponseError("WRONGTYPE Operation against a key holding the wrong kind of value")

        monkeypatch.setattr(fake_redis, "get", wrong_type)

        assert await cache.get("k") is None
        assert cache.status() == ConnectionStatus.CONNECTED


@pytest.mark.unit
class TestOutage:
    @pytest.mark.asyncio
    async def test_connection_loss_triggers_background_reconnect(self, cache, fake_redis):
        await cache.connect()
        fake_redis.go_down()

        assert await cache.get("items:all") is None
        assert cache.status() == ConnectionStatus.DISCONNECTED

        fake_redis.come_back()
        await cache._reconnect_task

        assert cache.status() == ConnectionStatus.CONNECTED
        assert await cache.set("items:all", {"items": []}, ttl=300) is True

    @pytest.mark.asyncio
    async def test_reconnect_exhaustion_is_permanent(self, cache, fake_redis):
        await cache.connect()
        fake_redis.go_down()

        assert await cache.set("k", {"v": 1}, ttl=10) is False
        await cache._reconnect_task

        assert cache.status() == ConnectionStatus.FAILED

        fake_redis.come_back()
        commands_before = len(fake_redis.commands)
        assert await cache.get("k") is None
        assert await cache.set("k", {"v": 1}, ttl=10) is False
        assert len(fake_redis.commands) == commands_before

    @pytest.mark.asyncio
    async def test_single_reconnect_for_concurrent_failures(self, cache, fake_redis):
        await cache.connect()
        fake_redis.go_down()

        await cache.get("a")
        first_task = cache._reconnect_task
        await cache.delete("b")

        assert cache._reconnect_task is first_task
        fake_redis.come_back()
        await first_task

    @pytest.mark.asyncio
    async def test_deletes_during_outage_are_replayed_on_reconnect(self, cache, fake_redis):
        await cache.connect()
        await cache.set("item:1", {"id": 1, "name": "A"}, ttl=300)
        fake_redis.go_down()
        await cache.get("items:all")

        assert await cache.delete("item:1") is False

        fake_redis.come_back()
        await cache._reconnect_task

        assert cache.status() == ConnectionStatus.CONNECTED
        assert "item:1" not in fake_redis.data
        assert await cache.get("item:1") is None

    @pytest.mark.asyncio
    async def test_delete_failing_on_connection_is_replayed(self, cache, fake_redis):
        await cache.connect()
        await cache.set("item:2", {"id": 2}, ttl=300)
        fake_redis.go_down()

        assert await cache.delete("item:2") is False

        fake_redis.come_back()
        await cache._reconnect_task

        assert "item:2" not in fake_redis.data

    @pytest.mark.asyncio
    async def test_deletes_not_kept_after_give_up(self, cache, fake_redis):
        await cache.connect()
        fake_redis.go_down()
        await cache.delete("item:3")
        await cache._reconnect_task

        assert cache.status() == ConnectionStatus.FAILED
        assert await cache.delete("item:4") is False
        assert not cache._unsent_deletes

    @pytest.mark.asyncio
    async def test_no_deletes_remembered_before_connect(self, cache):
        assert await cache.delete("item:1") is False
        assert not cache._unsent_deletes

    @pytest.mark.asyncio
    async def test_disconnect_cancels_reconnect_and_closes(self, cache, fake_redis):
        await cache.connect()
        fake_redis.go_down()
        await cache.get("a")

        await cache.disconnect()

        assert fake_redis.closed
        assert cache._reconnect_task is None
        assert cache.status() == ConnectionStatus.DISCONNECTED


@pytest.mark.unit
class TestHealth:
    @pytest.mark.asyncio
    async def test_health_check_reports_latency_when_connected(self, cache):
        await cache.connect()

        health = await cache.health_check()

        assert health["status"] == "connected"
        assert health["ping_latency_ms"] is not None

    @pytest.mark.asyncio
    async def test_health_check_without_connection(self, cache):
        health = await cache.health_check()

        assert health["status"] == "disconnected"
        assert health["ping_latency_ms"] is None
