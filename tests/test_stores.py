# tests/test_stores.py
"""Tests for the in-memory and Redis TTL stores and backend selection."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from fakeredis.aioredis import FakeRedis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.exceptions import WatchError

from l3auth.core.errors import StoreUnavailableError
from l3auth.core.settings import Settings
from l3auth.services.nonce import NonceManager
from l3auth.services.session import SessionManager
from l3auth.stores import Connected, Fallback, MemoryStore, RedisStore, init_store


class TickClock:
    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def tick() -> TickClock:
    return TickClock()


@pytest.fixture()
def store(tick: TickClock) -> MemoryStore:
    return MemoryStore(sweep_interval_seconds=0, clock=tick)


class TestMemoryStore:
    @pytest.mark.asyncio
    async def test_set_then_get(self, store: MemoryStore) -> None:
        await store.set("a", {"v": 1}, 10)
        assert await store.get("a") == {"v": 1}

    @pytest.mark.asyncio
    async def test_missing_key_is_none(self, store: MemoryStore) -> None:
        assert await store.get("nope") is None

    @pytest.mark.asyncio
    async def test_expired_entry_is_absent_and_removed(self, store, tick) -> None:
        await store.set("a", {"v": 1}, 10)
        tick.now += 10
        assert await store.get("a") is None
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_ttl_is_at_least_one_second(self, store, tick) -> None:
        await store.set("a", {"v": 1}, 0)
        tick.now += 0.5
        assert await store.get("a") == {"v": 1}

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, store: MemoryStore) -> None:
        await store.set("a", {"v": 1}, 10)
        await store.delete("a")
        await store.delete("a")
        assert await store.get("a") is None

    @pytest.mark.asyncio
    async def test_values_are_copied(self, store: MemoryStore) -> None:
        value = {"nested": {"used": 0}}
        await store.set("a", value, 10)
        value["nested"]["used"] = 1
        fetched = await store.get("a")
        fetched["nested"]["used"] = 2
        assert await store.get("a") == {"nested": {"used": 0}}

    @pytest.mark.asyncio
    async def test_compare_and_set(self, store: MemoryStore) -> None:
        await store.set("a", {"used": 0}, 10)
        assert await store.compare_and_set("a", {"used": 0}, {"used": 1}, 10) is True
        assert await store.compare_and_set("a", {"used": 0}, {"used": 1}, 10) is False
        assert await store.get("a") == {"used": 1}

    @pytest.mark.asyncio
    async def test_compare_and_set_on_missing_or_expired(self, store, tick) -> None:
        assert await store.compare_and_set("a", {}, {"x": 1}, 10) is False
        await store.set("b", {"used": 0}, 5)
        tick.now += 6
        assert await store.compare_and_set("b", {"used": 0}, {"used": 1}, 10) is False

    @pytest.mark.asyncio
    async def test_purge_expired(self, store, tick) -> None:
        await store.set("short", {}, 1)
        await store.set("long", {}, 100)
        tick.now += 2
        assert store.purge_expired() == 1
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_set_sweeps_opportunistically(self, tick) -> None:
        store = MemoryStore(sweep_interval_seconds=30, clock=tick)
        await store.set("stale", {}, 1)
        tick.now += 31
        await store.set("fresh", {}, 100)
        assert len(store) == 1


def _redis_store(client: MagicMock | None = None, prefix: str = "l3:nonce:") -> RedisStore:
    return RedisStore(client or MagicMock(), prefix)


class TestRedisStore:
    def test_prefix_is_normalized(self) -> None:
        store = _redis_store()
        assert store.prefix == "l3:nonce"
        assert store.key("abc") == "l3:nonce:abc"

    def test_prefix_required(self) -> None:
        with pytest.raises(ValueError):
            RedisStore(MagicMock(), "")

    @pytest.mark.asyncio
    async def test_set_uses_native_ttl(self) -> None:
        client = MagicMock()
        client.set = AsyncMock()
        store = _redis_store(client)

        await store.set("abc", {"used": 0}, 12.7)

        client.set.assert_awaited_once_with("l3:nonce:abc", '{"used":0}', ex=12)

    @pytest.mark.asyncio
    async def test_get_decodes_json(self) -> None:
        client = MagicMock()
        client.get = AsyncMock(return_value=json.dumps({"issuedAt": "x", "used": 0}))
        store = _redis_store(client)

        assert await store.get("abc") == {"issuedAt": "x", "used": 0}
        client.get.assert_awaited_once_with("l3:nonce:abc")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", [None, "not-json{", "[1, 2]", '"text"'])
    async def test_get_treats_bad_payload_as_absent(self, raw) -> None:
        client = MagicMock()
        client.get = AsyncMock(return_value=raw)
        assert await _redis_store(client).get("abc") is None

    @pytest.mark.asyncio
    async def test_delete(self) -> None:
        client = MagicMock()
        client.delete = AsyncMock(return_value=0)
        await _redis_store(client).delete("abc")
        client.delete.assert_awaited_once_with("l3:nonce:abc")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [RedisConnectionError("down"), RedisTimeoutError("slow")])
    async def test_backend_failures_become_unavailable(self, error) -> None:
        client = MagicMock()
        client.get = AsyncMock(side_effect=error)
        with pytest.raises(StoreUnavailableError) as exc_info:
            await _redis_store(client).get("abc")
        assert exc_info.value.status_code == 503

    @staticmethod
    def _pipeline_client(current: str | None, execute_error: Exception | None = None):
        pipe = MagicMock()
        pipe.watch = AsyncMock()
        pipe.get = AsyncMock(return_value=current)
        pipe.execute = AsyncMock(return_value=[True], side_effect=execute_error)
        pipe.__aenter__ = AsyncMock(return_value=pipe)
        pipe.__aexit__ = AsyncMock(return_value=False)
        client = MagicMock()
        client.pipeline = MagicMock(return_value=pipe)
        return client, pipe

    @pytest.mark.asyncio
    async def test_compare_and_set_success(self) -> None:
        client, pipe = self._pipeline_client('{"used":0}')
        store = _redis_store(client)

        assert await store.compare_and_set("abc", {"used": 0}, {"used": 1}, 60) is True
        pipe.watch.assert_awaited_once_with("l3:nonce:abc")
        pipe.multi.assert_called_once()
        pipe.set.assert_called_once_with("l3:nonce:abc", '{"used":1}', ex=60)
        pipe.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_compare_and_set_value_changed(self) -> None:
        client, pipe = self._pipeline_client('{"used":1}')
        assert await _redis_store(client).compare_and_set("abc", {"used": 0}, {"used": 1}, 60) is False
        pipe.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_compare_and_set_concurrent_write(self) -> None:
        client, _ = self._pipeline_client('{"used":0}', execute_error=WatchError("changed"))
        assert await _redis_store(client).compare_and_set("abc", {"used": 0}, {"used": 1}, 60) is False

    @pytest.mark.asyncio
    async def test_close(self) -> None:
        client = MagicMock()
        client.aclose = AsyncMock()
        await _redis_store(client).close()
        client.aclose.assert_awaited_once()


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


class TestRedisStoreWithClient:
    def test_from_url_reads_raw_bytes(self) -> None:
        store = RedisStore.from_url("redis://localhost:6379/0", "l3:nonce")
        kwargs = store._client.connection_pool.connection_kwargs
        assert kwargs.get("decode_responses", False) is False

    @pytest.mark.asyncio
    async def test_round_trip(self, fake_redis: FakeRedis) -> None:
        store = RedisStore(fake_redis, "l3:nonce")
        await store.set("abc", {"issuedAt": "x", "used": 0}, 60)

        assert await store.get("abc") == {"issuedAt": "x", "used": 0}
        assert 0 < await fake_redis.ttl("l3:nonce:abc") <= 60

    @pytest.mark.asyncio
    async def test_undecodable_payload_is_absent(self, fake_redis: FakeRedis) -> None:
        await fake_redis.set("l3:nonce:bad", b"\xff\xfe{not utf8")
        store = RedisStore(fake_redis, "l3:nonce")

        assert await store.get("bad") is None
        assert await store.compare_and_set("bad", {"used": 0}, {"used": 1}, 60) is False

    @pytest.mark.asyncio
    async def test_undecodable_session_is_absent(self, fake_redis: FakeRedis) -> None:
        await fake_redis.set("l3:session:tok", b"\xff\xfe{not utf8")
        sessions = SessionManager(
            RedisStore(fake_redis, "l3:session"), ttl_seconds=60, cookie_name="l3-session"
        )

        assert await sessions.get_session("tok") is None

    @pytest.mark.asyncio
    async def test_nonce_consumed_once(self, fake_redis: FakeRedis) -> None:
        nonces = NonceManager(RedisStore(fake_redis, "l3:nonce"), ttl_seconds=600, max_age_seconds=300)
        issued = await nonces.create()

        record = await nonces.consume(issued.nonce)

        assert record.used == 0
        assert (await nonces.verify(issued.nonce)).used == 1


class TestInitStore:
    @pytest.mark.asyncio
    async def test_memory_when_redis_not_configured(self) -> None:
        config = Settings(REDIS_URL=None)
        result = await init_store("l3:nonce", config)
        assert isinstance(result, Fallback)
        assert isinstance(result.store, MemoryStore)
        assert result.reason == "redis not configured"

    @pytest.mark.asyncio
    async def test_connected_when_ping_succeeds(self, mocker) -> None:
        redis_store = MagicMock(spec=RedisStore)
        redis_store.ping = AsyncMock()
        from_url = mocker.patch(
            "l3auth.stores.factory.RedisStore.from_url", return_value=redis_store
        )
        config = Settings(REDIS_URL="redis://cache:6379", REDIS_TIMEOUT_SECONDS=1.5)

        result = await init_store("l3:session", config)

        assert isinstance(result, Connected)
        assert result.store is redis_store
        from_url.assert_called_once_with("redis://cache:6379", "l3:session", timeout_seconds=1.5)

    @pytest.mark.asyncio
    async def test_fallback_when_ping_fails(self, mocker, caplog) -> None:
        redis_store = MagicMock(spec=RedisStore)
        redis_store.ping = AsyncMock(side_effect=RedisConnectionError("refused"))
        redis_store.close = AsyncMock()
        mocker.patch("l3auth.stores.factory.RedisStore.from_url", return_value=redis_store)
        config = Settings(REDIS_URL="redis://cache:6379")

        with caplog.at_level("WARNING", logger="l3auth.stores.factory"):
            result = await init_store("l3:nonce", config)

        assert isinstance(result, Fallback)
        assert isinstance(result.store, MemoryStore)
        assert "refused" in result.reason
        redis_store.close.assert_awaited_once()
        assert "Falling back to in-memory store" in caplog.text

    @pytest.mark.asyncio
    async def test_prefix_required(self) -> None:
        with pytest.raises(ValueError):
            await init_store("", Settings())
