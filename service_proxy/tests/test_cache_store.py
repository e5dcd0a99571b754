"""
Unit tests for the in-memory cache store and backend selection.
"""

import asyncio

import pytest

from service_proxy.app.caching import (
    CachedValue,
    MemoryCacheStore,
    RedisCacheStore,
    create_cache_store,
)
from shared.config import ProxyConfig


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class TestMemoryCacheStore:
    """Test cases for MemoryCacheStore."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def store(self, clock):
        return MemoryCacheStore(max_entries=100, clock=clock)

    @pytest.mark.asyncio
    async def test_get_unknown_key(self, store):
        assert await store.get("clan:%23ABC") is None

    @pytest.mark.asyncio
    async def test_value_visible_before_expiry(self, store, clock):
        value = CachedValue(200, {"tag": "#ABC"})
        assert await store.set("clan:%23ABC", value, ttl=30) is True

        clock.advance(29.9)
        assert await store.get("clan:%23ABC") == value

    @pytest.mark.asyncio
    async def test_value_absent_after_expiry(self, store, clock):
        await store.set("clan:%23ABC", CachedValue(200, {"tag": "#ABC"}), ttl=30)

        clock.advance(30)
        assert await store.get("clan:%23ABC") is None
        # Lazily purged on read
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_falsy_bodies_are_cached(self, store):
        await store.set("empty", CachedValue(200, []), ttl=5)
        assert await store.get("empty") == CachedValue(200, [])

    @pytest.mark.asyncio
    async def test_overwrite_refreshes_value_and_expiry(self, store, clock):
        await store.set("player:%232PP", CachedValue(200, {"v": 1}), ttl=10)
        clock.advance(8)
        await store.set("player:%232PP", CachedValue(200, {"v": 2}), ttl=10)
        clock.advance(8)

        assert await store.get("player:%232PP") == CachedValue(200, {"v": 2})

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.set("k", CachedValue(200, {}), ttl=10)
        assert await store.delete("k") is True
        assert await store.delete("k") is False
        assert await store.get("k") is None

    @pytest.mark.asyncio
    async def test_non_positive_ttl_is_not_stored(self, store):
        assert await store.set("k", CachedValue(200, {}), ttl=0) is False
        assert await store.get("k") is None

    def test_purge_expired(self, store, clock):
        asyncio.run(store.set("short", CachedValue(200, 1), ttl=1))
        asyncio.run(store.set("long", CachedValue(200, 2), ttl=100))
        clock.advance(5)

        assert store.purge_expired() == 1
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_eviction_keeps_store_bounded(self, clock):
        store = MemoryCacheStore(max_entries=3, clock=clock)
        for index in range(4):
            await store.set(f"k{index}", CachedValue(200, index), ttl=30)

        assert len(store) == 3
        # Oldest write was evicted
        assert await store.get("k0") is None
        assert await store.get("k3") == CachedValue(200, 3)

    @pytest.mark.asyncio
    async def test_rewrite_refreshes_eviction_order(self, clock):
        store = MemoryCacheStore(max_entries=2, clock=clock)
        await store.set("a", CachedValue(200, 1), ttl=30)
        await store.set("b", CachedValue(200, 2), ttl=30)
        await store.set("a", CachedValue(200, 3), ttl=30)
        await store.set("c", CachedValue(200, 4), ttl=30)

        assert await store.get("b") is None
        assert await store.get("a") == CachedValue(200, 3)
        assert await store.get("c") == CachedValue(200, 4)

    @pytest.mark.asyncio
    async def test_expired_oldest_entry_is_evicted_first(self, clock):
        store = MemoryCacheStore(max_entries=2, clock=clock)
        await store.set("old", CachedValue(200, 0), ttl=1)
        await store.set("a", CachedValue(200, 1), ttl=100)
        clock.advance(2)
        await store.set("b", CachedValue(200, 2), ttl=5)

        assert await store.get("a") == CachedValue(200, 1)
        assert await store.get("b") == CachedValue(200, 2)

    @pytest.mark.asyncio
    async def test_concurrent_readers_and_writers(self, store):
        async def writer(index: int):
            await store.set(f"key:{index % 5}", CachedValue(200, {"writer": index}), ttl=60)

        async def reader(index: int):
            return await store.get(f"key:{index % 5}")

        await asyncio.gather(*(writer(i) for i in range(50)), *(reader(i) for i in range(50)))

        for index in range(5):
            value = await store.get(f"key:{index}")
            assert value is not None
            assert value.body["writer"] % 5 == index

    @pytest.mark.asyncio
    async def test_ping(self, store):
        assert await store.ping() is True

    def test_invalid_max_entries(self):
        with pytest.raises(ValueError):
            MemoryCacheStore(max_entries=0)


class TestCreateCacheStore:
    """Backend selection from configuration."""

    def test_memory_backend(self):
        config = ProxyConfig(api_token="token", cache_backend="memory", cache_max_entries=42, _env_file=None)
        store = create_cache_store(config)
        assert isinstance(store, MemoryCacheStore)
        assert store.max_entries == 42

    def test_redis_backend(self):
        config = ProxyConfig(
            api_token="token",
            cache_backend="redis",
            redis_url="redis://cache:6379/2",
            _env_file=None,
        )
        store = create_cache_store(config)
        assert isinstance(store, RedisCacheStore)
        assert store.redis_url == "redis://cache:6379/2"
