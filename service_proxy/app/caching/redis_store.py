"""
Redis-backed cache store shared across proxy processes.
"""

import json
from typing import Optional

import redis.asyncio as redis

from shared.logging import get_logger
from .store import CachedValue, CacheStore


class RedisCacheStore(CacheStore):
    """Cache store on top of ``redis.asyncio``.

    Values are JSON documents ``{"status": ..., "body": ...}`` with a
    millisecond TTL. Every Redis failure is logged and reported as a miss.
    """

    def __init__(self, redis_url: str, key_prefix: str = "proxy:", client: Optional[redis.Redis] = None):
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.logger = get_logger("proxy.cache.redis")
        self._redis: Optional[redis.Redis] = client

    async def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(self.redis_url)
        return self._redis

    def _make_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> Optional[CachedValue]:
        try:
            redis_client = await self._get_redis()
            cached_data = await redis_client.get(self._make_key(key))
            if cached_data is None:
                return None

            if isinstance(cached_data, bytes):
                cached_data = cached_data.decode("utf-8")
            document = json.loads(cached_data)
            return CachedValue(int(document["status"]), document["body"])

        except Exception as e:
            self.logger.error("Cache get error", key=key, error=str(e))
            return None

    async def set(self, key: str, value: CachedValue, ttl: float) -> bool:
        ttl_ms = int(ttl * 1000)
        if ttl_ms <= 0:
            return False

        try:
            redis_client = await self._get_redis()
            payload = json.dumps({"status": value.status, "body": value.body})
            await redis_client.set(self._make_key(key), payload, px=ttl_ms)
            self.logger.debug("Cached value", key=key, ttl_ms=ttl_ms)
            return True

        except Exception as e:
            self.logger.error("Cache set error", key=key, error=str(e))
            return False

    async def delete(self, key: str) -> bool:
        try:
            redis_client = await self._get_redis()
            return bool(await redis_client.delete(self._make_key(key)))

        except Exception as e:
            self.logger.error("Cache delete error", key=key, error=str(e))
            return False

    async def ping(self) -> bool:
        try:
            redis_client = await self._get_redis()
            return bool(await redis_client.ping())
        except Exception as e:
            self.logger.warning("Cache ping failed", error=str(e))
            return False

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
