"""
Proxy caching package.

Short-lived response caching in front of the upstream API. The backend is
chosen once at startup by ``create_cache_store`` and injected into the
response resolver.
"""

from shared.config import ProxyConfig
from .store import CacheEntry, CachedValue, CacheStore, MemoryCacheStore
from .redis_store import RedisCacheStore


def create_cache_store(config: ProxyConfig) -> CacheStore:
    """Build the cache backend selected by ``config.cache_backend``."""
    if config.cache_backend == "redis":
        return RedisCacheStore(config.redis_url)
    return MemoryCacheStore(max_entries=config.cache_max_entries)


__all__ = [
    "CacheEntry",
    "CachedValue",
    "CacheStore",
    "MemoryCacheStore",
    "RedisCacheStore",
    "create_cache_store",
]
