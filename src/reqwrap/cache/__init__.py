"""Response caching for reqwrap.

This package provides :class:`CacheService`, a JSON-serialising cache that
stores normalized responses in Redis or Memcached with a per-call TTL.
The store is chosen by :class:`~reqwrap.models.CacheServiceConfig`, which
must name exactly one backend.

The cache is consumed by :class:`~reqwrap.client.base.BaseClient` and is
enabled per call through :class:`~reqwrap.models.CacheOptions`.
"""

from reqwrap.cache.backends import (
    CacheClient,
    MemcachedCacheClient,
    RedisCacheClient,
    create_cache_client,
)
from reqwrap.cache.service import CacheService, build_cache_service

__all__ = [
    "CacheClient",
    "CacheService",
    "MemcachedCacheClient",
    "RedisCacheClient",
    "build_cache_service",
    "create_cache_client",
]
