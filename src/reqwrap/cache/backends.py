"""Cache store clients behind one small interface.

:class:`CacheClient` is the capability the cache service relies on: read
a string, write a string with a TTL, and close. Each supported store gets
a thin adapter that translates those calls into the store's own API,
including how it expresses expiry.

- :class:`RedisCacheClient` -- ``redis.asyncio``; TTL is sent as
  ``SET key value EX ttl``.
- :class:`MemcachedCacheClient` -- ``aiomcache``; TTL is sent as the
  ``exptime`` of a ``set`` command. Keys memcached would reject are
  hashed first.

Use :func:`create_cache_client` to build the adapter selected by a
:class:`~reqwrap.models.CacheServiceConfig`.
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from typing import Optional

import aiomcache
import redis.asyncio as redis

from reqwrap.constants import MEMCACHED_MAX_KEY_LENGTH
from reqwrap.exceptions import ConfigError
from reqwrap.models import CacheBackend, CacheServiceConfig, MemcachedConfig, RedisConfig


class CacheClient(ABC):
    """Minimal key/value store capability used by the cache service."""

    @property
    @abstractmethod
    def backend(self) -> CacheBackend:
        """The kind of store this client talks to."""
        ...

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the text stored under *key*, or ``None`` if absent."""
        ...

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int) -> None:
        """Store *value* under *key* for *ttl* seconds."""
        ...

    async def close(self) -> None:
        """Release the connection to the store."""


class RedisCacheClient(CacheClient):
    """Adapter over :class:`redis.asyncio.Redis`.

    Args:
        config: Connection parameters. ``url`` wins over host/port.
        client: An already constructed client (mainly for tests).
    """

    def __init__(self, config: RedisConfig, client: Optional[redis.Redis] = None) -> None:
        self._config = config
        if client is None:
            if config.url:
                client = redis.from_url(
                    config.url,
                    decode_responses=True,
                    socket_timeout=config.socket_timeout,
                )
            else:
                client = redis.Redis(
                    host=config.host,
                    port=config.port,
                    db=config.db,
                    password=config.password,
                    socket_timeout=config.socket_timeout,
                    decode_responses=True,
                )
        self._client = client

    @property
    def backend(self) -> CacheBackend:
        return CacheBackend.REDIS

    async def get(self, key: str) -> Optional[str]:
        value = await self._client.get(key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str, ttl: int) -> None:
        await self._client.set(key, value, ex=ttl)

    async def close(self) -> None:
        await self._client.aclose()


class MemcachedCacheClient(CacheClient):
    """Adapter over :class:`aiomcache.Client`.

    Args:
        config: Connection parameters.
        client: An already constructed client (mainly for tests).
    """

    def __init__(
        self,
        config: MemcachedConfig,
        client: Optional[aiomcache.Client] = None,
    ) -> None:
        self._config = config
        if client is None:
            client = aiomcache.Client(config.host, config.port, pool_size=config.pool_size)
        self._client = client

    @property
    def backend(self) -> CacheBackend:
        return CacheBackend.MEMCACHED

    async def get(self, key: str) -> Optional[str]:
        value = await self._client.get(self._make_key(key))
        if value is None:
            return None
        return value.decode("utf-8")

    async def set(self, key: str, value: str, ttl: int) -> None:
        await self._client.set(self._make_key(key), value.encode("utf-8"), exptime=ttl)

    async def close(self) -> None:
        await self._client.close()

    @staticmethod
    def _make_key(key: str) -> bytes:
        """Encode *key*, hashing it when memcached would reject it."""
        raw = key.encode("utf-8")
        if len(raw) > MEMCACHED_MAX_KEY_LENGTH or any(b <= 32 or b == 127 for b in raw):
            return hashlib.sha256(raw).hexdigest().encode("ascii")
        return raw


def create_cache_client(config: CacheServiceConfig) -> CacheClient:
    """Build the cache client selected by *config*.

    Raises:
        ConfigError: If the selected backend is not supported.
    """
    kind, params = config.backend
    if kind is CacheBackend.REDIS:
        assert isinstance(params, RedisConfig)
        return RedisCacheClient(params)
    if kind is CacheBackend.MEMCACHED:
        assert isinstance(params, MemcachedConfig)
        return MemcachedCacheClient(params)
    raise ConfigError(f"Unsupported cache backend: {kind}")  # pragma: no cover
