"""JSON response cache on top of a Redis or Memcached store.

:class:`CacheService` is the only object the request orchestrator talks
to for caching. It serialises values to JSON text before writing and
decodes them after reading. A stored value that is not valid JSON is
handed back as the raw text with a warning, so a corrupted entry never
breaks the request flow.

The store client is created eagerly when the service is constructed.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from reqwrap.cache.backends import CacheClient, create_cache_client
from reqwrap.exceptions import CacheUnavailable
from reqwrap.models import CacheServiceConfig
from reqwrap.output import get_output


class CacheService:
    """Serialising cache in front of a :class:`~reqwrap.cache.backends.CacheClient`.

    Args:
        config: Backend selection and connection parameters.
        client: A pre-built store client. When ``None`` one is created
            from *config*.

    Example::

        service = CacheService(CacheServiceConfig(redis=RedisConfig()))
        await service.set_cache("users", {"data": [], "status": 200}, 60)
        hit = await service.get_from_cache("users")
    """

    def __init__(
        self,
        config: CacheServiceConfig,
        client: Optional[CacheClient] = None,
    ) -> None:
        self._config = config
        if client is None:
            client = create_cache_client(config)
        self._client: Optional[CacheClient] = client
        get_output().debug(f"Cache service using {client.backend.value} backend")

    @property
    def config(self) -> CacheServiceConfig:
        return self._config

    @property
    def client(self) -> Optional[CacheClient]:
        """The bound store client, or ``None`` once :meth:`close` has run."""
        return self._client

    async def set_cache(self, key: str, value: Any, ttl: int) -> None:
        """Serialise *value* to JSON and store it under *key* for *ttl* seconds.

        Values that are not natively JSON serialisable are stored via
        ``str()``.

        Raises:
            CacheUnavailable: If no client is bound.
        """
        client = self._require_client()
        await client.set(key, json.dumps(value, default=str), ttl)

    async def get_from_cache(self, key: str) -> Any:
        """Return the decoded value stored under *key*, or ``None`` on a miss.

        Raises:
            CacheUnavailable: If no client is bound.
        """
        client = self._require_client()
        raw = await client.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            get_output().warning(f"Unable to parse data from cache by key {key}")
            get_output().debug(f"Unparsable {client.backend.value} entry: {raw!r}")
            return raw

    async def close(self) -> None:
        """Close the store client. Later cache operations raise :class:`CacheUnavailable`."""
        if self._client is not None:
            client, self._client = self._client, None
            await client.close()

    def _require_client(self) -> CacheClient:
        if self._client is None:
            raise CacheUnavailable()
        return self._client


def build_cache_service(config: Optional[CacheServiceConfig]) -> Optional[CacheService]:
    """Create a :class:`CacheService` for *config*, or return ``None`` when caching is off."""
    if config is None:
        return None
    return CacheService(config)
