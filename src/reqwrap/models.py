"""Canonical Pydantic models shared across all reqwrap modules.

This is the single source of truth for data shapes in the project. The models
fall into three groups:

**Instance configuration** -- consumed once when a client is constructed:
    :class:`RedisConfig`, :class:`MemcachedConfig`,
    :class:`CacheServiceConfig`, :class:`OptionalConfig` and
    :class:`ClientConfig`.

**Per-call options** -- passed to :meth:`~reqwrap.client.base.BaseClient.request`:
    :class:`CacheOptions`, :class:`RetryOptions` and :class:`RequestOptions`.

**Results** -- :class:`Response`, the normalized ``{data, status, headers}``
triple returned by every transport.

All models use Pydantic v2. Field names are snake_case; the camelCase
spellings common in JavaScript-flavoured configs (``baseURL``,
``cachedStatuses``, ``expectedStatuses``) are accepted as aliases so that
existing JSON config files load unchanged.
"""

from __future__ import annotations

import base64
import enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from reqwrap.constants import DEFAULT_TIMEOUT_MS, HTTP_OK_STATUS


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# --- Cache backends ---


class CacheBackend(str, enum.Enum):
    """Supported cache stores."""

    REDIS = "redis"
    MEMCACHED = "memcached"


class RedisConfig(_Model):
    """Connection parameters for a Redis cache store.

    When ``url`` is set it wins over the discrete host/port fields.
    """

    url: Optional[str] = None
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    socket_timeout: Optional[float] = Field(
        default=None, description="Socket timeout in seconds"
    )


class MemcachedConfig(_Model):
    """Connection parameters for a Memcached cache store.

    Only a single server is supported: ``aiomcache`` talks to one
    ``host:port`` per client, so there is no ``servers`` list and no
    client-side key distribution across a pool of nodes.
    """

    host: str = "localhost"
    port: int = 11211
    pool_size: int = Field(default=2, ge=1)


class CacheServiceConfig(_Model):
    """Cache store selection for a client.

    Exactly one of ``redis`` or ``memcached`` must be given; the one present
    decides which backend is built. ``cached_statuses`` replaces the default
    set of cacheable HTTP statuses for every call made by the client.

    Example::

        CacheServiceConfig(redis=RedisConfig(url="redis://localhost:6379/0"))
    """

    redis: Optional[RedisConfig] = None
    memcached: Optional[MemcachedConfig] = None
    cached_statuses: Optional[list[int]] = Field(default=None, alias="cachedStatuses")

    @model_validator(mode="after")
    def _exactly_one_backend(self) -> CacheServiceConfig:
        selected = [b for b in (self.redis, self.memcached) if b is not None]
        if len(selected) != 1:
            raise ValueError(
                "cache service config must specify exactly one of 'redis' or 'memcached'"
            )
        return self

    @property
    def backend(self) -> tuple[CacheBackend, Union[RedisConfig, MemcachedConfig]]:
        """The selected backend as a ``(kind, params)`` pair."""
        if self.redis is not None:
            return CacheBackend.REDIS, self.redis
        assert self.memcached is not None
        return CacheBackend.MEMCACHED, self.memcached


# --- Client configuration ---


class OptionalConfig(_Model):
    """Optional client behaviour: logging, caching and instance creation."""

    environment: Optional[str] = None
    request_log: Optional[bool] = Field(default=None, alias="requestLog")
    cache_service: Optional[CacheServiceConfig] = Field(default=None, alias="cacheService")
    create_instance: bool = Field(
        default=False,
        alias="createInstance",
        description="Create the persistent transport instance at construction",
    )


class ClientConfig(_Model):
    """Per-client configuration.

    ``timeout`` is in milliseconds and applies to every call that does not
    set its own.
    """

    base_url: str = Field(default="", alias="baseURL")
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: int = Field(default=DEFAULT_TIMEOUT_MS, ge=0, description="Timeout in milliseconds")
    optional: OptionalConfig = Field(default_factory=OptionalConfig)


# --- Per-call options ---


class CacheOptions(_Model):
    """Per-call caching: the key to use, the TTL, and the cacheable statuses."""

    key: Optional[str] = None
    ttl: int = Field(default=0, ge=0, description="Time-to-live in seconds; 0 disables caching")
    cached_statuses: Optional[list[int]] = Field(default=None, alias="cachedStatuses")


class RetryOptions(_Model):
    """Per-call retry: total attempts and the statuses that count as success."""

    attempts: int = Field(default=0, ge=0)
    expected_statuses: list[int] = Field(default_factory=list, alias="expectedStatuses")


class RequestOptions(_Model):
    """Options for a single :meth:`~reqwrap.client.base.BaseClient.request` call.

    At most one of ``json_body``, ``content`` or ``data`` may be set.
    """

    method: str = "GET"
    params: dict[str, Any] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: Optional[int] = Field(default=None, ge=0, description="Timeout in milliseconds")
    cache: Optional[CacheOptions] = None
    retry: Optional[RetryOptions] = None
    request_log: bool = Field(default=False, alias="requestLog")
    json_body: Optional[Any] = None
    content: Optional[Union[str, bytes]] = None
    data: Optional[dict[str, Any]] = None

    @model_validator(mode="after")
    def _single_body(self) -> RequestOptions:
        bodies = [b for b in (self.json_body, self.content, self.data) if b is not None]
        if len(bodies) > 1:
            raise ValueError("only one of 'json_body', 'content' or 'data' may be set")
        return self


# --- Results ---


class Response(_Model):
    """A transport-independent HTTP response.

    ``data`` is the decoded body; its shape depends on the transport and the
    response content type. ``headers`` never survive caching.
    """

    data: Any = None
    status: int
    headers: dict[str, str] = Field(default_factory=dict)

    def to_cache_entry(self) -> dict[str, Any]:
        """Return the cacheable part of the response (``data`` and ``status``).

        Binary values anywhere in ``data`` are wrapped as
        ``{"__bytes__": <base64>}`` so the entry survives JSON encoding.
        """
        return {"data": _pack_bytes(self.data), "status": self.status}

    @classmethod
    def from_cache_entry(cls, value: Any) -> Response:
        """Rebuild a response from a value read back from the cache.

        Values that are not a ``{data, status}`` mapping (for instance raw
        text that failed to decode) are returned as the ``data`` of a
        ``200`` response.
        """
        if isinstance(value, dict) and "status" in value:
            return cls(data=_unpack_bytes(value.get("data")), status=int(value["status"]))
        return cls(data=value, status=HTTP_OK_STATUS)


_BYTES_TAG = "__bytes__"


def _pack_bytes(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return {_BYTES_TAG: base64.b64encode(bytes(value)).decode("ascii")}
    if isinstance(value, dict):
        return {key: _pack_bytes(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_pack_bytes(item) for item in value]
    return value


def _unpack_bytes(value: Any) -> Any:
    if isinstance(value, dict):
        if len(value) == 1 and isinstance(value.get(_BYTES_TAG), str):
            return base64.b64decode(value[_BYTES_TAG])
        return {key: _unpack_bytes(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_unpack_bytes(item) for item in value]
    return value
