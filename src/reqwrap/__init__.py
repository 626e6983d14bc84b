"""reqwrap -- HTTP request orchestration with caching, retry and timeouts.

reqwrap sits between application code and an async HTTP transport
(:mod:`httpx` or :mod:`aiohttp`). A call goes through one pipeline:

1. Resolve the URL against the configured base URL and append the query.
2. Return a cached response when the call asks for caching and one exists.
3. Call the transport under a deadline, retrying immediately on failures
   or unexpected statuses.
4. Cache the accepted response (without headers) and log the request.

Every call returns a :class:`Response` with ``data``, ``status`` and
``headers``, whichever transport is used.
"""

from reqwrap.cache import CacheService
from reqwrap.client import BaseClient, FetchClient, HttpxClient
from reqwrap.exceptions import (
    CacheUnavailable,
    ConfigError,
    ReqwrapError,
    RequestFailed,
    RequestTimeout,
    UnexpectedStatus,
)
from reqwrap.models import (
    CacheOptions,
    CacheServiceConfig,
    ClientConfig,
    MemcachedConfig,
    OptionalConfig,
    RedisConfig,
    RequestOptions,
    Response,
    RetryOptions,
)

__version__ = "0.1.0"

__all__ = [
    "BaseClient",
    "CacheOptions",
    "CacheService",
    "CacheServiceConfig",
    "CacheUnavailable",
    "ClientConfig",
    "ConfigError",
    "FetchClient",
    "HttpxClient",
    "MemcachedConfig",
    "OptionalConfig",
    "RedisConfig",
    "ReqwrapError",
    "RequestFailed",
    "RequestOptions",
    "RequestTimeout",
    "Response",
    "RetryOptions",
    "UnexpectedStatus",
]
