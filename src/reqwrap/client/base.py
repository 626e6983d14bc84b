"""Request orchestration shared by every transport.

:class:`BaseClient` owns everything that is not transport-specific:

1. **URL resolution** -- relative URLs are prefixed with the configured
   ``base_url``; query parameters are appended in sorted order so the same
   parameters always produce the same URL (and cache key).
2. **Cache lookup** -- when a cache service is bound and the call sets a
   ``cache.ttl``, a stored entry is returned straight away.
3. **Retry loop** -- the transport is called through a deadline
   (:mod:`reqwrap.client.timeout`). A response whose status is not in
   ``retry.expected_statuses`` counts as a failure. Retries are immediate;
   after the last allowed attempt :class:`~reqwrap.exceptions.RequestFailed`
   is raised with the last error as its cause.
4. **Cache write and logging** -- accepted responses with a cacheable status
   are stored without their headers, and a request log line is emitted when
   logging is enabled.

Subclasses implement :meth:`BaseClient.send`, which performs exactly one
HTTP exchange and returns a :class:`~reqwrap.models.Response` for any
status, raising only for connection-level failures.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Mapping, Optional, Union
from urllib.parse import urlencode

from reqwrap.cache import CacheService, build_cache_service
from reqwrap.client.timeout import run_with_timeout
from reqwrap.config import resolve_environment, resolve_request_log
from reqwrap.constants import ABSOLUTE_URL_RE, HTTP_OK_STATUS
from reqwrap.exceptions import RequestFailed, UnexpectedStatus
from reqwrap.models import ClientConfig, RequestOptions, Response
from reqwrap.output import get_output

OptionsLike = Union[RequestOptions, Mapping[str, Any], None]


class BaseClient(ABC):
    """Transport-independent HTTP client with caching and retry.

    Must be used as an async context manager (or closed with
    :meth:`aclose`) so that the transport and cache connections are
    released.

    Args:
        config: Base URL, default headers, default timeout (ms) and the
            optional logging/caching/instance settings. A ``dict`` is
            validated into a :class:`~reqwrap.models.ClientConfig`.
        cache_service: A ready-made cache service. When ``None`` one is
            built from ``config.optional.cache_service`` (if present).

    Example::

        async with HttpxClient({"base_url": "https://api.example.com"}) as client:
            response = await client.request(
                "/users",
                params={"page": 2},
                cache={"ttl": 60},
                retry={"attempts": 3, "expected_statuses": [200]},
            )
    """

    def __init__(
        self,
        config: Union[ClientConfig, Mapping[str, Any], None] = None,
        cache_service: Optional[CacheService] = None,
    ) -> None:
        if config is None:
            config = ClientConfig()
        elif not isinstance(config, ClientConfig):
            config = ClientConfig.model_validate(config)
        self._config = config

        optional = config.optional
        self.timeout = config.timeout
        self.environment = resolve_environment(optional.environment)
        self.enable_request_log = resolve_request_log(self.environment, optional.request_log)

        if cache_service is None:
            cache_service = build_cache_service(optional.cache_service)
        self._cache_service = cache_service

        self.cached_statuses: list[int] = [HTTP_OK_STATUS]
        if cache_service is not None and cache_service.config.cached_statuses:
            self.cached_statuses = list(cache_service.config.cached_statuses)

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def cache_service(self) -> Optional[CacheService]:
        return self._cache_service

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> BaseClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the cache connection. Subclasses also close their transport."""
        if self._cache_service is not None:
            await self._cache_service.close()

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def request(self, url: str, options: OptionsLike = None, **kwargs: Any) -> Response:
        """Make an HTTP request with caching, retry and timeout handling.

        Options may be passed as a :class:`~reqwrap.models.RequestOptions`,
        a mapping, keyword arguments, or a mix (keywords win).

        Args:
            url: Absolute URL, or a path appended to the configured ``base_url``.
            options: Per-call options (method, params, headers, timeout,
                cache, retry, request_log, body).

        Returns:
            The normalized :class:`~reqwrap.models.Response`, either fresh
            from the transport or read back from the cache (without headers).

        Raises:
            RequestFailed: When every allowed attempt failed. ``cause`` holds
                the last error (a transport error,
                :class:`~reqwrap.exceptions.RequestTimeout` or
                :class:`~reqwrap.exceptions.UnexpectedStatus`).
        """
        opts = _coerce_options(options, kwargs)
        request_url = self.resolve_url(url, opts.params)
        return await self._handle_cache(
            request_url, opts, lambda: self.send(request_url, opts)
        )

    async def get(self, url: str, **kwargs: Any) -> Response:
        """Send a GET request. Keyword arguments are forwarded to :meth:`request`."""
        return await self.request(url, method="GET", **kwargs)

    async def post(self, url: str, **kwargs: Any) -> Response:
        """Send a POST request. Keyword arguments are forwarded to :meth:`request`."""
        return await self.request(url, method="POST", **kwargs)

    async def put(self, url: str, **kwargs: Any) -> Response:
        """Send a PUT request. Keyword arguments are forwarded to :meth:`request`."""
        return await self.request(url, method="PUT", **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> Response:
        """Send a PATCH request. Keyword arguments are forwarded to :meth:`request`."""
        return await self.request(url, method="PATCH", **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> Response:
        """Send a DELETE request. Keyword arguments are forwarded to :meth:`request`."""
        return await self.request(url, method="DELETE", **kwargs)

    @abstractmethod
    async def send(self, url: str, options: RequestOptions) -> Response:
        """Perform one HTTP exchange against the fully resolved *url*.

        Must return normally for every HTTP status and raise only for
        connection-level failures.
        """
        ...

    # ------------------------------------------------------------------ #
    # Helpers shared with transports
    # ------------------------------------------------------------------ #

    @staticmethod
    def absolute_url(url: str) -> bool:
        """Return True if *url* starts with ``http://`` or ``https://``."""
        return ABSOLUTE_URL_RE.match(url) is not None

    def resolve_url(self, url: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """Build the fully qualified request URL, query string included."""
        resolved = url if self.absolute_url(url) else f"{self._config.base_url}{url}"
        if params:
            separator = "&" if "?" in resolved else "?"
            query = urlencode(sorted(params.items()), doseq=True)
            resolved = f"{resolved}{separator}{query}"
        return resolved

    def merge_headers(self, headers: Optional[Mapping[str, str]] = None) -> dict[str, str]:
        """Merge the client's default headers with call-level *headers* (call wins)."""
        return {**self._config.headers, **(headers or {})}

    def effective_timeout(self, options: RequestOptions) -> int:
        """The deadline for a call in milliseconds (``0`` means none)."""
        return options.timeout if options.timeout is not None else self.timeout

    # ------------------------------------------------------------------ #
    # Orchestration
    # ------------------------------------------------------------------ #

    async def _handle_cache(
        self,
        url: str,
        options: RequestOptions,
        fetch: Callable[[], Awaitable[Response]],
    ) -> Response:
        """Serve from cache when possible, otherwise fetch with retry and maybe cache."""
        output = get_output()
        cache = options.cache
        cache_key = cache.key if cache is not None and cache.key else url
        log_enabled = self.enable_request_log or options.request_log

        cache_service: Optional[CacheService] = None
        if (
            self._cache_service is not None
            and self._cache_service.client is not None
            and cache is not None
            and cache.ttl
        ):
            cache_service = self._cache_service

        if cache_service is not None:
            cached = await cache_service.get_from_cache(cache_key)
            if cached is not None:
                response = Response.from_cache_entry(cached)
                if log_enabled:
                    output.cached(response.status, url, options.method)
                return response

        response = await self._fetch_with_retry(url, options, fetch)

        if cache_service is not None and cache is not None:
            cached_statuses = cache.cached_statuses or self.cached_statuses
            if response.status in cached_statuses:
                await cache_service.set_cache(cache_key, response.to_cache_entry(), cache.ttl)

        return response

    async def _fetch_with_retry(
        self,
        url: str,
        options: RequestOptions,
        fetch: Callable[[], Awaitable[Response]],
    ) -> Response:
        """Call *fetch* until it yields an expected status or attempts run out.

        ``retry.attempts`` is the total number of attempts; ``0`` (or no
        retry options) still makes exactly one.
        """
        output = get_output()
        retry = options.retry
        max_attempts = retry.attempts if retry is not None else 0
        expected_statuses = retry.expected_statuses if retry is not None else []
        allowed_attempts = max(max_attempts, 1)
        timeout = self.effective_timeout(options)
        log_enabled = self.enable_request_log or options.request_log

        start = time.perf_counter()
        attempts = 0

        while True:
            try:
                response = await run_with_timeout(fetch(), timeout)
                if expected_statuses and response.status not in expected_statuses:
                    raise UnexpectedStatus(response.status, response)
            except Exception as exc:
                output.debug(f"URL: {url} error: {exc}")
                attempts += 1
                if max_attempts:
                    output.warning(
                        f"Attempt {attempts}/{max_attempts} failed for "
                        f"{options.method} {url}: {exc}"
                    )
                if attempts >= allowed_attempts:
                    if max_attempts:
                        output.error(f"Failed to fetch after {max_attempts} attempts for {url}")
                    raise RequestFailed(exc, attempts) from exc
                continue

            if log_enabled:
                elapsed_ms = (time.perf_counter() - start) * 1000
                output.request(response.status, url, elapsed_ms, options.method)
            return response


def _coerce_options(options: OptionsLike, overrides: Mapping[str, Any]) -> RequestOptions:
    if options is None and not overrides:
        return RequestOptions()
    if isinstance(options, RequestOptions):
        if not overrides:
            return options
        base = options.model_dump(exclude_unset=True)
    else:
        base = dict(options or {})
    return RequestOptions.model_validate({**base, **overrides})
