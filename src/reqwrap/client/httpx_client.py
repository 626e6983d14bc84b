"""Transport backed by :class:`httpx.AsyncClient`.

Two modes, selected by ``optional.create_instance``:

* **Persistent instance** -- one :class:`httpx.AsyncClient` configured with
  the base URL, default headers and timeout is created up front (or on the
  first :meth:`HttpxClient.create_instance` call) and reused for every
  request until :meth:`~reqwrap.client.base.BaseClient.aclose`.
* **One-shot** -- each request opens and closes its own client.

Response bodies are decoded by
:func:`~reqwrap.client.response.extract_response_data` (JSON when
possible, text otherwise).
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

import httpx

from reqwrap.cache import CacheService
from reqwrap.client.base import BaseClient
from reqwrap.client.response import extract_response_data, normalize_headers
from reqwrap.models import ClientConfig, RequestOptions, Response


def _seconds(timeout_ms: int) -> Optional[float]:
    return timeout_ms / 1000 if timeout_ms else None


class HttpxClient(BaseClient):
    """Request orchestrator over :mod:`httpx`.

    Args:
        config: Client configuration (see :class:`~reqwrap.client.base.BaseClient`).
        cache_service: Optional pre-built cache service.
        transport: Optional :class:`httpx.AsyncBaseTransport`, e.g. an
            :class:`httpx.MockTransport` in tests.
    """

    def __init__(
        self,
        config: Union[ClientConfig, Mapping[str, Any], None] = None,
        cache_service: Optional[CacheService] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(config, cache_service=cache_service)
        self._transport = transport
        self._instance: Optional[httpx.AsyncClient] = None
        if self._config.optional.create_instance:
            self.create_instance()

    @property
    def instance(self) -> Optional[httpx.AsyncClient]:
        """The persistent client, or ``None`` in one-shot mode."""
        return self._instance

    def create_instance(self) -> httpx.AsyncClient:
        """Create the persistent client used by all later requests."""
        self._instance = httpx.AsyncClient(
            base_url=self._config.base_url,
            headers=self._config.headers,
            timeout=_seconds(self.timeout),
            transport=self._transport,
        )
        return self._instance

    async def aclose(self) -> None:
        if self._instance is not None:
            instance, self._instance = self._instance, None
            await instance.aclose()
        await super().aclose()

    async def send(self, url: str, options: RequestOptions) -> Response:
        kwargs: dict[str, Any] = {
            "method": options.method,
            "url": url,
            "headers": self.merge_headers(options.headers),
            "timeout": _seconds(self.effective_timeout(options)),
        }
        if options.json_body is not None:
            kwargs["json"] = options.json_body
        elif options.content is not None:
            kwargs["content"] = options.content
        elif options.data is not None:
            kwargs["data"] = options.data

        if self._instance is not None:
            response = await self._instance.request(**kwargs)
        else:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.request(**kwargs)

        return Response(
            data=extract_response_data(response),
            status=response.status_code,
            headers=normalize_headers(response.headers),
        )
