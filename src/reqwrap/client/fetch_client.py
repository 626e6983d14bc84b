"""Transport backed by :class:`aiohttp.ClientSession`.

The session is created on first use (aiohttp sessions must be created
inside a running event loop) and reused until
:meth:`~reqwrap.client.base.BaseClient.aclose`. Bodies are decoded by the
``Content-Type`` table in :mod:`reqwrap.client.response`.

The deadline for each call is enforced by the orchestrator, which cancels
the in-flight request when it elapses. The session itself is created
without aiohttp's default total timeout so that ``timeout=0`` means no
deadline at all.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

import aiohttp

from reqwrap.cache import CacheService
from reqwrap.client.base import BaseClient
from reqwrap.client.response import decode_body, normalize_headers
from reqwrap.models import ClientConfig, RequestOptions, Response


class FetchClient(BaseClient):
    """Request orchestrator over :mod:`aiohttp` with content-negotiated decoding.

    Args:
        config: Client configuration (see :class:`~reqwrap.client.base.BaseClient`).
        cache_service: Optional pre-built cache service.
        session: Optional session to use instead of creating one. A session
            passed in is not closed by :meth:`aclose`.
    """

    def __init__(
        self,
        config: Union[ClientConfig, Mapping[str, Any], None] = None,
        cache_service: Optional[CacheService] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__(config, cache_service=cache_service)
        self._session = session
        self._owns_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        """The shared session, created on first access."""
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=None))
        return self._session

    async def aclose(self) -> None:
        if self._session is not None and self._owns_session:
            session, self._session = self._session, None
            await session.close()
        await super().aclose()

    async def send(self, url: str, options: RequestOptions) -> Response:
        kwargs: dict[str, Any] = {"headers": self.merge_headers(options.headers)}
        if options.json_body is not None:
            kwargs["json"] = options.json_body
        elif options.content is not None:
            kwargs["data"] = options.content
        elif options.data is not None:
            kwargs["data"] = options.data

        async with self.session.request(options.method, url, **kwargs) as response:
            data = await decode_body(response)
            return Response(
                data=data,
                status=response.status,
                headers=normalize_headers(response.headers),
            )
