"""HTTP clients for reqwrap.

Provides two interchangeable async clients that share the caching, retry
and timeout logic of :class:`~reqwrap.client.base.BaseClient`:

Classes:
    :class:`HttpxClient` -- backed by :class:`httpx.AsyncClient`.
    :class:`FetchClient` -- backed by :class:`aiohttp.ClientSession`, with
    ``Content-Type`` driven body decoding.

Both are async context managers and return a
:class:`~reqwrap.models.Response` for every call.

Example::

    from reqwrap.client import HttpxClient

    async with HttpxClient({"base_url": "https://api.example.com"}) as client:
        resp = await client.get("/users")
"""

from reqwrap.client.base import BaseClient
from reqwrap.client.fetch_client import FetchClient
from reqwrap.client.httpx_client import HttpxClient
from reqwrap.client.timeout import CallState, TimedCall, run_with_timeout

__all__ = [
    "BaseClient",
    "CallState",
    "FetchClient",
    "HttpxClient",
    "TimedCall",
    "run_with_timeout",
]
