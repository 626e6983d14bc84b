"""Response body decoding for both transports.

:func:`extract_response_data` handles :class:`httpx.Response` objects: JSON
when the body parses, text otherwise.

For the fetch-style transport the ``Content-Type`` header of a response picks the decoder: the ordered
table in :data:`~reqwrap.constants.FETCH_CONTENT_TYPES` is walked top to
bottom and the first matching pattern wins. JSON and text are checked
before the binary patterns. When nothing matches the body is not read
and ``data`` stays ``None``.

=================  ==============================  ========================
Name               Pattern                         Decoded as
=================  ==============================  ========================
``json``           ``^application/json``           parsed JSON
``text``           ``^text/``                      ``str``
``blob``           ``^application/octet-stream``   ``bytes``
``array_buffer``   ``^application/.*buffer``       ``bytes``
``form_data``      ``^multipart/form-data``        ``dict`` of form fields
=================  ==============================  ========================
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping, Optional

import aiohttp
import httpx

from reqwrap.constants import FETCH_CONTENT_TYPES

Decoder = Callable[[aiohttp.ClientResponse], Awaitable[Any]]


async def _decode_json(response: aiohttp.ClientResponse) -> Any:
    return await response.json(content_type=None)


async def _decode_text(response: aiohttp.ClientResponse) -> str:
    return await response.text()


async def _decode_bytes(response: aiohttp.ClientResponse) -> bytes:
    return await response.read()


async def _decode_form_data(response: aiohttp.ClientResponse) -> dict[str, Any]:
    """Read a ``multipart/form-data`` body into ``{field name: value}``.

    File parts (those with a filename) are kept as ``bytes``; other parts
    are decoded to ``str``.
    """
    reader = aiohttp.MultipartReader(response.headers, response.content)
    fields: dict[str, Any] = {}
    while True:
        part = await reader.next()
        if part is None:
            break
        if not isinstance(part, aiohttp.BodyPartReader):
            continue
        if part.filename:
            fields[part.name or part.filename] = bytes(await part.read(decode=True))
        else:
            fields[part.name or ""] = await part.text()
    return fields


_DECODERS: dict[str, Decoder] = {
    "json": _decode_json,
    "text": _decode_text,
    "blob": _decode_bytes,
    "array_buffer": _decode_bytes,
    "form_data": _decode_form_data,
}

CONTENT_DECODERS: tuple[tuple[str, Callable[[str], Any], Decoder], ...] = tuple(
    (name, pattern.match, _DECODERS[name]) for name, pattern in FETCH_CONTENT_TYPES
)


def select_decoder(content_type: Optional[str]) -> Optional[tuple[str, Decoder]]:
    """Return ``(name, decoder)`` for the first pattern matching *content_type*."""
    if not content_type:
        return None
    for name, matches, decoder in CONTENT_DECODERS:
        if matches(content_type):
            return name, decoder
    return None


async def decode_body(response: aiohttp.ClientResponse) -> Any:
    """Decode the body of *response* according to its ``Content-Type``.

    Returns ``None`` without reading the body when no decoder matches.
    """
    selected = select_decoder(response.headers.get("Content-Type"))
    if selected is None:
        return None
    _, decoder = selected
    return await decoder(response)


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the body from an :class:`httpx.Response`.

    Attempts to parse the body as JSON first. If that fails (e.g. the
    response is HTML or plain text), returns the raw text. Returns
    ``None`` for responses with no content.
    """
    if not response.content:
        return None

    try:
        return response.json()
    except ValueError:
        return response.text


def normalize_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Flatten transport-specific header containers into a plain dict.

    Repeated headers (``Set-Cookie`` from a multidict, say) are joined with
    ``", "``, matching what :meth:`httpx.Headers.items` returns.
    """
    flat: dict[str, str] = {}
    for key, value in headers.items():
        name = str(key)
        flat[name] = f"{flat[name]}, {value}" if name in flat else str(value)
    return flat
