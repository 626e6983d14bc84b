"""Tests for content-type driven body decoding."""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx
import pytest
from multidict import CIMultiDict

from reqwrap.client.response import (
    decode_body,
    extract_response_data,
    normalize_headers,
    select_decoder,
)


class FakeBodyResponse:
    """Minimal stand-in for :class:`aiohttp.ClientResponse` body methods."""

    def __init__(self, content_type: Optional[str], body: bytes = b"") -> None:
        self.headers = CIMultiDict()
        if content_type is not None:
            self.headers["Content-Type"] = content_type
        self._body = body
        self.read_calls = 0

    async def json(self, content_type: Any = "application/json") -> Any:
        self.read_calls += 1
        return json.loads(self._body)

    async def text(self) -> str:
        self.read_calls += 1
        return self._body.decode()

    async def read(self) -> bytes:
        self.read_calls += 1
        return self._body


# ---------------------------------------------------------------------------
# Decoder selection
# ---------------------------------------------------------------------------


class TestSelectDecoder:
    @pytest.mark.parametrize(
        "content_type,name",
        [
            ("application/json", "json"),
            ("application/json; charset=utf-8", "json"),
            ("text/plain", "text"),
            ("text/html; charset=utf-8", "text"),
            ("application/octet-stream", "blob"),
            ("application/x-arraybuffer", "array_buffer"),
            ("multipart/form-data; boundary=xyz", "form_data"),
        ],
    )
    def test_matches(self, content_type: str, name: str) -> None:
        selected = select_decoder(content_type)
        assert selected is not None
        assert selected[0] == name

    @pytest.mark.parametrize("content_type", [None, "", "image/png", "application/xml"])
    def test_no_match(self, content_type: Optional[str]) -> None:
        assert select_decoder(content_type) is None

    def test_json_checked_before_generic_buffer(self) -> None:
        # "application/json-buffer" matches both json and the buffer pattern
        selected = select_decoder("application/json-buffer")
        assert selected is not None
        assert selected[0] == "json"


# ---------------------------------------------------------------------------
# Body decoding
# ---------------------------------------------------------------------------


class TestDecodeBody:
    async def test_json_is_parsed(self) -> None:
        response = FakeBodyResponse("application/json", b'{"users": [1, 2]}')
        assert await decode_body(response) == {"users": [1, 2]}

    async def test_text_is_string(self) -> None:
        response = FakeBodyResponse("text/plain", b"hello")
        data = await decode_body(response)
        assert data == "hello"
        assert isinstance(data, str)

    async def test_octet_stream_is_bytes(self) -> None:
        response = FakeBodyResponse("application/octet-stream", b"\x00\x01")
        assert await decode_body(response) == b"\x00\x01"

    async def test_unknown_type_is_none_and_unread(self) -> None:
        response = FakeBodyResponse("image/png", b"\x89PNG")
        assert await decode_body(response) is None
        assert response.read_calls == 0

    async def test_missing_content_type(self) -> None:
        assert await decode_body(FakeBodyResponse(None, b"x")) is None


# ---------------------------------------------------------------------------
# httpx bodies and headers
# ---------------------------------------------------------------------------


class TestExtractResponseData:
    def test_json(self) -> None:
        response = httpx.Response(200, json={"id": 1})
        assert extract_response_data(response) == {"id": 1}

    def test_text_fallback(self) -> None:
        response = httpx.Response(200, text="<html></html>")
        assert extract_response_data(response) == "<html></html>"

    def test_empty(self) -> None:
        assert extract_response_data(httpx.Response(204)) is None


class TestNormalizeHeaders:
    def test_httpx_headers(self) -> None:
        headers = httpx.Headers({"Content-Type": "application/json", "X-Id": "1"})
        assert normalize_headers(headers) == {"content-type": "application/json", "x-id": "1"}

    def test_multidict(self) -> None:
        headers = CIMultiDict({"Content-Type": "text/plain"})
        assert normalize_headers(headers) == {"Content-Type": "text/plain"}

    def test_repeated_headers_joined(self) -> None:
        headers = CIMultiDict([("Set-Cookie", "a=1"), ("Set-Cookie", "b=2"), ("X-Id", "1")])
        assert normalize_headers(headers) == {"Set-Cookie": "a=1, b=2", "X-Id": "1"}
