"""
Tests for HttpxTransport against a mocked httpx layer.

Test plan:
- POST sends the JSON body with JSON headers plus custom headers
- GET returns the parsed object
- Status >= 400 maps to HTTP_ERROR, with the peer's "error" text when present
- Timeout and connect failures map to their own codes
- Non-JSON and non-object bodies map to INVALID_JSON
"""

from __future__ import annotations

import json

import httpx
import pytest
from pytest_httpx import HTTPXMock

from convex_client.errors import (
    TRANSPORT_CONNECTION_FAILED,
    TRANSPORT_HTTP_ERROR,
    TRANSPORT_INVALID_JSON,
    TRANSPORT_TIMEOUT,
    TransportError,
)
from convex_client.transport import HttpxTransport, PeerTransport

URL = "http://peer.test/api/v1/query"


class TestRequests:
    def test_implements_protocol(self) -> None:
        assert isinstance(HttpxTransport(), PeerTransport)

    @pytest.mark.asyncio
    async def test_post_json(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=URL, method="POST", json={"value": 3})
        transport = HttpxTransport(headers={"Authorization": "Bearer t"})

        result = await transport.post_json(URL, {"source": "(+ 1 2)"})

        assert result == {"value": 3}
        request = httpx_mock.get_requests()[0]
        assert json.loads(request.content) == {"source": "(+ 1 2)"}
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["Accept"] == "application/json"
        assert request.headers["Authorization"] == "Bearer t"

    @pytest.mark.asyncio
    async def test_get_json(self, httpx_mock: HTTPXMock) -> None:
        url = "http://peer.test/api/v1/accounts/12"
        httpx_mock.add_response(url=url, method="GET", json={"address": 12})

        assert await HttpxTransport().get_json(url) == {"address": 12}


class TestErrors:
    @pytest.mark.asyncio
    async def test_http_error_with_peer_message(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(status_code=400, json={"error": "Bad source"})

        with pytest.raises(TransportError) as exc:
            await HttpxTransport().post_json(URL, {})

        assert exc.value.error_code == TRANSPORT_HTTP_ERROR
        assert str(exc.value) == "Convex API Error: Bad source"
        assert exc.value.details["status_code"] == 400

    @pytest.mark.asyncio
    async def test_http_error_without_body(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(status_code=503, text="")

        with pytest.raises(TransportError, match="HTTP 503") as exc:
            await HttpxTransport().post_json(URL, {})
        assert exc.value.error_code == TRANSPORT_HTTP_ERROR

    @pytest.mark.asyncio
    async def test_timeout(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_exception(httpx.ReadTimeout("Read timed out"))

        with pytest.raises(TransportError) as exc:
            await HttpxTransport(timeout_s=0.5).post_json(URL, {})
        assert exc.value.error_code == TRANSPORT_TIMEOUT
        assert exc.value.details["timeout_s"] == 0.5

    @pytest.mark.asyncio
    async def test_connect_error(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_exception(httpx.ConnectError("Connection refused"))

        with pytest.raises(TransportError) as exc:
            await HttpxTransport().post_json(URL, {})
        assert exc.value.error_code == TRANSPORT_CONNECTION_FAILED

    @pytest.mark.asyncio
    async def test_invalid_json(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(text="<html>oops</html>")

        with pytest.raises(TransportError) as exc:
            await HttpxTransport().post_json(URL, {})
        assert exc.value.error_code == TRANSPORT_INVALID_JSON

    @pytest.mark.asyncio
    async def test_non_object_json(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(json=[1, 2, 3])

        with pytest.raises(TransportError, match="not an object") as exc:
            await HttpxTransport().post_json(URL, {})
        assert exc.value.error_code == TRANSPORT_INVALID_JSON

    @pytest.mark.asyncio
    async def test_undecodable_body(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(status_code=200, content=b"\xff\xfe{")

        with pytest.raises(TransportError) as exc:
            await HttpxTransport().post_json(URL, {})
        assert exc.value.error_code == TRANSPORT_INVALID_JSON

    @pytest.mark.asyncio
    async def test_http_error_with_undecodable_body(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(status_code=502, content=b"\xff\xfe{")

        with pytest.raises(TransportError, match="HTTP 502") as exc:
            await HttpxTransport().post_json(URL, {})
        assert exc.value.error_code == TRANSPORT_HTTP_ERROR
