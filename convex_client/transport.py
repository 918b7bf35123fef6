"""
Transport protocol for peer REST calls.

Defines the seam where concrete HTTP implementations plug in. The peer
API depends on this protocol, not on httpx directly, so the transport can
be swapped for a test fake without editing client logic.

Concrete implementations:
    - HttpxTransport (default, uses httpx.AsyncClient)
    - FakeTransport (tests, returns canned responses)

No retries at this layer. Replaying a signed transaction hash is a
caller decision.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Protocol, runtime_checkable

import httpx

from convex_client.config import DEFAULT_TIMEOUT_S
from convex_client.errors import (
    TRANSPORT_CONNECTION_FAILED,
    TRANSPORT_HTTP_ERROR,
    TRANSPORT_INVALID_JSON,
    TRANSPORT_TIMEOUT,
    TransportError,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class PeerTransport(Protocol):
    """Async transport for JSON requests to a peer."""

    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST a JSON body and return the parsed JSON object.

        Raises:
            TransportError: On timeout, connection failure, non-success
                status, or a body that is not a JSON object.
        """
        ...

    async def get_json(self, url: str) -> dict[str, Any]:
        """GET a URL and return the parsed JSON object.

        Raises:
            TransportError: As for ``post_json``.
        """
        ...


class HttpxTransport:
    """Default transport using httpx.AsyncClient.

    A fresh client is opened per call, so no connection state survives a
    failed or cancelled request.
    """

    def __init__(
        self,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self.timeout_s = timeout_s
        self._headers = dict(headers or {})

    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", url, payload)

    async def get_json(self, url: str) -> dict[str, Any]:
        return await self._request("GET", url, None)

    async def _request(
        self,
        method: str,
        url: str,
        payload: dict[str, Any] | None,
    ) -> dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **self._headers,
        }
        logger.debug("%s %s", method, url)

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                response = await client.request(method, url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Convex API Error: request timed out after {self.timeout_s}s",
                error_code=TRANSPORT_TIMEOUT,
                details={"url": url, "timeout_s": self.timeout_s},
            ) from e
        except httpx.ConnectError as e:
            raise TransportError(
                f"Convex API Error: failed to connect to {url}",
                error_code=TRANSPORT_CONNECTION_FAILED,
                details={"url": url},
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"Convex API Error: {e}",
                error_code=TRANSPORT_HTTP_ERROR,
                details={"url": url, "error": str(e)},
            ) from e

        if response.status_code >= 400:
            raise TransportError(
                f"Convex API Error: {_error_message(response)}",
                error_code=TRANSPORT_HTTP_ERROR,
                details={
                    "url": url,
                    "status_code": response.status_code,
                    "reason": response.reason_phrase,
                    "body_preview": response.text[:200] if response.text else "",
                },
            )

        try:
            result = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TransportError(
                "Convex API Error: response was not valid JSON",
                error_code=TRANSPORT_INVALID_JSON,
                details={
                    "url": url,
                    "status_code": response.status_code,
                    "body_preview": response.text[:200] if response.text else "",
                },
            ) from e

        if not isinstance(result, dict):
            raise TransportError(
                "Convex API Error: response JSON was not an object",
                error_code=TRANSPORT_INVALID_JSON,
                details={"url": url, "type": type(result).__name__},
            )

        return result


def _error_message(response: httpx.Response) -> str:
    """Best-effort diagnostic from an error response body."""
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP {response.status_code}: {response.reason_phrase}"
