"""
Transport protocol for node JSON-RPC calls.

Defines the seam where concrete HTTP implementations plug in. The
JSON-RPC client depends on this protocol, not on httpx directly, so
the transport can be swapped without editing client logic.

Concrete implementations:
    - HttpxTransport (default, uses httpx.AsyncClient)
    - FakeTransport (tests, returns canned responses)

The node answers RPC-level errors with HTTP 500 and a JSON envelope
carrying the error object, so any JSON object body is handed back to
the client regardless of status. Only bodies that are not JSON (bad
credentials produce an empty 401) become TransportErrors here.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

import httpx

from zmsg.errors import TransportError, classify_connection_error

logger = logging.getLogger(__name__)


@runtime_checkable
class JsonRpcTransport(Protocol):
    """Async transport for JSON-RPC POST requests."""

    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send a JSON-RPC request and return the parsed response.

        Args:
            url: The JSON-RPC endpoint URL.
            payload: The JSON-RPC request body (method, params, id).

        Returns:
            Parsed JSON response envelope.

        Raises:
            TransportError: On connection failure, timeout, or a
                response body that is not a JSON object.
        """
        ...


class HttpxTransport:
    """Default transport using httpx.AsyncClient.

    Args:
        timeout: Request timeout in seconds.
        auth: (username, password) for HTTP basic auth. Skipped when
            None or when the username is empty.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        auth: tuple[str, str] | None = None,
    ) -> None:
        self._timeout = timeout
        self._auth = auth if auth and auth[0] else None

    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send JSON-RPC request via httpx."""
        method = payload.get("method")
        logger.debug("rpc -> %s %s", url, method)

        try:
            async with httpx.AsyncClient(timeout=self._timeout, auth=self._auth) as client:
                response = await client.post(
                    url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.TimeoutException as e:
            raise TransportError(
                f"request to node timed out after {self._timeout}s",
                error_code="TIMEOUT",
                details={"url": url, "method": method, "timeout_s": self._timeout},
            ) from e
        except httpx.ConnectError as e:
            raise TransportError(
                classify_connection_error(e),
                error_code="CONNECTION_FAILED",
                details={"url": url, "method": method},
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"HTTP error: {e}",
                error_code="HTTP_ERROR",
                details={"url": url, "method": method, "error": str(e)},
            ) from e

        logger.debug("rpc <- %s %s", response.status_code, method)

        try:
            result = response.json(parse_float=Decimal)
        except json.JSONDecodeError as e:
            if response.status_code >= 400:
                raise TransportError(
                    f"HTTP {response.status_code}: {response.reason_phrase}",
                    error_code="HTTP_ERROR",
                    details={"url": url, "status_code": response.status_code},
                ) from e
            raise TransportError(
                "response was not valid JSON",
                error_code="INVALID_JSON",
                details={
                    "url": url,
                    "body_preview": response.text[:200] if response.text else "",
                },
            ) from e

        if not isinstance(result, dict):
            raise TransportError(
                "response JSON was not an object",
                error_code="INVALID_JSON",
                details={"url": url, "type": type(result).__name__},
            )
        return result
