"""Shared httpx plumbing for external collaborator clients.

Failures are classified for the action dispatcher: timeouts, connection
errors, HTTP 429 and 5xx raise GatewayTransientError; other 4xx and
unparseable bodies raise GatewayRequestError.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from app.infrastructure.exceptions import GatewayRequestError, GatewayTransientError


class HttpGateway:
    """Base for JSON-over-HTTP gateways; owns (or borrows) an httpx.AsyncClient."""

    service_name = "http"

    def __init__(
        self,
        base_url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._http = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers or {},
            timeout=timeout,
        )

    async def aclose(self) -> None:
        """Close the underlying client when this gateway created it."""
        if self._owns_client:
            await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (None for empty bodies)."""
        try:
            resp = await self._http.request(
                method, path, params=params, json=json_body, headers=headers
            )
        except httpx.TimeoutException as e:
            raise GatewayTransientError(self.service_name, f"{method} {path} timed out") from e
        except httpx.TransportError as e:
            raise GatewayTransientError(
                self.service_name, f"{method} {path} failed: {e.__class__.__name__}"
            ) from e

        if resp.status_code == 429 or resp.status_code >= 500:
            raise GatewayTransientError(
                self.service_name,
                f"{method} {path} returned {resp.status_code}",
                status_code=resp.status_code,
            )
        if resp.status_code >= 400:
            raise GatewayRequestError(
                self.service_name,
                f"{method} {path} returned {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
            )
        if not resp.content:
            return None
        try:
            return resp.json()
        except json.JSONDecodeError as e:
            raise GatewayRequestError(
                self.service_name, f"{method} {path} returned a non-JSON body"
            ) from e
