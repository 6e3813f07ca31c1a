"""
Async HTTP client for the 1Click swap API (NEAR Intents).

Failures are raised as typed exceptions so callers can tell an
authentication problem (HTTP 401/403) apart from any other remote or
network failure without inspecting the error text.
"""

import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

AUTH_STATUS_CODES = (401, 403)


class OneClickError(Exception):
    """Base class for failures talking to the 1Click API."""


class OneClickConnectionError(OneClickError):
    """The request never produced an HTTP response."""


class OneClickAPIError(OneClickError):
    """The API answered with a non-success status."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}" if message else f"HTTP {status_code}")


class OneClickAuthError(OneClickAPIError):
    """The API rejected the request's credentials (HTTP 401/403)."""


def _error_message(response: httpx.Response) -> str:
    """Pull a human readable message out of an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip()
    if isinstance(body, dict):
        for key in ("message", "error"):
            if body.get(key):
                return str(body[key])
    return response.text.strip()


class OneClickClient:
    """Thin client over the 1Click REST endpoints."""

    def __init__(self, http_client: httpx.AsyncClient, base_url: str, jwt_token: str = ""):
        self.http_client = http_client
        self.base_url = base_url.rstrip('/')
        self.jwt_token = jwt_token

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.jwt_token:
            headers["Authorization"] = f"Bearer {self.jwt_token}"
        return headers

    async def _request(self, method: str, path: str, *, params: Optional[Dict] = None,
                       json_body: Optional[Dict] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = await self.http_client.request(
                method, url, params=params, json=json_body, headers=self._headers()
            )
        except httpx.RequestError as e:
            raise OneClickConnectionError(f"Request to {url} failed: {e}") from e

        if response.status_code in AUTH_STATUS_CODES:
            raise OneClickAuthError(response.status_code, _error_message(response))
        if response.is_error:
            raise OneClickAPIError(response.status_code, _error_message(response))

        logger.debug(f"{method} {path} -> {response.status_code}")
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise OneClickAPIError(response.status_code, "invalid JSON response")

    async def get_tokens(self) -> Any:
        """List the tokens currently supported for swaps."""
        return await self._request("GET", "/v0/tokens")

    async def get_quote(self, quote_request: Dict[str, Any]) -> Any:
        """Request a swap quote."""
        return await self._request("POST", "/v0/quote", json_body=quote_request)

    async def submit_deposit_tx(self, tx_hash: str, deposit_address: str) -> Any:
        """Notify the service that a deposit transaction was sent."""
        return await self._request(
            "POST",
            "/v0/deposit/submit",
            json_body={"txHash": tx_hash, "depositAddress": deposit_address},
        )

    async def get_execution_status(self, deposit_address: str) -> Any:
        """Get the execution status of a swap by its deposit address."""
        return await self._request("GET", "/v0/status", params={"depositAddress": deposit_address})
