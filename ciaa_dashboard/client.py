"""Async REST client for the issue/analysis backend."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ciaa_dashboard.config import settings
from ciaa_dashboard.errors import NOT_FOUND, ApiError, NetworkError

logger = logging.getLogger(__name__)


def _error_message(resp: httpx.Response) -> str:
    """Best-effort message from an error body (``detail`` then ``message``)."""
    fallback = f"API error: {resp.status_code}"
    try:
        data = resp.json()
    except ValueError:
        return fallback
    if not isinstance(data, dict):
        return fallback
    message = data.get("detail") or data.get("message")
    if not message:
        return fallback
    return message if isinstance(message, str) else str(message)


class ApiClient:
    """Async context manager wrapping httpx.AsyncClient for the backend API.

    Every call is one-shot: no retries, no backoff, and the timeout is the
    httpx default.
    """

    def __init__(self, base_url: str = ""):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> ApiClient:
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Content-Type": "application/json"},
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("ApiClient must be used as async context manager")
        return self._client

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        body: Any = None,
    ) -> Any:
        """Perform one request and decode the JSON response.

        Returns ``NOT_FOUND`` for a 404. Raises ``ApiError`` for any other
        non-2xx status and ``NetworkError`` when the backend is unreachable.
        """
        query = {k: v for k, v in (params or {}).items() if v is not None}
        logger.debug("API request: %s %s%s %s", method, self.base_url, endpoint, query)

        try:
            resp = await self.client.request(
                method,
                endpoint,
                params=query or None,
                json=body,
            )
        except httpx.TransportError as exc:
            logger.error(
                "Network error - check if the API server is running at: %s (%s)",
                self.base_url,
                exc,
            )
            raise NetworkError() from exc

        return self._handle_response(resp, endpoint)

    def _handle_response(self, resp: httpx.Response, endpoint: str) -> Any:
        if resp.status_code == 404:
            logger.warning("Endpoint not found: %s", resp.request.url)
            return NOT_FOUND

        if not resp.is_success:
            message = _error_message(resp)
            logger.error("API request failed for %s: %s", endpoint, message)
            raise ApiError(message, status_code=resp.status_code)

        try:
            result = resp.json()
        except ValueError as exc:
            raise ApiError(
                f"Invalid JSON in response from {endpoint}",
                status_code=resp.status_code,
            ) from exc
        logger.debug("API response for %s: %s", endpoint, result)
        return result

    async def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request(endpoint, "GET", params=params)

    async def post(self, endpoint: str, data: Any) -> Any:
        return await self.request(endpoint, "POST", body=data)

    async def put(self, endpoint: str, data: Any) -> Any:
        return await self.request(endpoint, "PUT", body=data)

    async def delete(self, endpoint: str) -> Any:
        return await self.request(endpoint, "DELETE")
