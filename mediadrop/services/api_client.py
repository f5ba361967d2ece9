"""HTTP adapter for storage API operations."""
from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from ..errors import APIError


class HTTPAPIClient:
    """
    HTTP client adapter for the storage/record API.

    Single attempt per request; errors propagate to the caller.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: int = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _default_headers(self) -> Dict[str, str]:
        if not self._api_key:
            return {}
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
        }

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers=self._default_headers(),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def post(
        self,
        endpoint: str,
        json: Optional[Dict] = None,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        if not self._client:
            raise RuntimeError("HTTPAPIClient not initialized. Use 'async with' context.")

        response = await self._client.post(endpoint, json=json, content=content, headers=headers)

        if response.status_code >= 400:
            try:
                error_detail = response.json()
            except Exception:
                error_detail = response.text
            raise APIError(response.status_code, "POST", endpoint, error_detail)

        return response
