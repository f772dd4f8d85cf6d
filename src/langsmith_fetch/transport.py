from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from langsmith_fetch.errors import ApiError, ConfigError

DEFAULT_BASE_URL = "https://api.smith.langchain.com"


class LangSmithClient:
    """Authenticated JSON client for the LangSmith REST API.

    Every request carries the static ``X-API-Key`` credential. Non-2xx responses
    are raised as :class:`ApiError` with the status code and the full body text.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        if not api_key:
            raise ConfigError("A LangSmith API key is required to create a client.")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> LangSmithClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        return {
            "X-API-Key": self._api_key,
            "Content-Type": "application/json",
        }

    async def request(
        self,
        path: str,
        method: str = "GET",
        body: Any = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        url = f"{self._base_url}{path}"
        logger.debug(f"API request: {method} {path} params={params}")
        response = await self._client.request(
            method,
            url,
            headers=self._headers(),
            json=body,
            params=params,
        )
        if not response.is_success:
            raise ApiError(
                f"API request failed: {method} {path} -> {response.status_code}",
                response.status_code,
                response.text,
            )
        logger.debug(f"API response: {method} {path} -> {response.status_code}")
        return response.json()
