"""Shared outbound HTTP client used by every site adapter."""

from __future__ import annotations

from typing import Any

import httpx

from readstory.config.config import TIMEOUT_REQUEST, get_default_headers
from readstory.utils.errors import FetchError, ParseError
from readstory.utils.logger import logger


class HttpClient:
    """Thin wrapper over a pooled :class:`httpx.AsyncClient`.

    The underlying client is stateless from the crawler's point of view and is
    safe to share between concurrent crawls. Every transport or HTTP status
    failure is re-raised as :class:`FetchError` so adapters only deal with the
    crawler's own error taxonomy.
    """

    def __init__(
        self,
        *,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        merged_headers = get_default_headers()
        if headers:
            merged_headers.update(headers)
        self._client = httpx.AsyncClient(
            headers=merged_headers,
            timeout=timeout or TIMEOUT_REQUEST,
            follow_redirects=True,
            transport=transport,
        )

    async def _request(self, url: str, extra_headers: dict[str, str] | None = None) -> httpx.Response:
        try:
            response = await self._client.get(url, headers=extra_headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.warning(f"[HTTP] {url} answered with status {status}")
            raise FetchError(url, f"HTTP {status}", status_code=status) from exc
        except httpx.HTTPError as exc:
            logger.warning(f"[HTTP] Request to {url} failed: {exc!r}")
            raise FetchError(url, f"request failed: {exc.__class__.__name__}") from exc
        return response

    async def get_text(self, url: str, *, extra_headers: dict[str, str] | None = None) -> str:
        response = await self._request(url, extra_headers)
        return response.text

    async def get_json(self, url: str, *, extra_headers: dict[str, str] | None = None) -> Any:
        headers = {"Accept": "application/json"}
        if extra_headers:
            headers.update(extra_headers)
        response = await self._request(url, headers)
        try:
            return response.json()
        except ValueError as exc:
            raise ParseError(f"Response from {url} is not valid JSON") from exc

    async def aclose(self) -> None:
        await self._client.aclose()


_shared_client: HttpClient | None = None


def get_http_client() -> HttpClient:
    """Return the process-wide client, creating it on first use."""

    global _shared_client
    if _shared_client is None:
        _shared_client = HttpClient()
    return _shared_client


async def close_http_client() -> None:
    global _shared_client
    if _shared_client is None:
        return
    await _shared_client.aclose()
    _shared_client = None
