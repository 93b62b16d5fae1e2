"""HTTP utilities providing retry/backoff semantics and error normalization."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx

from pharma_forecast.core.errors import ApiError

logger = logging.getLogger(__name__)


class RetryConfig:
    def __init__(self, *, attempts: int = 3, backoff_seconds: float = 1.0) -> None:
        self.attempts = attempts
        self.backoff_seconds = backoff_seconds


def error_detail(response: httpx.Response) -> str:
    """Extract the server-provided ``detail`` or fall back to the status text."""
    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        payload = None

    detail: Any = payload.get("detail") if isinstance(payload, dict) else None
    if detail:
        return detail if isinstance(detail, str) else json.dumps(detail)
    return response.reason_phrase or f"HTTP {response.status_code}"


class RequestDispatcher:
    """Issue outbound calls and normalize every failure into ``ApiError``.

    Transport failures (connection errors, timeouts) are retried with a linear
    backoff. Non-success responses are not retried.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        retry_config: RetryConfig | None = None,
    ) -> None:
        self._client = client
        self._retry = retry_config or RetryConfig()

    async def send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send one request and return the successful response."""
        response = await self._send_with_retry(method, url, **kwargs)
        if response.is_success:
            return response
        detail = error_detail(response)
        logger.debug("%s %s failed with %s: %s", method, url, response.status_code, detail)
        raise ApiError(detail, status_code=response.status_code)

    async def get_json(self, url: str, **kwargs: Any) -> Any:
        response = await self.send("GET", url, **kwargs)
        return self._decode_json(response)

    async def post_json(self, url: str, **kwargs: Any) -> Any:
        response = await self.send("POST", url, **kwargs)
        return self._decode_json(response)

    async def post_bytes(self, url: str, **kwargs: Any) -> bytes:
        response = await self.send("POST", url, **kwargs)
        return response.content

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _send_with_retry(
        self, method: str, url: str, **kwargs: Any
    ) -> httpx.Response:
        attempt = 0
        last_exception: Exception | None = None

        while attempt < self._retry.attempts:
            try:
                return await self._client.request(method, url, **kwargs)
            except httpx.TransportError as exc:
                last_exception = exc
                attempt += 1
                logger.warning(
                    "%s %s transport failure (attempt %d/%d): %s",
                    method,
                    url,
                    attempt,
                    self._retry.attempts,
                    exc,
                )
                if attempt >= self._retry.attempts:
                    break
                await asyncio.sleep(self._retry.backoff_seconds * attempt)
            except httpx.HTTPError as exc:
                logger.warning("%s %s failed: %s", method, url, exc)
                raise ApiError(str(exc) or type(exc).__name__) from exc

        raise ApiError(str(last_exception) or type(last_exception).__name__) from last_exception

    @staticmethod
    def _decode_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ApiError(
                "The server returned an invalid response format.",
                status_code=response.status_code,
            ) from exc


__all__ = ["RequestDispatcher", "RetryConfig", "error_detail"]
