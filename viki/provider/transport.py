"""Shared HTTP transport for all adapters"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

from viki.errors import HTTPStatusError, TransportError

from .base import HTTPRequest

logger = logging.getLogger(__name__)


class Transport:
    """One pooled ``httpx.AsyncClient`` reused by every call.

    httpx failures are translated into gateway errors here, including
    failures that happen while a streamed body is being read inside
    ``open_stream``.
    """

    def __init__(
        self,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout, transport=transport)

    async def post(self, request: HTTPRequest, provider: str = "") -> bytes:
        """POST and return the body; non-2xx raises HTTPStatusError"""
        logger.debug(f"POST {request.url}")
        try:
            response = await self._client.post(
                request.url,
                json=request.body,
                headers=request.headers,
                params=request.params or None,
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"request timed out: {e}", provider, "chat") from e
        except httpx.RequestError as e:
            raise TransportError(f"failed to send request: {e}", provider, "chat") from e

        if not response.is_success:
            raise HTTPStatusError(response.status_code, response.text, provider, "chat")
        return response.content

    @asynccontextmanager
    async def open_stream(self, request: HTTPRequest, provider: str = "") -> AsyncIterator[httpx.Response]:
        """POST with a streamed body; the response is closed on exit"""
        logger.debug(f"POST (stream) {request.url}")
        try:
            async with self._client.stream(
                "POST",
                request.url,
                json=request.body,
                headers=request.headers,
                params=request.params or None,
            ) as response:
                if not response.is_success:
                    await response.aread()
                    raise HTTPStatusError(response.status_code, response.text, provider, "chat_stream")
                yield response
        except httpx.TimeoutException as e:
            raise TransportError(f"stream timed out: {e}", provider, "chat_stream") from e
        except (httpx.RequestError, httpx.StreamError) as e:
            raise TransportError(f"stream interrupted: {e}", provider, "chat_stream") from e

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()
