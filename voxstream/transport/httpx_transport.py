"""HTTP transport backed by httpx.

Posts the chat request as JSON and yields the event-stream body as raw
byte chunks. No automatic retries: a failed request is reported once and
the user asks again.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

import httpx

from voxstream.errors import NoStreamBodyError, StreamingFailedError
from voxstream.schemas.session import ChatRequest, ClientConfig
from voxstream.transport.base import ChatTransport

logger = logging.getLogger(__name__)


def _short_error_reason(error: Exception) -> str:
    """Map an httpx error to a concise description."""
    if isinstance(error, httpx.TimeoutException):
        return "timeout"
    if isinstance(error, httpx.ConnectError):
        return "connection error"
    if isinstance(error, httpx.RemoteProtocolError):
        return "connection closed"
    return str(error)[:80] or type(error).__name__


class HttpxTransport(ChatTransport):
    """Streams answers from the chat endpoint with ``httpx.AsyncClient``."""

    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._timeout = timeout
        # Injected in tests (httpx.MockTransport)
        self._transport = transport

    @classmethod
    def from_config(cls, config: ClientConfig) -> HttpxTransport:
        return cls(config.endpoint, timeout=config.timeout)

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def stream(self, request: ChatRequest) -> AsyncIterator[bytes]:
        headers = {"Content-Type": "application/json", "Accept": "text/event-stream"}
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                async with client.stream(
                    "POST", self._endpoint, json=request.to_payload(), headers=headers
                ) as response:
                    if response.is_error:
                        raise NoStreamBodyError(
                            f"{self._endpoint} returned HTTP {response.status_code}"
                        )
                    logger.debug(
                        "Stream opened: HTTP %d from %s",
                        response.status_code, self._endpoint,
                    )
                    async for chunk in response.aiter_bytes():
                        if chunk:
                            yield chunk
        except httpx.HTTPError as e:
            reason = _short_error_reason(e)
            logger.warning("Streaming from %s failed (%s)", self._endpoint, reason)
            raise StreamingFailedError(reason) from e
