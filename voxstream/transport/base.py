"""Abstract base class for chat transports.

Defines the ChatTransport interface the session reads answer streams
through. The session never talks to an HTTP library directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from voxstream.schemas.session import ChatRequest


class ChatTransport(ABC):
    """Abstract source of raw event-stream bytes for one request."""

    @abstractmethod
    def stream(self, request: ChatRequest) -> AsyncIterator[bytes]:
        """Send a request and yield the response body in arrival order.

        Implementations are async generators. Exceptions outside the
        VoxstreamError hierarchy are wrapped by the session in
        StreamingFailedError.

        Raises:
            NoStreamBodyError: If the response carries no readable stream.
            StreamingFailedError: If the transport fails while connecting
                or while reading the body.
        """
