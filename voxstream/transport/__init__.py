"""Transports that deliver raw answer streams to the chat session."""

from voxstream.transport.base import ChatTransport
from voxstream.transport.httpx_transport import HttpxTransport

__all__ = ["ChatTransport", "HttpxTransport"]
