"""Exception hierarchy for the chat client.

Malformed event frames are not exceptions: the decoder reports them as a
result kind and the stream carries on.
"""

from __future__ import annotations


class VoxstreamError(Exception):
    """Base exception for all application-specific errors."""

    user_message = "Something went wrong"


class EmptyInputError(VoxstreamError):
    """Raised when the question is blank after trimming."""

    user_message = "Say something first"


class NoStreamBodyError(VoxstreamError):
    """Raised when the service response has no readable event stream.

    Users see the same generic failure as a broken stream; the detail
    (status code, endpoint) travels in the exception text.
    """

    user_message = "Streaming failed"


class StreamingFailedError(VoxstreamError):
    """Raised when the transport fails while connecting or mid-stream."""

    user_message = "Streaming failed"
