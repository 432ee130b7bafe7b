"""Frame splitting for server-sent-event response bodies.

Turns raw body chunks into complete text lines. Bytes are decoded with an
incremental UTF-8 decoder so a character split across two transport chunks
is reassembled, and an incomplete trailing line is held back until the
chunk that completes it arrives (or until flush() at end of stream).
"""

from __future__ import annotations

import codecs


class FrameSplitter:
    """Reassembles arbitrarily chunked event-stream text into lines."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._pending = ""

    @property
    def pending(self) -> str:
        """Partial line waiting for its line break."""
        return self._pending

    def feed_bytes(self, data: bytes) -> list[str]:
        """Decode a raw body chunk and return the lines it completes."""
        return self.feed(self._decoder.decode(data))

    def feed(self, text: str) -> list[str]:
        """Split a decoded chunk on line breaks.

        Returns the complete lines in arrival order, each with a trailing
        carriage return removed. The text after the last line break is
        buffered and prefixed to the next chunk.
        """
        if not text:
            return []

        *lines, self._pending = (self._pending + text).split("\n")
        return [line.removesuffix("\r") for line in lines]

    def flush(self) -> list[str]:
        """Return the buffered partial line, if any, at end of stream."""
        remainder = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        if not remainder:
            return []
        return [line.removesuffix("\r") for line in remainder.split("\n")]
