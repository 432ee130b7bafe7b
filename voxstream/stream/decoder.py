"""Event decoder for OpenAI-style completion streams.

Each event frame is a line ``data: <payload>`` where the payload is either
a JSON delta record or the ``[DONE]`` sentinel. Frames that do not match
are ignored; JSON that fails to parse is reported as a MALFORMED result
and never aborts the stream.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from voxstream.stream.frames import FrameSplitter

logger = logging.getLogger(__name__)

DATA_MARKER = "data:"
DONE_SENTINEL = "[DONE]"


class FrameKind(StrEnum):
    """Outcome of decoding one candidate line."""

    TOKEN = "token"
    DONE = "done"
    IGNORED = "ignored"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class DecodedFrame:
    """Result of decoding one line. ``token`` is set only for TOKEN."""

    kind: FrameKind
    token: str = ""


_IGNORED = DecodedFrame(FrameKind.IGNORED)
_DONE = DecodedFrame(FrameKind.DONE)
_MALFORMED = DecodedFrame(FrameKind.MALFORMED)


def extract_token(record: Any) -> str | None:
    """Return ``choices[0].delta.content`` when it is a non-empty string."""
    if not isinstance(record, dict):
        return None
    choices = record.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    if isinstance(content, str) and content:
        return content
    return None


def decode_line(line: str) -> DecodedFrame:
    """Decode a single candidate event line."""
    if not line.startswith(DATA_MARKER):
        return _IGNORED

    payload = line[len(DATA_MARKER):].strip()
    if payload == DONE_SENTINEL:
        return _DONE

    try:
        record = json.loads(payload)
    except json.JSONDecodeError:
        logger.debug("Dropping malformed frame: %.80s", payload)
        return _MALFORMED

    token = extract_token(record)
    if token is None:
        return _IGNORED
    return DecodedFrame(FrameKind.TOKEN, token)


class EventDecoder:
    """Stateful decoder for one response body.

    Feed raw body chunks in arrival order; each call returns the tokens
    completed by that chunk. Once the ``[DONE]`` sentinel is seen the
    decoder is finished and every later line or chunk is ignored, even
    frames that follow the sentinel in the same chunk.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._splitter = FrameSplitter(encoding)
        self.done = False
        self.malformed_count = 0

    def feed(self, data: bytes) -> list[str]:
        """Decode a raw body chunk into tokens."""
        if self.done:
            return []
        return self._decode_lines(self._splitter.feed_bytes(data))

    def feed_text(self, text: str) -> list[str]:
        """Decode an already-decoded text chunk into tokens."""
        if self.done:
            return []
        return self._decode_lines(self._splitter.feed(text))

    def close(self) -> list[str]:
        """Decode whatever partial line is left when the body ends."""
        if self.done:
            return []
        tokens = self._decode_lines(self._splitter.flush())
        self.done = True
        return tokens

    def _decode_lines(self, lines: list[str]) -> list[str]:
        tokens: list[str] = []
        for line in lines:
            frame = decode_line(line)
            if frame.kind == FrameKind.DONE:
                self.done = True
                break
            if frame.kind == FrameKind.MALFORMED:
                self.malformed_count += 1
            elif frame.kind == FrameKind.TOKEN:
                tokens.append(frame.token)
        return tokens
