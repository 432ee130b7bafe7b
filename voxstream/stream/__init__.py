"""Incremental event-stream decoding: frames, tokens and the answer text."""

from voxstream.stream.accumulator import Accumulator
from voxstream.stream.decoder import (
    DATA_MARKER,
    DONE_SENTINEL,
    DecodedFrame,
    EventDecoder,
    FrameKind,
    decode_line,
    extract_token,
)
from voxstream.stream.frames import FrameSplitter

__all__ = [
    "DATA_MARKER",
    "DONE_SENTINEL",
    "Accumulator",
    "DecodedFrame",
    "EventDecoder",
    "FrameKind",
    "FrameSplitter",
    "decode_line",
    "extract_token",
]
