"""Fenced-code segmentation of the answer text."""

from __future__ import annotations

from voxstream.schemas.document import Segment, SegmentKind

FENCE = "```"


def split_segments(text: str) -> list[Segment]:
    """Split text on triple-backtick fences into alternating segments.

    Index 0 is always prose (possibly empty) and odd indices are code.
    Prose keeps its raw text; code is trimmed of surrounding whitespace.
    An unterminated trailing fence still yields a trailing code segment
    holding whatever followed it, so a code block renders while it is
    still streaming in.

    Blocks are left empty here; the document builder fills them.
    """
    segments: list[Segment] = []
    for index, part in enumerate(text.split(FENCE)):
        if index % 2 == 1:
            segments.append(Segment(kind=SegmentKind.CODE, content=part.strip()))
        else:
            segments.append(Segment(kind=SegmentKind.PROSE, content=part))
    return segments
