"""Document builder: answer text in, document tree out."""

from __future__ import annotations

from voxstream.render.classifier import classify_prose
from voxstream.render.segmenter import split_segments
from voxstream.schemas.document import CodeBlock, Document, SegmentKind


def build_document(text: str) -> Document:
    """Build the full document for the current answer text.

    Pure function of ``text``: no caching and no state, so rebuilding an
    unchanged answer yields an equal document.
    """
    segments = split_segments(text)
    for segment in segments:
        if segment.kind == SegmentKind.CODE:
            segment.blocks = [CodeBlock(content=segment.content)]
        else:
            segment.blocks = list(classify_prose(segment.content))
    return Document(segments=segments)
