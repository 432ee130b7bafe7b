"""Structural text-to-blocks rendering of streamed answers."""

from voxstream.render.builder import build_document
from voxstream.render.classifier import LineKind, classify_line, classify_prose
from voxstream.render.segmenter import FENCE, split_segments

__all__ = [
    "FENCE",
    "LineKind",
    "build_document",
    "classify_line",
    "classify_prose",
    "split_segments",
]
