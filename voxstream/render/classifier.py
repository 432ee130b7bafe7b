"""Line classification for prose segments.

Turns the lines of one prose segment into headings, bullet lists,
numbered lists and paragraphs. Adjacent items of the same list kind are
merged into one list block; a blank line, a different kind of line, or
the end of the segment closes the open run.
"""

from __future__ import annotations

import re
from enum import StrEnum

from voxstream.schemas.document import (
    BulletListBlock,
    HeadingBlock,
    NumberedListBlock,
    ParagraphBlock,
    ProseBlock,
)

# Checked in order, longest marker first
_HEADING_MARKERS: tuple[tuple[str, int], ...] = (
    ("### ", 3),
    ("## ", 2),
    ("# ", 1),
)

_BULLET_MARKERS = ("- ", "* ")

_NUMBERED_RE = re.compile(r"^\d+\. ")


class LineKind(StrEnum):
    """Classification of one trimmed, non-blank prose line."""

    HEADING = "heading"
    BULLET = "bullet"
    NUMBERED = "numbered"
    PARAGRAPH = "paragraph"


def classify_line(line: str) -> tuple[LineKind, str, int]:
    """Classify a trimmed line.

    Returns:
        Tuple of (kind, text without its marker, heading level or 0).
    """
    for marker, level in _HEADING_MARKERS:
        if line.startswith(marker):
            return LineKind.HEADING, line[len(marker):], level

    if line.startswith(_BULLET_MARKERS):
        return LineKind.BULLET, line[2:], 0

    match = _NUMBERED_RE.match(line)
    if match:
        return LineKind.NUMBERED, line[match.end():], 0

    return LineKind.PARAGRAPH, line, 0


class _ListRun:
    """The currently open bullet or numbered run."""

    def __init__(self, blocks: list[ProseBlock]) -> None:
        self._blocks = blocks
        self.kind: LineKind | None = None
        self.items: list[str] = []

    def add(self, kind: LineKind, item: str) -> None:
        if kind != self.kind:
            self.flush()
            self.kind = kind
        self.items.append(item)

    def flush(self) -> None:
        if self.items:
            if self.kind == LineKind.BULLET:
                self._blocks.append(BulletListBlock(items=self.items))
            else:
                self._blocks.append(NumberedListBlock(items=self.items))
        self.kind = None
        self.items = []


def classify_prose(text: str) -> list[ProseBlock]:
    """Derive the ordered blocks of one prose segment."""
    blocks: list[ProseBlock] = []
    run = _ListRun(blocks)

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line:
            run.flush()
            continue

        kind, content, level = classify_line(line)
        if kind in (LineKind.BULLET, LineKind.NUMBERED):
            run.add(kind, content)
            continue

        run.flush()
        if kind == LineKind.HEADING:
            blocks.append(HeadingBlock(level=level, text=content))
        else:
            blocks.append(ParagraphBlock(text=content))

    run.flush()
    return blocks
