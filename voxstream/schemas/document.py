"""Document schemas for the structural answer renderer.

A Document is pure derived state: it is rebuilt from the full answer text
on every growth and carries no identity across rebuilds.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, Field


class SegmentKind(StrEnum):
    """Classification of a fenced-code split of the answer text."""

    PROSE = "prose"
    CODE = "code"


class HeadingBlock(BaseModel):
    """A heading line (``#``, ``##`` or ``###``)."""

    kind: Literal["heading"] = "heading"
    level: int = Field(ge=1, le=3, description="Heading level, 1 to 3")
    text: str = Field(description="Heading text without the marker")


class BulletListBlock(BaseModel):
    """A run of adjacent ``-`` / ``*`` items."""

    kind: Literal["bullet_list"] = "bullet_list"
    items: list[str] = Field(default_factory=list, description="Item texts in line order")


class NumberedListBlock(BaseModel):
    """A run of adjacent ``1. `` style items."""

    kind: Literal["numbered_list"] = "numbered_list"
    items: list[str] = Field(default_factory=list, description="Item texts in line order")


class ParagraphBlock(BaseModel):
    """A single non-list, non-heading prose line."""

    kind: Literal["paragraph"] = "paragraph"
    text: str = Field(description="Trimmed line text")


class CodeBlock(BaseModel):
    """Verbatim content of a fenced code segment."""

    kind: Literal["code"] = "code"
    content: str = Field(description="Text between fences, surrounding whitespace trimmed")


ProseBlock = Annotated[
    HeadingBlock | BulletListBlock | NumberedListBlock | ParagraphBlock,
    Field(discriminator="kind"),
]

Block = Annotated[
    HeadingBlock | BulletListBlock | NumberedListBlock | ParagraphBlock | CodeBlock,
    Field(discriminator="kind"),
]


class Segment(BaseModel):
    """A maximal span of the answer classified as prose or code.

    ``content`` is the raw prose text, or the trimmed code text.
    ``blocks`` holds the classified blocks of a prose segment, or the
    single CodeBlock of a code segment.
    """

    kind: SegmentKind = Field(description="Prose or code")
    content: str = Field(default="", description="Segment text without fence markers")
    blocks: list[Block] = Field(default_factory=list, description="Derived blocks in order")


class Document(BaseModel):
    """Ordered segments derived from one value of the answer text."""

    segments: list[Segment] = Field(default_factory=list)

    @property
    def blocks(self) -> list[Block]:
        """All blocks of all segments, flattened in order."""
        return [block for segment in self.segments for block in segment.blocks]

    @property
    def is_empty(self) -> bool:
        return not any(segment.blocks for segment in self.segments)
