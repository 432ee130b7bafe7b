"""voxstream schema definitions.

All Pydantic v2 models used by the stream decoder, the renderer and the
chat session.
"""

from voxstream.schemas.document import (
    Block,
    BulletListBlock,
    CodeBlock,
    Document,
    HeadingBlock,
    NumberedListBlock,
    ParagraphBlock,
    Segment,
    SegmentKind,
)
from voxstream.schemas.session import (
    CONTEXT_SEPARATOR,
    ChatRequest,
    ClientConfig,
    RolePreset,
    SessionState,
)
from voxstream.schemas.streaming import StreamChunk

__all__ = [
    "CONTEXT_SEPARATOR",
    "Block",
    "BulletListBlock",
    "ChatRequest",
    "ClientConfig",
    "CodeBlock",
    "Document",
    "HeadingBlock",
    "NumberedListBlock",
    "ParagraphBlock",
    "RolePreset",
    "Segment",
    "SegmentKind",
    "SessionState",
    "StreamChunk",
]
