"""Streaming schemas for real-time token delivery.

Defines the StreamChunk model the chat session hands to the display layer
after every append to the answer text.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from voxstream.schemas.document import Document


class StreamChunk(BaseModel):
    """A single "answer changed" event for one question."""

    generation: int = Field(ge=0, description="Generation id of the question being answered")
    delta: str = Field(description="New text in this chunk")
    accumulated: str = Field(description="Full text accumulated so far")
    token_count: int = Field(ge=0, description="Running count of tokens appended")
    is_complete: bool = Field(
        default=False, description="True on final chunk"
    )
    document: Document = Field(
        default_factory=Document, description="Document rebuilt from the accumulated text"
    )
