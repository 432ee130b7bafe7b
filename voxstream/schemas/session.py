"""Session, request and client configuration schemas.

Defines the outgoing request body, the TOML-backed client configuration
and role presets, and the explicit per-session state record.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Separator used when saved questions are combined into one prompt
CONTEXT_SEPARATOR = " and also "


class ChatRequest(BaseModel):
    """JSON body posted to the completion service."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(min_length=1, description="Question, possibly joined with saved context")
    role: str = Field(description="Role instruction for the assistant")
    api_key: str | None = Field(
        default=None, alias="apiKey", description="Optional key forwarded to the service"
    )

    def to_payload(self) -> dict[str, Any]:
        """Wire form: ``{prompt, role, apiKey?}`` with apiKey omitted when unset."""
        payload = self.model_dump(by_alias=True, exclude_none=True)
        if not payload.get("apiKey"):
            payload.pop("apiKey", None)
        return payload


class RolePreset(BaseModel):
    """A named role instruction offered to the user.

    Loaded from the [roles] table of defaults.toml.
    """

    key: str = Field(description="Short identifier used on the command line")
    label: str = Field(description="Human-friendly name for menus")
    instruction: str = Field(min_length=1, description="Role text sent with every request")


class ClientConfig(BaseModel):
    """Client configuration loaded from the [client] table of defaults.toml."""

    endpoint: str = Field(description="URL of the streaming chat endpoint")
    timeout: float = Field(default=120.0, gt=0, description="HTTP timeout in seconds")
    default_role: str = Field(default="", description="Role key selected at startup")
    api_key_env: str = Field(
        default="VOXSTREAM_API_KEY", description="Environment variable holding the API key"
    )
    remember_context: bool = Field(
        default=False, description="Initial state of the remember-context toggle"
    )


class SessionState(BaseModel):
    """Explicit state of one chat session.

    Replaces ambient UI globals: every operation of ChatSession reads and
    writes this record and nothing else.
    """

    role: str = Field(description="Role instruction sent with the next question")
    loading: bool = Field(default=False, description="True while a stream is in flight")
    error: str = Field(default="", description="Last user-facing error message")
    remember_context: bool = Field(default=False, description="Remember-context toggle")
    saved_prompts: list[str] = Field(
        default_factory=list, description="Questions retained as conversation context"
    )
    last_question: str = Field(default="", description="Most recently submitted question")
    generation: int = Field(default=0, ge=0, description="Id of the current question")
    cancelled: bool = Field(
        default=False, description="True when the current generation was stopped by the user"
    )
