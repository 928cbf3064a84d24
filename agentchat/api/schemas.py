"""Pydantic schemas for the FastAPI endpoints.

Field aliases mirror the camelCase keys the chat frontend sends.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """One turn of the conversation."""

    role: Literal["system", "user", "assistant"]
    content: str


class ToolSelection(BaseModel):
    """Opt-in switch for a named tool from the catalog."""

    name: str = Field(..., min_length=1)
    active: bool = False


class FileAttachment(BaseModel):
    """An uploaded file, base64-encoded.  Extra fields are kept as-is."""

    model_config = ConfigDict(extra="allow")

    base64: str


class ChatRequest(BaseModel):
    """Incoming chat request from the frontend."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage] = Field(
        ..., description="Ordered conversation; the last message is the active query",
    )
    functions: list[ToolSelection] | None = Field(
        None, description="Tool selections for the agent path",
    )
    files: list[FileAttachment] | None = Field(
        None, description="Attachments to consult before answering",
    )
    selected_model: str | None = Field(
        None,
        alias="selectedModel",
        description="'claude-2' selects direct completion; anything else the agent",
    )
    selected_vector_storage: str | None = Field(
        None,
        alias="selectedVectorStorage",
        description="Accepted for compatibility; not used",
    )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    service: str = "agent-chat"
