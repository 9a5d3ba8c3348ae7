"""Chat-mode schemas: session records, task detection and chat responses."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from taskrouter.schemas.task import ChatMessage


class ChatSessionRecord(BaseModel):
    """Persisted conversation for one chat session."""

    session_id: str = Field(description="Unique session identifier")
    user_id: str = Field(default="", description="Owner of the session")
    history: list[ChatMessage] = Field(
        default_factory=list, description="Ordered conversation turns",
    )
    context: dict[str, Any] = Field(
        default_factory=dict, description="Session-level context carried between turns",
    )
    created_at: datetime = Field(description="When the session was created")
    updated_at: datetime = Field(description="When the session was last written")

    def compact_history(self, window: int = 6, limit: int = 500) -> list[ChatMessage]:
        """Return the last ``window`` messages with content truncated to ``limit`` chars."""
        if window <= 0:
            return []
        compact: list[ChatMessage] = []
        for msg in self.history[-window:]:
            content = msg.content
            if len(content) > limit:
                content = content[:limit] + "..."
            compact.append(ChatMessage(role=msg.role, content=content))
        return compact


class DetectionResult(BaseModel):
    """Whether an incoming chat message is a task, and which kind."""

    is_task: bool = Field(default=False, description="Whether the message is a task")
    type: str | None = Field(default=None, description="Detected task type")
    parameters: dict[str, Any] | None = Field(
        default=None, description="Parameters extracted from the message",
    )


class ChatResponse(BaseModel):
    """Reply produced by the chat service for one user message."""

    response: str = Field(description="Display text for the assistant reply")
    session_id: str = Field(description="Session the exchange was recorded in")
    type: str = Field(default="chat", description="'chat' or 'task'")
    was_task: bool = Field(default=False, description="Whether the message ran as a task")
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Model, status and task details",
    )


class UnifiedResult(BaseModel):
    """Outcome of one chat-or-task request before it is recorded."""

    content: str = Field(description="Display text for the reply")
    type: str = Field(default="chat", description="'chat' or 'task'")
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Model, status and task details",
    )
