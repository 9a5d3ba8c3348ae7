"""Task and call-context schemas.

A task arrives either as a plain string or as a structured object whose
``content`` is a string or a list of typed content parts. Every component
that needs the task's text goes through ``extract_text`` so the three
shapes are always read the same way.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChatRole(StrEnum):
    """Author of a conversation message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Priority(StrEnum):
    """Caller priority hint that shifts the routing thresholds."""

    HIGH = "high"
    LOW = "low"


class ContentPart(BaseModel):
    """One typed part of a multi-part task body (text, image, ...)."""

    model_config = ConfigDict(extra="allow")

    type: str = Field(description="Part type, e.g. 'text' or 'image_url'")
    text: str = Field(default="", description="Text payload for 'text' parts")


class ChatMessage(BaseModel):
    """A single turn of conversation history."""

    role: ChatRole = Field(description="Who wrote the message")
    content: str = Field(default="", description="Message text")
    timestamp: str = Field(default="", description="ISO timestamp, when known")


class Task(BaseModel):
    """Structured task submitted for routing.

    Unknown keys are preserved so callers can attach their own fields
    (detector parameters, attachments, ...) without losing them.
    """

    model_config = ConfigDict(extra="allow")

    id: str | None = Field(default=None, description="Caller-supplied task identifier")
    content: str | list[ContentPart] | None = Field(
        default=None, description="Task body: plain text or typed content parts",
    )
    complexity: int | None = Field(
        default=None, ge=0, le=100,
        description="Complexity score, stamped by the orchestrator after analysis",
    )
    action: str | None = Field(
        default=None, description="Special-case action tag, e.g. 'create_document'",
    )
    title: str | None = Field(default=None, description="Title for document-creation tasks")
    context: dict[str, Any] | str | None = Field(
        default=None, description="Task-level context object or reference",
    )
    references: list[Any] | str | None = Field(
        default=None, description="External references the task depends on",
    )
    history: list[Any] | None = Field(
        default=None, description="Task-level history the task depends on",
    )
    metadata: dict[str, Any] | None = Field(
        default=None, description="Free-form caller metadata",
    )


class TaskContext(BaseModel):
    """Auxiliary hints accompanying a task call.

    Read-only to the routing core. Fields not declared here are kept in
    ``model_extra`` and forwarded to providers as request metadata.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    history: list[ChatMessage] = Field(
        default_factory=list, description="Prior conversation turns",
    )
    chat_history: list[ChatMessage] = Field(
        default_factory=list, alias="chatHistory",
        description="Prior conversation turns (chat-mode spelling)",
    )
    priority: Priority | None = Field(
        default=None, description="Priority hint: 'high' or 'low'; anything else is unset",
    )
    requires_reasoning: bool = Field(
        default=False, alias="requiresReasoning",
        description="Force the reasoning tier regardless of complexity",
    )
    role: str = Field(default="", description="Persona used to frame the prompt")
    guidelines: str = Field(default="", description="Extra instructions for the provider")
    folder: str | None = Field(
        default=None, description="Folder hint for document creation",
    )
    temperature: float | None = Field(
        default=None, ge=0.0, le=2.0, description="Sampling temperature override",
    )
    max_tokens: int | None = Field(
        default=None, gt=0, alias="maxTokens", description="Output token cap override",
    )

    @field_validator("priority", mode="before")
    @classmethod
    def _unknown_priority_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and value in {p.value for p in Priority}:
            return value
        return None

    @property
    def conversation(self) -> list[ChatMessage]:
        """History to show the provider; ``chatHistory`` wins over ``history``."""
        return self.chat_history or self.history

    @property
    def passthrough(self) -> dict[str, Any]:
        """Undeclared fields supplied by the caller."""
        return dict(self.model_extra or {})


TaskInput = Task | str | Mapping[str, Any]


def extract_text(task: Task | str) -> str:
    """Return the text of a task.

    Strings are returned as-is, string content directly, and content-part
    lists as the ``text`` of every ``type == "text"`` part joined by
    newlines. Anything else is serialized to JSON so it can still be
    scored. ``complexity`` is left out of the serialization so stamping a
    score never changes the text that produced it.
    """
    if isinstance(task, str):
        return task

    content = task.content
    if isinstance(content, str) and content:
        return content
    if isinstance(content, list):
        return "\n".join(part.text for part in content if part.type == "text")

    return task.model_dump_json(exclude_none=True, exclude={"complexity"})


def coerce_task(task: TaskInput) -> Task | str:
    """Normalize caller input to a ``Task`` or plain string.

    Raises:
        TypeError: If the input is neither a string, a Task nor a mapping.
        pydantic.ValidationError: If a mapping does not describe a valid Task.
    """
    if isinstance(task, (str, Task)):
        return task
    if isinstance(task, Mapping):
        return Task.model_validate(dict(task))
    raise TypeError(f"Unsupported task type: {type(task).__name__}")


def coerce_context(context: TaskContext | Mapping[str, Any] | None) -> TaskContext:
    """Normalize caller context to a ``TaskContext`` (empty when omitted)."""
    if context is None:
        return TaskContext()
    if isinstance(context, TaskContext):
        return context
    return TaskContext.model_validate(dict(context))
