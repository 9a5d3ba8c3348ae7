"""Provider response schemas.

Defines the ProviderResult contract every tier provider returns, together
with token accounting and the document record relayed from the
document-creation collaborator.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TokenUsage(BaseModel):
    """Token counts and cost for a single provider call."""

    prompt_tokens: int = Field(default=0, ge=0, description="Input tokens consumed")
    completion_tokens: int = Field(default=0, ge=0, description="Output tokens generated")
    cost: float = Field(default=0.0, ge=0.0, description="Estimated cost in USD")


class DocumentInfo(BaseModel):
    """Document created by the document-creation collaborator."""

    id: str = Field(description="Identifier assigned by the document store")
    title: str = Field(description="Document title")
    url: str = Field(description="Location the document can be opened from")


class ProviderResult(BaseModel):
    """Response from a tier provider (or the document-creation shortcut).

    Providers may attach provider-specific fields; they are preserved as
    extras so they reach the caller untouched.
    """

    model_config = ConfigDict(extra="allow")

    content: str = Field(default="", description="Response text")
    model: str = Field(description="Identifier of the model that produced the response")
    tier: str = Field(default="", description="Routing tier the provider serves")
    reasoning: str | list[str] | None = Field(
        default=None, description="Reasoning text or ordered steps (reasoning tier)",
    )
    token_usage: TokenUsage | None = Field(
        default=None, description="Token accounting, when the provider reports it",
    )
    document: DocumentInfo | None = Field(
        default=None, description="Created document (document-creation tasks)",
    )
    charts: list[str] = Field(
        default_factory=list, description="Chart references (data-analysis tasks)",
    )
    display_format: str = Field(
        default="", description="Rendering hint for chat display, e.g. 'reasoning'",
    )
