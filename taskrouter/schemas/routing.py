"""Routing schemas: tiers, threshold tables, routing results and metrics.

The tier enum doubles as the static tier-to-provider table key and as the
label reported back to callers.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from taskrouter.schemas.messages import ProviderResult


class Tier(StrEnum):
    """Routing tiers, cheapest first, plus the reasoning specialist."""

    GEMINI_FLASH = "gemini-flash"
    GEMINI_PRO = "gemini-pro"
    CLAUDE_SONNET = "claude-sonnet"
    CLAUDE_OPUS = "claude-opus"
    DEEPSEEK_R1 = "deepseek-r1"


# Label reported when the cheapest tier answers as a fallback
FALLBACK_LABEL = f"{Tier.GEMINI_FLASH.value}-fallback"


class ThresholdTable(BaseModel):
    """Three boundaries partitioning the 0-100 complexity score into four tiers.

    ``score <= simple`` selects the cheapest tier, ``<= medium`` the mid
    tier, ``<= complex`` the capable tier and anything above the most
    capable tier. Ordering is checked by ThresholdStore on update, not here,
    so priority-derived copies may be degenerate.
    """

    simple: int = Field(default=30, description="Upper bound of the cheapest tier")
    medium: int = Field(default=60, description="Upper bound of the mid tier")
    complex: int = Field(default=85, description="Upper bound of the capable tier")

    def is_ordered(self) -> bool:
        """Whether ``simple < medium < complex`` holds."""
        return self.simple < self.medium < self.complex


class RoutingResult(BaseModel):
    """Outcome of one routed call."""

    result: ProviderResult = Field(description="Response from the provider that answered")
    model: str = Field(description="Tier label, e.g. 'claude-sonnet' or 'gemini-flash-fallback'")
    tier: Tier = Field(description="Tier whose provider produced the result")
    fallback_used: bool = Field(default=False, description="Whether the fallback answered")
    primary_error: str = Field(
        default="", description="Error from the primary provider when the fallback answered",
    )


class TaskMetrics(BaseModel):
    """Per-call record handed to the metrics sink."""

    model_config = ConfigDict(populate_by_name=True)

    task_id: str = Field(default="unknown", alias="taskId")
    duration: float = Field(ge=0.0, description="Wall-clock seconds spent in process_task")
    model: str | None = Field(default=None, description="Tier label that answered, if any")
    complexity: int | None = Field(default=None, description="Complexity score, if analyzed")
    reasoning_type: str = Field(default="unknown", alias="reasoningType")
