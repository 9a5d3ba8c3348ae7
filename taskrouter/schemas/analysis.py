"""Analysis schemas produced by the scorer, reasoning analyzer and task analyzer.

All records are call-scoped: built once per task, never cached or persisted.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ReasoningType(StrEnum):
    """Reasoning categories recognized by the reasoning analyzer.

    Declaration order is significant: it breaks ties between categories
    with the same keyword score.
    """

    DEDUCTIVE = "deductive"
    INDUCTIVE = "inductive"
    ABDUCTIVE = "abductive"
    ANALOGICAL = "analogical"
    CAUSAL = "causal"
    COUNTERFACTUAL = "counterfactual"
    TEMPORAL = "temporal"
    SPATIAL = "spatial"
    MATHEMATICAL = "mathematical"
    LOGICAL = "logical"
    ETHICAL = "ethical"
    NONE = "none"


class ModelRequirement(StrEnum):
    """Advisory capability tags derived from an analysis."""

    HIGH_CAPACITY = "high-capacity"
    CONTEXT_AWARE = "context-aware"
    TEMPORAL_REASONING = "temporal-reasoning"


class ComplexityComponents(BaseModel):
    """Per-dimension sub-scores, each on its own fixed ladder."""

    length: int = Field(ge=0, le=100, description="Text length sub-score")
    code: int = Field(ge=0, le=100, description="Embedded code ratio sub-score")
    terms: int = Field(ge=0, le=100, description="Technical vocabulary sub-score")
    structure: int = Field(ge=0, le=100, description="Markdown structure sub-score")
    context: int = Field(ge=0, le=100, description="Context-object richness sub-score")


class ComplexityWeights(BaseModel):
    """Weights applied to the sub-scores. They sum to 1.0."""

    length: float = 0.30
    code: float = 0.25
    terms: float = 0.20
    structure: float = 0.15
    context: float = 0.10


class ComplexityBreakdown(BaseModel):
    """Sub-scores plus the weights that combined them."""

    components: ComplexityComponents
    weights: ComplexityWeights = Field(default_factory=ComplexityWeights)


class ComplexityScore(BaseModel):
    """Result of scoring a task's complexity."""

    score: int = Field(ge=0, le=100, description="Weighted complexity estimate")
    breakdown: ComplexityBreakdown


class ReasoningAnalysis(BaseModel):
    """Reasoning requirements of a task."""

    model_config = ConfigDict(populate_by_name=True)

    type: ReasoningType = Field(description="Primary reasoning category")
    type_confidence: float = Field(
        ge=0.0, le=1.0, alias="typeConfidence",
        description="Primary category's share of all keyword hits",
    )
    secondary_types: list[ReasoningType] = Field(
        default_factory=list, max_length=2, alias="secondaryTypes",
        description="Runner-up categories, best first",
    )
    stepwise: bool = Field(description="Whether explicit step-by-step reasoning is needed")
    context_dependency: float = Field(
        ge=0.0, le=1.0, alias="contextDependency",
        description="How much the task leans on earlier context",
    )
    temporal_aspect: bool = Field(
        alias="temporalAspect", description="Whether the task involves time or ordering",
    )


class TaskAnalysis(BaseModel):
    """Merged scorer and reasoning-analyzer output for one task."""

    model_config = ConfigDict(populate_by_name=True)

    complexity: int = Field(ge=0, le=100, description="Overall complexity score")
    complexity_breakdown: ComplexityBreakdown = Field(alias="complexityBreakdown")
    reasoning_type: ReasoningType = Field(alias="reasoningType")
    requires_stepwise: bool = Field(alias="requiresStepwise")
    model_requirements: list[ModelRequirement] = Field(
        default_factory=list, alias="modelRequirements",
        description="Advisory capability tags; not consulted by dispatch",
    )
    reasoning: ReasoningAnalysis = Field(description="Full reasoning analysis")
