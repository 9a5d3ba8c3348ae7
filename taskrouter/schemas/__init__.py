"""taskrouter schema definitions.

All Pydantic v2 models used across analysis, routing, providers and chat.
"""

from taskrouter.schemas.analysis import (
    ComplexityBreakdown,
    ComplexityComponents,
    ComplexityScore,
    ComplexityWeights,
    ModelRequirement,
    ReasoningAnalysis,
    ReasoningType,
    TaskAnalysis,
)
from taskrouter.schemas.config import ModelConfig, RouterConfig
from taskrouter.schemas.messages import DocumentInfo, ProviderResult, TokenUsage
from taskrouter.schemas.routing import (
    FALLBACK_LABEL,
    RoutingResult,
    TaskMetrics,
    ThresholdTable,
    Tier,
)
from taskrouter.schemas.session import (
    ChatResponse,
    ChatSessionRecord,
    DetectionResult,
    UnifiedResult,
)
from taskrouter.schemas.task import (
    ChatMessage,
    ChatRole,
    ContentPart,
    Priority,
    Task,
    TaskContext,
    coerce_context,
    coerce_task,
    extract_text,
)

__all__ = [
    "FALLBACK_LABEL",
    "ChatMessage",
    "ChatResponse",
    "ChatRole",
    "ChatSessionRecord",
    "ComplexityBreakdown",
    "ComplexityComponents",
    "ComplexityScore",
    "ComplexityWeights",
    "ContentPart",
    "DetectionResult",
    "DocumentInfo",
    "ModelConfig",
    "ModelRequirement",
    "Priority",
    "ProviderResult",
    "ReasoningAnalysis",
    "ReasoningType",
    "RouterConfig",
    "RoutingResult",
    "Task",
    "TaskAnalysis",
    "TaskContext",
    "TaskMetrics",
    "ThresholdTable",
    "Tier",
    "TokenUsage",
    "UnifiedResult",
    "coerce_context",
    "coerce_task",
    "extract_text",
]
