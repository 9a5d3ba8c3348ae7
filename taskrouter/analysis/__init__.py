"""Task analysis: complexity scoring and reasoning requirements."""

from taskrouter.analysis.analyzer import TaskAnalyzer, derive_model_requirements
from taskrouter.analysis.reasoning import ReasoningAnalyzer
from taskrouter.analysis.scorer import ComplexityScorer

__all__ = [
    "ComplexityScorer",
    "ReasoningAnalyzer",
    "TaskAnalyzer",
    "derive_model_requirements",
]
