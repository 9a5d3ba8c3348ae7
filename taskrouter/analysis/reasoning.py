"""Keyword-based reasoning requirement analysis.

Classifies which kind of reasoning a task calls for, whether it needs an
explicit step-by-step answer, how much it leans on earlier context and
whether it has a temporal dimension. Categories are a data table, so a new
category is a new entry rather than new branching code.
"""

from __future__ import annotations

from taskrouter.schemas.analysis import ReasoningAnalysis, ReasoningType
from taskrouter.schemas.task import Task, extract_text

# Category -> phrases. A category scores one point per phrase contained in
# the lower-cased text. Insertion order breaks ties.
REASONING_KEYWORDS: dict[ReasoningType, tuple[str, ...]] = {
    ReasoningType.DEDUCTIVE: ("if-then", "therefore", "must be", "necessarily", "deduce"),
    ReasoningType.INDUCTIVE: ("pattern", "trend", "likely", "probably", "infer", "generalize"),
    ReasoningType.ABDUCTIVE: ("best explanation", "diagnose", "most likely cause", "hypothesis"),
    ReasoningType.ANALOGICAL: ("similar to", "like", "analogy", "comparison", "resembles"),
    ReasoningType.CAUSAL: ("because", "cause", "effect", "impact", "leads to", "results in"),
    ReasoningType.COUNTERFACTUAL: ("if only", "what if", "had", "would have", "could have"),
    ReasoningType.TEMPORAL: ("before", "after", "during", "when", "timeline", "sequence"),
    ReasoningType.SPATIAL: ("above", "below", "next to", "arrangement", "layout"),
    ReasoningType.MATHEMATICAL: ("calculate", "compute", "solve", "equation", "formula"),
    ReasoningType.LOGICAL: ("valid", "invalid", "fallacy", "argument", "premise", "conclusion"),
    ReasoningType.ETHICAL: ("right", "wrong", "moral", "ethical", "should", "ought"),
}

STEPWISE_INDICATORS: tuple[str, ...] = (
    "step by step",
    "explain your reasoning",
    "show your work",
    "break down",
    "walk through",
    "reasoning process",
    "chain of thought",
    "think through",
)

CONTEXTUAL_REFERENCES: tuple[str, ...] = (
    "previous", "earlier", "before", "above", "mentioned",
    "as stated", "refer to", "based on", "according to",
)

TIME_WORDS: tuple[str, ...] = (
    "time", "duration", "period", "schedule", "timeline", "chronological",
)

# Mathematical + logical hits needed to require stepwise reasoning
_STEPWISE_MATH_LOGIC_MIN = 2
_TASK_CONTEXT_DEPENDENCY = 0.8
_REFERENCE_WEIGHT = 0.2
_MAX_SECONDARY = 2


def _hits(text: str, phrases: tuple[str, ...]) -> int:
    return sum(1 for phrase in phrases if phrase in text)


class ReasoningAnalyzer:
    """Determines the reasoning requirements of a task. Pure; never raises."""

    def determine_reasoning_requirements(self, task: Task | str) -> ReasoningAnalysis:
        """Analyze a task's reasoning type, stepwise need, context and time aspects.

        Args:
            task: Plain text or a structured Task.

        Returns:
            ReasoningAnalysis for the task.
        """
        text = extract_text(task).lower()
        primary, confidence, secondary = self.classify(text)

        return ReasoningAnalysis(
            type=primary,
            type_confidence=confidence,
            secondary_types=secondary,
            stepwise=self.requires_stepwise(text),
            context_dependency=self.context_dependency(task, text),
            temporal_aspect=self.has_temporal_aspect(text),
        )

    @staticmethod
    def classify(text: str) -> tuple[ReasoningType, float, list[ReasoningType]]:
        """Return (primary type, confidence, secondary types) for lower-cased text."""
        scores = {rtype: _hits(text, phrases) for rtype, phrases in REASONING_KEYWORDS.items()}
        total = sum(scores.values())
        if total == 0:
            return ReasoningType.NONE, 0.0, []

        # sorted() is stable, so equal scores keep declaration order
        ranked = [
            rtype for rtype, score in sorted(scores.items(), key=lambda kv: -kv[1])
            if score > 0
        ]
        primary = ranked[0]
        return primary, scores[primary] / total, ranked[1:1 + _MAX_SECONDARY]

    @staticmethod
    def requires_stepwise(text: str) -> bool:
        """Whether lower-cased text asks for (or implies) step-by-step reasoning."""
        if any(indicator in text for indicator in STEPWISE_INDICATORS):
            return True
        math_logic = (
            _hits(text, REASONING_KEYWORDS[ReasoningType.MATHEMATICAL])
            + _hits(text, REASONING_KEYWORDS[ReasoningType.LOGICAL])
        )
        return math_logic >= _STEPWISE_MATH_LOGIC_MIN

    @staticmethod
    def context_dependency(task: Task | str, text: str) -> float:
        """Estimate 0-1 dependency on earlier context."""
        if isinstance(task, Task) and isinstance(task.context, dict) and task.context:
            return _TASK_CONTEXT_DEPENDENCY
        references = _hits(text, CONTEXTUAL_REFERENCES)
        # rounded so three references give exactly 0.6, not 0.6000000000000001
        return min(round(references * _REFERENCE_WEIGHT, 2), 1.0)

    @staticmethod
    def has_temporal_aspect(text: str) -> bool:
        """Whether lower-cased text mentions ordering or time."""
        return (
            any(keyword in text for keyword in REASONING_KEYWORDS[ReasoningType.TEMPORAL])
            or any(word in text for word in TIME_WORDS)
        )
