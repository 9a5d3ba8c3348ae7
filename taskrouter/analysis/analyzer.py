"""Task analysis: complexity scoring and reasoning analysis merged into one record."""

from __future__ import annotations

import asyncio
import logging

from taskrouter.analysis.reasoning import ReasoningAnalyzer
from taskrouter.analysis.scorer import ComplexityScorer
from taskrouter.schemas.analysis import (
    ComplexityScore,
    ModelRequirement,
    ReasoningAnalysis,
    TaskAnalysis,
)
from taskrouter.schemas.task import Task

logger = logging.getLogger(__name__)

_HIGH_CAPACITY_SCORE = 75
_CONTEXT_AWARE_DEPENDENCY = 0.6


class TaskAnalyzer:
    """Runs the complexity scorer and reasoning analyzer and merges their output.

    The two analyses share no data, so they run side by side on the
    default executor and are joined before the merge.
    """

    def __init__(
        self,
        scorer: ComplexityScorer | None = None,
        reasoning: ReasoningAnalyzer | None = None,
    ) -> None:
        self._scorer = scorer or ComplexityScorer()
        self._reasoning = reasoning or ReasoningAnalyzer()

    async def analyze_task(self, task: Task | str) -> TaskAnalysis:
        """Analyze a task for routing.

        Args:
            task: Plain text or a structured Task.

        Returns:
            TaskAnalysis combining the complexity score and reasoning analysis.
        """
        loop = asyncio.get_running_loop()
        complexity, reasoning = await asyncio.gather(
            loop.run_in_executor(None, self._scorer.score_task, task),
            loop.run_in_executor(
                None, self._reasoning.determine_reasoning_requirements, task,
            ),
        )

        analysis = TaskAnalysis(
            complexity=complexity.score,
            complexity_breakdown=complexity.breakdown,
            reasoning_type=reasoning.type,
            requires_stepwise=reasoning.stepwise,
            model_requirements=derive_model_requirements(complexity, reasoning),
            reasoning=reasoning,
        )
        logger.debug(
            "Analyzed task: complexity=%d reasoning=%s stepwise=%s",
            analysis.complexity, analysis.reasoning_type.value, analysis.requires_stepwise,
        )
        return analysis


def derive_model_requirements(
    complexity: ComplexityScore,
    reasoning: ReasoningAnalysis,
) -> list[ModelRequirement]:
    """Derive advisory capability tags from the two analyses."""
    requirements: list[ModelRequirement] = []
    if complexity.score > _HIGH_CAPACITY_SCORE:
        requirements.append(ModelRequirement.HIGH_CAPACITY)
    if reasoning.context_dependency > _CONTEXT_AWARE_DEPENDENCY:
        requirements.append(ModelRequirement.CONTEXT_AWARE)
    if reasoning.temporal_aspect:
        requirements.append(ModelRequirement.TEMPORAL_REASONING)
    return requirements
