"""Task routing engine.

Picks a provider tier for an analyzed task, invokes it, and on any failure
retries exactly once against the cheapest tier. The tier-to-provider
mapping is a static table handed in at construction; only the three numeric
thresholds vary per call.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping

from taskrouter.providers.base import TierProvider
from taskrouter.schemas.analysis import TaskAnalysis
from taskrouter.schemas.messages import ProviderResult
from taskrouter.schemas.routing import FALLBACK_LABEL, RoutingResult, ThresholdTable, Tier
from taskrouter.schemas.task import Task, TaskContext

logger = logging.getLogger(__name__)

REASONING_TIER = Tier.DEEPSEEK_R1
FALLBACK_TIER = Tier.GEMINI_FLASH


def tier_for_complexity(complexity: int, thresholds: ThresholdTable) -> Tier:
    """Map a complexity score to a tier; the first boundary it fits under wins."""
    if complexity <= thresholds.simple:
        return Tier.GEMINI_FLASH
    if complexity <= thresholds.medium:
        return Tier.GEMINI_PRO
    if complexity <= thresholds.complex:
        return Tier.CLAUDE_SONNET
    return Tier.CLAUDE_OPUS


def select_tier(
    analysis: TaskAnalysis,
    thresholds: ThresholdTable,
    context: TaskContext | None = None,
) -> Tier:
    """Choose the tier for an analyzed task.

    Stepwise tasks, and calls whose context asks for reasoning, go to the
    reasoning tier whatever their complexity. Everything else is bucketed
    by complexity.
    """
    if analysis.requires_stepwise or (context is not None and context.requires_reasoning):
        return REASONING_TIER
    return tier_for_complexity(analysis.complexity, thresholds)


class TaskRouter:
    """Dispatches tasks to tier providers with a single cheapest-tier fallback.

    Every provider invocation runs under a per-call deadline. A provider
    that misses it is cancelled and treated like any other failure.
    """

    def __init__(
        self,
        providers: Mapping[Tier, TierProvider],
        invoke_timeout: float | None = 120,
    ) -> None:
        missing = [tier.value for tier in Tier if tier not in providers]
        if missing:
            raise ValueError(f"No provider configured for tier(s): {', '.join(missing)}")
        self._providers = dict(providers)
        self._invoke_timeout = invoke_timeout

    @property
    def providers(self) -> dict[Tier, TierProvider]:
        """The static tier-to-provider table."""
        return dict(self._providers)

    async def route_task(
        self,
        task: Task | str,
        analysis: TaskAnalysis,
        thresholds: ThresholdTable,
        context: TaskContext | None = None,
    ) -> RoutingResult:
        """Route a task to the tier chosen by ``select_tier``. No fallback.

        Raises:
            Exception: Whatever the selected provider raised.
        """
        ctx = context or TaskContext()
        tier = select_tier(analysis, thresholds, ctx)
        if tier is REASONING_TIER:
            logger.info(
                "Routing to %s for reasoning task (complexity=%d)",
                tier.value, analysis.complexity,
            )
            result = await self._invoke(tier, task, ctx)
            return RoutingResult(result=result, model=tier.value, tier=tier)
        return await self.route_by_complexity(task, analysis.complexity, thresholds, ctx)

    async def route_by_complexity(
        self,
        task: Task | str,
        complexity: int,
        thresholds: ThresholdTable,
        context: TaskContext | None = None,
    ) -> RoutingResult:
        """Route by complexity alone, ignoring reasoning requirements. No fallback."""
        tier = tier_for_complexity(complexity, thresholds)
        logger.info(
            "Routing to %s (complexity=%d, thresholds=%d/%d/%d)",
            tier.value, complexity,
            thresholds.simple, thresholds.medium, thresholds.complex,
        )
        result = await self._invoke(tier, task, context or TaskContext())
        return RoutingResult(result=result, model=tier.value, tier=tier)

    async def route_with_fallback(
        self,
        task: Task | str,
        analysis: TaskAnalysis,
        thresholds: ThresholdTable,
        context: TaskContext | None = None,
    ) -> RoutingResult:
        """Route a task; on any provider error retry once on the cheapest tier.

        At most two provider invocations happen per call. If the fallback
        also fails its error propagates; there is no second fallback.
        """
        ctx = context or TaskContext()
        try:
            return await self.route_task(task, analysis, thresholds, ctx)
        except Exception as exc:
            logger.warning("Primary model failed, falling back to %s: %s", FALLBACK_TIER.value, exc)
            primary_error = str(exc) or type(exc).__name__

        result = await self._invoke(FALLBACK_TIER, task, ctx)
        return RoutingResult(
            result=result,
            model=FALLBACK_LABEL,
            tier=FALLBACK_TIER,
            fallback_used=True,
            primary_error=primary_error,
        )

    async def _invoke(
        self, tier: Tier, task: Task | str, context: TaskContext,
    ) -> ProviderResult:
        """Invoke one tier's provider under the per-call deadline."""
        provider = self._providers[tier]
        if self._invoke_timeout is None:
            return await provider.invoke(task, context)
        try:
            return await asyncio.wait_for(
                provider.invoke(task, context), timeout=self._invoke_timeout,
            )
        except TimeoutError:
            raise TimeoutError(
                f"{tier.value} provider did not respond within {self._invoke_timeout}s"
            ) from None
