"""Task orchestration service.

Ties the analysis and routing layers together: each call is analyzed,
thresholds are derived from the caller's priority, the task is dispatched
with a single cheapest-tier fallback, and a metrics record is emitted
whatever the outcome. Document-creation tasks bypass scoring entirely and
go straight to the document creator.
"""

from __future__ import annotations

import logging
import time
import traceback
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from taskrouter.analysis.analyzer import TaskAnalyzer
from taskrouter.documents import DocumentCreator, LocalDocumentCreator
from taskrouter.metrics import LoggingMetricsSink, MetricsSink
from taskrouter.providers.registry import build_providers, load_models, load_router_config
from taskrouter.routing.engine import TaskRouter
from taskrouter.routing.thresholds import ThresholdStore
from taskrouter.schemas.analysis import TaskAnalysis
from taskrouter.schemas.config import ModelConfig, RouterConfig
from taskrouter.schemas.messages import ProviderResult
from taskrouter.schemas.routing import TaskMetrics, ThresholdTable
from taskrouter.schemas.task import (
    Task,
    TaskContext,
    TaskInput,
    coerce_context,
    coerce_task,
)

logger = logging.getLogger(__name__)

CREATE_DOCUMENT_ACTION = "create_document"
DOCUMENT_MODEL_LABEL = "document-creation-service"


class OrchestrationError(RuntimeError):
    """A task could not be processed, even after the fallback.

    Carries the analysis computed before the failure so callers can debug
    without re-scoring the task. The underlying error is chained as
    ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        *,
        analysis: TaskAnalysis | None = None,
        stack: str = "",
    ) -> None:
        super().__init__(message)
        self.timestamp = datetime.now(UTC)
        self.analysis = analysis
        self.stack = stack

    @property
    def metadata(self) -> dict[str, Any]:
        """JSON-friendly diagnostic context."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "analysis": self.analysis.model_dump(mode="json") if self.analysis else None,
            "stack": self.stack,
        }


class RoutingOrchestrator:
    """Public façade over analysis, threshold derivation and routing.

    Owns no routing state of its own: the base thresholds live in the
    ThresholdStore handed in at construction, so several orchestrators
    may share one table.
    """

    def __init__(
        self,
        router: TaskRouter,
        thresholds: ThresholdStore,
        analyzer: TaskAnalyzer | None = None,
        metrics: MetricsSink | None = None,
        documents: DocumentCreator | None = None,
    ) -> None:
        self._router = router
        self._thresholds = thresholds
        self._analyzer = analyzer or TaskAnalyzer()
        self._metrics = metrics or LoggingMetricsSink()
        self._documents = documents

    @property
    def router(self) -> TaskRouter:
        return self._router

    @property
    def thresholds(self) -> ThresholdTable:
        """Snapshot of the current base threshold table."""
        return self._thresholds.snapshot()

    async def process_task(
        self,
        task: TaskInput,
        context: TaskContext | Mapping[str, Any] | None = None,
    ) -> ProviderResult:
        """Analyze, route and execute one task.

        The caller's task object is never modified; the complexity score is
        stamped on a copy before dispatch.

        Args:
            task: Plain text, a Task, or a mapping describing one.
            context: Call context (priority, history, role, ...).

        Returns:
            The ProviderResult of whichever provider answered.

        Raises:
            OrchestrationError: If the task could not be completed, including
                                when the fallback also failed.
            TypeError: If ``task`` is not a supported task shape.
        """
        start = time.monotonic()
        task = coerce_task(task)

        analysis: TaskAnalysis | None = None
        model_used: str | None = None
        complexity = task.complexity if isinstance(task, Task) else None

        try:
            ctx = coerce_context(context)
            if isinstance(task, Task) and task.action == CREATE_DOCUMENT_ACTION:
                result = await self._create_document(task, ctx)
                model_used = result.model
                return result

            analysis = await self._analyzer.analyze_task(task)
            complexity = analysis.complexity
            task = stamp_complexity(task, complexity)
            logger.info(
                "Task analysis complete: complexity=%d, reasoning=%s",
                analysis.complexity, analysis.reasoning_type.value,
            )

            thresholds = self._thresholds.derive(ctx.priority)
            routed = await self._router.route_with_fallback(task, analysis, thresholds, ctx)
            model_used = routed.model
            return routed.result
        except Exception as exc:
            logger.error("Task orchestration failed: %s", exc)
            raise OrchestrationError(
                f"Task orchestration failed: {exc}",
                analysis=analysis,
                stack=traceback.format_exc(),
            ) from exc
        finally:
            self._record_metrics(
                TaskMetrics(
                    task_id=_task_id(task),
                    duration=time.monotonic() - start,
                    model=model_used,
                    complexity=complexity,
                    reasoning_type=analysis.reasoning_type.value if analysis else "unknown",
                )
            )

    async def analyze_only(self, task: TaskInput) -> TaskAnalysis:
        """Run the analysis without dispatching, for previews and diagnostics."""
        return await self._analyzer.analyze_task(coerce_task(task))

    def update_thresholds(self, partial: Mapping[str, int]) -> ThresholdTable:
        """Merge new values into the base threshold table.

        Raises:
            ValueError: If the update is rejected; the table is unchanged.
        """
        return self._thresholds.update(partial)

    def dynamic_thresholds(
        self, context: TaskContext | Mapping[str, Any] | None = None,
    ) -> ThresholdTable:
        """Return the thresholds a call with this context would route by."""
        return self._thresholds.derive(coerce_context(context).priority)

    # ── Internals ─────────────────────────────────────────────

    async def _create_document(self, task: Task, context: TaskContext) -> ProviderResult:
        content = task.content if isinstance(task.content, str) else None
        if not task.title or not content:
            raise ValueError("Document creation requires title and content")
        if self._documents is None:
            raise RuntimeError("No document creator configured")

        logger.info("Handling document creation task '%s'", task.title)
        document = await self._documents.create_document(
            task.title, content, context.folder,
        )
        return ProviderResult(
            content=f'Document "{document.title}" created successfully',
            model=DOCUMENT_MODEL_LABEL,
            document=document,
        )

    def _record_metrics(self, metrics: TaskMetrics) -> None:
        try:
            self._metrics.record(metrics)
        except Exception:
            logger.warning("Metrics sink failed for task %s", metrics.task_id, exc_info=True)


def stamp_complexity(task: Task | str, complexity: int) -> Task | str:
    """Return ``task`` with its complexity set, copying rather than mutating.

    Plain-text tasks have nowhere to carry a score and are returned as-is.
    """
    if isinstance(task, str):
        return task
    return task.model_copy(update={"complexity": complexity})


def _task_id(task: Task | str) -> str:
    if isinstance(task, Task) and task.id:
        return task.id
    return "unknown"


def create_orchestrator(
    config: RouterConfig | None = None,
    registry: dict[str, ModelConfig] | None = None,
    *,
    metrics: MetricsSink | None = None,
    documents: DocumentCreator | None = None,
) -> RoutingOrchestrator:
    """Build a fully wired orchestrator from configuration.

    Args:
        config: Router configuration. Defaults to the shipped defaults.toml.
        registry: Model registry. Defaults to the shipped models.toml.
        metrics: Metrics sink. Defaults to LoggingMetricsSink.
        documents: Document creator. Defaults to a LocalDocumentCreator
                   writing under ``config.documents_dir``.

    Raises:
        FileNotFoundError: If a default config file is missing.
        ValueError: If the registry does not cover every tier or the
                    configured thresholds are invalid.
    """
    config = config or load_router_config()
    registry = registry if registry is not None else load_models()

    providers = build_providers(registry, timeout=config.invoke_timeout)
    router = TaskRouter(providers, invoke_timeout=config.invoke_timeout)
    return RoutingOrchestrator(
        router=router,
        thresholds=ThresholdStore(config.thresholds),
        metrics=metrics,
        documents=documents or LocalDocumentCreator(Path(config.documents_dir)),
    )
