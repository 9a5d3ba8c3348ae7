"""Per-task metrics sink.

The orchestrator records one TaskMetrics entry per processed task, on
success and on failure alike.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from taskrouter.schemas.routing import TaskMetrics

logger = logging.getLogger(__name__)


class MetricsSink(ABC):
    """Receives one metrics record per processed task."""

    @abstractmethod
    def record(self, metrics: TaskMetrics) -> None:
        """Record the metrics for one task. Fire-and-forget."""


class LoggingMetricsSink(MetricsSink):
    """Emits each record as a single JSON log line."""

    def __init__(self, level: int = logging.INFO) -> None:
        self._level = level

    def record(self, metrics: TaskMetrics) -> None:
        logger.log(
            self._level,
            "Task metrics: %s",
            metrics.model_dump_json(by_alias=True),
        )
