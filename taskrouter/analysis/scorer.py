"""Heuristic complexity scoring for task routing.

Turns a task into a 0-100 estimate from five weighted sub-scores. Each
sub-score maps a raw measurement onto a fixed step ladder, so every
sub-score is a non-decreasing function of its measurement. All scoring is
local regex work; no model is consulted.
"""

from __future__ import annotations

import re

from taskrouter.schemas.analysis import (
    ComplexityBreakdown,
    ComplexityComponents,
    ComplexityScore,
    ComplexityWeights,
)
from taskrouter.schemas.task import Task, extract_text

# (exclusive upper bound, score) steps; values past the last bound get the top score
_LENGTH_LADDER: tuple[tuple[float, int], ...] = ((100, 10), (500, 30), (1000, 50), (3000, 70))
_LENGTH_TOP = 90

_CODE_LADDER: tuple[tuple[float, int], ...] = ((0.1, 20), (0.3, 40), (0.5, 60), (0.7, 80))
_CODE_TOP = 95

_TERMS_LADDER: tuple[tuple[float, int], ...] = ((1, 10), (3, 30), (6, 50), (10, 70))
_TERMS_TOP = 90

_STRUCTURE_LADDER: tuple[tuple[float, int], ...] = ((3, 20), (10, 40), (20, 60), (30, 80))
_STRUCTURE_TOP = 95

_CONTEXT_KEYS_LADDER: tuple[tuple[float, int], ...] = ((2, 30), (5, 50), (10, 70))
_CONTEXT_KEYS_TOP = 90
_CONTEXT_ABSENT = 20
_CONTEXT_OPAQUE = 50

TECHNICAL_TERMS: tuple[str, ...] = (
    "algorithm", "architecture", "asynchronous", "authentication", "authorization",
    "concurrency", "database", "encryption", "framework", "infrastructure",
    "integration", "microservice", "optimization", "parallelism", "performance",
    "refactoring", "scalability", "security", "synchronization", "transaction",
)

_TERM_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(term) for term in TECHNICAL_TERMS) + r")\b"
)
_FENCED_CODE_RE = re.compile(r"```[\s\S]*?```")
_INLINE_CODE_RE = re.compile(r"`[^`]+`")
_LIST_ITEM_RE = re.compile(r"^\s*[-*+]\s", re.MULTILINE)
_HEADING_RE = re.compile(r"^#{1,6}\s", re.MULTILINE)
_TABLE_CELL_RE = re.compile(r"\|[^|]+\|")


def _ladder(value: float, steps: tuple[tuple[float, int], ...], top: int) -> int:
    """Map ``value`` to the score of the first step whose bound exceeds it."""
    for bound, score in steps:
        if value < bound:
            return score
    return top


class ComplexityScorer:
    """Scores a task's complexity from its text and attached context.

    Never raises: tasks without readable content are serialized to JSON
    and scored as text.
    """

    weights = ComplexityWeights()

    def score_task(self, task: Task | str) -> ComplexityScore:
        """Score a task's complexity.

        Args:
            task: Plain text or a structured Task.

        Returns:
            ComplexityScore with the clamped 0-100 score and its breakdown.
        """
        text = extract_text(task)
        components = ComplexityComponents(
            length=self.score_length(text),
            code=self.score_code(text),
            terms=self.score_terms(text),
            structure=self.score_structure(text),
            context=self.score_context(task),
        )

        w = self.weights
        weighted = (
            components.length * w.length
            + components.code * w.code
            + components.terms * w.terms
            + components.structure * w.structure
            + components.context * w.context
        )
        score = max(0, min(100, round(weighted)))

        return ComplexityScore(
            score=score,
            breakdown=ComplexityBreakdown(components=components, weights=w),
        )

    # ── Sub-scores ────────────────────────────────────────────

    @staticmethod
    def score_length(text: str) -> int:
        """Score by character count."""
        return _ladder(len(text), _LENGTH_LADDER, _LENGTH_TOP)

    @staticmethod
    def score_code(text: str) -> int:
        """Score by the share of characters inside fenced or inline code spans.

        Both patterns run over the whole text, so the ratio can exceed 1.0
        when inline matches overlap fenced blocks; the ladder caps it.
        """
        if not text:
            return _ladder(0.0, _CODE_LADDER, _CODE_TOP)
        fenced = sum(len(m) for m in _FENCED_CODE_RE.findall(text))
        inline = sum(len(m) for m in _INLINE_CODE_RE.findall(text))
        ratio = (fenced + inline) / len(text)
        return _ladder(ratio, _CODE_LADDER, _CODE_TOP)

    @staticmethod
    def score_terms(text: str) -> int:
        """Score by whole-word, case-insensitive technical term occurrences."""
        count = len(_TERM_RE.findall(text.lower()))
        return _ladder(count, _TERMS_LADDER, _TERMS_TOP)

    @staticmethod
    def score_structure(text: str) -> int:
        """Score by list items, headings and approximate table rows."""
        list_items = len(_LIST_ITEM_RE.findall(text))
        headings = len(_HEADING_RE.findall(text))
        table_rows = len(_TABLE_CELL_RE.findall(text)) / 3
        return _ladder(list_items + headings + table_rows, _STRUCTURE_LADDER, _STRUCTURE_TOP)

    @staticmethod
    def score_context(task: Task | str) -> int:
        """Score by the richness of the task's own context object."""
        if isinstance(task, str):
            return _CONTEXT_ABSENT

        present = [
            value for value in (task.context, task.references, task.history)
            if value is not None and value != ""
        ]
        if not present:
            return _CONTEXT_ABSENT

        if isinstance(task.context, dict):
            return _ladder(len(task.context), _CONTEXT_KEYS_LADDER, _CONTEXT_KEYS_TOP)

        return _CONTEXT_OPAQUE
