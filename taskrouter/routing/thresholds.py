"""Base threshold table and per-call priority adjustment.

The ThresholdStore owns the only routing state that outlives a call. Updates
replace the table wholesale (copy-on-write) under a lock, and every call
derives its own adjusted copy from a snapshot, so a dispatch that is already
in flight never sees a later update.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping

from taskrouter.schemas.routing import ThresholdTable
from taskrouter.schemas.task import Priority

logger = logging.getLogger(__name__)

# High priority lowers the cheap-tier ceiling; low priority raises the mid-tier ceiling
_HIGH_PRIORITY_SIMPLE_SHIFT = -10
_LOW_PRIORITY_MEDIUM_SHIFT = 15

_FIELDS = frozenset(ThresholdTable.model_fields)


def derive_thresholds(base: ThresholdTable, priority: Priority | str | None) -> ThresholdTable:
    """Return the per-call threshold table for a priority hint.

    ``high`` lowers ``simple`` by 10, ``low`` raises ``medium`` by 15 and
    ``complex`` is never adjusted. The base table is not modified.
    """
    simple, medium = base.simple, base.medium
    if priority == Priority.HIGH:
        simple += _HIGH_PRIORITY_SIMPLE_SHIFT
    elif priority == Priority.LOW:
        medium += _LOW_PRIORITY_MEDIUM_SHIFT
    return ThresholdTable(simple=simple, medium=medium, complex=base.complex)


class ThresholdStore:
    """Mutable owner of the base threshold table.

    Thread-safe: ``update`` merges under a lock and publishes a new table,
    ``snapshot`` and ``derive`` read the currently published table.
    """

    def __init__(self, initial: ThresholdTable | None = None) -> None:
        table = initial or ThresholdTable()
        _validate(table)
        self._table = table
        self._lock = threading.Lock()

    def snapshot(self) -> ThresholdTable:
        """Return a copy of the current base table."""
        with self._lock:
            return self._table.model_copy()

    def derive(self, priority: Priority | str | None) -> ThresholdTable:
        """Return the adjusted table for one call, from a snapshot of the base."""
        return derive_thresholds(self.snapshot(), priority)

    def update(self, partial: Mapping[str, int]) -> ThresholdTable:
        """Merge fields into the base table; omitted fields keep their values.

        Args:
            partial: Any subset of ``simple``, ``medium``, ``complex``.

        Returns:
            The new base table.

        Raises:
            ValueError: On unknown fields, values outside 0-100, or a merged
                        table that is not strictly ordered. The base table is
                        left unchanged.
        """
        unknown = set(partial) - _FIELDS
        if unknown:
            raise ValueError(f"Unknown threshold field(s): {', '.join(sorted(unknown))}")

        with self._lock:
            merged = ThresholdTable(**{**self._table.model_dump(), **partial})
            _validate(merged)
            self._table = merged

        logger.info(
            "Updated thresholds: simple=%d medium=%d complex=%d",
            merged.simple, merged.medium, merged.complex,
        )
        return merged.model_copy()


def _validate(table: ThresholdTable) -> None:
    for name in ("simple", "medium", "complex"):
        value = getattr(table, name)
        if not 0 <= value <= 100:
            raise ValueError(f"Threshold '{name}' must be within 0-100, got {value}")
    if not table.is_ordered():
        raise ValueError(
            "Thresholds must satisfy simple < medium < complex, got "
            f"simple={table.simple} medium={table.medium} complex={table.complex}"
        )
