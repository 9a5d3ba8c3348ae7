"""Routing: threshold table, tier selection and fallback dispatch."""

from taskrouter.routing.engine import (
    FALLBACK_TIER,
    REASONING_TIER,
    TaskRouter,
    select_tier,
    tier_for_complexity,
)
from taskrouter.routing.thresholds import ThresholdStore, derive_thresholds

__all__ = [
    "FALLBACK_TIER",
    "REASONING_TIER",
    "TaskRouter",
    "ThresholdStore",
    "derive_thresholds",
    "select_tier",
    "tier_for_complexity",
]
