"""Aggregation and streak analysis for defectage."""

from defectage.analysis.aggregator import Aggregator, aggregate
from defectage.analysis.naming import split_qualified_name
from defectage.analysis.streak import (
    StreakResolver,
    build_defect_records,
    sort_history,
    streak_age,
)

__all__ = [
    "Aggregator",
    "StreakResolver",
    "aggregate",
    "build_defect_records",
    "sort_history",
    "split_qualified_name",
    "streak_age",
]
