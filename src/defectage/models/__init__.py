"""Data models for defectage."""

from defectage.models.records import (
    DefectRecord,
    Diagnostic,
    HistoryEntry,
    Outcome,
    TestAccumulator,
    TestRunRecord,
    is_defect_outcome,
)

__all__ = [
    "DefectRecord",
    "Diagnostic",
    "HistoryEntry",
    "Outcome",
    "TestAccumulator",
    "TestRunRecord",
    "is_defect_outcome",
]
