"""Record sources for defectage."""

from defectage.sources.allure import (
    RecordSourceError,
    ResultBatch,
    load_history,
    read_results,
)

__all__ = [
    "RecordSourceError",
    "ResultBatch",
    "load_history",
    "read_results",
]
