"""Reporters for writing and displaying defect-age reports."""

from __future__ import annotations

from defectage.reporters.csv_reporter import CSVReporter
from defectage.reporters.json_reporter import JSONReporter
from defectage.reporters.table import ReportTable, ReportVariant, defects_table, summary_table
from defectage.reporters.terminal import reporter

__all__ = [
    "CSVReporter",
    "JSONReporter",
    "ReportTable",
    "ReportVariant",
    "defects_table",
    "reporter",
    "summary_table",
]
