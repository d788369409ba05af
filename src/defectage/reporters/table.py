"""Report variants and the rows each one renders."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from defectage.models.records import DefectRecord, TestAccumulator


class ReportVariant(Enum):
    """Which defect-age metric a report carries."""

    SUMMARY = "summary"
    """Every identity with run/defect counts; ``Defect Age`` is the cumulative count."""

    DEFECTS = "defects"
    """Only current defects, with the consecutive-failure age."""


SUMMARY_HEADER = ["Class Name", "Test Name", "Defect Count", "Total Runs", "Defect Age"]
DEFECTS_HEADER = [
    "Class_Name",
    "Test_Name",
    "Defect_Age_Builds",
    "Error_Message",
    "Short_Trace",
]


@dataclass
class ReportTable:
    """A header plus data rows, independent of the output format."""

    variant: ReportVariant
    header: list[str]
    rows: list[list[str | int]] = field(default_factory=list)

    def as_dicts(self) -> list[dict[str, str | int]]:
        return [dict(zip(self.header, row, strict=True)) for row in self.rows]


def summary_table(accumulators: Iterable[TestAccumulator]) -> ReportTable:
    """One row per identity, sorted by class then test name."""
    ordered = sorted(accumulators, key=lambda acc: (acc.class_name, acc.test_name))
    return ReportTable(
        variant=ReportVariant.SUMMARY,
        header=list(SUMMARY_HEADER),
        rows=[
            [acc.class_name, acc.test_name, acc.defect_count, acc.total_runs, acc.defect_age]
            for acc in ordered
        ],
    )


def defects_table(records: Iterable[DefectRecord]) -> ReportTable:
    """One row per current defect, oldest streak first."""
    ordered = sorted(records, key=lambda rec: (-rec.age, rec.class_name, rec.test_name))
    return ReportTable(
        variant=ReportVariant.DEFECTS,
        header=list(DEFECTS_HEADER),
        rows=[
            [rec.class_name, rec.test_name, rec.age, rec.error_message, rec.short_trace]
            for rec in ordered
        ],
    )
