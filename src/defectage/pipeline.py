"""Report pipeline: read records, aggregate, resolve ages, write the report.

Every location the pipeline touches is passed in through ``ReportSettings``,
so a run can be pointed at any fixture directory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from defectage.analysis.aggregator import Aggregator
from defectage.analysis.naming import DEFAULT_SEPARATORS, UNKNOWN_CLASS
from defectage.analysis.streak import StreakResolver, build_defect_records
from defectage.reporters.csv_reporter import DEFAULT_DELIMITER, CSVReporter
from defectage.reporters.json_reporter import JSONReporter
from defectage.reporters.table import ReportVariant, defects_table, summary_table
from defectage.sources.allure import DEFAULT_RESULT_PATTERN, load_history, read_results

if TYPE_CHECKING:
    from pathlib import Path

    from defectage.config import DefectAgeConfig
    from defectage.reporters.table import ReportTable

logger = logging.getLogger(__name__)


@dataclass
class ReportSettings:
    """Inputs and outputs of one report generation."""

    results_dir: Path
    """Directory holding the current batch of result files."""

    output_path: Path
    """File the report is written to."""

    history_path: Path | None = None
    """History store; ``None`` disables history (every age is 1)."""

    variant: ReportVariant = ReportVariant.DEFECTS
    output_format: str = "csv"
    result_pattern: str = DEFAULT_RESULT_PATTERN
    delimiter: str = DEFAULT_DELIMITER
    delimiter_substitute: str | None = None
    separators: tuple[str, ...] = DEFAULT_SEPARATORS
    unknown_class: str = UNKNOWN_CLASS

    @classmethod
    def from_config(cls, config: DefectAgeConfig) -> ReportSettings:
        """Build settings from a loaded ``DefectAgeConfig``."""
        return cls(
            results_dir=config.results_dir,
            output_path=config.output_path,
            history_path=config.history_path if config.history.enabled else None,
            variant=ReportVariant(config.report.variant),
            output_format=config.report.format,
            result_pattern=config.results.pattern,
            delimiter=config.report.delimiter,
            delimiter_substitute=config.report.resolved_substitute,
            separators=tuple(config.naming.separators),
            unknown_class=config.naming.unknown_class,
        )


@dataclass
class ReportResult:
    """Outcome of one report generation."""

    output_path: Path
    table: ReportTable
    results_found: bool = True
    """False when the results directory did not exist."""

    records_read: int = 0
    records_skipped: int = 0
    """Records excluded for a missing identity or name, plus malformed files."""

    history_loaded: bool = False
    tests: int = 0
    """Distinct test identities in the batch."""

    defects: int = 0
    """Identities with a defect in the current batch."""

    @property
    def rows_written(self) -> int:
        return len(self.table.rows)

    def summary(self) -> dict[str, int | bool]:
        return {
            "results_found": self.results_found,
            "records_read": self.records_read,
            "records_skipped": self.records_skipped,
            "history_loaded": self.history_loaded,
            "tests": self.tests,
            "defects": self.defects,
            "rows_written": self.rows_written,
        }


def generate_report(settings: ReportSettings) -> ReportResult:
    """Run the whole pipeline once and write the report.

    A missing results directory is not an error: a header-only report is
    written and ``results_found`` is ``False``.

    Raises:
        RecordSourceError: If the results location exists but is not a directory.
        ValueError: If the output format or CSV delimiter settings are invalid.
        OSError: If reading inputs or writing the report fails.
    """
    aggregator = Aggregator(separators=settings.separators, unknown_class=settings.unknown_class)
    results_found = settings.results_dir.exists()
    records_read = 0
    malformed = 0

    if results_found:
        batch = read_results(settings.results_dir, settings.result_pattern)
        records_read = len(batch.records)
        malformed = batch.malformed_files
        aggregator.add_all(batch.records)
    else:
        logger.info("Results directory not found: %s", settings.results_dir)

    accumulators = aggregator.accumulators
    history = None
    if settings.history_path is not None and accumulators:
        history = load_history(settings.history_path)

    defect_records = build_defect_records(accumulators, StreakResolver(history))

    if settings.variant is ReportVariant.SUMMARY:
        table = summary_table(accumulators.values())
    else:
        table = defects_table(defect_records)

    result = ReportResult(
        output_path=settings.output_path,
        table=table,
        results_found=results_found,
        records_read=records_read,
        records_skipped=aggregator.skipped + malformed,
        history_loaded=history is not None,
        tests=len(accumulators),
        defects=len(defect_records),
    )
    _write(settings, result)
    return result


def _write(settings: ReportSettings, result: ReportResult) -> None:
    if settings.output_format == "json":
        JSONReporter().generate(result.table, settings.output_path, extra=result.summary())
    elif settings.output_format == "csv":
        reporter = CSVReporter(settings.delimiter, settings.delimiter_substitute)
        reporter.generate(result.table, settings.output_path)
    else:
        raise ValueError(f"Unsupported report format: {settings.output_format!r}")
