"""JSON reporter — writes a report table as a structured JSON document."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from defectage import __version__

if TYPE_CHECKING:
    from pathlib import Path

    from defectage.reporters.table import ReportTable

logger = logging.getLogger(__name__)


class JSONReporter:
    """Serialize a ``ReportTable`` with its header names as object keys."""

    def generate(
        self,
        table: ReportTable,
        output_path: Path,
        *,
        extra: dict[str, Any] | None = None,
    ) -> Path:
        """Write a JSON report file.

        Args:
            table: Rows to write.
            output_path: Path to write the JSON file.
            extra: Additional top-level fields (e.g. run counts).

        Returns:
            The path to the generated JSON file.
        """
        report = _build_report(table, extra=extra)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(_dumps(report), encoding="utf-8")
        logger.info("JSON report written to %s", output_path)
        return output_path

    def generate_string(self, table: ReportTable, *, extra: dict[str, Any] | None = None) -> str:
        """Return the JSON report as a string."""
        return _dumps(_build_report(table, extra=extra))


def _dumps(report: dict[str, Any]) -> str:
    return json.dumps(report, indent=2, ensure_ascii=False, default=str)


def _build_report(table: ReportTable, *, extra: dict[str, Any] | None = None) -> dict[str, Any]:
    report: dict[str, Any] = {
        "tool": "defectage",
        "version": __version__,
        "timestamp": datetime.now(tz=UTC).isoformat(),
        "variant": table.variant.value,
        "columns": list(table.header),
        "rows": table.as_dicts(),
    }
    if extra:
        report["summary"] = extra
    return report
