"""Delimited-text reporter — writes a report table as a flat CSV file.

Values are never quoted. Instead every cell is flattened before it is
written: line breaks collapse to spaces and the delimiter is replaced by a
substitute character, so each record stays on exactly one line with exactly
one cell per column.
"""

from __future__ import annotations

import csv
import io
import logging
from typing import TYPE_CHECKING

from defectage.utils.text import sanitize_field

if TYPE_CHECKING:
    from pathlib import Path
    from typing import TextIO

    from defectage.reporters.table import ReportTable

logger = logging.getLogger(__name__)

DEFAULT_DELIMITER = ","


def default_substitute(delimiter: str) -> str:
    """Return the character that replaces *delimiter* inside values."""
    return "," if delimiter == ";" else ";"


class CSVReporter:
    """Write ``ReportTable`` objects as unquoted delimited text.

    Args:
        delimiter: Single-character field separator.
        substitute: Replacement for the delimiter inside values. Defaults to
            ``;`` (or ``,`` when the delimiter itself is ``;``).
    """

    def __init__(self, delimiter: str = DEFAULT_DELIMITER, substitute: str | None = None) -> None:
        if len(delimiter) != 1:
            raise ValueError(f"Delimiter must be a single character (got: {delimiter!r})")
        self.delimiter = delimiter
        self.substitute = substitute if substitute is not None else default_substitute(delimiter)
        if self.substitute == self.delimiter:
            raise ValueError("Delimiter substitute must differ from the delimiter")

    def generate(self, table: ReportTable, output_path: Path) -> Path:
        """Write *table* to *output_path*, replacing any existing file.

        Returns:
            The path to the written file.
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with output_path.open("w", encoding="utf-8", newline="") as handle:
            self._write(table, handle)
        logger.info("CSV report written to %s (%d rows)", output_path, len(table.rows))
        return output_path

    def generate_string(self, table: ReportTable) -> str:
        """Return *table* rendered as delimited text."""
        buffer = io.StringIO()
        self._write(table, buffer)
        return buffer.getvalue()

    def _write(self, table: ReportTable, handle: TextIO) -> None:
        writer = csv.writer(
            handle,
            delimiter=self.delimiter,
            quoting=csv.QUOTE_NONE,
            quotechar=None,
            escapechar=None,
            lineterminator="\n",
        )
        writer.writerow(self._sanitize_row(table.header))
        for row in table.rows:
            writer.writerow(self._sanitize_row(row))

    def _sanitize_row(self, row: list[str] | list[str | int]) -> list[str]:
        return [sanitize_field(value, self.delimiter, self.substitute) for value in row]
