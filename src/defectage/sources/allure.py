"""Read Allure result files and the Allure history store.

Allure writes one ``<uuid>-result.json`` per executed test::

    {
      "historyId": "5c1b...",
      "name": "testLogin",
      "fullName": "com.acme.LoginTest.testLogin",
      "status": "failed",
      "statusDetails": {"message": "...", "trace": "..."},
      "stop": 1718000000000
    }

and keeps prior runs in ``history/history.json``::

    {"5c1b...": {"statistic": {...}, "items": [{"status": "passed", "time": {"stop": ...}}]}}

Individual records that are unusable are skipped with a log line; only
failures to read the results location itself are raised.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from defectage.models.records import (
    Diagnostic,
    HistoryEntry,
    Outcome,
    TestRunRecord,
    is_defect_outcome,
)

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_RESULT_PATTERN = "*-result.json"
DEFAULT_HISTORY_FILE = "history/history.json"


class RecordSourceError(Exception):
    """Raised when the results location cannot be read as a directory."""


@dataclass
class ResultBatch:
    """Records read from one results directory."""

    records: list[TestRunRecord] = field(default_factory=list)
    files_read: int = 0
    malformed_files: int = 0
    """Files that were not a JSON object and were skipped."""


def _safe_text(data: dict[str, Any], key: str) -> str | None:
    """Return ``data[key]`` as text when present, non-null and scalar."""
    value = data.get(key)
    if value is None or isinstance(value, dict | list):
        return None
    return str(value)


def _safe_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int | float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0


def parse_result(data: dict[str, Any]) -> TestRunRecord:
    """Convert one decoded Allure result object into a ``TestRunRecord``.

    ``fullName`` is the qualified name; ``name`` is only used when
    ``fullName`` is absent. Missing fields are left as ``None`` so the
    aggregator can exclude the record.
    """
    outcome = Outcome.parse(data.get("status"))
    diagnostic = Diagnostic()
    details = data.get("statusDetails")
    if is_defect_outcome(outcome) and isinstance(details, dict):
        diagnostic = Diagnostic(
            message=_safe_text(details, "message"),
            trace=_safe_text(details, "trace"),
        )

    return TestRunRecord(
        identity=_safe_text(data, "historyId"),
        qualified_name=_safe_text(data, "fullName") or _safe_text(data, "name"),
        outcome=outcome,
        diagnostic=diagnostic,
        completed_at=_safe_int(data.get("stop")),
    )


def find_result_files(results_dir: Path, pattern: str = DEFAULT_RESULT_PATTERN) -> list[Path]:
    """List result files in *results_dir* (non-recursive), sorted by name."""
    if not results_dir.is_dir():
        raise RecordSourceError(f"Results location is not a directory: {results_dir}")
    return sorted(p for p in results_dir.glob(pattern) if p.is_file())


def read_results(results_dir: Path, pattern: str = DEFAULT_RESULT_PATTERN) -> ResultBatch:
    """Read every result file in *results_dir*.

    Raises:
        RecordSourceError: If *results_dir* is not a directory.
        OSError: If a result file cannot be read.
    """
    batch = ResultBatch()
    for path in find_result_files(results_dir, pattern):
        text = path.read_text(encoding="utf-8")
        batch.files_read += 1
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning("Skipping malformed result file %s: %s", path.name, exc)
            batch.malformed_files += 1
            continue

        if not isinstance(data, dict):
            logger.warning("Skipping result file %s: not a JSON object", path.name)
            batch.malformed_files += 1
            continue

        batch.records.append(parse_result(data))

    logger.info("Read %d result files from %s", batch.files_read, results_dir)
    return batch


def _parse_history_entry(item: Any) -> HistoryEntry:
    """Parse one history item; missing fields fall back to an unknown, oldest entry."""
    if not isinstance(item, dict):
        return HistoryEntry()
    time_info = item.get("time")
    stop = time_info.get("stop") if isinstance(time_info, dict) else None
    return HistoryEntry(outcome=Outcome.parse(item.get("status")), completed_at=_safe_int(stop))


def parse_history(data: dict[str, Any]) -> dict[str, list[HistoryEntry]]:
    """Convert a decoded history store into entries keyed by identity.

    Each value may be an Allure history object with an ``items`` list or a
    bare list of items.
    """
    store: dict[str, list[HistoryEntry]] = {}
    for identity, value in data.items():
        items = value.get("items") if isinstance(value, dict) else value
        if not isinstance(items, list):
            logger.debug("History for %s has no items list", identity)
            continue
        store[str(identity)] = [_parse_history_entry(item) for item in items]
    return store


def load_history(path: Path) -> dict[str, list[HistoryEntry]] | None:
    """Load the history store at *path*.

    Returns ``None`` when the file does not exist or does not hold a JSON
    object, in which case every defect's age is the current run only.

    Raises:
        OSError: If the file exists but cannot be read.
    """
    if not path.is_file():
        logger.info("No history store at %s", path)
        return None

    text = path.read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("Ignoring malformed history store %s: %s", path, exc)
        return None

    if not isinstance(data, dict):
        logger.warning("Ignoring history store %s: not a JSON object", path)
        return None

    store = parse_history(data)
    logger.info("Loaded history for %d tests from %s", len(store), path)
    return store
