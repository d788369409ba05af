"""Test-run, history and report row models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Outcome(Enum):
    """Outcome of a single test execution."""

    PASSED = "passed"
    FAILED = "failed"
    BROKEN = "broken"
    SKIPPED = "skipped"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: object) -> Outcome:
        """Map a raw status value to an ``Outcome`` (case-insensitive).

        Missing or unrecognised values become ``UNKNOWN``.
        """
        if not isinstance(raw, str):
            return cls.UNKNOWN
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.UNKNOWN


_DEFECT_OUTCOMES = frozenset({Outcome.FAILED, Outcome.BROKEN})


def is_defect_outcome(outcome: Outcome) -> bool:
    """Return ``True`` for ``failed`` and ``broken`` outcomes."""
    return outcome in _DEFECT_OUTCOMES


@dataclass(frozen=True)
class Diagnostic:
    """Failure details attached to a defect outcome."""

    message: str | None = None
    """Failure message."""

    trace: str | None = None
    """Stack trace, possibly multi-line."""


@dataclass(frozen=True)
class TestRunRecord:
    """One executed test in the current batch."""

    __test__ = False

    identity: str | None
    """Stable id shared by every run of the same logical test (Allure ``historyId``)."""

    qualified_name: str | None
    """Fully-qualified name the class and test names are derived from."""

    outcome: Outcome = Outcome.UNKNOWN
    """Outcome of this run."""

    diagnostic: Diagnostic = field(default_factory=Diagnostic)
    """Failure details, empty for non-defect outcomes."""

    completed_at: int = 0
    """Completion timestamp in epoch milliseconds."""

    @property
    def is_defect(self) -> bool:
        return is_defect_outcome(self.outcome)


@dataclass(frozen=True)
class HistoryEntry:
    """A previously completed run of one identity."""

    outcome: Outcome = Outcome.UNKNOWN
    completed_at: int = 0

    @property
    def is_defect(self) -> bool:
        return is_defect_outcome(self.outcome)


@dataclass
class TestAccumulator:
    """Per-identity counters built while folding one batch.

    Names are fixed at first sight of the identity. ``defect_count`` never
    exceeds ``total_runs`` and neither is ever decremented. ``current_outcome``
    follows the run with the latest ``completed_at``; on a tie the record read
    last wins.
    """

    __test__ = False

    class_name: str
    test_name: str
    total_runs: int = 0
    defect_count: int = 0
    diagnostic: Diagnostic | None = None
    """Diagnostic of the most recent defect run (``None`` when none was seen)."""

    current_outcome: Outcome = Outcome.UNKNOWN
    """Outcome of the most recent run in the batch (retries included)."""

    latest_completed_at: int | None = None
    """Completion time of the run ``current_outcome`` came from."""

    latest_defect_at: int | None = None
    """Completion time of the run ``diagnostic`` came from."""

    def observe(self, record: TestRunRecord) -> None:
        """Fold one run of this identity into the counters."""
        self.total_runs += 1
        completed_at = record.completed_at
        if self.latest_completed_at is None or completed_at >= self.latest_completed_at:
            self.current_outcome = record.outcome
            self.latest_completed_at = completed_at
        if not record.is_defect:
            return
        self.defect_count += 1
        if self.latest_defect_at is None or completed_at >= self.latest_defect_at:
            self.diagnostic = record.diagnostic
            self.latest_defect_at = completed_at

    @property
    def defect_age(self) -> int:
        """Cumulative number of defect outcomes seen in the batch.

        This is the summary-report metric, not a consecutive streak; see
        ``DefectRecord.age`` for the streak.
        """
        return self.defect_count


@dataclass(frozen=True)
class DefectRecord:
    """A current-batch defect with its consecutive-failure age."""

    class_name: str
    test_name: str
    age: int
    """Consecutive defect runs, the current run included."""

    error_message: str = ""
    short_trace: str = ""
    """First line of the stack trace."""
