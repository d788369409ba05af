"""Consecutive-failure ("defect age") resolution against run history.

The age of a failing test is the number of consecutive most-recent runs,
the current one included, whose outcome was a defect. History is walked
backward from the present and the walk stops at the first non-defect run, so
a test that failed long ago, then passed, and now fails again only counts its
recent streak.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from defectage.models.records import DefectRecord, is_defect_outcome
from defectage.utils.text import collapse_line_breaks, first_line

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from defectage.models.records import HistoryEntry, Outcome, TestAccumulator

logger = logging.getLogger(__name__)


def sort_history(entries: Iterable[HistoryEntry]) -> list[HistoryEntry]:
    """Return *entries* ordered most-recent first.

    Entries sharing a timestamp keep no guaranteed relative order.
    """
    return sorted(entries, key=lambda entry: entry.completed_at, reverse=True)


def streak_age(history: Iterable[HistoryEntry]) -> int:
    """Count the defect streak ending at a current defect run.

    *history* must already be ordered most-recent first (see
    ``sort_history``). The current run counts as 1; each leading defect entry
    adds one, and the first non-defect entry ends the walk.
    """
    age = 1
    for entry in history:
        if not entry.is_defect:
            break
        age += 1
    return age


class StreakResolver:
    """Resolve defect ages for identities against an optional history store.

    Args:
        history: Prior runs keyed by identity. ``None`` means no store exists
            (first run of the suite); a missing key means a test's first run.
            The store is only read.
    """

    def __init__(self, history: Mapping[str, Sequence[HistoryEntry]] | None = None) -> None:
        self._history = history

    def history_for(self, identity: str) -> list[HistoryEntry]:
        """Return the identity's history ordered most-recent first."""
        if self._history is None:
            return []
        return sort_history(self._history.get(identity, ()))

    def resolve(self, identity: str, outcome: Outcome) -> int | None:
        """Return the defect age for *identity*, or ``None`` when *outcome* is not a defect."""
        if not is_defect_outcome(outcome):
            return None
        return streak_age(self.history_for(identity))


def build_defect_records(
    accumulators: Mapping[str, TestAccumulator],
    resolver: StreakResolver,
) -> list[DefectRecord]:
    """Create one ``DefectRecord`` per accumulator whose latest run is a defect.

    Earlier failures in the batch (e.g. a retry that later passed) do not count.

    Records come back in the accumulators' order; callers sort as needed.
    """
    records: list[DefectRecord] = []
    for identity, accumulator in accumulators.items():
        age = resolver.resolve(identity, accumulator.current_outcome)
        if age is None:
            continue
        diagnostic = accumulator.diagnostic
        records.append(
            DefectRecord(
                class_name=accumulator.class_name,
                test_name=accumulator.test_name,
                age=age,
                error_message=collapse_line_breaks(diagnostic.message if diagnostic else None),
                short_trace=first_line(diagnostic.trace if diagnostic else None),
            )
        )
        logger.debug("Defect age for %s: %d", identity, age)
    return records
