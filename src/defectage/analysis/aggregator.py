"""Fold a batch of test-run records into one accumulator per identity.

Counters are commutative, so the final ``total_runs``/``defect_count`` of each
identity do not depend on record order. The current outcome is that of the
run that completed last, so retries are judged by their final attempt. Class
and test names are taken from the first record seen for an identity, which
does depend on order.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from defectage.analysis.naming import DEFAULT_SEPARATORS, UNKNOWN_CLASS, split_qualified_name
from defectage.models.records import TestAccumulator

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from defectage.models.records import TestRunRecord

logger = logging.getLogger(__name__)


class Aggregator:
    """Build ``TestAccumulator`` objects keyed by test identity."""

    def __init__(
        self,
        *,
        separators: Sequence[str] = DEFAULT_SEPARATORS,
        unknown_class: str = UNKNOWN_CLASS,
    ) -> None:
        self._separators = tuple(separators)
        self._unknown_class = unknown_class
        self._accumulators: dict[str, TestAccumulator] = {}
        self.skipped = 0
        """Number of records excluded for missing identity or name."""

    @property
    def accumulators(self) -> dict[str, TestAccumulator]:
        """Accumulators in first-seen order, keyed by identity."""
        return self._accumulators

    def add(self, record: TestRunRecord) -> TestAccumulator | None:
        """Fold one record in.

        Returns the updated accumulator, or ``None`` when the record lacks an
        identity or a qualified name and was skipped.
        """
        if not record.identity or not record.qualified_name:
            self.skipped += 1
            logger.debug(
                "Skipping record without identity or name (identity=%r, name=%r)",
                record.identity,
                record.qualified_name,
            )
            return None

        accumulator = self._accumulators.get(record.identity)
        if accumulator is None:
            class_name, test_name = split_qualified_name(
                record.qualified_name, self._separators, self._unknown_class
            )
            accumulator = TestAccumulator(class_name=class_name, test_name=test_name)
            self._accumulators[record.identity] = accumulator

        accumulator.observe(record)

        return accumulator

    def add_all(self, records: Iterable[TestRunRecord]) -> None:
        for record in records:
            self.add(record)


def aggregate(
    records: Iterable[TestRunRecord],
    *,
    separators: Sequence[str] = DEFAULT_SEPARATORS,
    unknown_class: str = UNKNOWN_CLASS,
) -> dict[str, TestAccumulator]:
    """Aggregate *records* and return the accumulators keyed by identity."""
    aggregator = Aggregator(separators=separators, unknown_class=unknown_class)
    aggregator.add_all(records)
    return aggregator.accumulators
