"""
stats_import/services/validation_runner.py

Runs every validation phase over a parsed file and produces the failure
list and summary without writing anything.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import Protocol

from stats_import.domain.csv_import import (
    NormalizedRow,
    RawRow,
    ReferenceSnapshot,
    ValidationFailure,
    ValidationOutcome,
    ValidationSummary,
)
from stats_import.validators.row_validator import RowValidator


class SnapshotLoader(Protocol):
    def load_snapshot(self, rows: Sequence[NormalizedRow]) -> ReferenceSnapshot:
        ...


class ValidationRunner:
    """
    Row-local checks over every row, then one batched reference check over
    the rows that survived them.
    """

    def __init__(self, validator: RowValidator | None = None) -> None:
        self._validator = validator or RowValidator()

    def run(self, rows: Sequence[RawRow], *, resolver: SnapshotLoader) -> ValidationOutcome:
        started = time.perf_counter()

        candidates: list[NormalizedRow] = []
        failures: list[ValidationFailure] = []
        for row in rows:
            normalized, failure = self._validator.validate_row(row)
            if failure is not None:
                failures.append(failure)
            elif normalized is not None:
                candidates.append(normalized)

        snapshot = resolver.load_snapshot(candidates) if candidates else ReferenceSnapshot()
        reference_failures = self._validator.check_references(candidates, snapshot)
        failures.extend(reference_failures)
        # Stable sort keeps a row's reference failures in field order.
        failures.sort(key=lambda failure: failure.row_number or 0)

        rejected_rows = {failure.row_number for failure in reference_failures}
        normalized_rows = [row for row in candidates if row.row_number not in rejected_rows]

        summary = ValidationSummary.from_failures(
            total_rows=len(rows),
            failures=failures,
            validation_time_ms=_elapsed_ms(started),
        )
        return ValidationOutcome(
            normalized_rows=normalized_rows,
            failures=failures,
            summary=summary,
            snapshot=snapshot,
        )


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
