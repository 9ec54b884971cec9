from __future__ import annotations

from collections.abc import Sequence

import pytest

from stats_import.domain.csv_import import NormalizedRow, RawRow, ReferenceSnapshot
from stats_import.failure_codes import FailureCategory, SummaryStatus
from stats_import.services.validation_runner import ValidationRunner
from stats_import.validators.row_validator import RowValidator


class StubResolver:
    def __init__(self, snapshot: ReferenceSnapshot) -> None:
        self.snapshot = snapshot
        self.calls: list[list[NormalizedRow]] = []

    def load_snapshot(self, rows: Sequence[NormalizedRow]) -> ReferenceSnapshot:
        self.calls.append(list(rows))
        return self.snapshot


KNOWN = ReferenceSnapshot(
    states_by_name={"California": 1, "Texas": 2},
    categories_by_name={"Economy": 1},
    statistics_by_name={"GDP": 10},
    data_sources_by_statistic={"GDP": 5},
)


def _raw(row_number: int, state: str = "California", value: str = "1", year: str = "2020", category: str = "Economy") -> RawRow:
    return RawRow(
        row_number=row_number,
        fields={"state": state, "category": category, "statistic": "GDP", "value": value, "year": year},
    )


@pytest.fixture()
def runner() -> ValidationRunner:
    return ValidationRunner(RowValidator(current_year=lambda: 2025))


def test_all_valid_rows_pass(runner: ValidationRunner) -> None:
    resolver = StubResolver(KNOWN)

    outcome = runner.run([_raw(2), _raw(3, state="Texas")], resolver=resolver)

    assert outcome.passed
    assert [row.row_number for row in outcome.normalized_rows] == [2, 3]
    assert outcome.summary.status is SummaryStatus.VALIDATED_PASSED
    assert outcome.summary.total_rows == 2
    assert outcome.summary.valid_rows == 2
    assert outcome.summary.failure_breakdown == {}
    assert outcome.snapshot is KNOWN


def test_reference_snapshot_loaded_once_for_surviving_rows(runner: ValidationRunner) -> None:
    resolver = StubResolver(KNOWN)

    runner.run([_raw(2), _raw(3, value="abc"), _raw(4, state="Texas")], resolver=resolver)

    assert len(resolver.calls) == 1
    assert [row.row_number for row in resolver.calls[0]] == [2, 4]


def test_no_lookup_when_no_row_survives_local_checks(runner: ValidationRunner) -> None:
    resolver = StubResolver(KNOWN)

    outcome = runner.run([_raw(2, value="abc")], resolver=resolver)

    assert resolver.calls == []
    assert outcome.snapshot == ReferenceSnapshot()


def test_failures_sorted_by_row_and_accounting_balances(runner: ValidationRunner) -> None:
    rows = [
        _raw(2, state="Atlantis", category="Magic"),
        _raw(3, value="-1"),
        _raw(4, state=""),
        _raw(5),
    ]

    outcome = runner.run(rows, resolver=StubResolver(KNOWN))
    summary = outcome.summary

    assert [failure.row_number for failure in outcome.failures] == [2, 2, 3, 4]
    assert summary.error_rows == 3
    assert summary.valid_rows + summary.error_rows == summary.total_rows
    assert summary.failure_breakdown == {
        FailureCategory.INVALID_REFERENCE.value: 1,
        FailureCategory.BUSINESS_RULE.value: 1,
        FailureCategory.MISSING_REQUIRED.value: 1,
    }
    assert summary.status is SummaryStatus.VALIDATED_FAILED
    assert [row.row_number for row in outcome.normalized_rows] == [5]


def test_empty_input_passes_vacuously(runner: ValidationRunner) -> None:
    outcome = runner.run([], resolver=StubResolver(KNOWN))

    assert outcome.passed
    assert outcome.summary.total_rows == 0
    assert outcome.normalized_rows == []
