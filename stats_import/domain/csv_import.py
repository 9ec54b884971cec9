"""
stats_import/domain/csv_import.py

Domain models used by the CSV import pipeline.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Sequence

from stats_import.failure_codes import FailureCategory, SummaryStatus

REQUIRED_FIELDS: tuple[str, ...] = ("state", "category", "statistic", "value", "year")


@dataclass(frozen=True)
class RawRow:
    """
    One parsed data row before validation.

    row_number follows spreadsheet numbering: the header is row 1.
    """

    row_number: int
    fields: Mapping[str, str]

    def get(self, name: str) -> str:
        return self.fields.get(name, "")


@dataclass(frozen=True)
class ValidationFailure:
    """
    One detected problem with an uploaded file or row.
    """

    category: FailureCategory
    message: str
    row_number: int | None = None
    field_name: str | None = None
    field_value: str | None = None
    expected_value: str | None = None
    details: dict[str, Any] | None = None


@dataclass(frozen=True)
class NormalizedRow:
    """
    A row that passed the row-local checks, typed and trimmed.
    """

    row_number: int
    state: str
    category: str
    statistic: str
    value: float
    year: int


@dataclass(frozen=True)
class ReferenceSnapshot:
    """
    Consistent view of the reference entities named by one file.

    Loaded once and shared by validation and commit.
    """

    states_by_name: Mapping[str, int] = field(default_factory=dict)
    categories_by_name: Mapping[str, int] = field(default_factory=dict)
    statistics_by_name: Mapping[str, int] = field(default_factory=dict)
    data_sources_by_statistic: Mapping[str, int | None] = field(default_factory=dict)

    def data_source_for(self, statistic: str) -> int | None:
        return self.data_sources_by_statistic.get(statistic)


@dataclass(frozen=True)
class ValidationSummary:
    """
    Row accounting for one import phase.
    """

    total_rows: int
    valid_rows: int
    error_rows: int
    failure_breakdown: dict[str, int]
    validation_time_ms: int
    status: SummaryStatus

    @classmethod
    def from_failures(
        cls,
        *,
        total_rows: int,
        failures: Sequence[ValidationFailure],
        validation_time_ms: int,
    ) -> ValidationSummary:
        """
        Build a summary where each failing row counts once, under the
        category of the first failure reported for it.
        """

        first_by_row: dict[int | None, FailureCategory] = {}
        for failure in failures:
            first_by_row.setdefault(failure.row_number, failure.category)

        breakdown = Counter(category.value for category in first_by_row.values())
        error_rows = len(first_by_row)
        return cls(
            total_rows=total_rows,
            valid_rows=total_rows - error_rows,
            error_rows=error_rows,
            failure_breakdown=dict(breakdown),
            validation_time_ms=validation_time_ms,
            status=SummaryStatus.VALIDATED_FAILED if failures else SummaryStatus.VALIDATED_PASSED,
        )

    @classmethod
    def empty(cls, *, status: SummaryStatus, validation_time_ms: int = 0) -> ValidationSummary:
        return cls(
            total_rows=0,
            valid_rows=0,
            error_rows=0,
            failure_breakdown={},
            validation_time_ms=validation_time_ms,
            status=status,
        )

    def with_status(self, status: SummaryStatus, *, validation_time_ms: int | None = None) -> ValidationSummary:
        if validation_time_ms is None:
            return replace(self, status=status)
        return replace(self, status=status, validation_time_ms=validation_time_ms)


@dataclass(frozen=True)
class ValidationOutcome:
    """
    Result of running every validation phase over one file.
    """

    normalized_rows: list[NormalizedRow]
    failures: list[ValidationFailure]
    summary: ValidationSummary
    snapshot: ReferenceSnapshot

    @property
    def passed(self) -> bool:
        return not self.failures


@dataclass(frozen=True)
class CommitResult:
    import_session_id: int | None
    records_written: int
    elapsed_ms: int


@dataclass(frozen=True)
class ImportStats:
    total_rows: int = 0
    valid_rows: int = 0
    error_rows: int = 0


@dataclass(frozen=True)
class ImportResultSummary:
    failure_breakdown: dict[str, int]
    processing_time: str


@dataclass(frozen=True)
class ImportResult:
    """
    Structured outcome returned by every import_csv call.
    """

    success: bool
    import_id: int
    message: str
    stats: ImportStats = field(default_factory=ImportStats)
    summary: ImportResultSummary | None = None
    duplicate: bool = False


@dataclass(frozen=True)
class ImportDetails:
    import_record: Any
    logs: list[Any]
    summary: ValidationSummary | None
