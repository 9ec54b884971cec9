"""
stats_import/validators/row_validator.py

Row-level validation and type parsing for statistic uploads.

Row-local checks run in a fixed order and stop at the first problem:
required fields, then data types, then business rules. Reference checks
run afterwards against a preloaded snapshot and report every unknown
name on a row.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Sequence
from datetime import date

from stats_import.domain.csv_import import (
    REQUIRED_FIELDS,
    NormalizedRow,
    RawRow,
    ReferenceSnapshot,
    ValidationFailure,
)
from stats_import.failure_codes import FailureCategory

_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")


def _current_year() -> int:
    return date.today().year


class RowValidator:
    """
    Validates and parses one raw upload row at a time.
    """

    def __init__(
        self,
        *,
        min_year: int = 1990,
        max_year: int = 2030,
        current_year: Callable[[], int] = _current_year,
    ) -> None:
        self._min_year = min_year
        self._max_year = max_year
        self._current_year = current_year

    def validate_row(self, row: RawRow) -> tuple[NormalizedRow | None, ValidationFailure | None]:
        """
        Run the row-local phases; return either a normalized row or the
        first failure found.
        """

        failure = self._check_required(row)
        if failure is not None:
            return None, failure

        value, failure = self._parse_value(row)
        if failure is not None:
            return None, failure

        year, failure = self._parse_year(row)
        if failure is not None:
            return None, failure

        failure = self._check_business_rules(row, value=value, year=year)
        if failure is not None:
            return None, failure

        return (
            NormalizedRow(
                row_number=row.row_number,
                state=row.get("state"),
                category=row.get("category"),
                statistic=row.get("statistic"),
                value=value,
                year=year,
            ),
            None,
        )

    def check_references(
        self,
        rows: Sequence[NormalizedRow],
        snapshot: ReferenceSnapshot,
    ) -> list[ValidationFailure]:
        failures: list[ValidationFailure] = []
        for row in rows:
            failures.extend(self._check_row_references(row, snapshot))
        return failures

    def _check_required(self, row: RawRow) -> ValidationFailure | None:
        for field_name in REQUIRED_FIELDS:
            raw_value = row.get(field_name)
            if raw_value.strip() == "":
                return ValidationFailure(
                    row_number=row.row_number,
                    field_name=field_name,
                    field_value=raw_value,
                    category=FailureCategory.MISSING_REQUIRED,
                    message=f"Row {row.row_number}: Missing required field '{field_name}'",
                )
        return None

    def _parse_value(self, row: RawRow) -> tuple[float, ValidationFailure | None]:
        raw_value = row.get("value")
        try:
            # float() accepts digit separators and non-ASCII digits; uploads must not.
            value = math.nan if "_" in raw_value or not raw_value.isascii() else float(raw_value)
        except ValueError:
            value = math.nan

        if not math.isfinite(value):
            return value, ValidationFailure(
                row_number=row.row_number,
                field_name="value",
                field_value=raw_value,
                expected_value="numeric value",
                category=FailureCategory.DATA_TYPE,
                message=(
                    f"Row {row.row_number}: Invalid data type for 'value' - "
                    f"expected numeric, got '{raw_value}'"
                ),
            )
        return value, None

    def _parse_year(self, row: RawRow) -> tuple[int, ValidationFailure | None]:
        raw_year = row.get("year")
        if _INTEGER_PATTERN.fullmatch(raw_year):
            return int(raw_year), None
        return 0, ValidationFailure(
            row_number=row.row_number,
            field_name="year",
            field_value=raw_year,
            expected_value="integer year",
            category=FailureCategory.DATA_TYPE,
            message=(
                f"Row {row.row_number}: Invalid data type for 'year' - "
                f"expected integer, got '{raw_year}'"
            ),
        )

    def _check_business_rules(
        self,
        row: RawRow,
        *,
        value: float,
        year: int,
    ) -> ValidationFailure | None:
        if value < 0:
            return ValidationFailure(
                row_number=row.row_number,
                field_name="value",
                field_value=row.get("value"),
                expected_value="non-negative value",
                category=FailureCategory.BUSINESS_RULE,
                message=f"Row {row.row_number}: Negative value not allowed - got {row.get('value')}",
            )

        current_year = self._current_year()
        if year > current_year:
            return ValidationFailure(
                row_number=row.row_number,
                field_name="year",
                field_value=row.get("year"),
                expected_value=f"year <= {current_year}",
                category=FailureCategory.BUSINESS_RULE,
                message=f"Row {row.row_number}: Future year not allowed - got {year}",
            )

        if year < self._min_year or year > self._max_year:
            return ValidationFailure(
                row_number=row.row_number,
                field_name="year",
                field_value=row.get("year"),
                expected_value=f"year between {self._min_year}-{self._max_year}",
                category=FailureCategory.BUSINESS_RULE,
                message=(
                    f"Row {row.row_number}: Invalid year '{year}' - must be between "
                    f"{self._min_year} and {self._max_year}"
                ),
            )
        return None

    @staticmethod
    def _check_row_references(
        row: NormalizedRow,
        snapshot: ReferenceSnapshot,
    ) -> list[ValidationFailure]:
        checks = (
            ("state", row.state, snapshot.states_by_name),
            ("category", row.category, snapshot.categories_by_name),
            ("statistic", row.statistic, snapshot.statistics_by_name),
        )
        return [
            ValidationFailure(
                row_number=row.row_number,
                field_name=field_name,
                field_value=name,
                category=FailureCategory.INVALID_REFERENCE,
                message=f"Row {row.row_number}: Invalid {field_name} '{name}' - not found in database",
            )
            for field_name, name, known in checks
            if name not in known
        ]
