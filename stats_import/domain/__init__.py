"""
stats_import/domain package marker.
"""

from stats_import.domain.csv_import import (
    REQUIRED_FIELDS,
    CommitResult,
    ImportDetails,
    ImportResult,
    ImportResultSummary,
    ImportStats,
    NormalizedRow,
    RawRow,
    ReferenceSnapshot,
    ValidationFailure,
    ValidationOutcome,
    ValidationSummary,
)

__all__ = [
    "REQUIRED_FIELDS",
    "CommitResult",
    "ImportDetails",
    "ImportResult",
    "ImportResultSummary",
    "ImportStats",
    "NormalizedRow",
    "RawRow",
    "ReferenceSnapshot",
    "ValidationFailure",
    "ValidationOutcome",
    "ValidationSummary",
]
