"""Closed code sets shared by validation, audit logging, and summaries."""

from __future__ import annotations

from enum import Enum


class FailureCategory(str, Enum):
    MISSING_REQUIRED = "missing_required"
    INVALID_REFERENCE = "invalid_reference"
    DATA_TYPE = "data_type"
    BUSINESS_RULE = "business_rule"
    DATABASE_ERROR = "database_error"
    CSV_PARSING = "csv_parsing"


class LogLevel(str, Enum):
    INFO = "info"
    VALIDATION_ERROR = "validation_error"
    SYSTEM_ERROR = "system_error"


class SummaryStatus(str, Enum):
    VALIDATED_FAILED = "validated_failed"
    VALIDATED_PASSED = "validated_passed"
    IMPORTED_SUCCESS = "imported_success"
    IMPORTED_FAILED = "imported_failed"


class SummaryPhase(str, Enum):
    VALIDATION = "validation"
    COMMIT = "commit"

