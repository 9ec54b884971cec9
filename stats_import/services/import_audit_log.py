"""
stats_import/services/import_audit_log.py

Durable, append-only audit trail for imports.

Entries are written through the caller's session and become durable with
the caller's commit. Each entry is mirrored to the process logger as one
JSON line.
"""

from __future__ import annotations

import csv
import io
import logging
from typing import Any

from sqlalchemy.orm import Session

from db.models.import_log import ImportLog, ImportValidationSummary
from db.repositories.import_log_repository import ImportLogRepository
from stats_import.domain.csv_import import ValidationFailure, ValidationSummary
from stats_import.failure_codes import FailureCategory, LogLevel, SummaryPhase, SummaryStatus
from stats_import.logging_utils import log_event

logger = logging.getLogger(__name__)

FAILED_ROWS_CSV_HEADER = "Row Number,Field Name,Field Value,Expected Value,Failure Category,Message"


class ImportAuditLog:
    def __init__(self, session: Session, *, mirror_validation_errors: bool = True) -> None:
        self._session = session
        self._repository = ImportLogRepository(session)
        self._mirror_validation_errors = mirror_validation_errors

    def log_info(self, import_id: int, message: str, details: dict[str, Any] | None = None) -> ImportLog:
        log_event(logger, logging.INFO, "import_info", import_id=import_id, message=message)
        return self._repository.add_log(
            csv_import_id=import_id,
            log_level=LogLevel.INFO.value,
            message=message,
            details=details,
        )

    def log_validation_error(self, import_id: int, failure: ValidationFailure) -> ImportLog:
        if self._mirror_validation_errors:
            log_event(
                logger,
                logging.WARNING,
                "import_validation_error",
                import_id=import_id,
                row_number=failure.row_number,
                field_name=failure.field_name,
                failure_category=failure.category,
                message=failure.message,
            )
        return self._repository.add_log(
            csv_import_id=import_id,
            log_level=LogLevel.VALIDATION_ERROR.value,
            message=failure.message,
            failure_category=failure.category.value,
            row_number=failure.row_number,
            field_name=failure.field_name,
            field_value=failure.field_value,
            expected_value=failure.expected_value,
            details=failure.details,
        )

    def log_system_error(
        self,
        import_id: int,
        error: BaseException,
        details: dict[str, Any] | None = None,
    ) -> ImportLog:
        log_event(
            logger,
            logging.ERROR,
            "import_system_error",
            import_id=import_id,
            error_type=type(error).__name__,
            message=str(error),
        )
        payload = {"error_type": type(error).__name__, **(details or {})}
        return self._repository.add_log(
            csv_import_id=import_id,
            log_level=LogLevel.SYSTEM_ERROR.value,
            message=str(error) or type(error).__name__,
            failure_category=FailureCategory.DATABASE_ERROR.value,
            details=payload,
        )

    def record_summary(
        self,
        import_id: int,
        summary: ValidationSummary,
        *,
        phase: SummaryPhase,
    ) -> ImportValidationSummary:
        log_event(
            logger,
            logging.INFO,
            "import_summary_recorded",
            import_id=import_id,
            phase=phase,
            status=summary.status,
            total_rows=summary.total_rows,
            valid_rows=summary.valid_rows,
            error_rows=summary.error_rows,
        )
        return self._repository.upsert_summary(
            csv_import_id=import_id,
            phase=phase.value,
            total_rows=summary.total_rows,
            valid_rows=summary.valid_rows,
            error_rows=summary.error_rows,
            failure_breakdown=summary.failure_breakdown,
            validation_time_ms=summary.validation_time_ms,
            status=summary.status.value,
        )

    def get_logs(self, import_id: int) -> list[ImportLog]:
        """
        Return every entry for an import, newest first.
        """

        self._session.flush()
        return self._repository.list_logs(import_id)

    def get_summary(self, import_id: int) -> ValidationSummary | None:
        """
        Return the commit summary when one exists, otherwise the validation
        summary.
        """

        self._session.flush()
        for phase in (SummaryPhase.COMMIT, SummaryPhase.VALIDATION):
            row = self._repository.get_summary(import_id, phase=phase.value)
            if row is not None:
                return ValidationSummary(
                    total_rows=row.total_rows,
                    valid_rows=row.valid_rows,
                    error_rows=row.error_rows,
                    failure_breakdown=dict(row.failure_breakdown or {}),
                    validation_time_ms=row.validation_time_ms or 0,
                    status=SummaryStatus(row.status),
                )
        return None

    def failed_rows_csv(self, import_id: int) -> str:
        """
        Export validation errors as CSV in the order they were logged.

        Returns an empty string when the import has no validation errors.
        """

        self._session.flush()
        entries = self._repository.list_logs(
            import_id,
            log_level=LogLevel.VALIDATION_ERROR.value,
            newest_first=False,
        )
        if not entries:
            return ""

        buffer = io.StringIO()
        buffer.write(FAILED_ROWS_CSV_HEADER + "\n")
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        for entry in entries:
            writer.writerow(
                [
                    "" if entry.row_number is None else entry.row_number,
                    entry.field_name or "",
                    entry.field_value or "",
                    entry.expected_value or "",
                    entry.failure_category or "",
                    entry.message,
                ]
            )
        return buffer.getvalue()
