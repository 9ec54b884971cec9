"""
Repository for import audit entries and per-phase summaries.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.import_log import ImportLog, ImportValidationSummary


class ImportLogRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def add_log(
        self,
        *,
        csv_import_id: int,
        log_level: str,
        message: str,
        failure_category: str | None = None,
        row_number: int | None = None,
        field_name: str | None = None,
        field_value: str | None = None,
        expected_value: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> ImportLog:
        entry = ImportLog(
            csv_import_id=csv_import_id,
            log_level=log_level,
            message=message,
            failure_category=failure_category,
            row_number=row_number,
            field_name=field_name,
            field_value=field_value,
            expected_value=expected_value,
            details=details,
        )
        self._session.add(entry)
        return entry

    def list_logs(
        self,
        csv_import_id: int,
        *,
        log_level: str | None = None,
        newest_first: bool = True,
    ) -> list[ImportLog]:
        stmt = select(ImportLog).where(ImportLog.csv_import_id == csv_import_id)
        if log_level:
            stmt = stmt.where(ImportLog.log_level == log_level)

        # created_at has second resolution on some backends; id breaks ties.
        if newest_first:
            stmt = stmt.order_by(ImportLog.created_at.desc(), ImportLog.id.desc())
        else:
            stmt = stmt.order_by(ImportLog.created_at.asc(), ImportLog.id.asc())
        return list(self._session.scalars(stmt).all())

    def upsert_summary(
        self,
        *,
        csv_import_id: int,
        phase: str,
        total_rows: int,
        valid_rows: int,
        error_rows: int,
        failure_breakdown: dict[str, int],
        validation_time_ms: int,
        status: str,
    ) -> ImportValidationSummary:
        summary = self.get_summary(csv_import_id, phase=phase)
        if summary is None:
            summary = ImportValidationSummary(csv_import_id=csv_import_id, phase=phase)
            self._session.add(summary)

        summary.total_rows = total_rows
        summary.valid_rows = valid_rows
        summary.error_rows = error_rows
        summary.failure_breakdown = dict(failure_breakdown)
        summary.validation_time_ms = validation_time_ms
        summary.status = status
        return summary

    def get_summary(self, csv_import_id: int, *, phase: str) -> ImportValidationSummary | None:
        stmt = (
            select(ImportValidationSummary)
            .where(ImportValidationSummary.csv_import_id == csv_import_id)
            .where(ImportValidationSummary.phase == phase)
            .limit(1)
        )
        return self._session.scalars(stmt).first()
