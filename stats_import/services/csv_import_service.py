"""
stats_import/services/csv_import_service.py

Pipeline entry point for statistic CSV uploads.

Flow:

    1. Dedup gate: SHA-256 of the bytes; a known hash returns the earlier
       import and creates nothing.
    2. Parse: whole file in memory, header required.
    3. Validate: row-local checks, then one batched reference check.
       No data writes.
    4. Short-circuit: any failure ends in ``validation_failed`` with every
       failure persisted.
    5. Commit: session, data points and the ``imported`` status in one
       transaction.

Lifecycle status changes are committed as they happen so progress is
observable from other sessions. Row-level problems never raise; anything
unexpected is logged as a system error and ends the import ``failed``.
"""

from __future__ import annotations

import logging
import time
from functools import lru_cache

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.models.csv_import import CSVImport, CSVImportStatus
from db.repositories.csv_import_repository import CSVImportRepository
from db.repositories.reference_repository import ReferenceRepository
from stats_import.config import get_csv_import_settings
from stats_import.domain.csv_import import (
    ImportDetails,
    ImportResult,
    ImportResultSummary,
    ImportStats,
    ValidationFailure,
    ValidationSummary,
)
from stats_import.failure_codes import FailureCategory, SummaryPhase, SummaryStatus
from stats_import.hashing import compute_content_hash
from stats_import.logging_utils import log_event
from stats_import.parsers.csv_parser import CSVParsingError, CSVTableParser
from stats_import.services.import_audit_log import ImportAuditLog
from stats_import.services.import_committer import ImportCommitError, ImportCommitter
from stats_import.services.reference_resolver import ReferenceResolver
from stats_import.services.validation_runner import ValidationRunner
from stats_import.validators.row_validator import RowValidator

logger = logging.getLogger(__name__)

DUPLICATE_IMPORT_MESSAGE = "This file has already been imported"


class CSVImportService:
    """
    Coordinates dedup, parsing, validation, audit logging, and commit.
    """

    def __init__(
        self,
        *,
        parser: CSVTableParser | None = None,
        runner: ValidationRunner | None = None,
        committer: ImportCommitter | None = None,
        log_validation_errors: bool = True,
    ) -> None:
        self._parser = parser or CSVTableParser()
        self._runner = runner or ValidationRunner()
        self._committer = committer or ImportCommitter()
        self._log_validation_errors = log_validation_errors

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def import_csv(
        self,
        *,
        db: Session,
        uploader_id: int,
        file_name: str,
        file_bytes: bytes,
    ) -> ImportResult:
        """
        Validate an upload completely, then commit all of it or none of it.

        Args:
            db:          Active SQLAlchemy session (caller owns lifecycle).
            uploader_id: Identity of the authorized uploader.
            file_name:   Original file name, used for lineage naming.
            file_bytes:  Entire upload.
        """

        started = time.perf_counter()
        content_hash = compute_content_hash(file_bytes)
        imports = CSVImportRepository(db)

        existing = imports.find_by_content_hash(content_hash)
        if existing is not None:
            return self._duplicate_result(existing)

        try:
            record = imports.create_import(
                file_name=file_name,
                file_size=len(file_bytes),
                content_hash=content_hash,
                uploaded_by=uploader_id,
            )
            db.commit()
        except IntegrityError:
            # A concurrent upload of the same bytes won the unique constraint.
            db.rollback()
            existing = imports.find_by_content_hash(content_hash)
            if existing is None:
                raise
            return self._duplicate_result(existing)

        import_id = record.id
        audit = ImportAuditLog(db, mirror_validation_errors=self._log_validation_errors)
        log_event(
            logger,
            logging.INFO,
            "import_started",
            import_id=import_id,
            file_name=file_name,
            file_size=len(file_bytes),
            uploader_id=uploader_id,
        )

        try:
            return self._run_pipeline(
                db=db,
                imports=imports,
                audit=audit,
                import_id=import_id,
                file_name=file_name,
                file_bytes=file_bytes,
                started=started,
            )
        except Exception as exc:
            logger.exception("CSV import failed unexpectedly import_id=%s", import_id)
            return self._fail_import(
                db=db,
                imports=imports,
                audit=audit,
                import_id=import_id,
                error=exc,
                details={"file_name": file_name, "file_size": len(file_bytes)},
            )

    # ------------------------------------------------------------------
    # Query interfaces
    # ------------------------------------------------------------------

    def get_import_details(self, *, db: Session, import_id: int) -> ImportDetails:
        record = CSVImportRepository(db).require_import(import_id)
        audit = ImportAuditLog(db)
        return ImportDetails(
            import_record=record,
            logs=audit.get_logs(import_id),
            summary=audit.get_summary(import_id),
        )

    def get_failed_rows_csv(self, *, db: Session, import_id: int) -> str:
        CSVImportRepository(db).require_import(import_id)
        return ImportAuditLog(db).failed_rows_csv(import_id)

    def list_imports(
        self,
        *,
        db: Session,
        limit: int = 100,
        status: str | None = None,
    ) -> list[CSVImport]:
        return CSVImportRepository(db).list_imports(limit=limit, status=status)

    # ------------------------------------------------------------------
    # Pipeline internals
    # ------------------------------------------------------------------

    def _run_pipeline(
        self,
        *,
        db: Session,
        imports: CSVImportRepository,
        audit: ImportAuditLog,
        import_id: int,
        file_name: str,
        file_bytes: bytes,
        started: float,
    ) -> ImportResult:
        imports.transition(import_id=import_id, status=CSVImportStatus.VALIDATING)
        db.commit()

        try:
            rows = self._parser.parse(file_bytes)
        except CSVParsingError as exc:
            return self._reject_unparseable(
                db=db,
                imports=imports,
                audit=audit,
                import_id=import_id,
                error=exc,
                started=started,
            )

        audit.log_info(import_id, f"CSV parsed successfully - {len(rows)} rows found")

        outcome = self._runner.run(
            rows,
            resolver=ReferenceResolver(ReferenceRepository(db)),
        )
        summary = outcome.summary
        for failure in outcome.failures:
            audit.log_validation_error(import_id, failure)
        audit.record_summary(import_id, summary, phase=SummaryPhase.VALIDATION)
        imports.record_row_counts(
            import_id=import_id,
            total_rows=summary.total_rows,
            valid_rows=summary.valid_rows,
            error_rows=summary.error_rows,
            processing_time_ms=summary.validation_time_ms,
        )

        if not outcome.passed:
            imports.transition(
                import_id=import_id,
                status=CSVImportStatus.VALIDATION_FAILED,
                error_message=f"Validation failed - {len(outcome.failures)} errors found",
            )
            db.commit()
            return ImportResult(
                success=False,
                import_id=import_id,
                message=f"Import failed validation - {summary.error_rows} rows have errors",
                stats=_stats(summary),
                summary=ImportResultSummary(
                    failure_breakdown=dict(summary.failure_breakdown),
                    processing_time=f"{summary.validation_time_ms}ms",
                ),
            )

        imports.transition(import_id=import_id, status=CSVImportStatus.IMPORTING)
        audit.log_info(import_id, "Starting database import")
        db.commit()

        try:
            commit_result = self._committer.commit(
                db=db,
                import_id=import_id,
                file_name=file_name,
                rows=outcome.normalized_rows,
                snapshot=outcome.snapshot,
            )
        except ImportCommitError as exc:
            logger.error("Commit failed import_id=%s error=%s", import_id, exc)
            return self._fail_import(
                db=db,
                imports=imports,
                audit=audit,
                import_id=import_id,
                error=exc,
                details={"file_name": file_name, "file_size": len(file_bytes)},
                commit_summary=summary.with_status(
                    SummaryStatus.IMPORTED_FAILED,
                    validation_time_ms=_elapsed_ms(started),
                ),
            )

        total_ms = _elapsed_ms(started)
        audit.log_info(
            import_id,
            f"Import completed successfully - {commit_result.records_written} rows imported "
            f"in {commit_result.elapsed_ms}ms",
            details={"import_session_id": commit_result.import_session_id},
        )
        imports.transition(import_id=import_id, status=CSVImportStatus.IMPORTED)
        imports.record_row_counts(
            import_id=import_id,
            total_rows=summary.total_rows,
            valid_rows=commit_result.records_written,
            error_rows=0,
            processing_time_ms=total_ms,
        )
        audit.record_summary(
            import_id,
            summary.with_status(SummaryStatus.IMPORTED_SUCCESS, validation_time_ms=total_ms),
            phase=SummaryPhase.COMMIT,
        )
        # Session, data points, status and summary become durable together.
        db.commit()

        log_event(
            logger,
            logging.INFO,
            "import_completed",
            import_id=import_id,
            records_written=commit_result.records_written,
            import_session_id=commit_result.import_session_id,
            elapsed_ms=total_ms,
        )
        return ImportResult(
            success=True,
            import_id=import_id,
            message=f"Successfully imported all {commit_result.records_written} rows",
            stats=ImportStats(
                total_rows=summary.total_rows,
                valid_rows=commit_result.records_written,
                error_rows=0,
            ),
            summary=ImportResultSummary(failure_breakdown={}, processing_time=f"{total_ms}ms"),
        )

    def _reject_unparseable(
        self,
        *,
        db: Session,
        imports: CSVImportRepository,
        audit: ImportAuditLog,
        import_id: int,
        error: CSVParsingError,
        started: float,
    ) -> ImportResult:
        elapsed = _elapsed_ms(started)
        audit.log_validation_error(
            import_id,
            ValidationFailure(category=FailureCategory.CSV_PARSING, message=str(error)),
        )
        summary = ValidationSummary.empty(status=SummaryStatus.VALIDATED_FAILED, validation_time_ms=elapsed)
        audit.record_summary(import_id, summary, phase=SummaryPhase.VALIDATION)
        imports.record_row_counts(
            import_id=import_id,
            total_rows=0,
            valid_rows=0,
            error_rows=0,
            processing_time_ms=elapsed,
        )
        imports.transition(
            import_id=import_id,
            status=CSVImportStatus.VALIDATION_FAILED,
            error_message=f"CSV parsing failed: {error}",
        )
        db.commit()
        return ImportResult(
            success=False,
            import_id=import_id,
            message=f"CSV parsing failed: {error}",
            stats=ImportStats(),
            summary=ImportResultSummary(failure_breakdown={}, processing_time=f"{elapsed}ms"),
        )

    def _fail_import(
        self,
        *,
        db: Session,
        imports: CSVImportRepository,
        audit: ImportAuditLog,
        import_id: int,
        error: BaseException,
        details: dict[str, object],
        commit_summary: ValidationSummary | None = None,
    ) -> ImportResult:
        # Nothing uncommitted from the failed attempt may survive.
        db.rollback()

        audit.log_system_error(import_id, error, details=details)
        if commit_summary is not None:
            audit.record_summary(import_id, commit_summary, phase=SummaryPhase.COMMIT)
        imports.transition(
            import_id=import_id,
            status=CSVImportStatus.FAILED,
            error_message=str(error) or type(error).__name__,
        )
        db.commit()
        return ImportResult(
            success=False,
            import_id=import_id,
            message=f"Import failed: {error}",
            stats=ImportStats(),
        )

    @staticmethod
    def _duplicate_result(existing: CSVImport) -> ImportResult:
        log_event(
            logger,
            logging.INFO,
            "import_duplicate_rejected",
            import_id=existing.id,
            content_hash=existing.content_hash,
        )
        return ImportResult(
            success=False,
            import_id=existing.id,
            message=DUPLICATE_IMPORT_MESSAGE,
            stats=ImportStats(),
            duplicate=True,
        )


def _stats(summary: ValidationSummary) -> ImportStats:
    return ImportStats(
        total_rows=summary.total_rows,
        valid_rows=summary.valid_rows,
        error_rows=summary.error_rows,
    )


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


@lru_cache(maxsize=1)
def get_csv_import_service() -> CSVImportService:
    """
    Return a cached CSV import service configured from environment settings.
    """

    settings = get_csv_import_settings()
    return CSVImportService(
        runner=ValidationRunner(
            RowValidator(min_year=settings.min_year, max_year=settings.max_year),
        ),
        committer=ImportCommitter(batch_size=settings.insert_batch_size),
        log_validation_errors=settings.log_validation_errors,
    )
