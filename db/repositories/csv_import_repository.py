"""
Repository for import record lifecycle persistence and status lookup.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from db.models.csv_import import ALLOWED_TRANSITIONS, TERMINAL_STATUSES, CSVImport, CSVImportStatus
from db.repositories.errors import ImportNotFoundError, InvalidStatusTransitionError


class CSVImportRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def find_by_content_hash(self, content_hash: str) -> CSVImport | None:
        stmt = select(CSVImport).where(CSVImport.content_hash == content_hash).limit(1)
        return self._session.scalars(stmt).first()

    def create_import(
        self,
        *,
        file_name: str,
        file_size: int,
        content_hash: str,
        uploaded_by: int,
        description: str | None = None,
    ) -> CSVImport:
        """
        Insert a new record in status ``uploaded``.

        Flushes immediately so a duplicate content hash surfaces as an
        IntegrityError here rather than at commit time.
        """

        record = CSVImport(
            name=file_name,
            filename=file_name,
            description=description,
            file_size=file_size,
            content_hash=content_hash,
            uploaded_by=uploaded_by,
            status=CSVImportStatus.UPLOADED,
        )
        self._session.add(record)
        self._session.flush()
        return record

    def get_import(self, import_id: int) -> CSVImport | None:
        return self._session.get(CSVImport, import_id)

    def require_import(self, import_id: int) -> CSVImport:
        record = self.get_import(import_id)
        if record is None:
            raise ImportNotFoundError(import_id)
        return record

    def list_imports(
        self,
        *,
        limit: int = 100,
        status: str | None = None,
        uploaded_by: int | None = None,
    ) -> list[CSVImport]:
        stmt: Select[tuple[CSVImport]] = select(CSVImport)

        if status:
            stmt = stmt.where(CSVImport.status == status)
        if uploaded_by is not None:
            stmt = stmt.where(CSVImport.uploaded_by == uploaded_by)

        stmt = stmt.order_by(CSVImport.created_at.desc(), CSVImport.id.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def transition(
        self,
        *,
        import_id: int,
        status: str,
        error_message: str | None = None,
    ) -> CSVImport:
        record = self.require_import(import_id)
        if status not in ALLOWED_TRANSITIONS.get(record.status, frozenset()):
            raise InvalidStatusTransitionError(
                import_id=import_id,
                current=record.status,
                requested=status,
            )

        now = datetime.now(timezone.utc)
        record.status = status
        if error_message is not None:
            record.error_message = error_message
        if status in (CSVImportStatus.VALIDATION_FAILED, CSVImportStatus.IMPORTING):
            record.validated_at = now
        if status in TERMINAL_STATUSES:
            record.completed_at = now
        return record

    def record_row_counts(
        self,
        *,
        import_id: int,
        total_rows: int,
        valid_rows: int,
        error_rows: int,
        processing_time_ms: int,
    ) -> CSVImport:
        record = self.require_import(import_id)
        record.total_rows = total_rows
        record.valid_rows = valid_rows
        record.error_rows = error_rows
        record.processing_time_ms = processing_time_ms
        return record
