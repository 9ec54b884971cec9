"""
db/models/csv_import.py

One bulk-upload attempt and its lifecycle status.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.import_log import ImportLog, ImportValidationSummary


class CSVImportStatus:
    """Lifecycle states: uploaded → validating → validation_failed | importing → imported | failed."""

    UPLOADED = "uploaded"
    VALIDATING = "validating"
    VALIDATION_FAILED = "validation_failed"
    IMPORTING = "importing"
    IMPORTED = "imported"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset(
    {
        CSVImportStatus.VALIDATION_FAILED,
        CSVImportStatus.IMPORTED,
        CSVImportStatus.FAILED,
    }
)

# Any non-terminal state may also move to FAILED on an unhandled error.
ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    CSVImportStatus.UPLOADED: frozenset({CSVImportStatus.VALIDATING, CSVImportStatus.FAILED}),
    CSVImportStatus.VALIDATING: frozenset(
        {
            CSVImportStatus.VALIDATION_FAILED,
            CSVImportStatus.IMPORTING,
            CSVImportStatus.FAILED,
        }
    ),
    CSVImportStatus.IMPORTING: frozenset({CSVImportStatus.IMPORTED, CSVImportStatus.FAILED}),
    CSVImportStatus.VALIDATION_FAILED: frozenset(),
    CSVImportStatus.IMPORTED: frozenset(),
    CSVImportStatus.FAILED: frozenset(),
}


class CSVImport(Base, TimestampMixin):
    """
    Tracks one uploaded file from dedup gate to terminal status.

    content_hash is unique so concurrent uploads of identical bytes cannot
    both pass the duplicate check. Row counters are filled in once
    validation finishes.
    """

    __tablename__ = "csv_imports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    filename: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Original uploaded filename",
    )
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    content_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="SHA-256 hex digest of the uploaded bytes",
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=CSVImportStatus.UPLOADED,
    )
    uploaded_by: Mapped[int] = mapped_column(Integer, nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_rows: Mapped[int | None] = mapped_column(Integer, nullable=True)
    valid_rows: Mapped[int | None] = mapped_column(Integer, nullable=True)
    error_rows: Mapped[int | None] = mapped_column(Integer, nullable=True)
    processing_time_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    validated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    logs: Mapped[list["ImportLog"]] = relationship(
        "ImportLog",
        back_populates="csv_import",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    summaries: Mapped[list["ImportValidationSummary"]] = relationship(
        "ImportValidationSummary",
        back_populates="csv_import",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("content_hash", name="uq_csv_imports_content_hash"),
        Index("ix_csv_imports_status", "status"),
        Index("ix_csv_imports_uploaded_by", "uploaded_by"),
        Index("ix_csv_imports_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<CSVImport id={self.id} filename={self.filename!r} status={self.status!r}>"
