"""
db/models/import_log.py

Append-only audit entries and per-phase validation summaries for imports.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, JSONType

if TYPE_CHECKING:
    from db.models.csv_import import CSVImport


class ImportLog(Base):
    """
    One audit entry. Rows are inserted, never updated.

    failure_category is empty for info entries and fixed to database_error
    for system errors.
    """

    __tablename__ = "import_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    csv_import_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("csv_imports.id", ondelete="CASCADE"),
        nullable=False,
    )
    log_level: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="info, validation_error, system_error",
    )
    row_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    field_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    field_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    expected_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    failure_category: Mapped[str | None] = mapped_column(String(32), nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    details: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    csv_import: Mapped["CSVImport"] = relationship("CSVImport", back_populates="logs")

    __table_args__ = (
        Index("ix_import_logs_csv_import_id", "csv_import_id"),
        Index("ix_import_logs_csv_import_level", "csv_import_id", "log_level"),
    )


class ImportValidationSummary(Base):
    """
    Row accounting for one phase ("validation" or "commit") of an import.
    """

    __tablename__ = "import_validation_summaries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    csv_import_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("csv_imports.id", ondelete="CASCADE"),
        nullable=False,
    )
    phase: Mapped[str] = mapped_column(String(16), nullable=False)
    total_rows: Mapped[int] = mapped_column(Integer, nullable=False)
    valid_rows: Mapped[int] = mapped_column(Integer, nullable=False)
    error_rows: Mapped[int] = mapped_column(Integer, nullable=False)
    failure_breakdown: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
        comment='Failure category counts, e.g. {"missing_required": 15}',
    )
    validation_time_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    csv_import: Mapped["CSVImport"] = relationship("CSVImport", back_populates="summaries")

    __table_args__ = (
        UniqueConstraint("csv_import_id", "phase", name="uq_import_validation_summaries_phase"),
    )
