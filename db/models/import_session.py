"""
db/models/import_session.py

Committed statistical data and the lineage marker grouping each commit.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base

if TYPE_CHECKING:
    from db.models.reference import DataSource


class ImportSession(Base):
    """
    One successful commit. Created once, never updated by the import flow.

    csv_import_id is informational lineage; sessions outlive the import
    record that produced them.
    """

    __tablename__ = "import_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    data_source_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("data_sources.id"),
        nullable=True,
    )
    csv_import_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("csv_imports.id", ondelete="SET NULL"),
        nullable=True,
    )
    import_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    data_year: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Year the imported data represents",
    )
    record_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    data_source: Mapped["DataSource"] = relationship(
        "DataSource",
        back_populates="import_sessions",
    )
    data_points: Mapped[list["DataPoint"]] = relationship(
        "DataPoint",
        back_populates="import_session",
    )


class DataPoint(Base):
    __tablename__ = "data_points"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    import_session_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("import_sessions.id"),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    state_id: Mapped[int] = mapped_column(Integer, ForeignKey("states.id"), nullable=False)
    statistic_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("statistics.id"),
        nullable=False,
    )
    value: Mapped[float] = mapped_column(Float, nullable=False)

    import_session: Mapped[ImportSession] = relationship(
        "ImportSession",
        back_populates="data_points",
    )

    __table_args__ = (
        Index("ix_data_points_import_session_id", "import_session_id"),
        Index("ix_data_points_state_statistic_year", "state_id", "statistic_id", "year"),
    )
