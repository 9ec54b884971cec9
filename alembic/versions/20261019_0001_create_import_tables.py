"""create reference, import tracking, and data point tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    # ---------------------------------------------------------------------------
    # reference entities
    # ---------------------------------------------------------------------------
    op.create_table(
        "states",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("abbreviation", sa.String(length=8), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sa.UniqueConstraint("abbreviation"),
    )

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "data_sources",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("url", sa.String(length=500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    # FK → categories.id, data_sources.id
    op.create_table(
        "statistics",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("ra_number", sa.String(length=32), nullable=True, comment="Reference number such as 1001"),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.Column("data_source_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("unit", sa.String(length=64), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"]),
        sa.ForeignKeyConstraint(["data_source_id"], ["data_sources.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_statistics_name", "statistics", ["name"])
    op.create_index("ix_statistics_category_id", "statistics", ["category_id"])

    # ---------------------------------------------------------------------------
    # csv_imports
    # content_hash unique: the dedup gate's race backstop.
    # ---------------------------------------------------------------------------
    op.create_table(
        "csv_imports",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("filename", sa.String(length=255), nullable=False, comment="Original uploaded filename"),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column(
            "content_hash",
            sa.String(length=64),
            nullable=False,
            comment="SHA-256 hex digest of the uploaded bytes",
        ),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("uploaded_by", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("total_rows", sa.Integer(), nullable=True),
        sa.Column("valid_rows", sa.Integer(), nullable=True),
        sa.Column("error_rows", sa.Integer(), nullable=True),
        sa.Column("processing_time_ms", sa.Integer(), nullable=True),
        sa.Column("validated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("content_hash", name="uq_csv_imports_content_hash"),
    )
    op.create_index("ix_csv_imports_status", "csv_imports", ["status"])
    op.create_index("ix_csv_imports_uploaded_by", "csv_imports", ["uploaded_by"])
    op.create_index("ix_csv_imports_created_at", "csv_imports", ["created_at"])

    # FK → csv_imports.id ON DELETE CASCADE
    op.create_table(
        "import_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("csv_import_id", sa.Integer(), nullable=False),
        sa.Column(
            "log_level",
            sa.String(length=32),
            nullable=False,
            comment="info, validation_error, system_error",
        ),
        sa.Column("row_number", sa.Integer(), nullable=True),
        sa.Column("field_name", sa.String(length=120), nullable=True),
        sa.Column("field_value", sa.Text(), nullable=True),
        sa.Column("expected_value", sa.Text(), nullable=True),
        sa.Column("failure_category", sa.String(length=32), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("details", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(["csv_import_id"], ["csv_imports.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_import_logs_csv_import_id", "import_logs", ["csv_import_id"])
    op.create_index("ix_import_logs_csv_import_level", "import_logs", ["csv_import_id", "log_level"])

    # FK → csv_imports.id ON DELETE CASCADE; one row per phase
    op.create_table(
        "import_validation_summaries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("csv_import_id", sa.Integer(), nullable=False),
        sa.Column("phase", sa.String(length=16), nullable=False),
        sa.Column("total_rows", sa.Integer(), nullable=False),
        sa.Column("valid_rows", sa.Integer(), nullable=False),
        sa.Column("error_rows", sa.Integer(), nullable=False),
        sa.Column(
            "failure_breakdown",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            comment='Failure category counts, e.g. {"missing_required": 15}',
        ),
        sa.Column("validation_time_ms", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column(
            "completed_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(["csv_import_id"], ["csv_imports.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("csv_import_id", "phase", name="uq_import_validation_summaries_phase"),
    )

    # ---------------------------------------------------------------------------
    # import_sessions / data_points
    # csv_import_id is lineage only; sessions survive deletion of the import.
    # ---------------------------------------------------------------------------
    op.create_table(
        "import_sessions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("data_source_id", sa.Integer(), nullable=True),
        sa.Column("csv_import_id", sa.Integer(), nullable=True),
        sa.Column(
            "import_date",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("data_year", sa.Integer(), nullable=True, comment="Year the imported data represents"),
        sa.Column("record_count", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["data_source_id"], ["data_sources.id"]),
        sa.ForeignKeyConstraint(["csv_import_id"], ["csv_imports.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "data_points",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("import_session_id", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("state_id", sa.Integer(), nullable=False),
        sa.Column("statistic_id", sa.Integer(), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(["import_session_id"], ["import_sessions.id"]),
        sa.ForeignKeyConstraint(["state_id"], ["states.id"]),
        sa.ForeignKeyConstraint(["statistic_id"], ["statistics.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_data_points_import_session_id", "data_points", ["import_session_id"])
    op.create_index(
        "ix_data_points_state_statistic_year",
        "data_points",
        ["state_id", "statistic_id", "year"],
    )


def downgrade() -> None:
    op.drop_index("ix_data_points_state_statistic_year", table_name="data_points")
    op.drop_index("ix_data_points_import_session_id", table_name="data_points")
    op.drop_table("data_points")
    op.drop_table("import_sessions")
    op.drop_table("import_validation_summaries")
    op.drop_index("ix_import_logs_csv_import_level", table_name="import_logs")
    op.drop_index("ix_import_logs_csv_import_id", table_name="import_logs")
    op.drop_table("import_logs")
    op.drop_index("ix_csv_imports_created_at", table_name="csv_imports")
    op.drop_index("ix_csv_imports_uploaded_by", table_name="csv_imports")
    op.drop_index("ix_csv_imports_status", table_name="csv_imports")
    op.drop_table("csv_imports")
    op.drop_index("ix_statistics_category_id", table_name="statistics")
    op.drop_index("ix_statistics_name", table_name="statistics")
    op.drop_table("statistics")
    op.drop_table("data_sources")
    op.drop_table("categories")
    op.drop_table("states")
