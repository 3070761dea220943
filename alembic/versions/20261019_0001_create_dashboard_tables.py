"""create dashboard tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

_JSON = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql")


def upgrade() -> None:
    op.create_table(
        "files",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("stored_name", sa.String(length=512), nullable=False,
                  comment="Storage-relative path of the saved bytes"),
        sa.Column("original_name", sa.String(length=255), nullable=False,
                  comment="Filename as uploaded by the client"),
        sa.Column("file_type", sa.String(length=10), nullable=False, comment="csv, xlsx or xls"),
        sa.Column("size_bytes", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=50), server_default="uploaded", nullable=False),
        sa.Column(
            "uploaded_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_files_uploaded_at", "files", ["uploaded_at"], unique=False)

    op.create_table(
        "quarterly_metrics",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("source_file_id", sa.Integer(), nullable=True,
                  comment="Owning upload; NULL for CRM-synced rows"),
        sa.Column("quarter", sa.String(length=2), nullable=False, comment="Q1..Q4"),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("metric_name", sa.String(length=255), nullable=False),
        sa.Column("metric_key", sa.String(length=255), nullable=False,
                  comment="Normalised lookup key derived from metric_name"),
        sa.Column("metric_value", sa.Float(), nullable=False),
        sa.Column("metric_unit", sa.String(length=50), nullable=True),
        sa.Column("category", sa.String(length=120), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["source_file_id"], ["files.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_quarterly_metrics_year_quarter",
        "quarterly_metrics",
        ["year", "quarter"],
        unique=False,
    )
    op.create_index(
        "ix_quarterly_metrics_metric_key",
        "quarterly_metrics",
        ["metric_key"],
        unique=False,
    )
    op.create_index(
        "ix_quarterly_metrics_source_file_id",
        "quarterly_metrics",
        ["source_file_id"],
        unique=False,
    )

    op.create_table(
        "dashboard_config",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("config_name", sa.String(length=120), nullable=False),
        sa.Column("config_data", _JSON, nullable=False,
                  comment="Whole configuration document; replaced on every save"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("config_name"),
    )

    op.create_table(
        "insights",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("insights_text", sa.Text(), nullable=False),
        sa.Column("qoq_data", _JSON, nullable=True,
                  comment="Quarter-over-quarter comparisons fed to the narrative generator"),
        sa.Column("current_quarter", _JSON, nullable=True,
                  comment="Quarter identifier the narrative was generated for"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_insights_created_at", "insights", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_insights_created_at", table_name="insights")
    op.drop_table("insights")
    op.drop_table("dashboard_config")
    op.drop_index("ix_quarterly_metrics_source_file_id", table_name="quarterly_metrics")
    op.drop_index("ix_quarterly_metrics_metric_key", table_name="quarterly_metrics")
    op.drop_index("ix_quarterly_metrics_year_quarter", table_name="quarterly_metrics")
    op.drop_table("quarterly_metrics")
    op.drop_index("ix_files_uploaded_at", table_name="files")
    op.drop_table("files")
