"""add target_value, status and description to quarterly_metrics

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 09:30:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Additive only: nullable columns, existing rows keep NULL.
    op.add_column("quarterly_metrics", sa.Column("target_value", sa.Float(), nullable=True))
    op.add_column(
        "quarterly_metrics",
        sa.Column("status", sa.String(length=10), nullable=True, comment="green, amber or red"),
    )
    op.add_column("quarterly_metrics", sa.Column("description", sa.Text(), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("quarterly_metrics") as batch_op:
        batch_op.drop_column("description")
        batch_op.drop_column("status")
        batch_op.drop_column("target_value")
