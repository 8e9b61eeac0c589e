# ruff: noqa: I001
"""Apple sales history table.

Revision ID: 0001_apple_sales_history
Revises: None
Create Date: 2024-12-28
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_apple_sales_history"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "apple_sales_history",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("report_date", sa.Date(), nullable=False),
        sa.Column("proceeds", sa.Numeric(10, 2), nullable=False),
        # One row per calendar day; the ingestion pipeline relies on this to
        # turn a lost race between two writers into a no-op.
        sa.UniqueConstraint("report_date", name="uq_apple_sales_report_date"),
        sa.CheckConstraint("proceeds >= 0", name="ck_apple_sales_proceeds_non_negative"),
    )


def downgrade() -> None:
    op.drop_table("apple_sales_history")
