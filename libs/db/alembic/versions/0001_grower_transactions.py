# ruff: noqa: I001
"""Grower transactions table.

Revision ID: 0001_grower_transactions
Revises: None
Create Date: 2026-10-17
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_grower_transactions"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "grower_transactions",
        sa.Column(
            "id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            primary_key=True,
            autoincrement=True,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("invoice_number", sa.String(), nullable=False, server_default=""),
        sa.Column("grower_name", sa.String(), nullable=False),
        sa.Column("product", sa.String(), nullable=False),
        sa.Column("quantity", sa.Double(), nullable=False, server_default="0"),
        sa.Column("amount", sa.Double(), nullable=False, server_default="0"),
        sa.Column("extras", sa.JSON(), nullable=False),
        sa.Column("fingerprint_sha256", sa.CHAR(64), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("quantity >= 0", name="ck_grower_tx_quantity_nonneg"),
        sa.CheckConstraint("amount >= 0", name="ck_grower_tx_amount_nonneg"),
    )

    # Single-column lookups used by the dashboard filters
    op.create_index("ix_grower_tx_date", "grower_transactions", ["date"])
    op.create_index("ix_grower_tx_grower_name", "grower_transactions", ["grower_name"])
    op.create_index("ix_grower_tx_product", "grower_transactions", ["product"])
    op.create_index("ix_grower_tx_fingerprint", "grower_transactions", ["fingerprint_sha256"])
    # Composite pairs for per-grower and per-product timelines
    op.create_index("ix_grower_tx_grower_date", "grower_transactions", ["grower_name", "date"])
    op.create_index("ix_grower_tx_product_date", "grower_transactions", ["product", "date"])


def downgrade() -> None:
    for name in (
        "ix_grower_tx_product_date",
        "ix_grower_tx_grower_date",
        "ix_grower_tx_fingerprint",
        "ix_grower_tx_product",
        "ix_grower_tx_grower_name",
        "ix_grower_tx_date",
    ):
        op.drop_index(name, table_name="grower_transactions")
    op.drop_table("grower_transactions")
