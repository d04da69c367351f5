from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    CHAR,
    JSON,
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    Double,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: grower_transactions
# ---------------------------


class GrowerTransactionRow(Base):
    """One persisted sales line; mirrors ``grower_analytics.models.Transaction``."""

    __tablename__ = "grower_transactions"

    # INTEGER on SQLite so the rowid alias autoincrements
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    date: Mapped[date] = mapped_column(Date, nullable=False)
    invoice_number: Mapped[str] = mapped_column(String, nullable=False, server_default="")
    grower_name: Mapped[str] = mapped_column(String, nullable=False)
    product: Mapped[str] = mapped_column(String, nullable=False)
    quantity: Mapped[float] = mapped_column(Double, nullable=False, server_default="0")
    amount: Mapped[float] = mapped_column(Double, nullable=False, server_default="0")
    # Open extension fields (hybrid, trait, ...); never interpreted by analytics.
    extras: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    # sha256 over the canonical fields; indexed, not unique (duplicates are legal).
    fingerprint_sha256: Mapped[str] = mapped_column(CHAR(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_grower_tx_quantity_nonneg"),
        CheckConstraint("amount >= 0", name="ck_grower_tx_amount_nonneg"),
        Index("ix_grower_tx_date", "date"),
        Index("ix_grower_tx_grower_name", "grower_name"),
        Index("ix_grower_tx_product", "product"),
        Index("ix_grower_tx_fingerprint", "fingerprint_sha256"),
        Index("ix_grower_tx_grower_date", "grower_name", "date"),
        Index("ix_grower_tx_product_date", "product", "date"),
    )


__all__ = [
    "Base",
    "GrowerTransactionRow",
]
