# ruff: noqa: I001
"""SQL-backed transaction store.

Rows live in ``grower_transactions`` (``db.models.sales``); sessions come from
``db.client.session_scope`` so each call is its own short transaction.
Year/product/grower filters are pushed down to SQL. Every row carries a
SHA-256 fingerprint of its canonical fields; with ``dedupe=True`` inserts skip
rows whose fingerprint already exists. Without it, duplicate lines are kept:
two identical invoice lines are legitimate sales.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable
from datetime import date

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from db.client import session_scope
from db.models.sales import GrowerTransactionRow
from .logging_setup import get_logger
from .models import Transaction
from .normalizers import format_number

_log = get_logger("grower_analytics.persistence")
_FINGERPRINT_CHUNK = 500


def compute_fingerprint(tx: Transaction) -> str:
    """Stable SHA-256 over date, invoice, grower, product, quantity and amount.

    Numbers are rendered with :func:`format_number` so ``5`` and ``5.0`` hash
    alike. ``extras`` is not part of the identity.
    """

    payload = {
        "date": tx.date.isoformat(),
        "invoice_number": tx.invoice_number.strip(),
        "grower_name": tx.grower_name.strip(),
        "product": tx.product.strip(),
        "quantity": format_number(tx.quantity),
        "amount": format_number(tx.amount),
    }
    data = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def _to_row(tx: Transaction) -> GrowerTransactionRow:
    return GrowerTransactionRow(
        date=tx.date,
        invoice_number=tx.invoice_number,
        grower_name=tx.grower_name,
        product=tx.product,
        quantity=tx.quantity,
        amount=tx.amount,
        extras=dict(tx.extras),
        fingerprint_sha256=compute_fingerprint(tx),
    )


def _from_row(row: GrowerTransactionRow) -> Transaction:
    return Transaction(
        date=row.date,
        invoice_number=row.invoice_number or "",
        grower_name=row.grower_name,
        product=row.product,
        quantity=float(row.quantity or 0.0),
        amount=float(row.amount or 0.0),
        extras=dict(row.extras or {}),
    )


class SqlTransactionStore:
    """:class:`~grower_analytics.store.TransactionStore` over SQLAlchemy."""

    def __init__(self, *, database_url: str | None = None, dedupe: bool = False) -> None:
        self.database_url = database_url
        self.dedupe = dedupe

    def all(self) -> list[Transaction]:
        return self.query()

    def query(
        self,
        *,
        year: int | None = None,
        product: str | None = None,
        grower: str | None = None,
    ) -> list[Transaction]:
        stmt = select(GrowerTransactionRow).order_by(
            GrowerTransactionRow.date, GrowerTransactionRow.id
        )
        if year is not None:
            stmt = stmt.where(
                GrowerTransactionRow.date >= date(year, 1, 1),
                GrowerTransactionRow.date <= date(year, 12, 31),
            )
        if product not in (None, "", "all"):
            stmt = stmt.where(GrowerTransactionRow.product == product)
        if grower is not None:
            stmt = stmt.where(GrowerTransactionRow.grower_name == grower)
        with session_scope(database_url=self.database_url) as session:
            return [_from_row(row) for row in session.scalars(stmt)]

    def add(self, tx: Transaction) -> None:
        self.add_many([tx])

    def add_many(self, txs: Iterable[Transaction]) -> int:
        """Insert transactions; returns how many rows were written."""

        rows = [_to_row(tx) for tx in txs]
        if not rows:
            return 0
        with session_scope(database_url=self.database_url) as session:
            if self.dedupe:
                existing = self._existing_fingerprints(
                    session, [r.fingerprint_sha256 for r in rows]
                )
                kept: list[GrowerTransactionRow] = []
                for row in rows:
                    if row.fingerprint_sha256 in existing:
                        continue
                    existing.add(row.fingerprint_sha256)
                    kept.append(row)
                if len(kept) != len(rows):
                    _log.info("skipped %d duplicate transactions", len(rows) - len(kept))
                rows = kept
            session.add_all(rows)
        _log.debug("inserted %d transactions", len(rows))
        return len(rows)

    @staticmethod
    def _existing_fingerprints(session: Session, fingerprints: list[str]) -> set[str]:
        found: set[str] = set()
        # chunked to stay under SQLite's bound-parameter limit
        for start in range(0, len(fingerprints), _FINGERPRINT_CHUNK):
            chunk = fingerprints[start : start + _FINGERPRINT_CHUNK]
            found.update(
                session.scalars(
                    select(GrowerTransactionRow.fingerprint_sha256).where(
                        GrowerTransactionRow.fingerprint_sha256.in_(chunk)
                    )
                )
            )
        return found

    def clear(self) -> int:
        with session_scope(database_url=self.database_url) as session:
            result = session.execute(delete(GrowerTransactionRow))
            return int(result.rowcount or 0)

    def count(self) -> int:
        with session_scope(database_url=self.database_url) as session:
            return int(
                session.scalar(select(func.count()).select_from(GrowerTransactionRow)) or 0
            )


__all__ = ["SqlTransactionStore", "compute_fingerprint"]
