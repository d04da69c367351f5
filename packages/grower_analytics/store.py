"""Transaction store interface and the in-memory implementation.

A store holds the flat transaction list the engine reads. Reads return
snapshots (plain lists), so callers may aggregate while another thread
appends. :class:`InMemoryTransactionStore` is the fallback used when no
``DATABASE_URL`` is configured; the SQL-backed store lives in
:mod:`grower_analytics.persistence`.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from .aggregation import filter_transactions
from .logging_setup import get_logger
from .models import Transaction

_log = get_logger("grower_analytics.store")


@runtime_checkable
class TransactionStore(Protocol):
    def all(self) -> list[Transaction]: ...

    def query(
        self,
        *,
        year: int | None = None,
        product: str | None = None,
        grower: str | None = None,
    ) -> list[Transaction]: ...

    def add(self, tx: Transaction) -> None: ...

    def add_many(self, txs: Iterable[Transaction]) -> int: ...

    def clear(self) -> int: ...

    def count(self) -> int: ...


class InMemoryTransactionStore:
    """Process-local store guarded by a lock (one writer, many readers)."""

    def __init__(self, transactions: Iterable[Transaction] = ()) -> None:
        self._lock = threading.Lock()
        self._rows: list[Transaction] = list(transactions)

    def all(self) -> list[Transaction]:
        with self._lock:
            return list(self._rows)

    def query(
        self,
        *,
        year: int | None = None,
        product: str | None = None,
        grower: str | None = None,
    ) -> list[Transaction]:
        return filter_transactions(self.all(), year=year, product=product, grower=grower)

    def add(self, tx: Transaction) -> None:
        with self._lock:
            self._rows.append(tx)

    def add_many(self, txs: Iterable[Transaction]) -> int:
        batch = list(txs)
        with self._lock:
            self._rows.extend(batch)
        _log.debug("stored %d transactions in memory", len(batch))
        return len(batch)

    def clear(self) -> int:
        with self._lock:
            removed = len(self._rows)
            self._rows.clear()
        return removed

    def count(self) -> int:
        with self._lock:
            return len(self._rows)


__all__ = ["InMemoryTransactionStore", "TransactionStore"]
