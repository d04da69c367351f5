from __future__ import annotations

import pytest

from grower_analytics.api import add_transaction, export_transactions, import_csv, open_store
from grower_analytics.ingest import write_transactions_csv
from grower_analytics.persistence import SqlTransactionStore, compute_fingerprint
from grower_analytics.store import InMemoryTransactionStore, TransactionStore
from tests.helpers.db import bootstrap_sqlite_db
from tests.helpers.factories import tx


def test_in_memory_store_operations(sample_transactions):
    store = InMemoryTransactionStore()
    assert isinstance(store, TransactionStore)
    assert store.add_many(sample_transactions) == 9
    store.add(tx("2025-01-01", "Echo Farms"))

    assert store.count() == 10
    assert len(store.query(year=2023)) == 3
    assert len(store.query(product="Herbicide")) == 2
    assert [t.invoice_number for t in store.query(grower="Delta Growers")] == ["INV-6", "INV-9"]

    snapshot = store.all()
    snapshot.clear()
    assert store.count() == 10

    assert store.clear() == 10
    assert store.all() == []


def test_fingerprint_is_stable_and_ignores_extras():
    a = tx("2024-01-01", "A", amount=5.0, invoice="I-1")
    b = tx("2024-01-01", " A ", amount=5, invoice="I-1", hybrid="P1")
    c = tx("2024-01-01", "A", amount=6.0, invoice="I-1")
    assert compute_fingerprint(a) == compute_fingerprint(b)
    assert compute_fingerprint(a) != compute_fingerprint(c)
    assert len(compute_fingerprint(a)) == 64


@pytest.fixture
def sql_store(tmp_path) -> SqlTransactionStore:
    url = bootstrap_sqlite_db(tmp_path / "ga.sqlite")
    return SqlTransactionStore(database_url=url)


def test_sql_store_round_trip(sql_store, sample_transactions):
    assert isinstance(sql_store, TransactionStore)
    assert sql_store.add_many(sample_transactions) == 9
    assert sql_store.count() == 9
    assert sql_store.all() == sample_transactions

    assert [t.invoice_number for t in sql_store.query(year=2022)] == ["INV-1", "INV-2", "INV-3"]
    assert len(sql_store.query(product="Corn Seed")) == 4
    assert len(sql_store.query(product="all")) == 9
    assert len(sql_store.query(year=2024, grower="Alpha Farms")) == 2


def test_sql_store_keeps_extras(sql_store):
    sql_store.add(tx("2024-05-05", "A", hybrid="P1197", trait="AM"))
    (row,) = sql_store.all()
    assert row.extras == {"hybrid": "P1197", "trait": "AM"}


def test_sql_store_keeps_duplicates_by_default(sql_store):
    line = tx("2024-05-05", "A", invoice="I-1")
    assert sql_store.add_many([line, line]) == 2
    assert sql_store.count() == 2


def test_sql_store_dedupe_skips_known_fingerprints(sql_store, sample_transactions):
    deduping = SqlTransactionStore(database_url=sql_store.database_url, dedupe=True)
    assert deduping.add_many(sample_transactions) == 9
    assert deduping.add_many(sample_transactions + [tx("2025-01-01", "New")]) == 1
    assert deduping.add_many([tx("2025-02-02", "B")] * 3) == 1
    assert deduping.count() == 11


def test_sql_store_clear(sql_store, sample_transactions):
    sql_store.add_many(sample_transactions)
    assert sql_store.clear() == 9
    assert sql_store.count() == 0
    assert sql_store.add_many([]) == 0


def test_open_store_without_database_is_in_memory():
    assert isinstance(open_store(), InMemoryTransactionStore)


def test_open_store_uses_database_url(tmp_path, monkeypatch):
    url = bootstrap_sqlite_db(tmp_path / "env.sqlite")
    monkeypatch.setenv("DATABASE_URL", url)
    store = open_store(dedupe=True)
    assert isinstance(store, SqlTransactionStore)
    assert store.dedupe is True


def test_import_add_and_export_through_store(tmp_path, sample_transactions):
    path = tmp_path / "sales.csv"
    write_transactions_csv(sample_transactions, path)
    store = InMemoryTransactionStore()

    assert import_csv(store, path) == 9
    added = add_transaction(
        store, {"date": "2023-08-08", "growerName": "Echo Farms", "product": "Alfalfa"}
    )
    assert added.amount == 0.0

    exported = export_transactions(store, year=2023).splitlines()
    assert len(exported) == 5
    assert exported[-1].startswith("2023-08-08,,Echo Farms,Alfalfa")


def test_add_transaction_rejects_invalid_record():
    from pydantic import ValidationError

    store = InMemoryTransactionStore()
    with pytest.raises(ValidationError):
        add_transaction(store, {"date": "2023-08-08", "product": "Alfalfa"})
    assert store.count() == 0
