"""DB helpers for tests: bootstrap a temporary SQLite database."""

from __future__ import annotations

import os
from pathlib import Path

from db import Base
from db.client import get_engine, reset_engine, session_scope
from db.models.sales import GrowerTransactionRow
from sqlalchemy import text as sql_text


def bootstrap_sqlite_db(db_file: Path, *, set_default_env: bool = False) -> str:
    """Create a SQLite database file, initialize schema, and return the URL.

    A file-backed database lets separate connections (and separate CLI
    invocations in one test) see the same rows.
    """

    url = f"sqlite+pysqlite:///{db_file}"
    db_file.parent.mkdir(parents=True, exist_ok=True)
    reset_engine()
    engine = get_engine(database_url=url)
    Base.metadata.create_all(bind=engine)
    _assert_transactions_schema_in_sync(url)

    if set_default_env:
        os.environ.setdefault("DATABASE_URL", url)
    return url


def _assert_transactions_schema_in_sync(database_url: str) -> None:
    """ORM column set matches the created SQLite table."""

    expected = {c.name for c in GrowerTransactionRow.__table__.columns}
    with session_scope(database_url=database_url) as session:
        rows = session.execute(sql_text("PRAGMA table_info('grower_transactions')")).fetchall()
        got = {row[1] for row in rows}  # (cid, name, type, notnull, dflt_value, pk)
    assert got == expected, f"grower_transactions schema drift: {sorted(got ^ expected)}"
