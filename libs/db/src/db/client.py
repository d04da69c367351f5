"""Engine/session helpers shared by the workspace packages.

Usage
-----
from db.client import session_scope

with session_scope() as s:
    s.scalars(select(GrowerTransactionRow))

The URL comes from the ``database_url`` argument or ``$DATABASE_URL``. A
process binds to one URL at a time; :func:`reset_engine` disposes the binding
so the next call may choose another (tests switch SQLite files that way).
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker


@dataclass(frozen=True, slots=True)
class _Binding:
    url: str
    engine: Engine
    sessions: sessionmaker[Session]


_binding: _Binding | None = None


def configured_url(override: str | None = None) -> str | None:
    """Return the URL a call would bind to, or ``None`` when nothing is configured."""

    return override or os.getenv("DATABASE_URL") or None


def _bind(database_url: str | None) -> _Binding:
    global _binding
    url = configured_url(database_url)
    if not url:
        raise RuntimeError("DATABASE_URL is not set; cannot initialize database client")
    if _binding is None:
        engine = create_engine(url, pool_pre_ping=True)
        _binding = _Binding(
            url=url,
            engine=engine,
            sessions=sessionmaker(bind=engine, expire_on_commit=False, class_=Session),
        )
    elif _binding.url != url:
        raise RuntimeError(
            f"database client is bound to another URL; call reset_engine() before using {url!r}"
        )
    return _binding


def get_engine(*, database_url: str | None = None) -> Engine:
    return _bind(database_url).engine


def reset_engine() -> None:
    """Dispose the current engine, if any."""

    global _binding
    if _binding is not None:
        _binding.engine.dispose()
    _binding = None


def get_session(*, database_url: str | None = None) -> Session:
    return _bind(database_url).sessions()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Commit on success, roll back on error, always close."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "configured_url",
    "get_engine",
    "get_session",
    "reset_engine",
    "session_scope",
]
