# ruff: noqa: I001
"""
Alembic environment for the `db` library (``grower_transactions`` schema).

``DATABASE_URL`` wins over ``sqlalchemy.url`` in ``alembic.ini``; a workspace
``.env`` is loaded first so both can come from the same place the CLI reads.
SQLite targets run in batch mode so ``ALTER TABLE`` migrations work there.
"""

from __future__ import annotations

import logging
import os
from logging.config import fileConfig
from typing import Any

from alembic import context
from dotenv import find_dotenv, load_dotenv
from sqlalchemy import engine_from_config, pool

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

log = logging.getLogger("alembic.env.grower_transactions")


def _resolve_url() -> str:
    # usecwd: works from the repo root and from inside libs/db
    env_file = find_dotenv(usecwd=True)
    if env_file:
        load_dotenv(dotenv_path=env_file, override=False)
    url = os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError(
            "No database configured: set DATABASE_URL or sqlalchemy.url in alembic.ini"
        )
    return url


DATABASE_URL = _resolve_url()
config.set_main_option("sqlalchemy.url", DATABASE_URL)

from db import metadata as target_metadata  # noqa: E402  (after env is loaded)

log.debug("migrating tables: %s", ", ".join(sorted(target_metadata.tables)))


def _context_options(**extra: Any) -> dict[str, Any]:
    return {"target_metadata": target_metadata, "compare_type": True, **extra}


def run_offline() -> None:
    """Emit SQL to stdout without a live connection."""
    context.configure(url=DATABASE_URL, literal_binds=True, **_context_options())
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    engine = engine_from_config(
        {"sqlalchemy.url": DATABASE_URL},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with engine.connect() as connection:
        batch = connection.dialect.name == "sqlite"
        context.configure(connection=connection, **_context_options(render_as_batch=batch))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
