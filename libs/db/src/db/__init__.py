"""db: SQLAlchemy models and Alembic target for grower sales data.

``metadata`` is what ``alembic/env.py`` migrates; ``GrowerTransactionRow`` is
the only table. Sessions come from :mod:`db.client`.
"""

from __future__ import annotations

from .models.sales import Base, GrowerTransactionRow

metadata = Base.metadata

__all__ = ["Base", "GrowerTransactionRow", "metadata"]
