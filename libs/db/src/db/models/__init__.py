"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the sales models used by ``grower_analytics``.
"""

from .sales import Base, GrowerTransactionRow

__all__ = [
    "Base",
    "GrowerTransactionRow",
]
