"""Retention analyzer: year-over-year grower cohort transitions.

Membership is decided by set membership on ``grower_name``. A grower with one
order or a hundred in a year is present in that year exactly once.
"""

from __future__ import annotations

from collections.abc import Iterable, Set

from .aggregation import filter_transactions, grower_names, retention_rate
from .models import RetentionCohort, Transactions


def compare_growers(
    current: Set[str], previous: Set[str], *, year: int, previous_year: int
) -> RetentionCohort:
    returning = frozenset(current & previous)
    return RetentionCohort(
        year=year,
        previous_year=previous_year,
        new=frozenset(current - previous),
        returning=returning,
        lost=frozenset(previous - current),
        retention_rate=retention_rate(len(returning), len(previous)),
    )


def compare_years(
    current: Transactions,
    previous: Transactions,
    *,
    year: int,
    previous_year: int | None = None,
) -> RetentionCohort:
    """Partition the growers of two transaction sets into new/returning/lost.

    ``current`` and ``previous`` are taken as given (callers filter them to the
    two years); ``previous_year`` defaults to ``year - 1``.
    """

    return compare_growers(
        grower_names(current),
        grower_names(previous),
        year=year,
        previous_year=year - 1 if previous_year is None else previous_year,
    )


def cohort_for_year(transactions: Transactions, year: int) -> RetentionCohort:
    """Cohort of ``year`` against ``year - 1`` drawn from one transaction set."""

    rows = list(transactions)
    return compare_years(
        filter_transactions(rows, year=year),
        filter_transactions(rows, year=year - 1),
        year=year,
    )


def retention_trend(transactions: Transactions, years: Iterable[int]) -> list[RetentionCohort]:
    """Cohorts for each consecutive pair of the (sorted) analysis window.

    A window of ``n`` years yields ``n - 1`` cohorts; the first year has no
    predecessor inside the window and produces none.
    """

    window = sorted(set(years))
    rows = list(transactions)
    by_year = {y: grower_names(filter_transactions(rows, year=y)) for y in window}
    return [
        compare_growers(by_year[cur], by_year[prev], year=cur, previous_year=prev)
        for prev, cur in zip(window, window[1:], strict=False)
    ]


def grower_status(name: str, previous_growers: Set[str]) -> str:
    """Label used in grower tables: ``"Returning"`` or ``"New"``."""

    return "Returning" if name in previous_growers else "New"


__all__ = [
    "cohort_for_year",
    "compare_growers",
    "compare_years",
    "grower_status",
    "retention_rate",
    "retention_trend",
]
