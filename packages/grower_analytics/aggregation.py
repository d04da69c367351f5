"""Aggregation engine: exact sums, counts and distinct sets over transactions.

Every function here is pure. Inputs are iterated once into a list where more
than one pass is needed, nothing is cached between calls, and an empty input
is a valid zero result. Ratios (average order value, percent of total, growth)
are reported as ``0.0`` whenever their denominator is zero.

Year filtering uses calendar-year extraction from ``Transaction.date``: a
transaction belongs to year ``Y`` when it falls within Jan 1..Dec 31 of ``Y``.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Hashable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import TypeVar

from .logging_setup import get_logger
from .models import (
    GrowerSummary,
    MonthlySummary,
    OverviewStats,
    ProductSummary,
    Transaction,
    Transactions,
    YearlySummary,
)

K = TypeVar("K", bound=Hashable)

_log = get_logger("grower_analytics.aggregation")

MONTHS: tuple[str, ...] = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)  # fmt: skip


# ---------------------------------------------------------------------------
# Small numeric helpers
# ---------------------------------------------------------------------------


def total(values: Iterable[float]) -> float:
    """Exactly rounded float sum."""

    return math.fsum(values)


def ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


def pct_change(current: float, previous: float) -> float:
    """Percent change from ``previous`` to ``current``; 0 when ``previous`` is 0."""

    return (current - previous) / previous * 100 if previous else 0.0


def retention_rate(returning: int, previous: int) -> float:
    """``returning / previous`` as a percentage rounded to one decimal place."""

    if previous <= 0:
        return 0.0
    return round(returning / previous * 100, 1)


# ---------------------------------------------------------------------------
# Filtering and grouping
# ---------------------------------------------------------------------------


def filter_transactions(
    transactions: Transactions,
    *,
    year: int | None = None,
    years: Iterable[int] | None = None,
    product: str | None = None,
    grower: str | None = None,
    search: str | None = None,
) -> list[Transaction]:
    """Return the transactions matching every provided predicate.

    Parameters
    ----------
    year:
        Keep transactions dated within that calendar year.
    years:
        Keep transactions whose calendar year is in the collection (a range
        such as ``range(2022, 2027)`` works).
    product:
        Exact product label. ``None`` or ``"all"`` disables the filter.
    grower:
        Exact grower name.
    search:
        Case-insensitive substring of the grower name.
    """

    year_set = set(years) if years is not None else None
    product_filter = None if product in (None, "", "all") else product
    needle = search.strip().casefold() if search else ""

    out: list[Transaction] = []
    for tx in transactions:
        if year is not None and tx.date.year != year:
            continue
        if year_set is not None and tx.date.year not in year_set:
            continue
        if product_filter is not None and tx.product != product_filter:
            continue
        if grower is not None and tx.grower_name != grower:
            continue
        if needle and needle not in tx.grower_name.casefold():
            continue
        out.append(tx)
    return out


def group_by(
    transactions: Transactions, key: Callable[[Transaction], K]
) -> dict[K, list[Transaction]]:
    """Group transactions by ``key``; groups keep first-seen order."""

    groups: dict[K, list[Transaction]] = {}
    for tx in transactions:
        groups.setdefault(key(tx), []).append(tx)
    return groups


def grower_names(transactions: Transactions) -> frozenset[str]:
    """Distinct grower names present in ``transactions``."""

    return frozenset(tx.grower_name for tx in transactions)


# ---------------------------------------------------------------------------
# Time-bucketed summaries
# ---------------------------------------------------------------------------


def summarize_year(transactions: Transactions, year: int) -> YearlySummary:
    """Totals for one calendar year (``growth_pct`` left at 0)."""

    rows = filter_transactions(transactions, year=year)
    revenue = total(tx.amount for tx in rows)
    orders = len(rows)
    return YearlySummary(
        year=year,
        revenue=revenue,
        quantity=total(tx.quantity for tx in rows),
        order_count=orders,
        grower_count=len(grower_names(rows)),
        avg_order_value=ratio(revenue, orders),
    )


def yearly_summaries(
    transactions: Transactions,
    years: Iterable[int],
    *,
    product: str | None = None,
) -> list[YearlySummary]:
    """Summaries for each requested year, sorted by year ascending.

    ``growth_pct`` compares each year's revenue with the previous entry in the
    sorted window.
    """

    rows = filter_transactions(transactions, product=product)
    by_year = group_by(rows, lambda tx: tx.date.year)

    out: list[YearlySummary] = []
    prev_revenue = 0.0
    for i, year in enumerate(sorted(set(years))):
        base = summarize_year(by_year.get(year, []), year)
        growth = pct_change(base.revenue, prev_revenue) if i else 0.0
        out.append(
            YearlySummary(
                year=base.year,
                revenue=base.revenue,
                quantity=base.quantity,
                order_count=base.order_count,
                grower_count=base.grower_count,
                avg_order_value=base.avg_order_value,
                growth_pct=growth,
            )
        )
        prev_revenue = base.revenue
    return out


def yearly_series(
    transactions: Transactions,
    years: Iterable[int],
    *,
    product: str | None = None,
) -> list[tuple[int, float, int]]:
    """``(year, revenue, grower_count)`` points for the forecast engine."""

    return [
        (s.year, s.revenue, s.grower_count)
        for s in yearly_summaries(transactions, years, product=product)
    ]


def overview_stats(transactions: Transactions, year: int) -> OverviewStats:
    """Headline KPIs for ``year`` against ``year - 1``.

    Revenue and orders report a percent change, growers an absolute change.
    The retention rate is the share of last year's growers seen again.
    """

    rows = list(transactions)
    current = summarize_year(rows, year)
    previous = summarize_year(rows, year - 1)
    prev_names = grower_names(filter_transactions(rows, year=year - 1))
    returning = grower_names(filter_transactions(rows, year=year)) & prev_names
    return OverviewStats(
        year=year,
        revenue=current.revenue,
        revenue_change_pct=pct_change(current.revenue, previous.revenue),
        growers=current.grower_count,
        growers_change=current.grower_count - previous.grower_count,
        orders=current.order_count,
        orders_change_pct=pct_change(current.order_count, previous.order_count),
        retention_rate=retention_rate(len(returning), len(prev_names)),
    )


def growth_rates(values: Sequence[float]) -> list[float]:
    """Year-over-year percent changes aligned with ``values`` (first is 0)."""

    return [0.0 if i == 0 else pct_change(v, values[i - 1]) for i, v in enumerate(values)]


def monthly_totals(transactions: Transactions, year: int) -> list[MonthlySummary]:
    """Twelve rows (Jan..Dec) of revenue, quantity and orders for ``year``."""

    by_month = group_by(filter_transactions(transactions, year=year), lambda tx: tx.date.month)
    out: list[MonthlySummary] = []
    for month in range(1, 13):
        rows = by_month.get(month, [])
        out.append(
            MonthlySummary(
                month=month,
                revenue=total(tx.amount for tx in rows),
                quantity=total(tx.quantity for tx in rows),
                order_count=len(rows),
            )
        )
    return out


def monthly_comparison(
    transactions: Transactions, years: Iterable[int], *, product: str | None = None
) -> dict[int, list[float]]:
    """Monthly revenue per year, for year-over-year comparison charts."""

    rows = filter_transactions(transactions, product=product)
    return {year: [m.revenue for m in monthly_totals(rows, year)] for year in sorted(set(years))}


# ---------------------------------------------------------------------------
# Product mix
# ---------------------------------------------------------------------------


def product_breakdown(
    transactions: Transactions,
    *,
    previous: Transactions | None = None,
) -> list[ProductSummary]:
    """Per-product totals sorted by revenue descending.

    ``previous`` is the comparison period (usually the prior year); when it is
    omitted every ``yoy_change_pct`` is 0.
    """

    rows = list(transactions)
    grand_total = total(tx.amount for tx in rows)
    prev_revenue: dict[str, float] = {}
    if previous is not None:
        for product, prev_rows in group_by(previous, lambda tx: tx.product).items():
            prev_revenue[product] = total(tx.amount for tx in prev_rows)

    out: list[ProductSummary] = []
    for product, group in group_by(rows, lambda tx: tx.product).items():
        revenue = total(tx.amount for tx in group)
        quantity = total(tx.quantity for tx in group)
        out.append(
            ProductSummary(
                product=product,
                revenue=revenue,
                quantity=quantity,
                order_count=len(group),
                avg_order_value=ratio(revenue, len(group)),
                avg_unit_price=ratio(revenue, quantity),
                percent_of_total=ratio(revenue, grand_total) * 100,
                yoy_change_pct=pct_change(revenue, prev_revenue.get(product, 0.0)),
            )
        )
    out.sort(key=lambda p: p.revenue, reverse=True)
    return out


def product_trends(
    transactions: Transactions, years: Iterable[int], *, top: int = 5
) -> dict[str, list[float]]:
    """Yearly revenue series for the ``top`` products by overall revenue."""

    rows = list(transactions)
    window = sorted(set(years))
    by_product = group_by(rows, lambda tx: tx.product)
    ranked = sorted(
        ((p, total(tx.amount for tx in g)) for p, g in by_product.items()),
        key=lambda item: item[1],
        reverse=True,
    )[: max(top, 0)]
    return {
        product: [s.revenue for s in yearly_summaries(rows, window, product=product)]
        for product, _ in ranked
    }


# ---------------------------------------------------------------------------
# Growers
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class _GrowerAcc:
    name: str
    first: date
    last: date
    revenue: list[float] = field(default_factory=list)
    quantity: list[float] = field(default_factory=list)
    products: set[str] = field(default_factory=set)
    years: set[int] = field(default_factory=set)

    def add(self, tx: Transaction) -> None:
        self.revenue.append(tx.amount)
        self.quantity.append(tx.quantity)
        self.products.add(tx.product)
        self.years.add(tx.date.year)
        if tx.date < self.first:
            self.first = tx.date
        if tx.date > self.last:
            self.last = tx.date

    def freeze(self) -> GrowerSummary:
        return GrowerSummary(
            grower_name=self.name,
            revenue=total(self.revenue),
            quantity=total(self.quantity),
            order_count=len(self.revenue),
            products=frozenset(self.products),
            first_purchase=self.first,
            last_purchase=self.last,
            years_active=tuple(sorted(self.years)),
        )


def _sort_growers(growers: list[GrowerSummary], sort_by: str) -> None:
    if sort_by == "revenue":
        growers.sort(key=lambda g: g.revenue, reverse=True)
    elif sort_by == "orders":
        growers.sort(key=lambda g: g.order_count, reverse=True)
    elif sort_by == "name":
        growers.sort(key=lambda g: g.grower_name.casefold())
    else:
        _log.debug("unknown grower sort key %r; keeping grouping order", sort_by)


def grower_summaries(
    transactions: Transactions,
    *,
    sort_by: str = "revenue",
    search: str | None = None,
) -> list[GrowerSummary]:
    """One :class:`GrowerSummary` per distinct grower name.

    ``sort_by`` is ``"revenue"`` (descending), ``"orders"`` (descending) or
    ``"name"`` (ascending, case-insensitive). ``search`` keeps growers whose
    name contains the substring, ignoring case.
    """

    accs: dict[str, _GrowerAcc] = {}
    for tx in filter_transactions(transactions, search=search):
        acc = accs.get(tx.grower_name)
        if acc is None:
            acc = accs[tx.grower_name] = _GrowerAcc(tx.grower_name, tx.date, tx.date)
        acc.add(tx)

    growers = [acc.freeze() for acc in accs.values()]
    _sort_growers(growers, sort_by)
    return growers


def top_growers(transactions: Transactions, count: int = 10) -> list[GrowerSummary]:
    return grower_summaries(transactions, sort_by="revenue")[: max(count, 0)]


def grower_detail(
    transactions: Transactions, name: str
) -> tuple[GrowerSummary, list[Transaction]] | None:
    """Summary plus the grower's transactions (newest first), or ``None``."""

    rows = filter_transactions(transactions, grower=name)
    if not rows:
        return None
    summary = grower_summaries(rows)[0]
    rows.sort(key=lambda tx: tx.date, reverse=True)
    return summary, rows


__all__ = [
    "MONTHS",
    "filter_transactions",
    "group_by",
    "grower_detail",
    "grower_names",
    "grower_summaries",
    "growth_rates",
    "monthly_comparison",
    "monthly_totals",
    "overview_stats",
    "pct_change",
    "product_breakdown",
    "product_trends",
    "ratio",
    "retention_rate",
    "summarize_year",
    "top_growers",
    "total",
    "yearly_series",
    "yearly_summaries",
]
