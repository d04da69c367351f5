"""Public API and orchestration for the ``grower_analytics`` package.

The engine modules (:mod:`.aggregation`, :mod:`.retention`,
:mod:`.forecasting`) are pure functions over transaction iterables. This
module wires them to a :class:`~grower_analytics.store.TransactionStore` and
an :class:`~grower_analytics.config.AnalysisConfig` and assembles the views a
dashboard or the CLI renders.

DB imports stay local to :func:`open_store` so callers that only analyze CSV
files never import SQLAlchemy.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from os import PathLike
from typing import Any

from .aggregation import (
    filter_transactions,
    grower_detail,
    grower_names,
    grower_summaries,
    monthly_comparison,
    monthly_totals,
    overview_stats,
    product_breakdown,
    product_trends,
    yearly_summaries,
)
from .config import AnalysisConfig
from .forecasting import forecast_transactions, monthly_forecast, product_forecasts
from .ingest import export_csv, load_transactions_from_csv
from .logging_setup import get_logger
from .models import (
    ForecastResult,
    GrowerSummary,
    MonthlySummary,
    OverviewStats,
    ProductForecast,
    ProductSummary,
    RetentionCohort,
    Transaction,
    Transactions,
    TransactionIn,
    YearlySummary,
)
from .retention import grower_status, retention_trend
from .store import InMemoryTransactionStore, TransactionStore

_log = get_logger("grower_analytics.api")


# ---------------------------------------------------------------------------
# View records assembled here (the engine's models stay minimal)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GrowerRow:
    """One line of the grower table: the rollup plus New/Returning status."""

    summary: GrowerSummary
    status: str


@dataclass(frozen=True, slots=True)
class HistoricalView:
    yearly: list[YearlySummary]
    monthly: dict[int, list[float]]
    product_trends: dict[str, list[float]]


@dataclass(frozen=True, slots=True)
class ForecastView:
    result: ForecastResult
    products: list[ProductForecast]
    monthly: list[float]


# ---------------------------------------------------------------------------
# Store access
# ---------------------------------------------------------------------------


def open_store(*, database_url: str | None = None, dedupe: bool = False) -> TransactionStore:
    """SQL store when a database URL is configured, else a fresh in-memory one."""

    from db.client import configured_url

    if configured_url(database_url):
        from .persistence import SqlTransactionStore

        return SqlTransactionStore(database_url=database_url, dedupe=dedupe)
    _log.info("DATABASE_URL not set; using the in-memory transaction store")
    return InMemoryTransactionStore()


def import_csv(store: TransactionStore, csv_path: str | PathLike[str]) -> int:
    """Parse a CSV/TSV file into ``store``; returns the number of rows stored."""

    rows = load_transactions_from_csv(csv_path)
    stored = store.add_many(rows)
    _log.info("imported %d of %d parsed rows from %s", stored, len(rows), csv_path)
    return stored


def add_transaction(store: TransactionStore, record: Mapping[str, Any]) -> Transaction:
    """Validate one record and store it.

    Raises ``pydantic.ValidationError`` when the date, grower or product is
    missing or unreadable.
    """

    tx = TransactionIn.model_validate(dict(record)).to_transaction()
    store.add(tx)
    return tx


def export_transactions(store: TransactionStore, *, year: int | None = None) -> str:
    return export_csv(store.query(year=year))


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


def dashboard_overview(transactions: Transactions, year: int) -> OverviewStats:
    return overview_stats(transactions, year)


def historical_view(
    transactions: Transactions,
    config: AnalysisConfig,
    *,
    product: str | None = None,
    top_products: int = 5,
) -> HistoricalView:
    """Yearly rollups, monthly YoY comparison and top product trends."""

    rows = list(transactions)
    return HistoricalView(
        yearly=yearly_summaries(rows, config.years, product=product),
        monthly=monthly_comparison(rows, config.years, product=product),
        product_trends=product_trends(
            filter_transactions(rows, years=config.years), config.years, top=top_products
        ),
    )


def monthly_view(transactions: Transactions, year: int) -> list[MonthlySummary]:
    return monthly_totals(transactions, year)


def grower_table(
    transactions: Transactions,
    year: int,
    *,
    sort_by: str = "revenue",
    search: str | None = None,
) -> list[GrowerRow]:
    """Growers active in ``year`` with their status against ``year - 1``."""

    rows = list(transactions)
    previous = grower_names(filter_transactions(rows, year=year - 1))
    return [
        GrowerRow(summary=s, status=grower_status(s.grower_name, previous))
        for s in grower_summaries(
            filter_transactions(rows, year=year), sort_by=sort_by, search=search
        )
    ]


def grower_profile(
    transactions: Transactions, name: str
) -> tuple[GrowerSummary, list[Transaction]] | None:
    return grower_detail(transactions, name)


def product_table(transactions: Transactions, year: int) -> list[ProductSummary]:
    """Product mix of ``year`` with YoY change against ``year - 1``."""

    rows = list(transactions)
    return product_breakdown(
        filter_transactions(rows, year=year),
        previous=filter_transactions(rows, year=year - 1),
    )


def retention_report(transactions: Transactions, config: AnalysisConfig) -> list[RetentionCohort]:
    return retention_trend(transactions, config.years)


def run_forecast(
    transactions: Transactions,
    config: AnalysisConfig,
    *,
    method: str = "linear",
    confidence: float = 0.90,
    target_year: int | None = None,
    product: str | None = None,
) -> ForecastView:
    """Revenue/grower forecast plus product and monthly projections."""

    rows = list(transactions)
    target = config.default_target_year if target_year is None else target_year
    result = forecast_transactions(
        rows,
        config.years,
        method=method,
        confidence=confidence,
        target_year=target,
        product=product,
    )
    return ForecastView(
        result=result,
        products=product_forecasts(rows, config.years, target_year=target),
        monthly=monthly_forecast(
            filter_transactions(rows, product=product), config.years, target_year=target
        ),
    )


__all__ = [
    "ForecastView",
    "GrowerRow",
    "HistoricalView",
    "add_transaction",
    "dashboard_overview",
    "export_transactions",
    "grower_profile",
    "grower_table",
    "historical_view",
    "import_csv",
    "monthly_view",
    "open_store",
    "product_table",
    "retention_report",
    "run_forecast",
]
