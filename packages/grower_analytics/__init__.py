"""Public interface for the ``grower_analytics`` package.

Symbol re-exports only: the engine functions, the models they produce and the
configuration object callers pass in.
"""

from .aggregation import (
    filter_transactions,
    grower_detail,
    grower_summaries,
    monthly_comparison,
    monthly_totals,
    overview_stats,
    product_breakdown,
    product_trends,
    summarize_year,
    top_growers,
    yearly_series,
    yearly_summaries,
)
from .config import AnalysisConfig, load_config
from .forecasting import (
    forecast,
    forecast_transactions,
    growth_rate_forecast,
    linear_regression,
    monthly_forecast,
    product_forecasts,
    project,
    standard_deviation,
    weighted_average_forecast,
    z_score,
)
from .ingest import export_csv, parse_csv_text
from .models import (
    Forecast,
    ForecastResult,
    GrowerSummary,
    MonthlySummary,
    OverviewStats,
    ProductForecast,
    ProductSummary,
    RetentionCohort,
    Transaction,
    TransactionIn,
    Transactions,
    YearlySummary,
)
from .retention import compare_years, grower_status, retention_trend
from .store import InMemoryTransactionStore, TransactionStore

__all__ = [
    # Aggregation
    "filter_transactions",
    "grower_detail",
    "grower_summaries",
    "monthly_comparison",
    "monthly_totals",
    "overview_stats",
    "product_breakdown",
    "product_trends",
    "summarize_year",
    "top_growers",
    "yearly_series",
    "yearly_summaries",
    # Retention
    "compare_years",
    "grower_status",
    "retention_trend",
    # Forecasting
    "forecast",
    "forecast_transactions",
    "growth_rate_forecast",
    "linear_regression",
    "monthly_forecast",
    "product_forecasts",
    "project",
    "standard_deviation",
    "weighted_average_forecast",
    "z_score",
    # Ingest / store / config
    "AnalysisConfig",
    "InMemoryTransactionStore",
    "TransactionStore",
    "export_csv",
    "load_config",
    "parse_csv_text",
    # Models / types
    "Forecast",
    "ForecastResult",
    "GrowerSummary",
    "MonthlySummary",
    "OverviewStats",
    "ProductForecast",
    "ProductSummary",
    "RetentionCohort",
    "Transaction",
    "TransactionIn",
    "Transactions",
    "YearlySummary",
]
