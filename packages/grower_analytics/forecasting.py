"""Forecast engine: short-horizon projections with a confidence band.

Three interchangeable methods project the next value of a short yearly
series:

- ``linear``: ordinary least squares of value on year, evaluated at the
  target year.
- ``growth``: mean of the year-over-year ratios, applied once to the last
  value.
- ``weighted``: linearly weighted mean (weights ``1..n``, earliest = 1),
  nudged by +/-5% depending on whether the last value sits above the plain
  mean.

The band is ``value +/- population_std(history) * z`` where ``z`` comes from
:func:`z_score`. The point value and the lower bound are floored at 0; the
upper bound is not. All functions are pure and total: degenerate input
returns a defined fallback instead of raising.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from .aggregation import filter_transactions, group_by, yearly_series, yearly_summaries
from .logging_setup import get_logger
from .models import Forecast, ForecastResult, ProductForecast, Transactions

_log = get_logger("grower_analytics.forecasting")

_Z_SCORES: dict[float, float] = {
    0.80: 1.28,
    0.90: 1.645,
    0.95: 1.96,
}
DEFAULT_Z = 1.645
_LEVEL_TOLERANCE = 1e-9
DEFAULT_METHOD = "linear"
_TREND_UP = 1.05
_TREND_DOWN = 0.95


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


def mean(values: Sequence[float]) -> float:
    return math.fsum(values) / len(values) if values else 0.0


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation; 0 for an empty series."""

    if not values:
        return 0.0
    m = mean(values)
    return math.sqrt(math.fsum((v - m) ** 2 for v in values) / len(values))


def z_score(confidence: float) -> float:
    """z for the 80/90/95% levels; any other level falls back to 1.645."""

    try:
        level = float(confidence)
    except (TypeError, ValueError):
        return DEFAULT_Z
    for known, z in _Z_SCORES.items():
        if math.isclose(level, known, rel_tol=0.0, abs_tol=_LEVEL_TOLERANCE):
            return z
    return DEFAULT_Z


# ---------------------------------------------------------------------------
# Projection methods
# ---------------------------------------------------------------------------


def linear_regression(xs: Sequence[float], ys: Sequence[float], target: float) -> float:
    """Least-squares fit of ``ys`` on ``xs`` evaluated at ``target``.

    Returns 0 for an empty series. With fewer than two distinct ``xs`` the
    slope is undefined and the mean of ``ys`` is returned.
    """

    n = min(len(xs), len(ys))
    if n == 0:
        return 0.0
    xs, ys = xs[:n], ys[:n]
    mx, my = mean(xs), mean(ys)
    sxx = math.fsum((x - mx) ** 2 for x in xs)
    if sxx == 0:
        return my
    sxy = math.fsum((x - mx) * (y - my) for x, y in zip(xs, ys, strict=True))
    slope = sxy / sxx
    return my + slope * (target - mx)


def growth_rate_forecast(values: Sequence[float]) -> float:
    """Last value grown by the mean year-over-year rate.

    Transitions whose prior value is not positive are skipped. Fewer than two
    points return the only value (or 0 when empty).
    """

    if len(values) < 2:
        return float(values[-1]) if values else 0.0
    rates = [
        (cur - prev) / prev
        for prev, cur in zip(values, values[1:], strict=False)
        if prev > 0
    ]
    return values[-1] * (1 + mean(rates))


def weighted_average_forecast(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    weights = range(1, len(values) + 1)
    weighted = math.fsum(v * w for v, w in zip(values, weights, strict=True)) / sum(weights)
    trend = _TREND_UP if values[-1] > mean(values) else _TREND_DOWN
    return weighted * trend


def normalize_method(method: str | None) -> str:
    m = (method or "").strip().lower()
    if m in ("linear", "growth", "weighted"):
        return m
    _log.warning("unknown forecast method %r; using %s", method, DEFAULT_METHOD)
    return DEFAULT_METHOD


def project_value(
    points: Sequence[tuple[int, float]], method: str, target_year: int
) -> float:
    """Raw (unfloored) projection of ``(year, value)`` points."""

    m = normalize_method(method)
    values = [float(v) for _, v in points]
    if m == "growth":
        return growth_rate_forecast(values)
    if m == "weighted":
        return weighted_average_forecast(values)
    return linear_regression([float(y) for y, _ in points], values, float(target_year))


def _band(projected: float, spread: float, method: str) -> Forecast:
    value = max(0.0, projected)
    return Forecast(
        value=value,
        lower=max(0.0, value - spread),
        upper=value + spread,
        method=method,
    )


def project(
    points: Iterable[tuple[int, float]],
    *,
    method: str = DEFAULT_METHOD,
    target_year: int,
    confidence: float = 0.90,
) -> Forecast:
    """Project one series and attach the confidence band.

    The band is centred on the floored value, so ``lower <= value <= upper``
    holds even when a falling trend projects below zero.
    """

    pts = sorted(points)
    m = normalize_method(method)
    projected = project_value(pts, m, target_year)
    spread = standard_deviation([float(v) for _, v in pts]) * z_score(confidence)
    return _band(projected, spread, m)


def _round_half_up(x: float) -> float:
    return float(math.floor(x + 0.5))


def forecast(
    series: Iterable[tuple[int, float, float]],
    *,
    method: str = DEFAULT_METHOD,
    confidence: float = 0.90,
    target_year: int,
) -> ForecastResult:
    """Project revenue and grower count together from ``(year, revenue, growers)``.

    Both series use the same method and confidence. Grower projections are
    rounded half-up to whole growers (value and both bounds).
    """

    pts = sorted(series)
    m = normalize_method(method)
    z = z_score(confidence)

    revenue = project(
        [(y, r) for y, r, _ in pts], method=m, target_year=target_year, confidence=confidence
    )

    grower_points = [(y, float(g)) for y, _, g in pts]
    band = _band(
        project_value(grower_points, m, target_year),
        standard_deviation([g for _, g in grower_points]) * z,
        m,
    )
    growers = Forecast(
        value=_round_half_up(band.value),
        lower=_round_half_up(band.lower),
        upper=_round_half_up(band.upper),
        method=m,
    )

    _log.debug(
        "forecast method=%s confidence=%s target=%s revenue=%.2f growers=%.0f",
        m,
        confidence,
        target_year,
        revenue.value,
        growers.value,
    )
    return ForecastResult(
        target_year=target_year,
        method=m,
        confidence=confidence,
        z_score=z,
        revenue=revenue,
        growers=growers,
    )


def forecast_transactions(
    transactions: Transactions,
    years: Iterable[int],
    *,
    method: str = DEFAULT_METHOD,
    confidence: float = 0.90,
    target_year: int | None = None,
    product: str | None = None,
) -> ForecastResult:
    """Build the yearly series from transactions and run :func:`forecast`."""

    window = sorted(set(years))
    target = target_year if target_year is not None else (window[-1] + 1 if window else 0)
    return forecast(
        yearly_series(transactions, window, product=product),
        method=method,
        confidence=confidence,
        target_year=target,
    )


def product_forecasts(
    transactions: Transactions, years: Iterable[int], *, target_year: int
) -> list[ProductForecast]:
    """Linear projection per product; positive projections only, largest first."""

    window = sorted(set(years))
    rows = filter_transactions(transactions, years=window)
    out: list[ProductForecast] = []
    for product, group in group_by(rows, lambda tx: tx.product).items():
        revenues = [s.revenue for s in yearly_summaries(group, window)]
        value = linear_regression([float(y) for y in window], revenues, float(target_year))
        if value > 0:
            out.append(ProductForecast(product=product, value=value))
    out.sort(key=lambda p: p.value, reverse=True)
    return out


def monthly_distribution(transactions: Transactions, years: Iterable[int]) -> list[float]:
    """Share of revenue falling in each calendar month across ``years``.

    With no revenue in the window every month gets 1/12.
    """

    rows = filter_transactions(transactions, years=set(years))
    grand = math.fsum(tx.amount for tx in rows)
    if not grand:
        return [1 / 12] * 12
    by_month = group_by(rows, lambda tx: tx.date.month)
    return [math.fsum(tx.amount for tx in by_month.get(m, [])) / grand for m in range(1, 13)]


def monthly_forecast(
    transactions: Transactions, years: Iterable[int], *, target_year: int
) -> list[float]:
    """Linear annual projection spread over months by historical seasonality."""

    rows = list(transactions)
    window = sorted(set(years))
    revenues = [s.revenue for s in yearly_summaries(rows, window)]
    annual = linear_regression([float(y) for y in window], revenues, float(target_year))
    return [annual * share for share in monthly_distribution(rows, window)]


__all__ = [
    "DEFAULT_METHOD",
    "DEFAULT_Z",
    "forecast",
    "forecast_transactions",
    "growth_rate_forecast",
    "linear_regression",
    "mean",
    "monthly_distribution",
    "monthly_forecast",
    "normalize_method",
    "product_forecasts",
    "project",
    "project_value",
    "standard_deviation",
    "weighted_average_forecast",
    "z_score",
]
