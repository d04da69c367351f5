from __future__ import annotations

import math

import pytest

from grower_analytics.forecasting import (
    forecast,
    forecast_transactions,
    growth_rate_forecast,
    linear_regression,
    monthly_distribution,
    monthly_forecast,
    product_forecasts,
    project,
    standard_deviation,
    weighted_average_forecast,
    z_score,
)
from tests.helpers.factories import tx

SCENARIO = [
    (2022, 100000.0),
    (2023, 120000.0),
    (2024, 150000.0),
    (2025, 170000.0),
    (2026, 200000.0),
]


def test_linear_scenario_slope_and_projection():
    xs = [float(y) for y, _ in SCENARIO]
    ys = [v for _, v in SCENARIO]
    at_2026 = linear_regression(xs, ys, 2026.0)
    at_2027 = linear_regression(xs, ys, 2027.0)
    assert at_2027 - at_2026 == pytest.approx(25000.0)
    assert at_2027 == pytest.approx(223000.0)


def test_linear_regression_degenerate_inputs():
    assert linear_regression([], [], 2027.0) == 0.0
    # one distinct x: no slope, fall back to the mean
    assert linear_regression([2024.0, 2024.0], [10.0, 20.0], 2030.0) == 15.0


def test_growth_rate_forecast():
    assert growth_rate_forecast([100.0, 110.0, 121.0]) == pytest.approx(133.1)
    # the transition out of a zero year is skipped
    assert growth_rate_forecast([0.0, 100.0, 200.0]) == pytest.approx(400.0)
    assert growth_rate_forecast([50.0]) == 50.0
    assert growth_rate_forecast([]) == 0.0
    assert growth_rate_forecast([0.0, 0.0]) == 0.0


def test_weighted_average_forecast_trend_nudge():
    assert weighted_average_forecast([100.0, 200.0, 300.0]) == pytest.approx(1400 / 6 * 1.05)
    assert weighted_average_forecast([300.0, 200.0, 100.0]) == pytest.approx(1000 / 6 * 0.95)
    assert weighted_average_forecast([]) == 0.0


def test_standard_deviation_is_population():
    assert standard_deviation([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)
    assert standard_deviation([]) == 0.0


@pytest.mark.parametrize(
    ("confidence", "z"),
    [
        (0.80, 1.28),
        (0.90, 1.645),
        (0.95, 1.96),
        (0.5, 1.645),
        (0.9000001, 1.645),
        (0.801, 1.645),
        (0.949, 1.645),
        ("0.95", 1.96),
        (None, 1.645),
    ],
)
def test_z_score_table(confidence, z):
    assert z_score(confidence) == z


@pytest.mark.parametrize("method", ["linear", "growth", "weighted"])
@pytest.mark.parametrize("confidence", [0.80, 0.90, 0.95])
def test_band_ordering(method, confidence):
    f = project(SCENARIO, method=method, target_year=2027, confidence=confidence)
    assert f.lower <= f.value <= f.upper
    assert f.lower >= 0.0
    assert f.method == method


def test_band_width_uses_history_std_and_z():
    f = project(SCENARIO, method="linear", target_year=2027, confidence=0.95)
    spread = standard_deviation([v for _, v in SCENARIO]) * 1.96
    assert f.upper - f.value == pytest.approx(spread)


def test_falling_trend_is_floored_at_zero():
    f = project([(2022, 300.0), (2023, 100.0), (2024, 0.0)], method="linear", target_year=2026)
    assert f.value == 0.0
    assert f.lower == 0.0
    assert f.upper > 0.0


def test_unknown_method_falls_back_to_linear():
    f = project(SCENARIO, method="magic", target_year=2027)
    assert f.method == "linear"
    assert f.value == pytest.approx(223000.0)


def test_forecast_is_idempotent_and_rounds_growers():
    series = [(2022, 1000.0, 3), (2023, 1500.0, 3), (2024, 1800.0, 2)]
    first = forecast(series, method="linear", confidence=0.90, target_year=2025)
    second = forecast(series, method="linear", confidence=0.90, target_year=2025)
    assert first == second
    assert first.z_score == 1.645
    # 2.667 - 0.5 * 2 = 1.667 growers -> 2
    assert first.growers.value == 2.0
    for v in (first.growers.value, first.growers.lower, first.growers.upper):
        assert v == math.floor(v)
    assert first.growers.lower <= first.growers.value <= first.growers.upper


def test_forecast_transactions_defaults_target_year(sample_transactions):
    result = forecast_transactions(sample_transactions, [2022, 2023, 2024], method="growth")
    assert result.target_year == 2025
    assert result.method == "growth"
    assert result.revenue.lower <= result.revenue.value <= result.revenue.upper


def test_forecast_on_empty_history_is_zero():
    result = forecast_transactions([], [2022, 2023], target_year=2024)
    assert (result.revenue.value, result.revenue.lower, result.revenue.upper) == (0.0, 0.0, 0.0)
    assert result.growers.value == 0.0


def test_product_forecasts_positive_and_sorted(sample_transactions):
    rows = product_forecasts(sample_transactions, [2022, 2023, 2024], target_year=2025)
    assert [p.product for p in rows] == ["Corn Seed", "Soybean Seed", "Herbicide"]
    assert rows[0].value == pytest.approx(2000.0)
    assert rows[1].value == pytest.approx(600.0)
    assert rows[2].value == pytest.approx(700 / 3)


def test_product_forecasts_drop_declining_products():
    rows = [
        tx("2022-01-01", "A", "Fungicide", 300.0),
        tx("2023-01-01", "A", "Fungicide", 200.0),
        tx("2024-01-01", "A", "Fungicide", 50.0),
    ]
    assert product_forecasts(rows, [2022, 2023, 2024], target_year=2025) == []


def test_monthly_forecast_distributes_annual_projection(sample_transactions):
    months = monthly_forecast(sample_transactions, [2022, 2023, 2024], target_year=2025)
    assert len(months) == 12
    assert sum(months) == pytest.approx(2183.3333333 + 650.0)
    assert months[0] == 0.0  # no January sales in history


def test_monthly_distribution_without_revenue_is_uniform():
    assert monthly_distribution([], [2024]) == [1 / 12] * 12
