from __future__ import annotations

from grower_analytics.retention import (
    cohort_for_year,
    compare_growers,
    compare_years,
    grower_status,
    retention_rate,
    retention_trend,
)
from tests.helpers.factories import tx


def test_cohort_scenario_abc_vs_abd():
    current = [tx("2025-02-01", "A"), tx("2025-03-01", "B"), tx("2025-04-01", "C")]
    previous = [tx("2024-02-01", "A"), tx("2024-03-01", "B"), tx("2024-04-01", "D")]

    cohort = compare_years(current, previous, year=2025)

    assert cohort.previous_year == 2024
    assert cohort.new == frozenset({"C"})
    assert cohort.returning == frozenset({"A", "B"})
    assert cohort.lost == frozenset({"D"})
    assert cohort.retention_rate == 66.7


def test_membership_ignores_order_counts():
    current = [tx("2025-01-01", "A")] * 5
    previous = [tx("2024-01-01", "A"), tx("2024-06-01", "B")]
    cohort = compare_years(current, previous, year=2025)
    assert cohort.current_count == 1
    assert cohort.previous_count == 2
    assert cohort.retention_rate == 50.0


def test_empty_previous_year_rate_is_zero():
    cohort = compare_growers({"A", "B"}, set(), year=2023, previous_year=2022)
    assert cohort.new == frozenset({"A", "B"})
    assert cohort.retention_rate == 0.0
    assert retention_rate(0, 0) == 0.0


def test_retention_rate_rounds_to_one_decimal():
    assert retention_rate(1, 3) == 33.3
    assert retention_rate(3, 3) == 100.0


def test_trend_uses_consecutive_window_pairs(sample_transactions):
    cohorts = retention_trend(sample_transactions, [2024, 2022, 2023])

    assert [(c.previous_year, c.year) for c in cohorts] == [(2022, 2023), (2023, 2024)]
    first, second = cohorts
    assert first.returning == frozenset({"Alpha Farms", "Beta Acres"})
    assert first.new == frozenset({"Delta Growers"})
    assert first.lost == frozenset({"Cedar Ridge"})
    assert second.new == frozenset()
    assert second.lost == frozenset({"Beta Acres"})
    assert second.retention_rate == 66.7


def test_partitions_are_disjoint_and_complete(sample_transactions):
    for c in retention_trend(sample_transactions, range(2021, 2026)):
        assert not (c.new & c.returning or c.new & c.lost or c.returning & c.lost)
        assert 0.0 <= c.retention_rate <= 100.0
        current = {t.grower_name for t in sample_transactions if t.date.year == c.year}
        previous = {t.grower_name for t in sample_transactions if t.date.year == c.previous_year}
        assert c.new | c.returning == current
        assert c.lost | c.returning == previous


def test_single_year_window_has_no_cohorts(sample_transactions):
    assert retention_trend(sample_transactions, [2023]) == []


def test_cohort_for_year_and_status(sample_transactions):
    cohort = cohort_for_year(sample_transactions, 2023)
    assert cohort.previous_year == 2022
    assert cohort.retention_rate == 66.7
    assert grower_status("Alpha Farms", cohort.returning) == "Returning"
    assert grower_status("Delta Growers", {"Alpha Farms"}) == "New"
