"""Analysis configuration: the year window and the product category set.

Nothing in the engine hard-codes either value. Callers build an
:class:`AnalysisConfig` (directly, or from the environment via
:func:`load_config`) and pass the pieces they need into the aggregation,
retention and forecast functions.

Environment variables
---------------------
- ``GROWER_ANALYTICS_YEARS``: ``"2022-2026"`` (inclusive range) or a comma
  list such as ``"2022,2023,2025"``.
- ``GROWER_ANALYTICS_PRODUCTS``: comma-separated category labels.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

DEFAULT_PRODUCTS: tuple[str, ...] = (
    "Corn Seed",
    "Soybean Seed",
    "Sorghum",
    "Alfalfa",
    "Herbicide",
    "Fungicide",
    "Insecticide",
    "Fertilizer",
    "Equipment",
    "Other",
)

DEFAULT_YEARS: tuple[int, ...] = (2022, 2023, 2024, 2025, 2026)

FORECAST_METHODS: tuple[str, ...] = ("linear", "growth", "weighted")
CONFIDENCE_LEVELS: tuple[float, ...] = (0.80, 0.90, 0.95)


@dataclass(frozen=True, slots=True)
class AnalysisConfig:
    """Year window and category list shared by the analytic views.

    ``years`` is normalized to a sorted tuple of distinct integers; an empty
    window is rejected because retention trends and forecasts are defined over
    it.
    """

    years: tuple[int, ...] = DEFAULT_YEARS
    products: tuple[str, ...] = DEFAULT_PRODUCTS

    def __post_init__(self) -> None:
        years = tuple(sorted({int(y) for y in self.years}))
        if not years:
            raise ValueError("AnalysisConfig.years must contain at least one year")
        products = tuple(p.strip() for p in self.products if p and p.strip())
        # Frozen dataclass: assign normalized values through object.__setattr__.
        object.__setattr__(self, "years", years)
        object.__setattr__(self, "products", products)

    @classmethod
    def from_range(
        cls, start: int, end: int, *, products: Iterable[str] = DEFAULT_PRODUCTS
    ) -> AnalysisConfig:
        if end < start:
            raise ValueError(f"year range is reversed: {start}-{end}")
        return cls(years=tuple(range(start, end + 1)), products=tuple(products))

    @property
    def first_year(self) -> int:
        return self.years[0]

    @property
    def last_year(self) -> int:
        return self.years[-1]

    @property
    def default_target_year(self) -> int:
        """The year right after the window, used when no forecast year is given."""
        return self.years[-1] + 1


def parse_years(raw: str) -> tuple[int, ...]:
    """Parse ``"2022-2026"`` or ``"2022,2024"`` into a tuple of years."""

    s = raw.strip()
    if not s:
        raise ValueError("year window is empty")
    try:
        if "-" in s and "," not in s:
            start_s, end_s = s.split("-", 1)
            start, end = int(start_s), int(end_s)
            if end < start:
                raise ValueError(f"year range is reversed: {raw!r}")
            return tuple(range(start, end + 1))
        return tuple(int(part) for part in s.split(",") if part.strip())
    except ValueError as exc:
        raise ValueError(f"invalid year window: {raw!r}") from exc


def parse_products(raw: str) -> tuple[str, ...]:
    return tuple(p.strip() for p in raw.split(",") if p.strip())


def load_config(env: Mapping[str, str] | None = None) -> AnalysisConfig:
    """Build an :class:`AnalysisConfig` from environment variables.

    Unset variables keep the defaults. Malformed values raise ``ValueError``.
    """

    source = os.environ if env is None else env
    years = DEFAULT_YEARS
    products = DEFAULT_PRODUCTS

    raw_years = source.get("GROWER_ANALYTICS_YEARS")
    if raw_years:
        years = parse_years(raw_years)
    raw_products = source.get("GROWER_ANALYTICS_PRODUCTS")
    if raw_products:
        products = parse_products(raw_products) or DEFAULT_PRODUCTS

    return AnalysisConfig(years=years, products=products)


__all__ = [
    "AnalysisConfig",
    "CONFIDENCE_LEVELS",
    "DEFAULT_PRODUCTS",
    "DEFAULT_YEARS",
    "FORECAST_METHODS",
    "load_config",
    "parse_products",
    "parse_years",
]
