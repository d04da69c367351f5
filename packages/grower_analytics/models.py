"""Data models and type aliases for ``grower_analytics``.

``Transaction`` is the atomic fact: one invoice line for one grower and one
product. Every other model here is a derived, read-only view recomputed on
demand from a collection of transactions; none of them is persisted.

Inbound records (manual entry, JSON payloads, store rows) are validated
through :class:`TransactionIn`, which applies the lenient ingest rules from
:mod:`grower_analytics.normalizers` and keeps unknown keys as ``extras``.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .normalizers import clean_text, parse_date, to_number

# ---------------------------------------------------------------------------
# Core record and collections
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, kw_only=True)
class Transaction:
    """A single sales transaction.

    Attributes
    ----------
    date:
        Calendar date of the sale (no time-of-day semantics).
    invoice_number:
        Opaque identifier from the source system; may be empty and is not
        guaranteed unique across sources.
    grower_name:
        The customer. Name equality is identity; there is no surrogate id.
    product:
        Category label. Expected to be one of the configured categories but
        never rejected for being outside that set.
    quantity / amount:
        Non-negative units and monetary value (single implied currency).
        Construction coerces them with :func:`to_number`, so negative or
        non-finite values become ``0.0``.
    extras:
        Open extension map (e.g. ``hybrid``, ``trait``) carried through ingest,
        storage and export untouched. The engine never reads it.
    """

    date: dt.date
    invoice_number: str = ""
    grower_name: str
    product: str
    quantity: float = 0.0
    amount: float = 0.0
    extras: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        if not isinstance(self.date, dt.date):
            raise ValueError(f"Transaction.date must be a date, got {self.date!r}")
        if not clean_text(self.grower_name):
            raise ValueError("Transaction.grower_name must be non-empty")
        if not clean_text(self.product):
            raise ValueError("Transaction.product must be non-empty")
        # Frozen dataclass: assign coerced numbers through object.__setattr__.
        object.__setattr__(self, "quantity", to_number(self.quantity))
        object.__setattr__(self, "amount", to_number(self.amount))

    @property
    def year(self) -> int:
        return self.date.year

    @property
    def month(self) -> int:
        return self.date.month


type Transactions = Iterable[Transaction]
"""Any iterable of :class:`Transaction` records."""

type ForecastMethod = Literal["linear", "growth", "weighted"]
type SortKey = Literal["revenue", "orders", "name"]


class TransactionIn(BaseModel):
    """Validated inbound transaction record.

    Required fields (``date``, ``grower_name``, ``product``) must be present
    and non-empty; numeric fields default to ``0.0`` instead of failing. Both
    snake_case and camelCase keys are accepted. Unknown keys are preserved and
    surface as :attr:`Transaction.extras`.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    date: dt.date
    invoice_number: str = Field(
        default="", validation_alias=AliasChoices("invoice_number", "invoiceNumber", "invoice")
    )
    grower_name: str = Field(validation_alias=AliasChoices("grower_name", "growerName", "grower"))
    product: str
    quantity: float = 0.0
    amount: float = 0.0

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, v: Any) -> dt.date:
        parsed = parse_date(v)
        if parsed is None:
            raise ValueError(f"unreadable date: {v!r}")
        return parsed

    @field_validator("invoice_number", mode="before")
    @classmethod
    def _invoice_text(cls, v: Any) -> str:
        return clean_text(v)

    @field_validator("grower_name", "product", mode="before")
    @classmethod
    def _required_text(cls, v: Any) -> str:
        s = clean_text(v)
        if not s:
            raise ValueError("must be non-empty")
        return s

    @field_validator("quantity", "amount", mode="before")
    @classmethod
    def _lenient_number(cls, v: Any) -> float:
        return to_number(v)

    def to_transaction(self) -> Transaction:
        return Transaction(
            date=self.date,
            invoice_number=self.invoice_number,
            grower_name=self.grower_name,
            product=self.product,
            quantity=self.quantity,
            amount=self.amount,
            extras=dict(self.model_extra or {}),
        )


def coerce_transactions(records: Iterable[Mapping[str, Any]]) -> list[Transaction]:
    """Validate mapping records, dropping the ones that fail the required core."""

    out: list[Transaction] = []
    for record in records:
        try:
            out.append(TransactionIn.model_validate(dict(record)).to_transaction())
        except ValidationError:
            continue
    return out


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class YearlySummary:
    """Totals for one calendar year.

    ``growth_pct`` is relative to the preceding year of the requested window
    and is ``0.0`` for the first year or when the preceding revenue is zero.
    """

    year: int
    revenue: float = 0.0
    quantity: float = 0.0
    order_count: int = 0
    grower_count: int = 0
    avg_order_value: float = 0.0
    growth_pct: float = 0.0


@dataclass(frozen=True, slots=True)
class MonthlySummary:
    month: int
    revenue: float = 0.0
    quantity: float = 0.0
    order_count: int = 0


@dataclass(frozen=True, slots=True)
class GrowerSummary:
    """Per-grower rollup; first/last purchase are min/max by date."""

    grower_name: str
    revenue: float
    quantity: float
    order_count: int
    products: frozenset[str]
    first_purchase: dt.date
    last_purchase: dt.date
    years_active: tuple[int, ...] = ()

    @property
    def product_count(self) -> int:
        return len(self.products)


@dataclass(frozen=True, slots=True)
class ProductSummary:
    product: str
    revenue: float
    quantity: float
    order_count: int
    avg_order_value: float
    avg_unit_price: float
    percent_of_total: float
    yoy_change_pct: float = 0.0


@dataclass(frozen=True, slots=True)
class RetentionCohort:
    """Grower membership transition between two years.

    ``new``, ``returning`` and ``lost`` are disjoint; ``new | returning`` is
    the current year's grower set and ``lost | returning`` the previous one.
    """

    year: int
    previous_year: int
    new: frozenset[str]
    returning: frozenset[str]
    lost: frozenset[str]
    retention_rate: float

    @property
    def current_count(self) -> int:
        return len(self.new) + len(self.returning)

    @property
    def previous_count(self) -> int:
        return len(self.lost) + len(self.returning)


@dataclass(frozen=True, slots=True)
class Forecast:
    value: float
    lower: float
    upper: float
    method: str


@dataclass(frozen=True, slots=True)
class ForecastResult:
    """Revenue and grower-count projections produced by one forecast call."""

    target_year: int
    method: str
    confidence: float
    z_score: float
    revenue: Forecast
    growers: Forecast


@dataclass(frozen=True, slots=True)
class ProductForecast:
    product: str
    value: float


@dataclass(frozen=True, slots=True)
class OverviewStats:
    """Headline KPIs for ``year`` compared with ``year - 1``."""

    year: int
    revenue: float
    revenue_change_pct: float
    growers: int
    growers_change: int
    orders: int
    orders_change_pct: float
    retention_rate: float


__all__ = [
    "Forecast",
    "ForecastMethod",
    "ForecastResult",
    "GrowerSummary",
    "MonthlySummary",
    "OverviewStats",
    "ProductForecast",
    "ProductSummary",
    "RetentionCohort",
    "SortKey",
    "Transaction",
    "TransactionIn",
    "Transactions",
    "YearlySummary",
    "coerce_transactions",
]
