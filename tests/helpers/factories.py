"""Terse builders for test transactions."""

from __future__ import annotations

from datetime import date

from grower_analytics.models import Transaction


def tx(
    day: str,
    grower: str,
    product: str = "Corn Seed",
    amount: float = 100.0,
    quantity: float = 1.0,
    invoice: str = "",
    **extras: str,
) -> Transaction:
    return Transaction(
        date=date.fromisoformat(day),
        invoice_number=invoice,
        grower_name=grower,
        product=product,
        quantity=quantity,
        amount=amount,
        extras=extras,
    )
