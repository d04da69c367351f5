"""Ingest helpers shared by CLI commands.

Reading is strict about the file (``OSError`` propagates, undecodable bytes
raise ``ValueError``) and lenient about its rows (see :mod:`grower_analytics.ingest.csv_adapter`).
"""

from __future__ import annotations

from os import PathLike
from pathlib import Path

from ..models import Transaction
from .csv_adapter import export_csv, parse_csv_text


def load_transactions_from_csv(csv_path: str | PathLike[str]) -> list[Transaction]:
    """Read a CSV/TSV file and return its well-formed transactions."""

    p = Path(csv_path)
    try:
        # utf-8-sig drops a BOM left by spreadsheet exports
        text = p.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ValueError(f"{p} is not UTF-8 text (byte {exc.start})") from exc
    return parse_csv_text(text)


def write_transactions_csv(
    transactions: list[Transaction], csv_path: str | PathLike[str], *, year: int | None = None
) -> int:
    """Export transactions to ``csv_path``; returns the number of data rows."""

    rows = [tx for tx in transactions if year is None or tx.date.year == year]
    Path(csv_path).write_text(export_csv(rows), encoding="utf-8")
    return len(rows)


__all__ = ["load_transactions_from_csv", "write_transactions_csv"]
