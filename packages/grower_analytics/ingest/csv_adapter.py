"""Adapter between delimited sales text and :class:`Transaction` records.

Input columns (positional, header optional):
``date, invoice_number, grower_name, product, quantity, amount``

Parsing rules:
- The first non-blank line is a header when it contains ``date`` or
  ``invoice`` (case-insensitive). Header columns after the sixth name the
  ``extras`` carried by every row; without a header, cells past the sixth are
  dropped.
- Each line is tab-delimited when it contains a tab, otherwise
  comma-delimited with double-quote handling.
- Rows with fewer than six cells, an unreadable date, or an empty grower or
  product are skipped. Quantity and amount never fail a row (see
  :func:`grower_analytics.normalizers.to_number`).

Export writes the same six columns in the same order, dates as ``YYYY-MM-DD``.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable

from ..logging_setup import get_logger
from ..models import Transaction
from ..normalizers import clean_text, format_number, parse_date, to_number

_log = get_logger("grower_analytics.ingest.csv_adapter")

COLUMNS: tuple[str, ...] = (
    "date",
    "invoice_number",
    "grower_name",
    "product",
    "quantity",
    "amount",
)
_HEADER_TOKENS = ("date", "invoice")


def split_line(line: str) -> list[str]:
    """Split one physical line into cells (tab first, then quoted CSV)."""

    if "\t" in line:
        return [cell.strip() for cell in line.split("\t")]
    return [cell.strip() for cell in next(csv.reader([line]), [])]


def is_header(line: str) -> bool:
    lowered = line.lower()
    return any(token in lowered for token in _HEADER_TOKENS)


def _row_to_transaction(cells: list[str], extra_names: list[str]) -> Transaction | None:
    date_value = parse_date(cells[0])
    grower = clean_text(cells[2])
    product = clean_text(cells[3])
    if date_value is None or not grower or not product:
        return None
    extras = {
        name: cells[6 + i]
        for i, name in enumerate(extra_names)
        if 6 + i < len(cells) and cells[6 + i] != ""
    }
    return Transaction(
        date=date_value,
        invoice_number=clean_text(cells[1]),
        grower_name=grower,
        product=product,
        quantity=to_number(cells[4]),
        amount=to_number(cells[5]),
        extras=extras,
    )


def parse_csv_text(text: str) -> list[Transaction]:
    """Parse CSV or TSV text into transactions, skipping malformed rows."""

    lines = [ln for ln in text.splitlines() if ln.strip()]
    if not lines:
        return []

    extra_names: list[str] = []
    if is_header(lines[0]):
        try:
            header = split_line(lines[0])
        except csv.Error:
            header = []
        extra_names = [clean_text(name) or f"extra_{i}" for i, name in enumerate(header[6:])]
        lines = lines[1:]

    out: list[Transaction] = []
    skipped = 0
    for lineno, line in enumerate(lines, start=1):
        try:
            cells = split_line(line)
        except csv.Error:
            # e.g. a quoted cell over csv.field_size_limit()
            cells = []
        tx = _row_to_transaction(cells, extra_names) if len(cells) >= len(COLUMNS) else None
        if tx is None:
            skipped += 1
            _log.debug("skipping malformed row %d: %r", lineno, line)
            continue
        out.append(tx)

    if skipped:
        _log.info("parsed %d rows; skipped %d malformed rows", len(out), skipped)
    return out


def export_csv(transactions: Iterable[Transaction], *, year: int | None = None) -> str:
    """Render transactions as six-column CSV text (optionally one year only)."""

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(COLUMNS)
    for tx in transactions:
        if year is not None and tx.date.year != year:
            continue
        writer.writerow(
            [
                tx.date.isoformat(),
                tx.invoice_number,
                tx.grower_name,
                tx.product,
                format_number(tx.quantity),
                format_number(tx.amount),
            ]
        )
    return buf.getvalue()


__all__ = ["COLUMNS", "export_csv", "is_header", "parse_csv_text", "split_line"]
