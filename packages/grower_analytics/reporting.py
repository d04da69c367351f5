"""Presentation helpers: plain records for JSON and fixed-width text tables."""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

_NUMERIC_RE = re.compile(r"^[+-]?[\d,]*\.?\d+%?$")


def to_record(obj: Any) -> Any:
    """Convert derived models into JSON-ready values.

    Dataclasses become dicts, frozensets become sorted lists and dates become
    ISO strings. Other values pass through.
    """

    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_record(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, frozenset | set):
        return sorted(to_record(v) for v in obj)
    if isinstance(obj, Mapping):
        return {str(k): to_record(v) for k, v in obj.items()}
    if isinstance(obj, list | tuple):
        return [to_record(v) for v in obj]
    return obj


def to_records(items: Sequence[Any]) -> list[Any]:
    return [to_record(item) for item in items]


def fmt_money(value: float) -> str:
    return f"{value:,.2f}"


def fmt_pct(value: float) -> str:
    return f"{value:+.1f}%"


def format_table(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> str:
    """Render rows as a left/right aligned text table.

    Columns whose cells all look numeric (money and percentages included) are
    right-aligned; everything else is left-aligned.
    """

    cells = [[str(c) for c in row] for row in rows]
    widths = [len(h) for h in headers]
    for row in cells:
        for i, cell in enumerate(row[: len(widths)]):
            widths[i] = max(widths[i], len(cell))

    numeric = [
        bool(cells) and all(_NUMERIC_RE.match(r[i]) for r in cells if i < len(r))
        for i in range(len(headers))
    ]

    def _line(values: Sequence[str]) -> str:
        parts = []
        for i, width in enumerate(widths):
            v = values[i] if i < len(values) else ""
            parts.append(v.rjust(width) if numeric[i] else v.ljust(width))
        return "  ".join(parts).rstrip()

    out = [_line(list(headers)), "  ".join("-" * w for w in widths)]
    out.extend(_line(row) for row in cells)
    return "\n".join(out)


__all__ = ["fmt_money", "fmt_pct", "format_table", "to_record", "to_records"]
