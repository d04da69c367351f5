"""Value normalizers shared by CSV ingest, record validation and persistence.

The ingest contract is lenient: numeric fields never fail a record (absent,
unparsable, non-finite or negative values become ``0.0``), while a date that
cannot be read makes the record unusable and is reported as ``None`` so the
caller can skip the row.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any

# Accepted textual date layouts, tried in order after ISO parsing.
_DATE_FORMATS: tuple[str, ...] = ("%m/%d/%Y", "%m/%d/%y", "%Y/%m/%d")


def to_number(raw: Any) -> float:
    """Coerce a quantity or monetary cell to a non-negative float.

    ``$`` and thousands separators are stripped before parsing. Anything that
    does not yield a finite, non-negative number maps to ``0.0``.
    """

    if raw is None or isinstance(raw, bool):
        return 0.0
    if isinstance(raw, int | float):
        value = float(raw)
    else:
        s = str(raw).strip().replace("$", "").replace(",", "")
        if not s:
            return 0.0
        try:
            value = float(s)
        except ValueError:
            return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def parse_date(raw: Any) -> date | None:
    """Return the calendar date in ``raw`` or ``None`` when it cannot be read.

    Accepts ``date``/``datetime`` objects, ``YYYY-MM-DD`` (optionally followed
    by a time part separated by ``T`` or whitespace), ``MM/DD/YYYY``,
    ``MM/DD/YY`` and ``YYYY/MM/DD``. Time of day is discarded.
    """

    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    s = str(raw).strip()
    if not s:
        return None
    first = s.split()[0].split("T", 1)[0]
    try:
        return date.fromisoformat(first)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(first, fmt).date()
        except ValueError:
            continue
    return None


def clean_text(raw: Any) -> str:
    """Trim a text cell; ``None`` becomes the empty string."""

    if raw is None:
        return ""
    return str(raw).strip()


def format_number(value: float) -> str:
    """Render a number for CSV export without a trailing ``.0`` on integers."""

    if value == int(value):
        return str(int(value))
    return repr(float(value))


__all__ = ["clean_text", "format_number", "parse_date", "to_number"]
