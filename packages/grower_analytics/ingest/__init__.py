"""CSV/TSV ingest and export for grower transactions."""

from .csv_adapter import COLUMNS, export_csv, parse_csv_text
from .utils import load_transactions_from_csv, write_transactions_csv

__all__ = [
    "COLUMNS",
    "export_csv",
    "load_transactions_from_csv",
    "parse_csv_text",
    "write_transactions_csv",
]
