# ruff: noqa: I001
"""CLI for the ``grower_analytics`` package.

Command handlers (``cmd_*``) return a process exit code and print either a
text table or JSON. The Typer commands at the bottom are thin wrappers that
turn that code into ``typer.Exit``. Environment variables (``DATABASE_URL``,
``GROWER_ANALYTICS_YEARS``, ...) are loaded from a local ``.env`` with
``python-dotenv`` in the root callback before any command runs.

Analysis commands read transactions from ``--csv`` when given, otherwise from
the database at ``DATABASE_URL``. Store commands (``import-csv``, ``add``,
``export-csv``, ``clear``) always need the database.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import typer
from dotenv import load_dotenv
from pydantic import ValidationError

from .config import AnalysisConfig, load_config, parse_years
from .logging_setup import configure_logging
from .models import Transaction
from .normalizers import format_number
from .reporting import fmt_money, fmt_pct, format_table, to_record

# ---- Small module-level helpers ----------------------------------------------


def _error(message: str) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return 1


def _emit_json(payload: Any) -> None:
    print(json.dumps(to_record(payload), indent=2, ensure_ascii=False))


def _resolve_config(years: str | None) -> AnalysisConfig:
    config = load_config()
    if years:
        return AnalysisConfig(years=parse_years(years), products=config.products)
    return config


def _sql_store(database_url: str | None, *, dedupe: bool = False):
    from .persistence import SqlTransactionStore

    return SqlTransactionStore(database_url=database_url, dedupe=dedupe)


def _load_transactions(csv_path: Path | None, database_url: str | None) -> list[Transaction]:
    if csv_path is not None:
        from .ingest import load_transactions_from_csv

        return load_transactions_from_csv(csv_path)
    return _sql_store(database_url).all()


def _prepare(
    csv_path: Path | None, database_url: str | None, years: str | None
) -> tuple[list[Transaction], AnalysisConfig]:
    return _load_transactions(csv_path, database_url), _resolve_config(years)


# ---- Store commands ------------------------------------------------------------


def cmd_import_csv(csv_path: Path, *, database_url: str | None, dedupe: bool) -> int:
    from .api import import_csv

    try:
        stored = import_csv(_sql_store(database_url, dedupe=dedupe), csv_path)
    except FileNotFoundError:
        return _error(f"File not found: {csv_path}")
    except (OSError, RuntimeError, ValueError) as e:
        return _error(str(e))
    print(f"Imported {stored} transactions from {csv_path}")
    return 0


def cmd_add(record: dict[str, Any], *, database_url: str | None) -> int:
    from .api import add_transaction

    try:
        tx = add_transaction(_sql_store(database_url), record)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        return _error(f"invalid transaction ({fields})")
    except RuntimeError as e:
        return _error(str(e))
    print(f"Added {tx.date.isoformat()} {tx.grower_name} {tx.product} {fmt_money(tx.amount)}")
    return 0


def cmd_export_csv(*, database_url: str | None, year: int | None, output: Path | None) -> int:
    from .api import export_transactions
    from .ingest import write_transactions_csv

    store = _sql_store(database_url)
    try:
        if output is None:
            sys.stdout.write(export_transactions(store, year=year))
        else:
            written = write_transactions_csv(store.query(year=year), output)
            print(f"Wrote {written} transactions to {output}")
    except (OSError, RuntimeError, ValueError) as e:
        return _error(str(e))
    return 0


def cmd_clear(*, database_url: str | None) -> int:
    try:
        removed = _sql_store(database_url).clear()
    except RuntimeError as e:
        return _error(str(e))
    print(f"Removed {removed} transactions")
    return 0


# ---- Analysis commands ----------------------------------------------------------


def cmd_summary(
    *,
    csv_path: Path | None,
    database_url: str | None,
    years: str | None,
    year: int | None,
    as_json: bool,
) -> int:
    from .api import dashboard_overview

    try:
        txs, config = _prepare(csv_path, database_url, years)
    except (OSError, RuntimeError, ValueError) as e:
        return _error(str(e))
    stats = dashboard_overview(txs, year if year is not None else config.last_year)
    if as_json:
        _emit_json(stats)
        return 0
    print(
        format_table(
            ["Metric", "Value", "Change"],
            [
                ["Revenue", fmt_money(stats.revenue), fmt_pct(stats.revenue_change_pct)],
                ["Growers", stats.growers, f"{stats.growers_change:+d}"],
                ["Orders", stats.orders, fmt_pct(stats.orders_change_pct)],
                ["Retention", f"{stats.retention_rate:.1f}%", ""],
            ],
        )
    )
    return 0


def cmd_history(
    *,
    csv_path: Path | None,
    database_url: str | None,
    years: str | None,
    product: str | None,
    as_json: bool,
) -> int:
    from .api import historical_view

    try:
        txs, config = _prepare(csv_path, database_url, years)
    except (OSError, RuntimeError, ValueError) as e:
        return _error(str(e))
    view = historical_view(txs, config, product=product)
    if as_json:
        _emit_json(view)
        return 0
    print(
        format_table(
            ["Year", "Revenue", "Orders", "Growers", "Avg order", "Growth"],
            [
                [
                    s.year,
                    fmt_money(s.revenue),
                    s.order_count,
                    s.grower_count,
                    fmt_money(s.avg_order_value),
                    fmt_pct(s.growth_pct),
                ]
                for s in view.yearly
            ],
        )
    )
    return 0


def cmd_monthly(
    *,
    csv_path: Path | None,
    database_url: str | None,
    years: str | None,
    product: str | None,
    as_json: bool,
) -> int:
    from .aggregation import MONTHS, monthly_comparison

    try:
        txs, config = _prepare(csv_path, database_url, years)
    except (OSError, RuntimeError, ValueError) as e:
        return _error(str(e))
    by_year = monthly_comparison(txs, config.years, product=product)
    if as_json:
        _emit_json(by_year)
        return 0
    print(
        format_table(
            ["Month", *(str(y) for y in by_year)],
            [
                [label, *(fmt_money(values[i]) for values in by_year.values())]
                for i, label in enumerate(MONTHS)
            ],
        )
    )
    return 0


def cmd_growers(
    *,
    csv_path: Path | None,
    database_url: str | None,
    years: str | None,
    year: int | None,
    sort_by: str,
    search: str | None,
    limit: int | None,
    as_json: bool,
) -> int:
    from .api import grower_table

    try:
        txs, config = _prepare(csv_path, database_url, years)
    except (OSError, RuntimeError, ValueError) as e:
        return _error(str(e))
    rows = grower_table(
        txs, year if year is not None else config.last_year, sort_by=sort_by, search=search
    )
    if limit is not None:
        rows = rows[: max(limit, 0)]
    if as_json:
        _emit_json(rows)
        return 0
    print(
        format_table(
            ["Grower", "Revenue", "Orders", "Products", "Last purchase", "Status"],
            [
                [
                    r.summary.grower_name,
                    fmt_money(r.summary.revenue),
                    r.summary.order_count,
                    r.summary.product_count,
                    r.summary.last_purchase.isoformat(),
                    r.status,
                ]
                for r in rows
            ],
        )
    )
    return 0


def cmd_grower(
    name: str, *, csv_path: Path | None, database_url: str | None, as_json: bool
) -> int:
    from .api import grower_profile

    try:
        txs = _load_transactions(csv_path, database_url)
    except (OSError, RuntimeError, ValueError) as e:
        return _error(str(e))
    profile = grower_profile(txs, name)
    if profile is None:
        return _error(f"No transactions for grower: {name}")
    summary, history = profile
    if as_json:
        _emit_json({"summary": summary, "transactions": history})
        return 0
    print(
        f"{summary.grower_name}: {fmt_money(summary.revenue)} over {summary.order_count} orders, "
        f"{summary.product_count} products, "
        f"{summary.first_purchase.isoformat()}..{summary.last_purchase.isoformat()}"
    )
    print(
        format_table(
            ["Date", "Invoice", "Product", "Quantity", "Amount"],
            [
                [
                    tx.date.isoformat(),
                    tx.invoice_number,
                    tx.product,
                    format_number(tx.quantity),
                    fmt_money(tx.amount),
                ]
                for tx in history
            ],
        )
    )
    return 0


def cmd_retention(
    *, csv_path: Path | None, database_url: str | None, years: str | None, as_json: bool
) -> int:
    from .api import retention_report

    try:
        txs, config = _prepare(csv_path, database_url, years)
    except (OSError, RuntimeError, ValueError) as e:
        return _error(str(e))
    cohorts = retention_report(txs, config)
    if as_json:
        _emit_json(cohorts)
        return 0
    print(
        format_table(
            ["Period", "Previous", "Returning", "New", "Lost", "Retention"],
            [
                [
                    f"{c.previous_year}-{c.year}",
                    c.previous_count,
                    len(c.returning),
                    len(c.new),
                    len(c.lost),
                    f"{c.retention_rate:.1f}%",
                ]
                for c in cohorts
            ],
        )
    )
    return 0


def cmd_products(
    *,
    csv_path: Path | None,
    database_url: str | None,
    years: str | None,
    year: int | None,
    as_json: bool,
) -> int:
    from .api import product_table

    try:
        txs, config = _prepare(csv_path, database_url, years)
    except (OSError, RuntimeError, ValueError) as e:
        return _error(str(e))
    rows = product_table(txs, year if year is not None else config.last_year)
    if as_json:
        _emit_json(rows)
        return 0
    print(
        format_table(
            ["Product", "Revenue", "Units", "Avg price", "Share", "YoY"],
            [
                [
                    p.product,
                    fmt_money(p.revenue),
                    f"{p.quantity:,.0f}",
                    fmt_money(p.avg_unit_price),
                    f"{p.percent_of_total:.1f}%",
                    fmt_pct(p.yoy_change_pct),
                ]
                for p in rows
            ],
        )
    )
    return 0


def cmd_forecast(
    *,
    csv_path: Path | None,
    database_url: str | None,
    years: str | None,
    method: str,
    confidence: float,
    target_year: int | None,
    product: str | None,
    as_json: bool,
) -> int:
    from .aggregation import MONTHS
    from .api import run_forecast

    try:
        txs, config = _prepare(csv_path, database_url, years)
    except (OSError, RuntimeError, ValueError) as e:
        return _error(str(e))
    view = run_forecast(
        txs,
        config,
        method=method,
        confidence=confidence,
        target_year=target_year,
        product=product,
    )
    if as_json:
        _emit_json(view)
        return 0
    r = view.result
    print(
        f"Forecast {r.target_year} ({r.method}, {r.confidence:.0%} confidence, z={r.z_score})"
    )
    print(
        format_table(
            ["Series", "Projected", "Low", "High"],
            [
                [
                    "Revenue",
                    fmt_money(r.revenue.value),
                    fmt_money(r.revenue.lower),
                    fmt_money(r.revenue.upper),
                ],
                [
                    "Growers",
                    f"{r.growers.value:.0f}",
                    f"{r.growers.lower:.0f}",
                    f"{r.growers.upper:.0f}",
                ],
            ],
        )
    )
    if view.products:
        print()
        print(
            format_table(
                ["Product", "Projected"],
                [[p.product, fmt_money(p.value)] for p in view.products],
            )
        )
    print()
    print(
        format_table(
            ["Month", "Projected"],
            [[label, fmt_money(v)] for label, v in zip(MONTHS, view.monthly, strict=True)],
        )
    )
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Grower sales analytics: import transactions, then report history, "
        "retention, product mix and forecasts. Loads .env before running."
    ),
)

# Shared options, kept module-level to satisfy ruff B008.
CSV_OPTION = typer.Option(
    None,
    "--csv",
    help="Analyze this CSV/TSV file instead of the database.",
    dir_okay=False,
)
DATABASE_URL_OPTION = typer.Option(None, help="Override DATABASE_URL (falls back to env var).")
YEARS_OPTION = typer.Option(
    None, help='Analysis window, e.g. "2022-2026" (falls back to GROWER_ANALYTICS_YEARS).'
)
JSON_OPTION = typer.Option(False, "--json", help="Emit JSON instead of a table.")


def _exit(code: int) -> None:
    raise typer.Exit(code)


@app.command("import-csv")
def import_csv_cmd(
    csv_path: Path = typer.Argument(..., dir_okay=False, help="CSV/TSV file to import."),
    database_url: str | None = DATABASE_URL_OPTION,
    dedupe: bool = typer.Option(False, help="Skip rows identical to stored ones."),
) -> None:
    """Import a CSV/TSV export into the database."""

    _exit(cmd_import_csv(csv_path, database_url=database_url, dedupe=dedupe))


@app.command("add")
def add_cmd(
    date: str = typer.Option(..., help="Sale date (YYYY-MM-DD or MM/DD/YYYY)."),
    grower: str = typer.Option(..., help="Grower (customer) name."),
    product: str = typer.Option(..., help="Product category."),
    amount: str = typer.Option("0", help="Sale amount; $ and , are ignored."),
    quantity: str = typer.Option("0", help="Units sold."),
    invoice: str = typer.Option("", help="Invoice number."),
    extra: list[str] | None = typer.Option(
        None, help="Extra field as key=value (e.g. hybrid=P1197); repeatable."
    ),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Add a single transaction."""

    record: dict[str, Any] = {
        "date": date,
        "grower_name": grower,
        "product": product,
        "amount": amount,
        "quantity": quantity,
        "invoice_number": invoice,
    }
    for item in extra or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            _exit(_error(f"--extra expects key=value, got {item!r}"))
        record.setdefault(key.strip(), value.strip())
    _exit(cmd_add(record, database_url=database_url))


@app.command("export-csv")
def export_csv_cmd(
    year: int | None = typer.Option(None, min=1, max=9999, help="Only export this year."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to a file."),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Export stored transactions as six-column CSV."""

    _exit(cmd_export_csv(database_url=database_url, year=year, output=output))


@app.command("clear")
def clear_cmd(
    yes: bool = typer.Option(False, "--yes", help="Confirm deleting every transaction."),
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Delete every stored transaction."""

    if not yes:
        _exit(_error("refusing to clear without --yes"))
    _exit(cmd_clear(database_url=database_url))


@app.command("summary")
def summary_cmd(
    year: int | None = typer.Option(None, help="Year to report (default: last window year)."),
    csv_path: Path | None = CSV_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
    years: str | None = YEARS_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """Headline KPIs for one year against the year before."""

    _exit(
        cmd_summary(
            csv_path=csv_path,
            database_url=database_url,
            years=years,
            year=year,
            as_json=as_json,
        )
    )


@app.command("history")
def history_cmd(
    product: str | None = typer.Option(None, help='Product filter ("all" for every product).'),
    csv_path: Path | None = CSV_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
    years: str | None = YEARS_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """Yearly revenue, orders and growers across the analysis window."""

    _exit(
        cmd_history(
            csv_path=csv_path,
            database_url=database_url,
            years=years,
            product=product,
            as_json=as_json,
        )
    )


@app.command("monthly")
def monthly_cmd(
    product: str | None = typer.Option(None, help="Product filter."),
    csv_path: Path | None = CSV_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
    years: str | None = YEARS_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """Monthly revenue per year, side by side."""

    _exit(
        cmd_monthly(
            csv_path=csv_path,
            database_url=database_url,
            years=years,
            product=product,
            as_json=as_json,
        )
    )


@app.command("growers")
def growers_cmd(
    year: int | None = typer.Option(None, help="Year to list (default: last window year)."),
    sort_by: str = typer.Option("revenue", "--sort", help="revenue, orders or name."),
    search: str | None = typer.Option(None, help="Case-insensitive name filter."),
    limit: int | None = typer.Option(None, help="Show at most this many growers."),
    csv_path: Path | None = CSV_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
    years: str | None = YEARS_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """Grower table for one year with New/Returning status."""

    _exit(
        cmd_growers(
            csv_path=csv_path,
            database_url=database_url,
            years=years,
            year=year,
            sort_by=sort_by,
            search=search,
            limit=limit,
            as_json=as_json,
        )
    )


@app.command("grower")
def grower_cmd(
    name: str = typer.Argument(..., help="Exact grower name."),
    csv_path: Path | None = CSV_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """One grower's rollup and transaction history."""

    _exit(cmd_grower(name, csv_path=csv_path, database_url=database_url, as_json=as_json))


@app.command("retention")
def retention_cmd(
    csv_path: Path | None = CSV_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
    years: str | None = YEARS_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """Year-over-year grower retention across the window."""

    _exit(cmd_retention(csv_path=csv_path, database_url=database_url, years=years, as_json=as_json))


@app.command("products")
def products_cmd(
    year: int | None = typer.Option(None, help="Year to report (default: last window year)."),
    csv_path: Path | None = CSV_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
    years: str | None = YEARS_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """Product mix for one year with YoY change."""

    _exit(
        cmd_products(
            csv_path=csv_path,
            database_url=database_url,
            years=years,
            year=year,
            as_json=as_json,
        )
    )


@app.command("forecast")
def forecast_cmd(
    method: str = typer.Option("linear", help="linear, growth or weighted."),
    confidence: float = typer.Option(0.90, help="0.80, 0.90 or 0.95."),
    target_year: int | None = typer.Option(None, help="Default: the year after the window."),
    product: str | None = typer.Option(None, help="Forecast one product only."),
    csv_path: Path | None = CSV_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
    years: str | None = YEARS_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """Project revenue and grower count with a confidence band."""

    _exit(
        cmd_forecast(
            csv_path=csv_path,
            database_url=database_url,
            years=years,
            method=method,
            confidence=confidence,
            target_year=target_year,
            product=product,
            as_json=as_json,
        )
    )


@app.callback()
def _root(
    log_level: str | None = typer.Option(
        None, help="Log level (falls back to GROWER_ANALYTICS_LOG_LEVEL)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    try:
        configure_logging(log_level)
    except ValueError as e:
        _exit(_error(str(e)))


def main() -> None:  # pragma: no cover - console script entry
    app()


if __name__ == "__main__":  # pragma: no cover - `python -m grower_analytics.cli`
    app()
