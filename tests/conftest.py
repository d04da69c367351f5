"""Pytest configuration for test isolation.

The CLI loads ``.env`` and reads ``DATABASE_URL`` / ``GROWER_ANALYTICS_*``
from the environment, and ``db.client`` keeps one engine per process. Each
test starts with those variables cleared and with no engine bound, so a
developer's local configuration can't leak into assertions.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
# Workspace sources precede anything installed so local edits are what runs.
sys.path[:0] = [
    p
    for p in [str(_ROOT / "packages"), str(_ROOT / "libs" / "db" / "src"), str(_ROOT)]
    if p not in sys.path
]

from db.client import reset_engine  # noqa: E402
from grower_analytics import logging_setup  # noqa: E402
from grower_analytics.models import Transaction  # noqa: E402
from tests.helpers.factories import tx  # noqa: E402

_ENV_VARS = (
    "DATABASE_URL",
    "GROWER_ANALYTICS_YEARS",
    "GROWER_ANALYTICS_PRODUCTS",
    "GROWER_ANALYTICS_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # The CLI reads .env from the CWD; run from an empty directory.
    monkeypatch.chdir(tmp_path)
    reset_engine()
    yield
    reset_engine()
    # CliRunner closes its captured stderr; later log records must not hit it
    if logging_setup._handler is not None:
        logging_setup._handler.stream = sys.__stderr__


@pytest.fixture
def sample_transactions() -> list[Transaction]:
    """Three years of sales for four growers across three products."""

    return [
        tx("2022-03-10", "Alpha Farms", "Corn Seed", 1000.0, 10, "INV-1"),
        tx("2022-04-02", "Beta Acres", "Soybean Seed", 500.0, 5, "INV-2"),
        tx("2022-11-20", "Cedar Ridge", "Herbicide", 250.0, 2, "INV-3"),
        tx("2023-03-15", "Alpha Farms", "Corn Seed", 1200.0, 12, "INV-4"),
        tx("2023-05-01", "Beta Acres", "Corn Seed", 800.0, 8, "INV-5"),
        tx("2023-06-11", "Delta Growers", "Soybean Seed", 400.0, 4, "INV-6"),
        tx("2024-02-28", "Alpha Farms", "Corn Seed", 1500.0, 15, "INV-7"),
        tx("2024-03-03", "Alpha Farms", "Herbicide", 300.0, 3, "INV-8"),
        tx("2024-07-19", "Delta Growers", "Soybean Seed", 600.0, 6, "INV-9"),
    ]
