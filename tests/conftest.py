"""
Pytest configuration and shared fixtures for the FI engine tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from fi_engine.config import reset_global_settings
from fi_engine.models.protocols import FixedClock
from fi_engine.models.scenario import NetWorthSample, ScenarioAssumptions

NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Run every test against default engine settings."""
    for name in (
        "FI_PROJECTION_YEARS",
        "FI_MONTHLY_PROJECTION_MONTHS",
        "FI_COAST_SEARCH_HORIZON",
        "FI_RETIREMENT_AGE",
        "FI_DEFAULT_YEARS_TO_RETIREMENT",
        "FI_MAX_WORKERS",
        "FI_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_global_settings()
    yield
    reset_global_settings()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    """Clock frozen at 2025-01-01 UTC."""
    return FixedClock(NOW)


@pytest.fixture
def single_sample_history():
    """One $100k sample recorded exactly at the frozen instant."""
    return [NetWorthSample(amount=100_000, timestamp=NOW)]


@pytest.fixture
def growing_history():
    """Samples over the past two years, the latest at the frozen instant."""
    return [
        NetWorthSample(amount=50_000, timestamp=NOW),
        NetWorthSample(amount=40_000, timestamp=NOW - timedelta(days=365)),
        NetWorthSample(amount=30_000, timestamp=NOW - timedelta(days=730)),
    ]


@pytest.fixture
def simple_scenario():
    """Fixed spending, no inflation and a steady yearly contribution."""
    return ScenarioAssumptions(
        name="Simple",
        current_rate=10.0,
        swr=4.0,
        inflation_rate=0.0,
        base_monthly_budget=1000.0,
        spending_growth_rate=0.0,
        yearly_contribution=12_000.0,
    )
