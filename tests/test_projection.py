"""
Tests for the net-worth projection simulator.
"""

import math
from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from fi_engine.models.projection import (
    ProjectionOptions,
    aggregate_monthly_to_yearly,
    calculate_age,
    calculate_all_financials,
    calculate_fi_progress,
    calculate_fi_target,
    calculate_future_value,
    calculate_growth_rates,
    calculate_real_time_net_worth,
    calculate_swr_amounts,
    convert_to_inflated_projections,
    find_coast_fi_year,
    project_monthly,
    project_yearly,
)
from fi_engine.models.protocols import FixedClock
from fi_engine.models.scenario import (
    IncomeProfile,
    NetWorthSample,
    ScenarioAssumptions,
)
from fi_engine.models.spending import SECONDS_PER_YEAR


class TestFiTarget:
    """Test FI target and progress."""

    def test_identity(self):
        assert calculate_fi_target(4_000, 4) == 1_200_000

    @pytest.mark.parametrize("spend, swr", [(0, 4), (-100, 4), (4_000, 0), (4_000, -1)])
    def test_degenerate_inputs_give_zero(self, spend, swr):
        assert calculate_fi_target(spend, swr) == 0

    def test_decreasing_in_swr_and_increasing_in_spend(self):
        targets_by_swr = [calculate_fi_target(4_000, swr) for swr in (3, 3.5, 4, 5)]
        targets_by_spend = [calculate_fi_target(s, 4) for s in (1_000, 2_000, 3_000)]

        assert targets_by_swr == sorted(targets_by_swr, reverse=True)
        assert len(set(targets_by_swr)) == 4
        assert targets_by_spend == sorted(targets_by_spend)
        assert len(set(targets_by_spend)) == 3

    def test_progress(self):
        """Test $500k against a $2,000/month plan at 4%."""
        target = calculate_fi_target(2_000, 4)

        assert target == pytest.approx(600_000)
        assert calculate_fi_progress(500_000, target) == pytest.approx(83.333, abs=1e-3)
        assert calculate_fi_progress(500_000, 0) == 0


class TestSimpleCalculations:
    """Test the closed-form helpers."""

    def test_swr_amounts(self):
        amounts = calculate_swr_amounts(1_000_000, 4)

        assert amounts.annual == pytest.approx(40_000)
        assert amounts.monthly == pytest.approx(40_000 / 12)
        assert amounts.weekly == pytest.approx(40_000 / 52)
        assert amounts.daily == pytest.approx(40_000 / 365)

    def test_future_value_identity(self):
        result = calculate_future_value(100_000, 7, 10, 0)

        assert result.total == pytest.approx(196_715.14, abs=1)
        assert result.total_interest == pytest.approx(result.total - 100_000)

    def test_future_value_with_contributions(self):
        result = calculate_future_value(0, 7, 10, 1_000)

        expected = 1_000 * (1.07**10 - 1) / 0.07
        assert result.contribution_growth == pytest.approx(expected)
        assert result.total_contributed == 10_000

    def test_future_value_zero_rate(self):
        assert calculate_future_value(1_000, 0, 5, 100).total == pytest.approx(1_500)

    def test_future_value_partial_year(self):
        """Test that half a year contributes half a contribution."""
        result = calculate_future_value(0, 0, 2.5, 100)

        assert result.total == pytest.approx(250)
        assert result.total_contributed == pytest.approx(250)

    def test_age(self):
        assert calculate_age(1990, 2025) == 35
        assert calculate_age(None, 2025) is None


class TestRealTimeNetWorth:
    """Test the real-time estimate from the latest sample."""

    def test_no_sample(self, now):
        result = calculate_real_time_net_worth(None, ScenarioAssumptions(), now)

        assert result.total == 0
        assert result.base_amount == 0

    def test_simple_interest_since_sample(self, now):
        sample = NetWorthSample(
            amount=100_000, timestamp=now - timedelta(seconds=SECONDS_PER_YEAR)
        )
        result = calculate_real_time_net_worth(sample, ScenarioAssumptions(), now)

        assert result.appreciation == pytest.approx(7_000)
        assert result.total == pytest.approx(107_000)
        assert result.contributions == 0

    def test_with_contributions(self, now):
        sample = NetWorthSample(
            amount=100_000, timestamp=now - timedelta(seconds=SECONDS_PER_YEAR)
        )
        assumptions = ScenarioAssumptions(yearly_contribution=12_000)
        result = calculate_real_time_net_worth(sample, assumptions, now, True)

        assert result.contributions == pytest.approx(12_000 + 12_000 * 0.07 * 0.5)

    def test_future_sample_does_not_go_negative(self, now):
        sample = NetWorthSample(amount=100_000, timestamp=now + timedelta(days=10))
        result = calculate_real_time_net_worth(sample, ScenarioAssumptions(), now)

        assert result.total == 100_000

    def test_growth_rates(self):
        rates = calculate_growth_rates(100_000, ScenarioAssumptions())

        assert rates.per_year == pytest.approx(7_000)
        assert rates.per_day == pytest.approx(7_000 / 365.25)
        assert rates.per_second == pytest.approx(7_000 / SECONDS_PER_YEAR)
        assert rates.yearly_contributions == 0


class TestCoastFi:
    """Test the coast FI search."""

    def test_constant_spending(self, simple_scenario):
        """Test $100k growing at 10% to a fixed $300k target."""
        assert find_coast_fi_year(100_000, 2025, 0, simple_scenario) == 2037

    def test_already_coasting(self, simple_scenario):
        assert find_coast_fi_year(300_000, 2025, 0, simple_scenario) == 2025

    def test_not_reached_within_horizon(self, simple_scenario):
        assert find_coast_fi_year(100_000, 2025, 0, simple_scenario, horizon=5) is None

    @pytest.mark.parametrize("field", ["current_rate", "swr", "base_monthly_budget"])
    def test_degenerate_inputs(self, simple_scenario, field):
        scenario = simple_scenario.model_copy(update={field: 0.0})
        assert find_coast_fi_year(100_000, 2025, 0, scenario) is None


class TestProjectYearly:
    """Test the yearly projection."""

    def test_empty_history(self, clock, simple_scenario):
        assert project_yearly(simple_scenario, [], ProjectionOptions(clock=clock)) == []

    def test_options_require_a_clock(self):
        with pytest.raises(ValidationError):
            ProjectionOptions(clock="2025-01-01")

    def test_options_accept_any_clock_like_object(self, now):
        instant = now

        class Wall:
            def now(self):
                return instant

        assert ProjectionOptions(clock=Wall()).clock.now() == instant

    def test_row_count_and_years(self, clock, single_sample_history, simple_scenario):
        rows = project_yearly(
            simple_scenario, single_sample_history, ProjectionOptions(clock=clock)
        )

        assert len(rows) == 61
        assert rows[0].year == 2025
        assert rows[-1].year == 2085
        assert [r.years_from_now for r in rows] == list(range(61))

    def test_current_state_row(self, clock, single_sample_history, simple_scenario):
        rows = project_yearly(
            simple_scenario,
            single_sample_history,
            ProjectionOptions(clock=clock, birth_year=1990),
        )
        row = rows[0]

        assert row.net_worth == 100_000
        assert row.interest == 0
        assert row.contributed == 0
        assert row.monthly_spend == 1_000
        assert row.fi_target == pytest.approx(300_000)
        assert row.age == 35
        assert row.coast_fi_year == 2037
        assert row.coast_fi_age == 47
        assert not row.is_crossover

    def test_first_years(self, clock, single_sample_history, simple_scenario):
        """Test interest on the opening balance plus the yearly contribution."""
        rows = project_yearly(
            simple_scenario, single_sample_history, ProjectionOptions(clock=clock)
        )

        assert rows[1].annual_savings == pytest.approx(12_000)
        assert rows[1].net_worth == pytest.approx(122_000)
        assert rows[1].interest == pytest.approx(10_000)
        assert rows[1].contributed == pytest.approx(12_000)
        assert rows[2].net_worth == pytest.approx(146_200)
        assert rows[3].net_worth == pytest.approx(172_820)

    def test_crossover_fires_once(self, clock, single_sample_history, simple_scenario):
        rows = project_yearly(
            simple_scenario, single_sample_history, ProjectionOptions(clock=clock)
        )
        flagged = [i for i, r in enumerate(rows) if r.is_crossover]

        assert flagged == [3]
        assert rows[3].interest > rows[3].contributed
        assert rows[2].interest < rows[2].contributed

    def test_fi_year_fires_once(self, clock, single_sample_history, simple_scenario):
        rows = project_yearly(
            simple_scenario, single_sample_history, ProjectionOptions(clock=clock)
        )
        flagged = [i for i, r in enumerate(rows) if r.is_fi_year]
        first_covered = next(i for i, r in enumerate(rows) if r.net_worth >= 300_000)

        assert flagged == [first_covered]
        assert all(r.swr_covers_spend for r in rows[first_covered:])

    def test_idempotent(self, clock, growing_history):
        options = ProjectionOptions(clock=clock, birth_year=1985)
        first = project_yearly(ScenarioAssumptions(), growing_history, options)
        second = project_yearly(ScenarioAssumptions(), growing_history, options)

        assert first == second

    def test_history_order_does_not_matter(self, clock, growing_history):
        options = ProjectionOptions(clock=clock)
        forward = project_yearly(ScenarioAssumptions(), growing_history, options)
        backward = project_yearly(
            ScenarioAssumptions(), list(reversed(growing_history)), options
        )

        assert forward == backward

    def test_custom_horizon(self, clock, single_sample_history, simple_scenario):
        options = ProjectionOptions(clock=clock, projection_years=5)

        assert len(project_yearly(simple_scenario, single_sample_history, options)) == 5

    def test_income_drives_savings(self, clock, single_sample_history):
        """Test savings from after-tax income less spending."""
        scenario = ScenarioAssumptions(
            inflation_rate=0,
            spending_growth_rate=0,
            income=IncomeProfile(gross_income=100_000, state_code="TX"),
        )
        rows = project_yearly(
            scenario, single_sample_history, ProjectionOptions(clock=clock)
        )

        assert rows[1].gross_income == pytest.approx(100_000)
        assert rows[1].total_tax == pytest.approx(21_264)
        assert rows[1].net_income == pytest.approx(78_736)
        assert rows[1].annual_savings == pytest.approx(78_736 - 36_000)

    def test_income_growth(self, clock, single_sample_history):
        scenario = ScenarioAssumptions(
            income_growth_rate=10,
            income=IncomeProfile(gross_income=100_000, state_code="TX"),
        )
        rows = project_yearly(
            scenario, single_sample_history, ProjectionOptions(clock=clock)
        )

        assert rows[1].gross_income == pytest.approx(100_000)
        assert rows[2].gross_income == pytest.approx(110_000)
        assert rows[3].gross_income == pytest.approx(121_000)

    def test_without_income_no_tax_fields(
        self, clock, single_sample_history, simple_scenario
    ):
        rows = project_yearly(
            simple_scenario, single_sample_history, ProjectionOptions(clock=clock)
        )

        assert rows[1].gross_income is None
        assert rows[1].net_income is None


class TestInflatedProjections:
    """Test attaching today's-dollar values to rows."""

    def test_conversion(self, clock, single_sample_history):
        scenario = ScenarioAssumptions(inflation_rate=3)
        rows = project_yearly(
            scenario, single_sample_history, ProjectionOptions(clock=clock)
        )
        inflated = convert_to_inflated_projections(rows, 3)

        assert len(inflated) == len(rows)
        assert inflated[0].net_worth.real == inflated[0].net_worth.nominal
        assert inflated[10].net_worth.nominal == rows[10].net_worth
        assert inflated[10].net_worth.real == pytest.approx(
            rows[10].net_worth / 1.03**10
        )
        assert inflated[10].fi_progress == rows[10].fi_progress


class TestProjectMonthly:
    """Test the monthly projection."""

    def test_rows_and_calendar(self, simple_scenario):
        rows = project_monthly(100_000, simple_scenario, 24, start=date(2025, 11, 1))

        assert len(rows) == 24
        assert (rows[0].year, rows[0].month) == (2025, 11)
        assert (rows[2].year, rows[2].month) == (2026, 1)
        assert rows[-1].years_from_start == pytest.approx(2)

    def test_monthly_rate_compounds_to_annual(self, simple_scenario):
        rows = project_monthly(
            100_000,
            simple_scenario,
            12,
            contribution_override=0,
            start=date(2025, 1, 1),
        )

        assert rows[0].monthly_interest == pytest.approx(
            100_000 * (1.1 ** (1 / 12) - 1)
        )
        assert rows[-1].net_worth == pytest.approx(110_000)
        assert rows[-1].cumulative_contributions == pytest.approx(0)

    def test_contribution_spread_over_months(self, simple_scenario):
        rows = project_monthly(100_000, simple_scenario, 12, start=date(2025, 1, 1))

        assert all(r.monthly_savings == pytest.approx(1_000) for r in rows)
        assert rows[-1].cumulative_contributions == pytest.approx(12_000)

    def test_default_month_count(self, simple_scenario):
        assert len(project_monthly(100_000, simple_scenario)) == 120

    def test_start_from_clock(self, simple_scenario):
        """Test that the first month comes from the injected clock."""
        clock = FixedClock(datetime(2030, 6, 15, 12, tzinfo=timezone.utc))
        rows = project_monthly(100_000, simple_scenario, 3, clock=clock)

        assert [(r.year, r.month) for r in rows] == [(2030, 6), (2030, 7), (2030, 8)]

    def test_explicit_start_wins_over_clock(self, simple_scenario):
        clock = FixedClock(datetime(2030, 6, 15, tzinfo=timezone.utc))
        rows = project_monthly(
            100_000, simple_scenario, 1, start=date(2026, 2, 1), clock=clock
        )

        assert (rows[0].year, rows[0].month) == (2026, 2)

    def test_zero_months(self, simple_scenario):
        assert project_monthly(100_000, simple_scenario, 0) == []

    def test_negative_months_raise(self, simple_scenario):
        with pytest.raises(ValueError):
            project_monthly(100_000, simple_scenario, -1)

    def test_override_replaces_income(self):
        scenario = ScenarioAssumptions(
            inflation_rate=0,
            spending_growth_rate=0,
            income=IncomeProfile(gross_income=100_000),
        )
        rows = project_monthly(
            0, scenario, 3, contribution_override=24_000, start=date(2025, 1, 1)
        )

        assert rows[0].monthly_savings == pytest.approx(2_000)


class TestAggregateMonthly:
    """Test rolling months into years."""

    def test_full_and_partial_years(self, simple_scenario):
        rows = project_monthly(100_000, simple_scenario, 30, start=date(2025, 1, 1))
        summaries = aggregate_monthly_to_yearly(rows)

        assert [s.months for s in summaries] == [12, 12, 6]
        assert [s.year for s in summaries] == [2025, 2026, 2027]
        assert summaries[0].total_savings == pytest.approx(12_000)
        assert summaries[0].total_spending == pytest.approx(12_000)
        assert summaries[1].ending_net_worth == rows[23].net_worth
        assert summaries[-1].ending_net_worth == rows[-1].net_worth
        assert sum(s.total_interest for s in summaries) == pytest.approx(
            rows[-1].cumulative_interest
        )

    def test_empty(self):
        assert aggregate_monthly_to_yearly([]) == []


class TestCalculateAllFinancials:
    """Test the combined per-scenario figures."""

    def test_summary_fields(self, clock, single_sample_history, simple_scenario):
        result = calculate_all_financials(
            simple_scenario, single_sample_history, ProjectionOptions(clock=clock)
        )
        fi_row = next(r for r in result.projections if r.is_fi_year)

        assert result.current_net_worth.total == 100_000
        assert result.fi_year == fi_row.year
        assert result.crossover_year == 2028
        assert result.current_fi_progress == pytest.approx(100_000 / 300_000 * 100)
        assert result.current_monthly_swr == pytest.approx(100_000 * 0.04 / 12)
        assert result.level_info.current_level.name == "Traction"

    def test_no_history(self, clock, simple_scenario):
        result = calculate_all_financials(
            simple_scenario, [], ProjectionOptions(clock=clock)
        )

        assert result.projections == []
        assert result.current_net_worth.total == 0
        assert result.fi_year is None
        assert result.current_fi_progress == 0
        assert not math.isnan(result.current_monthly_swr)
