"""
Net-worth projection simulator.

Projects net worth forward year by year (or month by month) under a scenario's
assumptions. Each period:

1. Spending comes from the level-based policy using net worth at the start
   of the period.
2. Savings come from tax-aware net income when an income block is present,
   otherwise from the yearly contribution less any growth in spending.
3. Interest accrues on the starting net worth.
4. Net worth grows by interest plus savings.
5. FI target, FI progress, the FI-year and crossover flags, and the coast FI
   year are derived from the new state.

All functions are pure; "now" enters only through the clock in
:class:`ProjectionOptions` or an explicit ``now`` argument.
"""

import logging
from datetime import date, datetime
from typing import List, Optional, Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from fi_engine.config import get_global_settings
from fi_engine.models.inflation import InflatedValue
from fi_engine.models.protocols import Clock, SystemClock
from fi_engine.models.scenario import NetWorthSample, ScenarioAssumptions, latest_sample
from fi_engine.models.spending import (
    SECONDS_PER_YEAR,
    LevelInfo,
    calculate_level_based_spending,
    calculate_level_info,
)
from fi_engine.models.tax_engine import calculate_taxes_for_income

logger = logging.getLogger(__name__)


class SwrAmounts(BaseModel):
    """Safe withdrawal income at different periods."""

    model_config = ConfigDict(frozen=True)

    annual: float
    monthly: float
    weekly: float
    daily: float


class FutureValue(BaseModel):
    """Closed-form compound growth of a principal plus yearly contributions."""

    model_config = ConfigDict(frozen=True)

    total: float
    compounded_principal: float
    contribution_growth: float
    total_contributed: float
    total_interest: float


class RealTimeNetWorth(BaseModel):
    """Net worth estimated at the current instant from the latest sample."""

    model_config = ConfigDict(frozen=True)

    total: float = 0.0
    base_amount: float = 0.0
    appreciation: float = 0.0
    contributions: float = 0.0


class GrowthRates(BaseModel):
    """Expected growth of net worth per unit of time."""

    model_config = ConfigDict(frozen=True)

    per_second: float
    per_minute: float
    per_hour: float
    per_day: float
    per_year: float
    yearly_appreciation: float
    yearly_contributions: float


class ProjectionOptions(BaseModel):
    """Caller options for a yearly projection."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    birth_year: Optional[int] = Field(
        default=None, ge=1900, le=2200, description="Year of birth for ages"
    )
    clock: Clock = Field(default_factory=SystemClock, description="Source of 'now'")
    projection_years: int = Field(
        default_factory=lambda: get_global_settings().projection_years,
        ge=1,
        description="Number of rows, including the current-state row",
    )
    coast_search_horizon: int = Field(
        default_factory=lambda: get_global_settings().coast_search_horizon,
        ge=0,
        description="Years searched forward for the coast FI year",
    )


class ProjectionRow(BaseModel):
    """State of one projected year. Row 0 is the current state."""

    model_config = ConfigDict(frozen=True)

    year: int
    age: Optional[int] = None
    years_from_now: int
    net_worth: float
    interest: float = Field(..., description="Cumulative interest")
    contributed: float = Field(..., description="Cumulative contributions/savings")
    annual_swr: float
    monthly_swr: float
    weekly_swr: float
    daily_swr: float
    monthly_spend: float
    annual_spending: float
    annual_savings: float
    fi_target: float
    fi_progress: float = Field(..., description="Percent of FI target reached")
    coast_fi_year: Optional[int] = None
    coast_fi_age: Optional[int] = None
    is_fi_year: bool = False
    is_crossover: bool = False
    swr_covers_spend: bool = False

    # Present only when income data drives savings
    gross_income: Optional[float] = None
    total_tax: Optional[float] = None
    net_income: Optional[float] = None
    pre_tax_contributions: Optional[float] = None


class InflatedProjectionRow(BaseModel):
    """A projection row with monetary fields in both nominal and real terms."""

    model_config = ConfigDict(frozen=True)

    year: int
    age: Optional[int] = None
    years_from_now: int
    net_worth: InflatedValue
    interest: InflatedValue
    contributed: InflatedValue
    annual_swr: InflatedValue
    monthly_swr: InflatedValue
    monthly_spend: InflatedValue
    annual_savings: InflatedValue
    fi_target: InflatedValue
    fi_progress: float
    coast_fi_year: Optional[int] = None
    is_fi_year: bool = False
    is_crossover: bool = False
    swr_covers_spend: bool = False


class MonthlyProjectionRow(BaseModel):
    """State at the end of one projected month."""

    model_config = ConfigDict(frozen=True)

    month_index: int
    year: int
    month: int = Field(..., ge=1, le=12)
    years_from_start: float
    net_worth: float
    monthly_spending: float
    monthly_savings: float
    monthly_interest: float
    cumulative_interest: float
    cumulative_contributions: float
    monthly_swr: float
    fi_target: float
    fi_progress: float
    swr_covers_spend: bool


class YearlySummaryRow(BaseModel):
    """Monthly rows rolled up into one year."""

    model_config = ConfigDict(frozen=True)

    year_index: int
    year: int
    months: int
    total_spending: float
    total_savings: float
    total_interest: float
    ending_net_worth: float
    cumulative_interest: float
    cumulative_contributions: float
    fi_target: float
    fi_progress: float
    swr_covers_spend: bool


class CalculatedFinancials(BaseModel):
    """Everything derived from one scenario and the net-worth history."""

    model_config = ConfigDict(frozen=True)

    current_net_worth: RealTimeNetWorth
    growth_rates: GrowthRates
    projections: List[ProjectionRow]
    level_info: LevelInfo
    fi_year: Optional[int] = None
    fi_age: Optional[int] = None
    crossover_year: Optional[int] = None
    current_fi_progress: float = 0.0
    current_monthly_swr: float = 0.0
    current_annual_swr: float = 0.0


def calculate_fi_target(monthly_spend: float, swr: float) -> float:
    """
    Net worth needed for financial independence.

    Args:
        monthly_spend: Monthly spending
        swr: Safe withdrawal rate (%)

    Returns:
        ``monthly_spend * 12 / (swr / 100)``, or 0 when either input is <= 0
    """
    if monthly_spend <= 0 or swr <= 0:
        return 0.0
    return monthly_spend * 12 / (swr / 100)


def calculate_fi_progress(net_worth: float, fi_target: float) -> float:
    return net_worth / fi_target * 100 if fi_target > 0 else 0.0


def calculate_swr_amounts(net_worth: float, swr: float) -> SwrAmounts:
    """Safe withdrawal income per year, month, week and day."""
    annual = net_worth * (swr / 100)
    return SwrAmounts(
        annual=annual, monthly=annual / 12, weekly=annual / 52, daily=annual / 365
    )


def calculate_future_value(
    principal: float, yearly_rate: float, years: float, yearly_contribution: float
) -> FutureValue:
    """
    Compound a principal and end-of-year contributions over ``years``.

    Whole years of contributions use the annuity formula; a trailing partial
    year contributes pro rata with half a partial year of growth.

    Args:
        principal: Starting amount
        yearly_rate: Annual return (%)
        years: Years to compound (may be fractional)
        yearly_contribution: Contribution at the end of each year

    Returns:
        FutureValue
    """
    r = yearly_rate / 100
    full_years = int(np.floor(years))
    partial_year = years - full_years

    compounded_principal = principal * (1 + r) ** years

    if r != 0 and full_years > 0:
        contribution_growth = yearly_contribution * (((1 + r) ** full_years - 1) / r)
    else:
        contribution_growth = yearly_contribution * full_years

    partial_contribution = partial_year * yearly_contribution
    contribution_growth += partial_contribution * (1 + r) ** (partial_year / 2)

    total_contributed = years * yearly_contribution
    total = compounded_principal + contribution_growth
    return FutureValue(
        total=total,
        compounded_principal=compounded_principal,
        contribution_growth=contribution_growth,
        total_contributed=total_contributed,
        total_interest=total - principal - total_contributed,
    )


def calculate_real_time_net_worth(
    latest: Optional[NetWorthSample],
    assumptions: ScenarioAssumptions,
    now: datetime,
    include_contributions: bool = False,
) -> RealTimeNetWorth:
    """
    Estimate net worth at ``now`` from the latest sample.

    Appreciation uses simple interest so the estimate moves smoothly between
    samples. With no sample every field is zero.
    """
    if latest is None:
        return RealTimeNetWorth()

    elapsed = (now - latest.timestamp).total_seconds()
    years_elapsed = max(0.0, elapsed / SECONDS_PER_YEAR)
    yearly_rate = assumptions.current_rate / 100
    appreciation = latest.amount * yearly_rate * years_elapsed

    contributions = 0.0
    if include_contributions and assumptions.yearly_contribution > 0:
        contributions = assumptions.yearly_contribution * years_elapsed
        # Contributions are spread over the period, so they earn half of it
        contributions += contributions * yearly_rate * (years_elapsed / 2)

    return RealTimeNetWorth(
        total=latest.amount + appreciation + contributions,
        base_amount=latest.amount,
        appreciation=appreciation,
        contributions=contributions,
    )


def calculate_growth_rates(
    current_net_worth: float,
    assumptions: ScenarioAssumptions,
    include_contributions: bool = False,
) -> GrowthRates:
    yearly_appreciation = current_net_worth * (assumptions.current_rate / 100)
    yearly_contributions = (
        assumptions.yearly_contribution if include_contributions else 0.0
    )
    yearly_total = yearly_appreciation + yearly_contributions
    days = SECONDS_PER_YEAR / 86_400
    return GrowthRates(
        per_second=yearly_total / SECONDS_PER_YEAR,
        per_minute=yearly_total / (days * 24 * 60),
        per_hour=yearly_total / (days * 24),
        per_day=yearly_total / days,
        per_year=yearly_total,
        yearly_appreciation=yearly_appreciation,
        yearly_contributions=yearly_contributions,
    )


def calculate_age(birth_year: Optional[int], year: int) -> Optional[int]:
    return year - birth_year if birth_year else None


def find_coast_fi_year(
    starting_value: float,
    start_year: int,
    start_years_from_now: int,
    assumptions: ScenarioAssumptions,
    horizon: Optional[int] = None,
) -> Optional[int]:
    """
    First year in which net worth, with no further contributions, covers FI.

    Spending is re-derived each future year from the projected net worth, so
    the target moves with the balance.

    Args:
        starting_value: Net worth at the start of the search
        start_year: Calendar year of ``starting_value``
        start_years_from_now: Years between now and ``start_year``
        assumptions: Scenario assumptions
        horizon: Years to search (configured default if None)

    Returns:
        The calendar year, or None when not reached within the horizon or
        when spending, SWR or return is not positive
    """
    if horizon is None:
        horizon = get_global_settings().coast_search_horizon
    swr = assumptions.swr
    r = assumptions.current_rate / 100
    start_spend = calculate_level_based_spending(
        starting_value, assumptions, start_years_from_now
    )
    if start_spend <= 0 or swr <= 0 or r <= 0:
        return None

    years = np.arange(horizon + 1, dtype=np.float64)
    future_value = starting_value * np.power(1 + r, years)
    inflation = np.power(
        1 + assumptions.inflation_rate / 100, start_years_from_now + years
    )
    future_spend = (
        assumptions.base_monthly_budget * inflation
        + future_value * (assumptions.spending_growth_rate / 100) / 12
    )
    future_target = future_spend * 12 / (swr / 100)

    reached = np.nonzero((future_spend > 0) & (future_value >= future_target))[0]
    if reached.size == 0:
        return None
    return start_year + int(reached[0])


def project_yearly(
    settings: ScenarioAssumptions,
    history: Sequence[NetWorthSample],
    options: Optional[ProjectionOptions] = None,
) -> List[ProjectionRow]:
    """
    Project net worth year by year.

    Row 0 is the current state (real-time net worth, appreciation since the
    latest sample as interest, no contributions yet). Each later row is the
    state at the end of one simulated year.

    Args:
        settings: Scenario assumptions
        history: Net-worth samples (any order)
        options: Birth year, clock and horizon

    Returns:
        Projection rows in year order; empty when there is no history
    """
    options = options or ProjectionOptions()
    latest = latest_sample(history)
    if latest is None:
        return []

    now = options.clock.now()
    current_year = now.year
    birth_year = options.birth_year
    r = settings.current_rate / 100
    swr = settings.swr
    growth = 1 + settings.income_growth_rate / 100
    horizon = options.coast_search_horizon

    current = calculate_real_time_net_worth(latest, settings, now)
    net_worth = current.total
    cumulative_interest = current.appreciation
    cumulative_contributed = 0.0

    base_spend = calculate_level_based_spending(net_worth, settings, 0)
    base_annual_spend = base_spend * 12

    def tax_fields(multiplier: float) -> dict:
        if not settings.has_income:
            return {}
        taxes = calculate_taxes_for_income(settings.income, multiplier)
        return {
            "gross_income": taxes.gross_income,
            "total_tax": taxes.total_tax,
            "net_income": taxes.net_income,
            "pre_tax_contributions": taxes.total_pre_tax_contributions,
        }

    def annual_savings(annual_spend: float, multiplier: float, income: dict) -> float:
        if income:
            return income["net_income"] - annual_spend
        return settings.yearly_contribution * multiplier - (
            annual_spend - base_annual_spend
        )

    def build_row(
        year: int,
        years_from_now: int,
        monthly_spend: float,
        savings: float,
        income: dict,
        fi_found: bool,
        crossover_found: bool,
    ) -> ProjectionRow:
        amounts = calculate_swr_amounts(net_worth, swr)
        fi_target = calculate_fi_target(monthly_spend, swr)
        covers = monthly_spend > 0 and amounts.monthly >= monthly_spend
        crossover = (
            cumulative_contributed > 0
            and cumulative_interest > 0
            and cumulative_interest > cumulative_contributed
        )
        coast_year = find_coast_fi_year(
            net_worth, year, years_from_now, settings, horizon
        )
        return ProjectionRow(
            year=year,
            age=calculate_age(birth_year, year),
            years_from_now=years_from_now,
            net_worth=net_worth,
            interest=cumulative_interest,
            contributed=cumulative_contributed,
            annual_swr=amounts.annual,
            monthly_swr=amounts.monthly,
            weekly_swr=amounts.weekly,
            daily_swr=amounts.daily,
            monthly_spend=monthly_spend,
            annual_spending=monthly_spend * 12,
            annual_savings=savings,
            fi_target=fi_target,
            fi_progress=calculate_fi_progress(net_worth, fi_target),
            coast_fi_year=coast_year,
            coast_fi_age=calculate_age(birth_year, coast_year) if coast_year else None,
            is_fi_year=covers and not fi_found,
            is_crossover=crossover and not crossover_found,
            swr_covers_spend=covers,
            **income,
        )

    income = tax_fields(1.0)
    rows = [
        build_row(
            current_year,
            0,
            base_spend,
            annual_savings(base_annual_spend, 1.0, income),
            income,
            fi_found=False,
            crossover_found=True,
        )
    ]
    fi_found = rows[0].is_fi_year
    crossover_found = False

    for t in range(1, options.projection_years):
        multiplier = growth ** (t - 1)
        monthly_spend = calculate_level_based_spending(net_worth, settings, t - 1)
        income = tax_fields(multiplier)
        savings = annual_savings(monthly_spend * 12, multiplier, income)
        interest = net_worth * r

        net_worth = net_worth + interest + savings
        cumulative_interest += interest
        cumulative_contributed += savings

        row = build_row(
            current_year + t,
            t,
            monthly_spend,
            savings,
            income,
            fi_found,
            crossover_found,
        )
        fi_found = fi_found or row.is_fi_year
        crossover_found = crossover_found or row.is_crossover
        rows.append(row)

    logger.debug(
        f"Projected {len(rows)} years for '{settings.name}' "
        f"from net worth {current.total:,.2f}"
    )
    return rows


def _add_months(start: date, months: int) -> date:
    index = start.year * 12 + (start.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def project_monthly(
    starting_net_worth: float,
    settings: ScenarioAssumptions,
    month_count: Optional[int] = None,
    contribution_override: Optional[float] = None,
    start: Optional[date] = None,
    clock: Optional[Clock] = None,
) -> List[MonthlyProjectionRow]:
    """
    Project net worth month by month.

    Spending is re-derived every month from the net worth at the start of the
    month. The annual return is converted to the equivalent monthly rate.

    Args:
        starting_net_worth: Net worth at the start of the first month
        settings: Scenario assumptions
        month_count: Months to project (configured default if None)
        contribution_override: Annual contribution used instead of income or
            the scenario's yearly contribution
        start: First projected month (current month of ``clock`` if None)
        clock: Source of "now" when no start is given (system clock if None)

    Returns:
        One row per month holding the end-of-month state

    Raises:
        ValueError: If month_count is negative
    """
    if month_count is None:
        month_count = get_global_settings().monthly_projection_months
    if month_count < 0:
        raise ValueError(f"month_count must be >= 0, got {month_count}")

    if start is None:
        start = (clock or SystemClock()).now().date().replace(day=1)
    swr = settings.swr
    annual_factor = 1 + settings.current_rate / 100
    monthly_rate = annual_factor ** (1 / 12) - 1 if annual_factor > 0 else -1.0
    growth = 1 + settings.income_growth_rate / 100
    use_income = settings.has_income and contribution_override is None
    contribution = (
        contribution_override
        if contribution_override is not None
        else settings.yearly_contribution
    )

    net_worth = starting_net_worth
    base_spend = calculate_level_based_spending(net_worth, settings, 0)
    cumulative_interest = 0.0
    cumulative_contributions = 0.0
    net_income_by_year: dict = {}

    rows: List[MonthlyProjectionRow] = []
    for m in range(month_count):
        year_index = m // 12
        multiplier = growth**year_index
        spend = calculate_level_based_spending(net_worth, settings, m / 12)

        if use_income:
            if year_index not in net_income_by_year:
                net_income_by_year[year_index] = calculate_taxes_for_income(
                    settings.income, multiplier
                ).net_income
            savings = net_income_by_year[year_index] / 12 - spend
        else:
            savings = contribution * multiplier / 12 - (spend - base_spend)

        interest = net_worth * monthly_rate
        net_worth = net_worth + interest + savings
        cumulative_interest += interest
        cumulative_contributions += savings

        fi_target = calculate_fi_target(spend, swr)
        monthly_swr = calculate_swr_amounts(net_worth, swr).monthly
        month_date = _add_months(start, m)
        rows.append(
            MonthlyProjectionRow(
                month_index=m,
                year=month_date.year,
                month=month_date.month,
                years_from_start=(m + 1) / 12,
                net_worth=net_worth,
                monthly_spending=spend,
                monthly_savings=savings,
                monthly_interest=interest,
                cumulative_interest=cumulative_interest,
                cumulative_contributions=cumulative_contributions,
                monthly_swr=monthly_swr,
                fi_target=fi_target,
                fi_progress=calculate_fi_progress(net_worth, fi_target),
                swr_covers_spend=spend > 0 and monthly_swr >= spend,
            )
        )
    return rows


def aggregate_monthly_to_yearly(
    rows: Sequence[MonthlyProjectionRow],
) -> List[YearlySummaryRow]:
    """
    Roll monthly rows up into 12-month periods.

    Flows (spending, savings, interest) are summed; stocks (net worth,
    cumulative totals, FI target and progress) take the period-end value.
    A trailing partial period is kept with its actual month count.
    """
    summaries: List[YearlySummaryRow] = []
    for offset in range(0, len(rows), 12):
        chunk = rows[offset : offset + 12]
        last = chunk[-1]
        summaries.append(
            YearlySummaryRow(
                year_index=offset // 12,
                year=chunk[0].year,
                months=len(chunk),
                total_spending=sum(r.monthly_spending for r in chunk),
                total_savings=sum(r.monthly_savings for r in chunk),
                total_interest=sum(r.monthly_interest for r in chunk),
                ending_net_worth=last.net_worth,
                cumulative_interest=last.cumulative_interest,
                cumulative_contributions=last.cumulative_contributions,
                fi_target=last.fi_target,
                fi_progress=last.fi_progress,
                swr_covers_spend=last.swr_covers_spend,
            )
        )
    return summaries


def convert_to_inflated_projections(
    rows: Sequence[ProjectionRow], inflation_rate: float
) -> List[InflatedProjectionRow]:
    """Attach today's-dollar values to every monetary field of each row."""
    inflated: List[InflatedProjectionRow] = []
    for row in rows:
        years = row.years_from_now

        def value(amount: float) -> InflatedValue:
            if years == 0:
                return InflatedValue.current(amount)
            return InflatedValue.from_nominal(amount, years, inflation_rate)

        inflated.append(
            InflatedProjectionRow(
                year=row.year,
                age=row.age,
                years_from_now=years,
                net_worth=value(row.net_worth),
                interest=value(row.interest),
                contributed=value(row.contributed),
                annual_swr=value(row.annual_swr),
                monthly_swr=value(row.monthly_swr),
                monthly_spend=value(row.monthly_spend),
                annual_savings=value(row.annual_savings),
                fi_target=value(row.fi_target),
                fi_progress=row.fi_progress,
                coast_fi_year=row.coast_fi_year,
                is_fi_year=row.is_fi_year,
                is_crossover=row.is_crossover,
                swr_covers_spend=row.swr_covers_spend,
            )
        )
    return inflated


def calculate_all_financials(
    settings: ScenarioAssumptions,
    history: Sequence[NetWorthSample],
    options: Optional[ProjectionOptions] = None,
    include_contributions: bool = False,
) -> CalculatedFinancials:
    """
    Compute every derived figure for one scenario.

    Args:
        settings: Scenario assumptions
        history: Net-worth samples (any order)
        options: Birth year, clock and horizon
        include_contributions: Count contributions in real-time figures

    Returns:
        CalculatedFinancials
    """
    options = options or ProjectionOptions()
    now = options.clock.now()
    current = calculate_real_time_net_worth(
        latest_sample(history), settings, now, include_contributions
    )
    projections = project_yearly(settings, history, options)

    fi_row = next((p for p in projections if p.is_fi_year), None)
    crossover_row = next((p for p in projections if p.is_crossover), None)
    swr_amounts = calculate_swr_amounts(current.total, settings.swr)
    first = projections[0] if projections else None

    return CalculatedFinancials(
        current_net_worth=current,
        growth_rates=calculate_growth_rates(
            current.total, settings, include_contributions
        ),
        projections=projections,
        level_info=calculate_level_info(current.total, settings, history, now),
        fi_year=fi_row.year if fi_row else None,
        fi_age=fi_row.age if fi_row else None,
        crossover_year=crossover_row.year if crossover_row else None,
        current_fi_progress=first.fi_progress if first else 0.0,
        current_monthly_swr=swr_amounts.monthly,
        current_annual_swr=swr_amounts.annual,
    )
