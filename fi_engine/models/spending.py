"""
Level-based spending policy.

The monthly budget is an inflation-adjusted floor plus a slice of net worth:

    budget = base * (1 + inflation)^years + net_worth * spending_rate / 12

so the allowed budget rises with wealth. Net worth is broken into named
levels, each unlocking a higher budget.
"""

from datetime import datetime
from typing import List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from fi_engine.models.inflation import (
    InflatedValue,
    inflation_multiplier,
    nominal_to_real,
)
from fi_engine.models.scenario import NetWorthSample, ScenarioAssumptions, oldest_sample

SECONDS_PER_YEAR = 365.25 * 24 * 60 * 60
SLIGHTLY_OVER_TOLERANCE = 1.1

SpendingStatus = Literal["within_budget", "slightly_over", "over_budget"]


class LevelThreshold(BaseModel):
    """A named net-worth level."""

    model_config = ConfigDict(frozen=True)

    level: int = Field(..., ge=1, description="1-based level number")
    name: str = Field(..., description="Level name")
    threshold: float = Field(..., ge=0, description="Net worth needed to reach it")


_LEVELS = (
    ("Starter", 0),
    ("Saver", 10_000),
    ("Builder", 25_000),
    ("Momentum", 50_000),
    ("Foundation", 75_000),
    ("Traction", 100_000),
    ("Accelerator", 150_000),
    ("Velocity", 200_000),
    ("Milestone", 250_000),
    ("Cruising", 300_000),
    ("Advancing", 350_000),
    ("Thriving", 400_000),
    ("Flourishing", 450_000),
    ("Half Million", 500_000),
    ("Expanding", 550_000),
    ("Growing", 600_000),
    ("Ascending", 650_000),
    ("Rising", 700_000),
    ("Surging", 750_000),
    ("Climbing", 800_000),
    ("Soaring", 850_000),
    ("Elevating", 900_000),
    ("Approaching", 950_000),
    ("Millionaire", 1_000_000),
    ("Established", 1_100_000),
    ("Prospering", 1_200_000),
    ("Abundant", 1_300_000),
    ("Wealthy", 1_400_000),
    ("Accomplished", 1_500_000),
    ("Distinguished", 1_750_000),
    ("Double Million", 2_000_000),
    ("Exceptional", 2_250_000),
    ("Remarkable", 2_500_000),
    ("Outstanding", 2_750_000),
    ("Triple Million", 3_000_000),
    ("Elite", 3_500_000),
    ("Premier", 4_000_000),
    ("Pinnacle", 4_500_000),
    ("Five Million", 5_000_000),
    ("Apex", 6_000_000),
    ("Summit", 7_000_000),
    ("Zenith", 8_000_000),
    ("Crown", 9_000_000),
    ("Decamillionaire", 10_000_000),
    ("Titan", 15_000_000),
    ("Magnate", 20_000_000),
    ("Mogul", 30_000_000),
    ("Tycoon", 50_000_000),
    ("Dynasty", 75_000_000),
    ("Legacy", 100_000_000),
)

LEVEL_THRESHOLDS = tuple(
    LevelThreshold(level=i + 1, name=name, threshold=threshold)
    for i, (name, threshold) in enumerate(_LEVELS)
)


class LevelBudget(LevelThreshold):
    """A level with the monthly budget it unlocks."""

    monthly_budget: float
    is_unlocked: bool = False
    is_current: bool = False
    is_next: bool = False


class LevelInfo(BaseModel):
    """Where a net worth sits in the level catalog and what it unlocks."""

    model_config = ConfigDict(frozen=True)

    current_level: LevelBudget
    current_level_index: int
    next_level: Optional[LevelBudget]
    progress_to_next: float = Field(..., description="Percent of the way to next")
    amount_to_next: float
    unlocked_at_level: float
    unlocked_at_net_worth: float
    next_level_spending_increase: float
    current_spend: float
    spending_status: SpendingStatus
    levels_with_status: List[LevelBudget]
    net_worth: float
    base_budget_original: float
    base_budget_inflation_adjusted: float
    spending_rate: float = Field(..., description="Spending growth rate (decimal)")
    net_worth_portion: float
    years_elapsed: float
    inflation: float = Field(..., description="Inflation rate (decimal)")


def calculate_unlocked_spending(
    net_worth: float,
    base_budget: float,
    spending_rate: float,
    years_elapsed: float = 0,
    inflation_rate: float = 0,
) -> float:
    """
    Monthly budget unlocked at a net worth.

    Args:
        net_worth: Net worth (nominal)
        base_budget: Monthly spending floor in today's dollars
        spending_rate: Share of net worth added to the annual budget (%)
        years_elapsed: Years of inflation applied to the floor
        inflation_rate: Annual inflation (%)

    Returns:
        Monthly budget in nominal dollars
    """
    inflated_base = base_budget * inflation_multiplier(years_elapsed, inflation_rate)
    return inflated_base + net_worth * (spending_rate / 100) / 12


def calculate_level_based_spending(
    net_worth: float, assumptions: ScenarioAssumptions, years_from_now: float
) -> float:
    """Monthly budget for a scenario given net worth at the start of a period."""
    return calculate_unlocked_spending(
        net_worth,
        assumptions.base_monthly_budget,
        assumptions.spending_growth_rate,
        years_from_now,
        assumptions.inflation_rate,
    )


def calculate_inflated_spending(
    base_monthly_budget: float,
    net_worth: float,
    spending_growth_rate: float,
    years_from_now: float,
    inflation_rate: float,
) -> InflatedValue:
    """Monthly budget in both future and today's dollars."""
    nominal = calculate_unlocked_spending(
        net_worth,
        base_monthly_budget,
        spending_growth_rate,
        years_from_now,
        inflation_rate,
    )
    return InflatedValue.from_nominal(nominal, years_from_now, inflation_rate)


def verify_spending_calculation(
    base_monthly_budget: float,
    net_worth_nominal: float,
    spending_growth_rate: float,
    years_from_now: float,
    inflation_rate: float,
) -> bool:
    """
    Check that real spending equals the floor plus a slice of real net worth.

    Deflating the nominal budget must give the same answer as computing the
    budget directly from today's-dollar inputs.
    """
    spending = calculate_inflated_spending(
        base_monthly_budget,
        net_worth_nominal,
        spending_growth_rate,
        years_from_now,
        inflation_rate,
    )
    net_worth_real = nominal_to_real(net_worth_nominal, years_from_now, inflation_rate)
    expected = base_monthly_budget + net_worth_real * (spending_growth_rate / 100) / 12
    return abs(spending.real - expected) < 0.01


def spending_status(monthly_spend: float, budget: float) -> SpendingStatus:
    if monthly_spend <= budget:
        return "within_budget"
    if monthly_spend <= budget * SLIGHTLY_OVER_TOLERANCE:
        return "slightly_over"
    return "over_budget"


def find_level_index(net_worth: float) -> int:
    """Index of the highest level whose threshold has been reached."""
    for i in range(len(LEVEL_THRESHOLDS) - 1, -1, -1):
        if net_worth >= LEVEL_THRESHOLDS[i].threshold:
            return i
    return 0


def calculate_level_info(
    current_net_worth: float,
    assumptions: ScenarioAssumptions,
    samples: Sequence[NetWorthSample],
    now: datetime,
) -> LevelInfo:
    """
    Place a net worth in the level catalog.

    The spending floor is inflated by the time elapsed since the oldest
    recorded sample.

    Args:
        current_net_worth: Current (real-time) net worth
        assumptions: Scenario assumptions
        samples: Recorded net-worth samples, any order
        now: Current instant

    Returns:
        LevelInfo
    """
    base = assumptions.base_monthly_budget
    rate = assumptions.spending_growth_rate
    inflation = assumptions.inflation_rate

    first = oldest_sample(samples)
    years_elapsed = (
        max(0.0, (now - first.timestamp).total_seconds() / SECONDS_PER_YEAR)
        if first
        else 0.0
    )

    def budget_at(threshold: float) -> float:
        return calculate_unlocked_spending(
            threshold, base, rate, years_elapsed, inflation
        )

    index = find_level_index(current_net_worth)
    current = LEVEL_THRESHOLDS[index]
    nxt = LEVEL_THRESHOLDS[index + 1] if index + 1 < len(LEVEL_THRESHOLDS) else None

    progress_to_next = 100.0
    amount_to_next = 0.0
    if nxt is not None:
        span = nxt.threshold - current.threshold
        progress = (current_net_worth - current.threshold) / span * 100
        progress_to_next = min(progress, 100.0)
        amount_to_next = nxt.threshold - current_net_worth

    unlocked_at_level = budget_at(current.threshold)
    levels = [
        LevelBudget(
            **level.model_dump(),
            monthly_budget=budget_at(level.threshold),
            is_unlocked=i <= index,
            is_current=i == index,
            is_next=i == index + 1,
        )
        for i, level in enumerate(LEVEL_THRESHOLDS)
    ]

    return LevelInfo(
        current_level=levels[index],
        current_level_index=index,
        next_level=levels[index + 1] if nxt is not None else None,
        progress_to_next=progress_to_next,
        amount_to_next=amount_to_next,
        unlocked_at_level=unlocked_at_level,
        unlocked_at_net_worth=budget_at(current_net_worth),
        next_level_spending_increase=(
            budget_at(nxt.threshold) - unlocked_at_level if nxt is not None else 0.0
        ),
        current_spend=assumptions.monthly_spend,
        spending_status=spending_status(assumptions.monthly_spend, unlocked_at_level),
        levels_with_status=levels,
        net_worth=current_net_worth,
        base_budget_original=base,
        base_budget_inflation_adjusted=base
        * inflation_multiplier(years_elapsed, inflation),
        spending_rate=rate / 100,
        net_worth_portion=current_net_worth * rate / 100 / 12,
        years_elapsed=years_elapsed,
        inflation=inflation / 100,
    )
