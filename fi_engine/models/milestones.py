"""
Milestone detection over a yearly projection.

Each catalog entry defines a threshold that may be recomputed for every row
(FI-target based milestones move with projected spending). Detection scans the
rows in order and reports the first row whose net worth meets the threshold.
Because spending is linked to net worth, those thresholds are not guaranteed
to be monotonic; the first qualifying row is authoritative even if a later
row would fall short again.
"""

import logging
import math
from typing import Callable, Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from fi_engine.config import get_global_settings
from fi_engine.models.projection import ProjectionRow, calculate_fi_target
from fi_engine.models.scenario import ScenarioAssumptions

logger = logging.getLogger(__name__)

MilestoneCategory = Literal[
    "percentage",
    "lifestyle",
    "special",
    "security",
    "compounding",
    "coast",
    "retirement_income",
]


class MilestoneDefinition(BaseModel):
    """A named point on the road to financial independence."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    short_name: str
    category: MilestoneCategory
    target_value: float = Field(
        default=0.0,
        description=(
            "Percent of FI, spending multiplier, months of runway or real "
            "annual retirement income"
        ),
    )
    buffer_multiplier: Optional[float] = None
    dollar_threshold: Optional[float] = None
    description: str = ""


class MilestoneResult(BaseModel):
    """Outcome of scanning a projection for one milestone."""

    model_config = ConfigDict(frozen=True)

    definition: MilestoneDefinition
    year: Optional[int] = None
    age: Optional[int] = None
    is_achieved: bool = False
    net_worth_at_milestone: Optional[float] = None
    threshold_at_milestone: Optional[float] = None

    @property
    def id(self) -> str:
        return self.definition.id


class MilestoneSummary(BaseModel):
    """All milestone results plus the current/next percentage milestones."""

    model_config = ConfigDict(frozen=True)

    milestones: List[MilestoneResult]
    current_milestone: Optional[MilestoneResult] = None
    next_milestone: Optional[MilestoneResult] = None
    progress_to_next: float = 0.0
    amount_to_next: float = 0.0


class RunwayCoastInfo(BaseModel):
    """Runway and coast figures for the current net worth."""

    model_config = ConfigDict(frozen=True)

    runway_years: float
    years_to_retirement: int
    dollar_multiplier: float
    coast_fi_percent: float
    projected_retirement_income: float


# (id, name, short name, category, target value, description)
_CATALOG = (
    ("fi_10", "10% FI", "10%", "percentage", 10, "A tenth of the FI target"),
    ("fi_25", "25% FI", "25%", "percentage", 25, "A quarter of the FI target"),
    ("fi_50", "50% FI", "50%", "percentage", 50, "Halfway to the FI target"),
    ("fi_75", "75% FI", "75%", "percentage", 75, "Three quarters of the FI target"),
    ("fi_100", "100% FI", "FI", "percentage", 100, "Withdrawals cover spending"),
    ("lean_fi", "Lean FI", "Lean", "lifestyle", 0.7, "FI on 70% of spending"),
    ("barista_fi", "Barista FI", "Barista", "lifestyle", 0.85, "FI on 85% of spending"),
    ("regular_fi", "Regular FI", "Regular", "lifestyle", 1.0, "FI on planned spending"),
    ("fat_fi", "Fat FI", "Fat", "lifestyle", 1.5, "FI on 150% of spending"),
    ("runway_6mo", "6-Month Runway", "6mo", "security", 6, "Six months saved"),
    ("runway_1yr", "1-Year Runway", "1yr", "security", 12, "One year saved"),
    ("runway_2yr", "2-Year Runway", "2yr", "security", 24, "Two years saved"),
    ("runway_3yr", "3-Year Runway", "3yr", "security", 36, "Three years saved"),
    ("runway_5yr", "5-Year Runway", "5yr", "security", 60, "Five years saved"),
    ("runway_10yr", "10-Year Runway", "10yr", "security", 120, "Ten years saved"),
    ("fu_money", "F-You Money", "FU", "security", 24, "Two years plus a 25% cushion"),
    ("first_100k", "First $100k", "$100k", "compounding", 0, "Net worth of $100,000"),
    ("first_million", "First Million", "$1M", "compounding", 0, "Net worth of $1M"),
    (
        "returns_match_contributions",
        "Returns Match Contributions",
        "1x",
        "compounding",
        1,
        "Expected annual returns equal annual contributions",
    ),
    (
        "returns_double_contributions",
        "Returns Double Contributions",
        "2x",
        "compounding",
        2,
        "Expected annual returns are twice annual contributions",
    ),
    (
        "crash_proof",
        "Crash Proof",
        "Crash",
        "compounding",
        50,
        "Net worth cut in half would still grow to FI by retirement",
    ),
    ("crossover", "Crossover Point", "Cross", "special", 0, "Returns pass savings"),
    ("coast_fi", "Coast FI", "Coast", "special", 0, "No more saving needed"),
    ("flamingo_fi", "Flamingo FI", "Flamingo", "special", 50, "Halfway, ease off"),
    ("coast_25", "Coast to 25% FI", "Coast 25%", "coast", 25, "Coasts to 25% of FI"),
    ("coast_50", "Coast to 50% FI", "Coast 50%", "coast", 50, "Coasts to 50% of FI"),
    ("coast_75", "Coast to 75% FI", "Coast 75%", "coast", 75, "Coasts to 75% of FI"),
)

# Real annual income at retirement, today's dollars
RETIREMENT_INCOME_TARGETS = (
    10_000,
    15_000,
    20_000,
    25_000,
    30_000,
    35_000,
    40_000,
    50_000,
    60_000,
    75_000,
    100_000,
    125_000,
    150_000,
    200_000,
    250_000,
    300_000,
    400_000,
    500_000,
    750_000,
    1_000_000,
    1_500_000,
    2_000_000,
)


def _income_label(amount: int) -> str:
    if amount >= 1_000_000:
        return f"{amount / 1_000_000:g}M"
    return f"{amount // 1_000}k"


_INCOME_CATALOG = tuple(
    (
        f"retirement_income_{_income_label(amount).lower().replace('.', '_')}",
        f"${_income_label(amount)}/yr Retirement Income",
        f"${_income_label(amount)}/yr",
        "retirement_income",
        amount,
        f"Saving nothing more still funds ${amount:,} a year in today's dollars",
    )
    for amount in RETIREMENT_INCOME_TARGETS
)

_EXTRAS = {
    "fu_money": {"buffer_multiplier": 1.25},
    "first_100k": {"dollar_threshold": 100_000},
    "first_million": {"dollar_threshold": 1_000_000},
}

MILESTONE_DEFINITIONS = tuple(
    MilestoneDefinition(
        id=id_,
        name=name,
        short_name=short_name,
        category=category,
        target_value=target,
        description=description,
        **_EXTRAS.get(id_, {}),
    )
    for id_, name, short_name, category, target, description in (
        _CATALOG + _INCOME_CATALOG
    )
)

MILESTONE_BY_ID: Dict[str, MilestoneDefinition] = {
    m.id: m for m in MILESTONE_DEFINITIONS
}

PERCENTAGE_MILESTONES = tuple(
    m for m in MILESTONE_DEFINITIONS if m.category == "percentage"
)


def calculate_runway_years(net_worth: float, monthly_spend: float) -> float:
    """Years of spending covered by net worth (infinite with no spending)."""
    if monthly_spend <= 0:
        return math.inf
    return net_worth / (monthly_spend * 12)


def calculate_dollar_multiplier(years: float, annual_return_rate: float) -> float:
    """What one dollar today grows to after ``years``."""
    if years <= 0:
        return 1.0
    factor = 1 + annual_return_rate / 100
    if factor <= 0:
        return 0.0
    return factor**years


def calculate_net_worth_for_coast_percent(
    target_percent: float,
    current_monthly_spend: float,
    years_to_retirement: float,
    annual_return_rate: float,
    inflation_rate: float,
    swr: float,
) -> float:
    """
    Net worth needed today to coast to a share of the retirement-year FI target.

    Args:
        target_percent: Share of the future FI target to reach (%)
        current_monthly_spend: Monthly spending today
        years_to_retirement: Years of growth before withdrawals start
        annual_return_rate: Annual return (%)
        inflation_rate: Annual inflation (%)
        swr: Safe withdrawal rate (%)

    Returns:
        Net worth in today's dollars, or 0 when no target can be formed
    """
    future_spend = current_monthly_spend * calculate_dollar_multiplier(
        years_to_retirement, inflation_rate
    )
    target = calculate_fi_target(future_spend, swr)
    growth = calculate_dollar_multiplier(years_to_retirement, annual_return_rate)
    if target <= 0 or growth <= 0:
        return 0.0
    return target * target_percent / 100 / growth


def calculate_coast_fi_percent(
    current_net_worth: float,
    current_monthly_spend: float,
    years_to_retirement: float,
    annual_return_rate: float,
    inflation_rate: float,
    swr: float,
) -> float:
    """Percent of the retirement-year FI target today's net worth grows into."""
    needed = calculate_net_worth_for_coast_percent(
        100,
        current_monthly_spend,
        years_to_retirement,
        annual_return_rate,
        inflation_rate,
        swr,
    )
    return current_net_worth / needed * 100 if needed > 0 else 0.0


def calculate_projected_retirement_income(
    current_net_worth: float,
    years_to_retirement: float,
    annual_return_rate: float,
    inflation_rate: float,
    swr: float,
) -> float:
    """
    Annual retirement income, in today's dollars, if saving stopped today.

    Args:
        current_net_worth: Net worth today
        years_to_retirement: Years of growth before withdrawals start
        annual_return_rate: Annual return (%)
        inflation_rate: Annual inflation (%)
        swr: Safe withdrawal rate (%)

    Returns:
        Real annual income
    """
    future_net_worth = current_net_worth * calculate_dollar_multiplier(
        years_to_retirement, annual_return_rate
    )
    nominal_income = future_net_worth * swr / 100
    return nominal_income / calculate_dollar_multiplier(
        years_to_retirement, inflation_rate
    )


def calculate_net_worth_for_retirement_income(
    target_annual_income: float,
    years_to_retirement: float,
    annual_return_rate: float,
    inflation_rate: float,
    swr: float,
) -> float:
    """Net worth needed today to coast to a real retirement income."""
    if swr <= 0:
        return 0.0
    nominal_income = target_annual_income * calculate_dollar_multiplier(
        years_to_retirement, inflation_rate
    )
    future_net_worth = nominal_income / (swr / 100)
    growth = calculate_dollar_multiplier(years_to_retirement, annual_return_rate)
    if growth <= 0:
        return 0.0
    return future_net_worth / growth


def years_to_retirement(
    birth_year: Optional[int],
    current_year: int,
    retirement_age: Optional[int] = None,
    default_years: Optional[int] = None,
) -> int:
    """Years until retirement age (configured default without a birth year)."""
    settings = get_global_settings()
    if retirement_age is None:
        retirement_age = settings.retirement_age
    if default_years is None:
        default_years = settings.default_years_to_retirement
    if birth_year is None:
        return default_years
    return max(0, birth_year + retirement_age - current_year)


def calculate_runway_and_coast_info(
    net_worth: float,
    monthly_spend: float,
    settings: ScenarioAssumptions,
    birth_year: Optional[int],
    current_year: int,
) -> RunwayCoastInfo:
    years = years_to_retirement(birth_year, current_year)
    return RunwayCoastInfo(
        runway_years=calculate_runway_years(net_worth, monthly_spend),
        years_to_retirement=years,
        dollar_multiplier=calculate_dollar_multiplier(years, settings.current_rate),
        coast_fi_percent=calculate_coast_fi_percent(
            net_worth,
            monthly_spend,
            years,
            settings.current_rate,
            settings.inflation_rate,
            settings.swr,
        ),
        projected_retirement_income=calculate_projected_retirement_income(
            net_worth,
            years,
            settings.current_rate,
            settings.inflation_rate,
            settings.swr,
        ),
    )


def contribution_basis(
    rows: Sequence[ProjectionRow], settings: ScenarioAssumptions
) -> float:
    """Annual contribution the break-even milestones compare returns against."""
    if settings.has_income:
        return rows[1].annual_savings if len(rows) > 1 else 0.0
    return settings.yearly_contribution


ThresholdFn = Callable[[ProjectionRow], Optional[float]]


def _threshold_function(
    definition: MilestoneDefinition,
    rows: Sequence[ProjectionRow],
    settings: ScenarioAssumptions,
    birth_year: Optional[int],
    retirement_age: int,
    default_years: int,
) -> Optional[ThresholdFn]:
    """
    Per-row dollar threshold for a milestone.

    Returns None for milestones detected from row flags rather than a
    threshold. A threshold function returning None or a value <= 0 means the
    milestone cannot be reached on that row.
    """
    swr = settings.swr
    r = settings.current_rate / 100
    category = definition.category

    if category == "percentage" or definition.id == "flamingo_fi":
        pct = definition.target_value / 100
        return lambda row: row.fi_target * pct

    if category == "lifestyle":
        multiplier = definition.target_value
        return lambda row: calculate_fi_target(row.monthly_spend * multiplier, swr)

    if category == "security":
        months = definition.target_value
        buffer = definition.buffer_multiplier or 1.0
        return lambda row: row.monthly_spend * months * buffer

    if definition.dollar_threshold is not None:
        amount = definition.dollar_threshold
        return lambda row: amount

    if definition.id in ("returns_match_contributions", "returns_double_contributions"):
        contribution = contribution_basis(rows, settings)
        if contribution <= 0 or r <= 0:
            return lambda row: None
        amount = contribution / r * definition.target_value
        return lambda row: amount

    def years_left(row: ProjectionRow) -> int:
        if birth_year is not None:
            return max(0, birth_year + retirement_age - row.year)
        return max(0, default_years - row.years_from_now)

    def coast_threshold(row: ProjectionRow, percent: float) -> float:
        return calculate_net_worth_for_coast_percent(
            percent,
            row.monthly_spend,
            years_left(row),
            settings.current_rate,
            settings.inflation_rate,
            swr,
        )

    if category == "coast":
        percent = definition.target_value
        return lambda row: coast_threshold(row, percent)

    if category == "retirement_income":
        income = definition.target_value
        return lambda row: calculate_net_worth_for_retirement_income(
            income,
            years_left(row),
            settings.current_rate,
            settings.inflation_rate,
            swr,
        )

    if definition.id == "crash_proof":
        # The surviving half must still coast to the full target
        survivor = 1 - definition.target_value / 100
        return lambda row: coast_threshold(row, 100) / survivor

    return None


def _flag_predicate(
    definition: MilestoneDefinition,
    birth_year: Optional[int],
    retirement_age: int,
    default_years: int,
    first_year: int,
) -> Callable[[ProjectionRow], bool]:
    if definition.id == "crossover":
        return lambda row: row.is_crossover

    def reaches_coast(row: ProjectionRow) -> bool:
        if row.coast_fi_year is None:
            return False
        if birth_year is not None:
            return row.coast_fi_year - birth_year <= retirement_age
        return row.coast_fi_year - first_year <= default_years

    return reaches_coast


def _result(
    definition: MilestoneDefinition,
    row: Optional[ProjectionRow],
    threshold: Optional[float],
    first_year: int,
    birth_year: Optional[int],
) -> MilestoneResult:
    if row is None:
        return MilestoneResult(definition=definition)
    return MilestoneResult(
        definition=definition,
        year=row.year,
        age=row.year - birth_year if birth_year else None,
        is_achieved=row.year <= first_year,
        net_worth_at_milestone=row.net_worth,
        threshold_at_milestone=threshold,
    )


def detect_milestones(
    rows: Sequence[ProjectionRow],
    settings: ScenarioAssumptions,
    birth_year: Optional[int] = None,
    retirement_age: Optional[int] = None,
) -> List[MilestoneResult]:
    """
    Find the first projection row reaching each catalog milestone.

    Args:
        rows: Yearly projection rows in year order (row 0 is now)
        settings: Scenario assumptions the rows were projected with
        birth_year: Year of birth for ages, if known
        retirement_age: Reference retirement age (configured default if None)

    Returns:
        One result per catalog entry, in catalog order
    """
    config = get_global_settings()
    if retirement_age is None:
        retirement_age = config.retirement_age
    default_years = config.default_years_to_retirement

    if not rows:
        return [MilestoneResult(definition=d) for d in MILESTONE_DEFINITIONS]
    first_year = rows[0].year

    results: List[MilestoneResult] = []
    for definition in MILESTONE_DEFINITIONS:
        threshold_fn = _threshold_function(
            definition, rows, settings, birth_year, retirement_age, default_years
        )
        hit: Optional[ProjectionRow] = None
        hit_threshold: Optional[float] = None

        if threshold_fn is None:
            predicate = _flag_predicate(
                definition, birth_year, retirement_age, default_years, first_year
            )
            hit = next((row for row in rows if predicate(row)), None)
            if hit is not None:
                hit_threshold = (
                    hit.contributed if definition.id == "crossover" else hit.net_worth
                )
        else:
            for row in rows:
                threshold = threshold_fn(row)
                if threshold is None or threshold <= 0:
                    continue
                if row.net_worth >= threshold:
                    hit, hit_threshold = row, threshold
                    break

        results.append(_result(definition, hit, hit_threshold, first_year, birth_year))

    logger.debug(
        f"Detected {sum(r.year is not None for r in results)} of "
        f"{len(results)} milestones for '{settings.name}'"
    )
    return results


def summarize_milestones(
    results: Sequence[MilestoneResult], rows: Sequence[ProjectionRow]
) -> MilestoneSummary:
    """
    Order results and locate the current and next percentage milestones.

    Achieved milestones come first, then the rest by projected year, with
    never-reached milestones last. Progress between the current and next
    percentage milestones is interpolated from today's FI progress.
    """
    never = math.inf
    ordered = sorted(
        results,
        key=lambda r: (not r.is_achieved, r.year if r.year is not None else never),
    )
    if not rows:
        return MilestoneSummary(milestones=ordered)

    percentage = [r for r in results if r.definition.category == "percentage"]
    achieved = [r for r in percentage if r.is_achieved]
    pending = [r for r in percentage if not r.is_achieved]
    current = max(achieved, key=lambda r: r.definition.target_value, default=None)
    upcoming = min(pending, key=lambda r: r.definition.target_value, default=None)

    now_row = rows[0]
    progress_to_next = 100.0
    amount_to_next = 0.0
    if upcoming is not None:
        lower = current.definition.target_value if current else 0.0
        upper = upcoming.definition.target_value
        span = upper - lower
        progress = (now_row.fi_progress - lower) / span * 100 if span > 0 else 0.0
        progress_to_next = min(max(progress, 0.0), 100.0)
        target = now_row.fi_target * upper / 100
        amount_to_next = max(0.0, target - now_row.net_worth)

    return MilestoneSummary(
        milestones=ordered,
        current_milestone=current,
        next_milestone=upcoming,
        progress_to_next=progress_to_next,
        amount_to_next=amount_to_next,
    )
