"""Data models and calculators for FI projections."""

from .scenario import (
    DEFAULT_ASSUMPTIONS,
    SCENARIO_TEMPLATES,
    IncomeProfile,
    NetWorthSample,
    PreTaxContributions,
    ScenarioAssumptions,
    UserProfile,
    merge_with_defaults,
    scenario_from_template,
)
from .protocols import (
    Clock,
    FixedClock,
    NetWorthHistoryReader,
    ProfileReader,
    ScenarioReader,
    SystemClock,
)
from .inflation import InflatedValue, to_nominal_value, to_real_value
from .tax_engine import TaxResult, calculate_taxes
from .spending import LevelInfo, calculate_level_info, calculate_unlocked_spending
from .projection import (
    ProjectionOptions,
    ProjectionRow,
    calculate_all_financials,
    project_monthly,
    project_yearly,
)
from .milestones import (
    MILESTONE_DEFINITIONS,
    MilestoneResult,
    detect_milestones,
    summarize_milestones,
)
from .tracing import CalculationBuilder, TrackedValue

__all__ = [
    "DEFAULT_ASSUMPTIONS",
    "SCENARIO_TEMPLATES",
    "IncomeProfile",
    "NetWorthSample",
    "PreTaxContributions",
    "ScenarioAssumptions",
    "UserProfile",
    "merge_with_defaults",
    "scenario_from_template",
    "Clock",
    "FixedClock",
    "NetWorthHistoryReader",
    "ProfileReader",
    "ScenarioReader",
    "SystemClock",
    "InflatedValue",
    "to_nominal_value",
    "to_real_value",
    "TaxResult",
    "calculate_taxes",
    "LevelInfo",
    "calculate_level_info",
    "calculate_unlocked_spending",
    "ProjectionOptions",
    "ProjectionRow",
    "calculate_all_financials",
    "project_monthly",
    "project_yearly",
    "MILESTONE_DEFINITIONS",
    "MilestoneResult",
    "detect_milestones",
    "summarize_milestones",
    "CalculationBuilder",
    "TrackedValue",
]
