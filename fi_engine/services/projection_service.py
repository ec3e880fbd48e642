"""
Projection service for running the engine across a user's scenarios.

The service reads net-worth history, scenarios and the user profile through
the reader protocols, then projects every selected scenario independently.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from fi_engine.config import EngineSettings, get_global_settings
from fi_engine.models.milestones import (
    MilestoneSummary,
    RunwayCoastInfo,
    calculate_runway_and_coast_info,
    detect_milestones,
    summarize_milestones,
)
from fi_engine.models.projection import (
    GrowthRates,
    InflatedProjectionRow,
    MonthlyProjectionRow,
    ProjectionOptions,
    ProjectionRow,
    RealTimeNetWorth,
    YearlySummaryRow,
    aggregate_monthly_to_yearly,
    calculate_all_financials,
    convert_to_inflated_projections,
    project_monthly,
)
from fi_engine.models.protocols import (
    Clock,
    NetWorthHistoryReader,
    ProfileReader,
    ScenarioReader,
    SystemClock,
)
from fi_engine.models.scenario import (
    NetWorthSample,
    ScenarioAssumptions,
    scenario_summary,
    selected_scenarios,
)
from fi_engine.models.spending import LevelInfo
from fi_engine.models.tax_engine import (
    CashFlowBreakdown,
    calculate_cash_flow_breakdown,
    calculate_taxes_for_income,
)

logger = logging.getLogger(__name__)


class ScenarioProjection(BaseModel):
    """Everything computed for one scenario."""

    model_config = ConfigDict(frozen=True)

    scenario: ScenarioAssumptions
    projections: List[ProjectionRow]
    projections_inflated: List[InflatedProjectionRow]
    level_info: LevelInfo
    growth_rates: GrowthRates
    current_net_worth: RealTimeNetWorth
    fi_year: Optional[int] = None
    fi_age: Optional[int] = None
    crossover_year: Optional[int] = None
    current_fi_progress: float = 0.0
    current_monthly_swr: float = 0.0
    milestones: MilestoneSummary
    runway: RunwayCoastInfo
    monthly_projections: List[MonthlyProjectionRow]
    yearly_summaries: List[YearlySummaryRow]
    cash_flow: Optional[CashFlowBreakdown] = None
    has_income: bool = False
    inflation_rate: float


class ProjectionService:
    """Service for projecting every selected scenario of a user."""

    def __init__(
        self,
        history_reader: NetWorthHistoryReader,
        scenario_reader: ScenarioReader,
        profile_reader: ProfileReader,
        clock: Optional[Clock] = None,
        settings: Optional[EngineSettings] = None,
    ) -> None:
        """Initialize the projection service.

        Args:
            history_reader: Source of net-worth samples
            scenario_reader: Source of scenario assumptions
            profile_reader: Source of the user profile
            clock: Source of "now" (system clock if omitted)
            settings: Engine settings (global settings if omitted)
        """
        self.history_reader = history_reader
        self.scenario_reader = scenario_reader
        self.profile_reader = profile_reader
        self.clock = clock or SystemClock()
        self.settings = settings or get_global_settings()
        self.logger = logging.getLogger(__name__)

    def _birth_year(self) -> Optional[int]:
        profile = self.profile_reader.get_profile()
        return profile.birth_year if profile else None

    def project_scenario(
        self,
        scenario: ScenarioAssumptions,
        history: Optional[List[NetWorthSample]] = None,
        birth_year: Optional[int] = None,
    ) -> ScenarioProjection:
        """Run the full engine for one scenario.

        Args:
            scenario: Scenario assumptions
            history: Net-worth samples (read from the history reader if None)
            birth_year: Year of birth (read from the profile reader if None)

        Returns:
            ScenarioProjection

        Raises:
            Exception: If any calculation fails
        """
        if history is None:
            history = self.history_reader.list_samples()
        if birth_year is None:
            birth_year = self._birth_year()

        try:
            self.logger.debug(f"Projecting scenario {scenario_summary(scenario)}")
            now = self.clock.now()
            options = ProjectionOptions(
                birth_year=birth_year,
                clock=self.clock,
                projection_years=self.settings.projection_years,
                coast_search_horizon=self.settings.coast_search_horizon,
            )
            financials = calculate_all_financials(scenario, history, options)
            rows = financials.projections
            current_total = financials.current_net_worth.total

            results = detect_milestones(
                rows, scenario, birth_year, self.settings.retirement_age
            )
            monthly = project_monthly(
                current_total,
                scenario,
                self.settings.monthly_projection_months,
                clock=self.clock,
            )
            current_spend = rows[0].monthly_spend if rows else 0.0

            cash_flow = None
            if scenario.has_income:
                cash_flow = calculate_cash_flow_breakdown(
                    calculate_taxes_for_income(scenario.income), current_spend * 12
                )

            projection = ScenarioProjection(
                scenario=scenario,
                projections=rows,
                projections_inflated=convert_to_inflated_projections(
                    rows, scenario.inflation_rate
                ),
                level_info=financials.level_info,
                growth_rates=financials.growth_rates,
                current_net_worth=financials.current_net_worth,
                fi_year=financials.fi_year,
                fi_age=financials.fi_age,
                crossover_year=financials.crossover_year,
                current_fi_progress=financials.current_fi_progress,
                current_monthly_swr=financials.current_monthly_swr,
                milestones=summarize_milestones(results, rows),
                runway=calculate_runway_and_coast_info(
                    current_total, current_spend, scenario, birth_year, now.year
                ),
                monthly_projections=monthly,
                yearly_summaries=aggregate_monthly_to_yearly(monthly),
                cash_flow=cash_flow,
                has_income=scenario.has_income,
                inflation_rate=scenario.inflation_rate,
            )
            self.logger.info(
                f"Projected scenario '{scenario.name}': FI year {projection.fi_year}, "
                f"crossover year {projection.crossover_year}"
            )
            return projection

        except Exception as e:
            self.logger.error(f"Projection of scenario '{scenario.name}' failed: {e}")
            raise

    def project_all(self) -> List[ScenarioProjection]:
        """Project every selected scenario in display order.

        Returns:
            One ScenarioProjection per selected scenario; empty when there is
            no history or no selected scenario
        """
        history = self.history_reader.list_samples()
        scenarios = selected_scenarios(self.scenario_reader.list_scenarios())
        if not history or not scenarios:
            self.logger.info(
                f"Nothing to project: {len(history)} samples, "
                f"{len(scenarios)} selected scenarios"
            )
            return []

        birth_year = self._birth_year()
        workers = min(self.settings.max_workers, len(scenarios))
        self.logger.info(
            f"Projecting {len(scenarios)} scenarios with {workers} worker(s)"
        )

        if workers <= 1:
            return [
                self.project_scenario(s, history, birth_year) for s in scenarios
            ]
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(
                executor.map(
                    lambda s: self.project_scenario(s, history, birth_year), scenarios
                )
            )
