"""
Pydantic models for FI scenarios and their inputs.

This module defines the assumption set a projection is run against, the
optional income/tax block, net-worth samples and the user profile. All models
are immutable; rates are whole-number percentages (7 means 7%) and are only
converted to decimals inside the calculation modules.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Literal, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

FilingStatus = Literal[
    "single",
    "married_filing_jointly",
    "married_filing_separately",
    "head_of_household",
]

SCENARIO_COLORS = (
    "#10b981",
    "#f59e0b",
    "#8b5cf6",
    "#ef4444",
    "#06b6d4",
    "#ec4899",
    "#84cc16",
    "#f97316",
)


class PreTaxContributions(BaseModel):
    """Annual pre-tax contributions by account type."""

    model_config = ConfigDict(frozen=True)

    traditional_401k: float = Field(default=0.0, description="Traditional 401(k)")
    traditional_ira: float = Field(default=0.0, description="Traditional IRA")
    hsa: float = Field(default=0.0, description="Health Savings Account")
    other: float = Field(default=0.0, description="Other pre-tax deductions")

    @property
    def total(self) -> float:
        """Sum of all pre-tax contributions."""
        return self.traditional_401k + self.traditional_ira + self.hsa + self.other

    def scaled(self, factor: float) -> "PreTaxContributions":
        """Return the contributions multiplied by ``factor``."""
        return PreTaxContributions(
            traditional_401k=self.traditional_401k * factor,
            traditional_ira=self.traditional_ira * factor,
            hsa=self.hsa * factor,
            other=self.other * factor,
        )


class IncomeProfile(BaseModel):
    """Gross income and tax situation used for tax-aware savings."""

    model_config = ConfigDict(frozen=True)

    gross_income: float = Field(..., description="Annual gross income")
    filing_status: FilingStatus = Field(
        default="single", description="Tax filing status"
    )
    state_code: Optional[str] = Field(
        default=None, description="State of residence (2-letter code)"
    )
    pre_tax_contributions: PreTaxContributions = Field(
        default_factory=PreTaxContributions,
        description="Annual pre-tax contributions",
    )

    @field_validator("state_code")
    @classmethod
    def normalize_state_code(cls, v):
        if v is None:
            return None
        v = v.strip().upper()
        return v or None


class ScenarioAssumptions(BaseModel):
    """One named set of projection assumptions."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(default="My Plan", description="Scenario name")
    description: Optional[str] = Field(default=None, description="Free-text notes")
    color: str = Field(default=SCENARIO_COLORS[0], description="Display color")
    is_selected: bool = Field(default=True, description="Included in projections")
    order: int = Field(default=0, ge=0, description="Display order (0-based)")

    current_rate: float = Field(
        default=7.0, gt=-100, description="Annual return rate (%)"
    )
    swr: float = Field(default=4.0, description="Safe withdrawal rate (%)")
    inflation_rate: float = Field(
        default=3.0, gt=-100, description="Annual inflation (%)"
    )
    base_monthly_budget: float = Field(
        default=3000.0, description="Monthly spending floor in today's dollars"
    )
    spending_growth_rate: float = Field(
        default=2.0, description="Share of net worth added to the annual budget (%)"
    )
    yearly_contribution: float = Field(
        default=0.0, description="Annual contribution when no income data is given"
    )
    income_growth_rate: float = Field(
        default=0.0, description="Annual growth of income or contributions (%)"
    )
    monthly_spend: float = Field(
        default=0.0, description="Actual current monthly spending"
    )
    income: Optional[IncomeProfile] = Field(
        default=None, description="Income and tax block for tax-aware savings"
    )

    @property
    def has_income(self) -> bool:
        """Whether tax-aware income drives savings."""
        return self.income is not None and self.income.gross_income > 0

    @classmethod
    def from_flat_fields(cls, record: Mapping[str, Any]) -> "ScenarioAssumptions":
        """
        Build assumptions from a flat scenario record.

        Stored scenarios keep income fields next to the investment assumptions
        (``gross_income``, ``filing_status``, ``pre_tax_401k`` ...). An income
        block is attached only when gross income is positive.

        Args:
            record: Mapping of flat field names to values

        Returns:
            ScenarioAssumptions with defaults filled in
        """
        income_keys = {
            "gross_income",
            "filing_status",
            "state_code",
            "pre_tax_401k",
            "pre_tax_ira",
            "pre_tax_hsa",
            "pre_tax_other",
        }
        data = {
            k: v for k, v in record.items() if k not in income_keys and v is not None
        }
        gross = record.get("gross_income") or 0
        if gross > 0:
            data["income"] = IncomeProfile(
                gross_income=gross,
                filing_status=record.get("filing_status") or "single",
                state_code=record.get("state_code"),
                pre_tax_contributions=PreTaxContributions(
                    traditional_401k=record.get("pre_tax_401k") or 0,
                    traditional_ira=record.get("pre_tax_ira") or 0,
                    hsa=record.get("pre_tax_hsa") or 0,
                    other=record.get("pre_tax_other") or 0,
                ),
            )
        return cls(**data)


class NetWorthSample(BaseModel):
    """A recorded net-worth value at a point in time."""

    model_config = ConfigDict(frozen=True)

    amount: float = Field(..., description="Net worth amount")
    timestamp: datetime = Field(..., description="When the amount was recorded")

    @field_validator("timestamp")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class UserProfile(BaseModel):
    """Personal information used for age calculations."""

    model_config = ConfigDict(frozen=True)

    birth_date: Optional[date] = Field(default=None, description="Date of birth")

    @property
    def birth_year(self) -> Optional[int]:
        return self.birth_date.year if self.birth_date else None


DEFAULT_ASSUMPTIONS = ScenarioAssumptions()

SCENARIO_TEMPLATES: tuple = (
    {
        "name": "Conservative",
        "description": "Lower returns, higher safety margin",
        "current_rate": 5.0,
        "swr": 3.5,
        "inflation_rate": 3.0,
    },
    {
        "name": "Moderate",
        "description": "Balanced approach with typical assumptions",
        "current_rate": 7.0,
        "swr": 4.0,
        "inflation_rate": 3.0,
    },
    {
        "name": "Aggressive",
        "description": "Higher returns, higher withdrawal rate",
        "current_rate": 9.0,
        "swr": 4.5,
        "inflation_rate": 2.5,
    },
    {
        "name": "High Inflation",
        "description": "Accounts for elevated inflation environment",
        "current_rate": 7.0,
        "swr": 3.5,
        "inflation_rate": 5.0,
    },
)


def merge_with_defaults(
    partial: Optional[Mapping[str, Any]],
) -> ScenarioAssumptions:
    """Fill missing (or None) fields of a partial record from the defaults."""
    if not partial:
        return DEFAULT_ASSUMPTIONS
    overrides = {k: v for k, v in partial.items() if v is not None}
    return ScenarioAssumptions(**{**DEFAULT_ASSUMPTIONS.model_dump(), **overrides})


def scenario_from_template(name: str, order: int = 0) -> ScenarioAssumptions:
    """
    Create scenario assumptions from a named template.

    Args:
        name: Template name (e.g. "Conservative")
        order: Display order; also picks the scenario color

    Returns:
        ScenarioAssumptions seeded from the template

    Raises:
        ValueError: If no template has that name
    """
    for template in SCENARIO_TEMPLATES:
        if template["name"] == name:
            return ScenarioAssumptions(
                **template,
                order=order,
                color=SCENARIO_COLORS[order % len(SCENARIO_COLORS)],
            )
    names = [t["name"] for t in SCENARIO_TEMPLATES]
    raise ValueError(f"Unknown scenario template '{name}'. Available: {names}")


def latest_sample(samples: Sequence[NetWorthSample]) -> Optional[NetWorthSample]:
    """Return the most recent sample by timestamp, or None when empty."""
    if not samples:
        return None
    return max(samples, key=lambda s: s.timestamp)


def oldest_sample(samples: Sequence[NetWorthSample]) -> Optional[NetWorthSample]:
    """Return the earliest sample by timestamp, or None when empty."""
    if not samples:
        return None
    return min(samples, key=lambda s: s.timestamp)


def selected_scenarios(
    scenarios: List[ScenarioAssumptions],
) -> List[ScenarioAssumptions]:
    """Selected scenarios sorted by display order."""
    return sorted((s for s in scenarios if s.is_selected), key=lambda s: s.order)


def scenario_summary(scenario: ScenarioAssumptions) -> Dict[str, Any]:
    """Compact description of a scenario for log lines."""
    return {
        "name": scenario.name,
        "current_rate": scenario.current_rate,
        "swr": scenario.swr,
        "inflation_rate": scenario.inflation_rate,
        "has_income": scenario.has_income,
    }
