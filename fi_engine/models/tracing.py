"""
Calculation provenance.

A :class:`TrackedValue` pairs a number with a record of how it was produced:
inputs (and where they came from), the formula and the intermediate steps.
Tracing wraps the engine's pure functions; the formulas themselves never
carry trace data.
"""

from collections import OrderedDict
from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, Field

from fi_engine.models.projection import (
    calculate_fi_progress,
    calculate_fi_target,
    calculate_future_value,
    calculate_swr_amounts,
)
from fi_engine.models.spending import calculate_unlocked_spending

ValueSource = Literal["setting", "calculated", "input", "constant", "api", "derived"]

CalculationCategory = Literal[
    "net_worth",
    "growth_rate",
    "swr",
    "fi_target",
    "projection",
    "spending",
    "tax",
    "level",
    "milestone",
]

CombineOperation = Literal["sum", "multiply", "subtract", "divide"]

InputValue = Union[bool, float, str]

_OPERATION_SYMBOLS = {
    "sum": " + ",
    "multiply": " × ",
    "subtract": " - ",
    "divide": " ÷ ",
}


class CalculationInput(BaseModel):
    """One named input to a calculation."""

    name: str
    value: InputValue
    unit: Optional[str] = None
    description: Optional[str] = None
    source: Optional[ValueSource] = None
    setting_key: Optional[str] = Field(
        default=None, description="Scenario setting the value maps to"
    )
    trace: Optional["TrackedCalculation"] = Field(
        default=None, description="How a calculated input was produced"
    )


class CalculationStep(BaseModel):
    description: str
    formula: Optional[str] = None
    inputs: List[CalculationInput] = Field(default_factory=list)
    intermediate_result: Optional[float] = None
    unit: Optional[str] = None


class TrackedCalculation(BaseModel):
    """Full provenance record of one calculation."""

    id: str
    name: str
    description: str = ""
    category: CalculationCategory
    formula: str = ""
    inputs: List[CalculationInput] = Field(default_factory=list)
    steps: List[CalculationStep] = Field(default_factory=list)
    result: float
    unit: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


CalculationInput.model_rebuild()


class TrackedValue(BaseModel):
    """A number with an optional provenance record."""

    value: float
    trace: Optional[TrackedCalculation] = None

    def __float__(self) -> float:
        return float(self.value)


class CalculationBuilder:
    """
    Fluent builder for :class:`TrackedValue` results.

    Example:
        >>> tracked = (
        ...     CalculationBuilder("fi_target", "FI Target", "fi_target")
        ...     .set_formula("FI Target = (Monthly Spend × 12) ÷ SWR%")
        ...     .set_unit("$")
        ...     .add_setting("Safe Withdrawal Rate", 4.0, "swr", unit="%")
        ...     .build(1_200_000)
        ... )
    """

    def __init__(self, calculation_id: str, name: str, category: CalculationCategory):
        self.calculation_id = calculation_id
        self.name = name
        self.category = category
        self.description = ""
        self.formula = ""
        self.unit = ""
        self.inputs: List[CalculationInput] = []
        self.steps: List[CalculationStep] = []

    def set_description(self, description: str) -> "CalculationBuilder":
        self.description = description
        return self

    def set_formula(self, formula: str) -> "CalculationBuilder":
        self.formula = formula
        return self

    def set_unit(self, unit: str) -> "CalculationBuilder":
        self.unit = unit
        return self

    def add_input(
        self,
        name: str,
        value: InputValue,
        unit: Optional[str] = None,
        description: Optional[str] = None,
    ) -> "CalculationBuilder":
        self.inputs.append(
            CalculationInput(name=name, value=value, unit=unit, description=description)
        )
        return self

    def add_input_with_source(
        self,
        name: str,
        value: InputValue,
        source: ValueSource,
        unit: Optional[str] = None,
        description: Optional[str] = None,
        setting_key: Optional[str] = None,
        trace: Optional[TrackedCalculation] = None,
    ) -> "CalculationBuilder":
        self.inputs.append(
            CalculationInput(
                name=name,
                value=value,
                source=source,
                unit=unit,
                description=description,
                setting_key=setting_key,
                trace=trace,
            )
        )
        return self

    def add_tracked_input(
        self, name: str, tracked: TrackedValue, description: Optional[str] = None
    ) -> "CalculationBuilder":
        """Add a calculated input, carrying its own trace along."""
        trace = tracked.trace
        self.inputs.append(
            CalculationInput(
                name=name,
                value=tracked.value,
                unit=trace.unit if trace else None,
                description=description or (trace.description if trace else None),
                source="calculated",
                trace=trace,
            )
        )
        return self

    def add_setting(
        self,
        name: str,
        value: InputValue,
        setting_key: str,
        unit: Optional[str] = None,
        description: Optional[str] = None,
    ) -> "CalculationBuilder":
        self.inputs.append(
            CalculationInput(
                name=name,
                value=value,
                source="setting",
                setting_key=setting_key,
                unit=unit,
                description=description or f"From scenario setting: {setting_key}",
            )
        )
        return self

    def add_step(
        self,
        description: str,
        formula: Optional[str] = None,
        inputs: Optional[Sequence[CalculationInput]] = None,
        intermediate_result: Optional[float] = None,
        unit: Optional[str] = None,
    ) -> "CalculationBuilder":
        self.steps.append(
            CalculationStep(
                description=description,
                formula=formula,
                inputs=list(inputs or []),
                intermediate_result=intermediate_result,
                unit=unit,
            )
        )
        return self

    def build(self, result: float) -> TrackedValue:
        return TrackedValue(
            value=result,
            trace=TrackedCalculation(
                id=self.calculation_id,
                name=self.name,
                description=self.description,
                category=self.category,
                formula=self.formula,
                inputs=list(self.inputs),
                steps=list(self.steps),
                result=result,
                unit=self.unit,
            ),
        )


def create_simple_tracked_value(
    value: float,
    name: str,
    description: str,
    category: CalculationCategory,
    unit: str = "$",
) -> TrackedValue:
    """Wrap a direct value that needs no breakdown."""
    return (
        CalculationBuilder(f"simple_{name}", name, category)
        .set_description(description)
        .set_formula(f"{name} = value")
        .set_unit(unit)
        .add_input(name, value, unit)
        .build(value)
    )


def combine_tracked_values(
    values: Sequence[TrackedValue],
    operation: CombineOperation,
    name: str,
    category: CalculationCategory,
    description: Optional[str] = None,
) -> TrackedValue:
    """
    Fold tracked values left to right with one arithmetic operation.

    Division skips zero divisors. An empty sequence yields 0 for sums and
    differences and 1 for products.
    """
    numbers = [v.value for v in values]
    if operation == "sum":
        result = sum(numbers)
    elif operation == "multiply":
        result = 1.0
        for n in numbers:
            result *= n
    elif operation == "subtract":
        result = numbers[0] - sum(numbers[1:]) if numbers else 0.0
    elif operation == "divide":
        result = numbers[0] if numbers else 0.0
        for n in numbers[1:]:
            if n != 0:
                result /= n
    else:
        raise ValueError(f"Unknown operation '{operation}'")

    names = [v.trace.name if v.trace else "value" for v in values]
    first_unit = values[0].trace.unit if values and values[0].trace else "$"
    builder = (
        CalculationBuilder(f"combined_{name}", name, category)
        .set_description(description or f"Combined calculation: {operation}")
        .set_formula(_OPERATION_SYMBOLS[operation].join(names))
        .set_unit(first_unit or "$")
    )
    for label, tracked in zip(names, values):
        builder.add_tracked_input(label, tracked)
    return builder.build(result)


def format_number(value: float, unit: Optional[str] = None) -> str:
    if unit == "$":
        sign = "-" if value < 0 else ""
        return f"{sign}${abs(value):,.2f}"
    if unit == "%":
        return f"{value:.2f}%"
    if unit == "years":
        return f"{value:.1f} years"
    return f"{value:,.2f}".rstrip("0").rstrip(".")


def format_trace(trace: TrackedCalculation) -> str:
    """Render a trace as plain text for logs and debugging."""
    lines = [trace.name, "-" * 19, f"Formula: {trace.formula}", "", "Inputs:"]
    for item in trace.inputs:
        if isinstance(item.value, bool) or isinstance(item.value, str):
            value_str = str(item.value)
        else:
            value_str = format_number(item.value, item.unit)
        suffix = f" ({item.description})" if item.description else ""
        lines.append(f"  {item.name}: {value_str}{suffix}")

    if trace.steps:
        lines.extend(["", "Steps:"])
        for i, step in enumerate(trace.steps, start=1):
            lines.append(f"  {i}. {step.description}")
            if step.formula:
                lines.append(f"     {step.formula}")
            if step.intermediate_result is not None:
                lines.append(
                    f"     = {format_number(step.intermediate_result, trace.unit)}"
                )

    lines.extend(["", f"Result: {format_number(trace.result, trace.unit)}"])
    return "\n".join(lines)


class CalculationRegistry:
    """Bounded store of recent traces; the oldest entry is evicted first."""

    def __init__(self, max_size: int = 1000):
        self.max_size = max_size
        self._calculations: "OrderedDict[str, TrackedCalculation]" = OrderedDict()

    def register(self, trace: TrackedCalculation) -> None:
        if trace.id in self._calculations:
            del self._calculations[trace.id]
        elif len(self._calculations) >= self.max_size:
            self._calculations.popitem(last=False)
        self._calculations[trace.id] = trace

    def get(self, calculation_id: str) -> Optional[TrackedCalculation]:
        return self._calculations.get(calculation_id)

    def get_by_category(
        self, category: CalculationCategory
    ) -> List[TrackedCalculation]:
        return [c for c in self._calculations.values() if c.category == category]

    def get_recent(self, count: int = 10) -> List[TrackedCalculation]:
        ordered = sorted(
            self._calculations.values(), key=lambda c: c.timestamp, reverse=True
        )
        return ordered[:count]

    def clear(self) -> None:
        self._calculations.clear()

    def __len__(self) -> int:
        return len(self._calculations)


def tracked_fi_target(
    monthly_spend: float,
    swr: float,
    spend_trace: Optional[TrackedCalculation] = None,
    registry: Optional[CalculationRegistry] = None,
) -> TrackedValue:
    """
    FI target with provenance.

    Args:
        monthly_spend: Monthly spending
        swr: Safe withdrawal rate (%)
        spend_trace: How the monthly spend was derived, if tracked
        registry: Registry to record the trace in

    Returns:
        TrackedValue whose value equals ``calculate_fi_target``
    """
    builder = (
        CalculationBuilder("fi_target", "FI Target", "fi_target")
        .set_description(
            "The net worth at which investments sustain spending at the safe "
            "withdrawal rate."
        )
        .set_formula("FI Target = (Monthly Spend × 12) ÷ SWR%")
        .set_unit("$")
    )
    if spend_trace is not None:
        builder.add_tracked_input(
            "Monthly Spend", TrackedValue(value=monthly_spend, trace=spend_trace)
        )
    else:
        builder.add_input_with_source(
            "Monthly Spend", monthly_spend, "calculated", unit="$"
        )
    builder.add_setting("Safe Withdrawal Rate", swr, "swr", unit="%")

    fi_target = calculate_fi_target(monthly_spend, swr)
    if fi_target > 0:
        annual = monthly_spend * 12
        builder.add_step(
            "Calculate annual spending", "Monthly Spend × 12", None, annual, "$"
        )
        builder.add_step("Convert SWR to decimal", "SWR ÷ 100", None, swr / 100)
        builder.add_step(
            "Calculate FI Target", "Annual Spend ÷ SWR decimal", None, fi_target, "$"
        )

    tracked = builder.build(fi_target)
    if registry is not None:
        registry.register(tracked.trace)
    return tracked


def tracked_swr_amounts(net_worth: float, swr: float) -> Dict[str, TrackedValue]:
    """Annual, monthly, weekly and daily SWR income with provenance."""
    amounts = calculate_swr_amounts(net_worth, swr)
    annual = (
        CalculationBuilder("swr_annual", "Annual SWR", "swr")
        .set_description("Amount that can be withdrawn per year")
        .set_formula("Annual SWR = Net Worth × (SWR ÷ 100)")
        .set_unit("$")
        .add_input("Net Worth", net_worth, "$")
        .add_setting("Safe Withdrawal Rate", swr, "swr", unit="%")
        .add_step("Convert SWR to decimal", "SWR ÷ 100", None, swr / 100)
        .add_step("Calculate annual withdrawal", "Net Worth × SWR decimal")
        .build(amounts.annual)
    )
    tracked = {"annual": annual}
    for period, divisor, label in (
        ("monthly", 12, "months"),
        ("weekly", 52, "weeks"),
        ("daily", 365, "days"),
    ):
        tracked[period] = (
            CalculationBuilder(f"swr_{period}", f"{period.title()} SWR", "swr")
            .set_formula(f"{period.title()} SWR = Annual SWR ÷ {divisor}")
            .set_unit("$")
            .add_tracked_input("Annual SWR", annual)
            .add_step(f"Divide by {divisor} {label}", f"Annual SWR ÷ {divisor}")
            .build(getattr(amounts, period))
        )
    return tracked


def tracked_fi_progress(net_worth: float, fi_target: float) -> TrackedValue:
    progress = calculate_fi_progress(net_worth, fi_target)
    return (
        CalculationBuilder("fi_progress", "FI Progress", "fi_target")
        .set_description("Progress towards financial independence")
        .set_formula("FI Progress = (Net Worth ÷ FI Target) × 100")
        .set_unit("%")
        .add_input("Net Worth", net_worth, "$")
        .add_input("FI Target", fi_target, "$")
        .add_step(
            "Convert to percentage", "Net Worth ÷ FI Target × 100", None, progress
        )
        .build(progress)
    )


def tracked_level_spending(
    net_worth: float,
    base_monthly_budget: float,
    spending_growth_rate: float,
    inflation_rate: float,
    years_from_now: float = 0,
) -> TrackedValue:
    """Level-based monthly budget with its two components as steps."""
    inflated_base = calculate_unlocked_spending(
        0.0, base_monthly_budget, 0.0, years_from_now, inflation_rate
    )
    net_worth_portion = net_worth * (spending_growth_rate / 100) / 12
    total = calculate_unlocked_spending(
        net_worth,
        base_monthly_budget,
        spending_growth_rate,
        years_from_now,
        inflation_rate,
    )
    return (
        CalculationBuilder("level_spending", "Level-Based Spending", "spending")
        .set_description("Monthly spending budget unlocked by net worth")
        .set_formula(
            "Spending = Inflation-Adjusted Base + (Net Worth × Growth Rate ÷ 12)"
        )
        .set_unit("$")
        .add_setting("Base Monthly Budget", base_monthly_budget, "base_monthly_budget")
        .add_input("Net Worth", net_worth, "$")
        .add_setting(
            "Spending Growth Rate", spending_growth_rate, "spending_growth_rate"
        )
        .add_setting("Inflation Rate", inflation_rate, "inflation_rate", unit="%")
        .add_input("Years From Now", years_from_now, "years")
        .add_step(
            "Adjust base for inflation",
            f"Base × (1 + {inflation_rate}%)^{years_from_now}",
            None,
            inflated_base,
        )
        .add_step(
            "Calculate net worth portion",
            f"Net Worth × {spending_growth_rate}% ÷ 12",
            None,
            net_worth_portion,
        )
        .add_step("Sum components", "Inflated Base + Net Worth Portion", None, total)
        .build(total)
    )


def tracked_compound_growth(
    principal: float, yearly_rate: float, years: float, yearly_contribution: float = 0
) -> Dict[str, TrackedValue]:
    """Future value, interest and contributions with provenance."""
    fv = calculate_future_value(principal, yearly_rate, years, yearly_contribution)
    total = (
        CalculationBuilder("compound_total", "Future Value", "projection")
        .set_description("Projected net worth after compound growth")
        .set_formula(
            "FV = Principal × (1 + r)^n + Contribution × ((1 + r)^n - 1) / r"
        )
        .set_unit("$")
        .add_input("Principal", principal, "$")
        .add_input("Annual Return Rate", yearly_rate, "%")
        .add_input("Years", years, "years")
        .add_input("Yearly Contribution", yearly_contribution, "$")
        .add_step("Compound principal", None, None, fv.compounded_principal)
        .add_step("Grow contributions", "FV of annuity", None, fv.contribution_growth)
        .add_step("Sum components", None, None, fv.total)
        .build(fv.total)
    )
    interest = (
        CalculationBuilder("compound_interest", "Total Interest", "projection")
        .set_formula("Interest = Total - Principal - Total Contributed")
        .set_unit("$")
        .add_tracked_input("Total", total)
        .add_input("Principal", principal, "$")
        .add_input("Total Contributed", fv.total_contributed, "$")
        .build(fv.total_interest)
    )
    contributed = (
        CalculationBuilder("contributions", "Total Contributed", "projection")
        .set_formula("Contributed = Years × Yearly Contribution")
        .set_unit("$")
        .add_input("Years", years, "years")
        .add_input("Yearly Contribution", yearly_contribution, "$")
        .build(fv.total_contributed)
    )
    return {"total": total, "interest": interest, "contributed": contributed}
