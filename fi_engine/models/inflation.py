"""
Nominal and real value model.

Nominal values are the dollar amounts that will actually appear in a future
year; real values express the same amount in today's purchasing power. All
rates are whole-number percentages.
"""

import math
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

DisplayMode = Literal["nominal", "real"]


def inflation_multiplier(years_from_now: float, inflation_rate: float) -> float:
    """
    Cumulative price growth after ``years_from_now`` years.

    Years at or before the base year need no adjustment and return 1. A rate
    at or below -100% wipes out prices entirely and returns 0.
    """
    if years_from_now <= 0:
        return 1.0
    factor = 1 + inflation_rate / 100
    if factor <= 0:
        return 0.0
    return factor**years_from_now


def nominal_to_real(
    nominal: float, years_from_now: float, inflation_rate: float
) -> float:
    """Convert a future-dollar amount into today's dollars."""
    if years_from_now <= 0:
        return nominal
    multiplier = inflation_multiplier(years_from_now, inflation_rate)
    # Zero price level has no real equivalent
    if multiplier == 0:
        return 0.0
    return nominal / multiplier


def real_to_nominal(
    real: float, years_from_now: float, inflation_rate: float
) -> float:
    """Convert a today's-dollar amount into future dollars."""
    if years_from_now <= 0:
        return real
    return real * inflation_multiplier(years_from_now, inflation_rate)


# Public names used by callers outside the engine
to_real_value = nominal_to_real
to_nominal_value = real_to_nominal


class InflatedValue(BaseModel):
    """A monetary amount carried in both nominal and real terms."""

    model_config = ConfigDict(frozen=True)

    nominal: float = Field(..., description="Amount in future dollars")
    real: float = Field(..., description="Amount in today's dollars")

    @classmethod
    def from_nominal(
        cls, nominal: float, years_from_now: float, inflation_rate: float
    ) -> "InflatedValue":
        return cls(
            nominal=nominal,
            real=nominal_to_real(nominal, years_from_now, inflation_rate),
        )

    @classmethod
    def from_real(
        cls, real: float, years_from_now: float, inflation_rate: float
    ) -> "InflatedValue":
        return cls(
            nominal=real_to_nominal(real, years_from_now, inflation_rate),
            real=real,
        )

    @classmethod
    def current(cls, value: float) -> "InflatedValue":
        """Value for the present year, where nominal and real coincide."""
        return cls(nominal=value, real=value)

    @classmethod
    def zero(cls) -> "InflatedValue":
        return cls(nominal=0.0, real=0.0)

    def display(self, mode: DisplayMode) -> float:
        """Pick the view for the given display mode."""
        return self.nominal if mode == "nominal" else self.real

    def is_valid(self) -> bool:
        return math.isfinite(self.nominal) and math.isfinite(self.real)

    def __add__(self, other: "InflatedValue") -> "InflatedValue":
        return InflatedValue(
            nominal=self.nominal + other.nominal, real=self.real + other.real
        )

    def __sub__(self, other: "InflatedValue") -> "InflatedValue":
        return InflatedValue(
            nominal=self.nominal - other.nominal, real=self.real - other.real
        )

    def __mul__(self, scalar: float) -> "InflatedValue":
        return InflatedValue(nominal=self.nominal * scalar, real=self.real * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> "InflatedValue":
        # Division by zero yields zero rather than inf/nan
        if scalar == 0:
            return InflatedValue.zero()
        return InflatedValue(nominal=self.nominal / scalar, real=self.real / scalar)


class InflationAdjuster(BaseModel):
    """Handles inflation adjustments between calendar years."""

    inflation_rate: float = Field(..., description="Annual inflation rate (%)")
    base_year: int = Field(
        ..., ge=1900, le=2200, description="Year whose dollars count as 'today'"
    )

    def adjust_for_inflation(
        self, amount: float, from_year: int, to_year: int
    ) -> float:
        """
        Adjust an amount for inflation between two years.

        Args:
            amount: The amount to adjust
            from_year: The year the amount is from
            to_year: The year to adjust to

        Returns:
            The inflation-adjusted amount
        """
        years_diff = to_year - from_year
        if years_diff >= 0:
            return real_to_nominal(amount, years_diff, self.inflation_rate)
        return nominal_to_real(amount, -years_diff, self.inflation_rate)

    def to_real_value(self, nominal_amount: float, year: int) -> float:
        """Convert nominal value to real value (base year dollars)."""
        return nominal_to_real(
            nominal_amount, year - self.base_year, self.inflation_rate
        )

    def to_nominal_value(self, real_amount: float, year: int) -> float:
        """Convert real value to nominal value (year dollars)."""
        return real_to_nominal(real_amount, year - self.base_year, self.inflation_rate)

    def inflated(self, nominal_amount: float, year: int) -> InflatedValue:
        return InflatedValue.from_nominal(
            nominal_amount, year - self.base_year, self.inflation_rate
        )


def display_mode_suffix(mode: DisplayMode, short: bool = False) -> str:
    """Label appended to values shown in the given mode."""
    if mode == "real":
        return "(today's $)" if short else "(in today's dollars)"
    return "(future $)" if short else "(in future dollars)"


def display_mode_description(mode: DisplayMode) -> str:
    if mode == "real":
        return (
            "Values shown in today's purchasing power. This helps you understand "
            "what future amounts are actually worth."
        )
    return (
        "Values shown as actual future amounts. This is what you'll actually "
        "see in your accounts."
    )
