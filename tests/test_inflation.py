"""
Tests for the nominal/real value model.
"""

import pytest

from fi_engine.models.inflation import (
    InflatedValue,
    InflationAdjuster,
    display_mode_description,
    display_mode_suffix,
    inflation_multiplier,
    nominal_to_real,
    real_to_nominal,
    to_nominal_value,
    to_real_value,
)


class TestConversions:
    """Test nominal/real conversions."""

    def test_multiplier(self):
        """Test cumulative inflation after a number of years."""
        assert inflation_multiplier(10, 3) == pytest.approx(1.03**10)
        assert inflation_multiplier(0, 3) == 1.0
        assert inflation_multiplier(-2, 3) == 1.0

    def test_nominal_to_real(self):
        """Test deflating a future amount."""
        assert nominal_to_real(1.03**10 * 1000, 10, 3) == pytest.approx(1000)

    def test_real_to_nominal(self):
        """Test inflating a today's-dollar amount."""
        assert real_to_nominal(1000, 2, 5) == pytest.approx(1102.5)

    def test_no_adjustment_at_or_before_now(self):
        """Test that zero and negative years return the input unchanged."""
        assert to_real_value(1000, 0, 3) == 1000
        assert to_real_value(1000, -5, 3) == 1000
        assert to_nominal_value(1000, 0, 3) == 1000

    @pytest.mark.parametrize("rate", [-100, -150])
    @pytest.mark.parametrize("years", [1, 0.5, 10])
    def test_collapsed_price_level(self, rate, years):
        """Test that rates at or below -100% give zero instead of raising."""
        assert inflation_multiplier(years, rate) == 0.0
        assert to_real_value(100, years, rate) == 0.0
        assert to_nominal_value(100, years, rate) == 0.0

    def test_deflation(self):
        assert to_real_value(98, 1, -2) == pytest.approx(100)

    @pytest.mark.parametrize("years", [0, 1, 7.5, 30, 60])
    @pytest.mark.parametrize("rate", [0, 2.5, 3, 10])
    def test_round_trip(self, years, rate):
        """Test that converting to real and back recovers the amount."""
        value = 123_456.78
        assert to_nominal_value(to_real_value(value, years, rate), years, rate) == (
            pytest.approx(value)
        )


class TestInflatedValue:
    """Test the dual nominal/real value type."""

    def test_from_nominal(self):
        value = InflatedValue.from_nominal(1102.5, 2, 5)
        assert value.nominal == 1102.5
        assert value.real == pytest.approx(1000)

    def test_from_real(self):
        value = InflatedValue.from_real(1000, 2, 5)
        assert value.nominal == pytest.approx(1102.5)
        assert value.real == 1000

    def test_current_and_zero(self):
        assert InflatedValue.current(5.0) == InflatedValue(nominal=5.0, real=5.0)
        assert InflatedValue.zero() == InflatedValue(nominal=0.0, real=0.0)

    def test_display(self):
        """Test choosing the view by display mode."""
        value = InflatedValue(nominal=200, real=100)
        assert value.display("nominal") == 200
        assert value.display("real") == 100

    def test_arithmetic(self):
        """Test element-wise arithmetic on both views."""
        a = InflatedValue(nominal=200, real=100)
        b = InflatedValue(nominal=50, real=25)

        assert a + b == InflatedValue(nominal=250, real=125)
        assert a - b == InflatedValue(nominal=150, real=75)
        assert a * 2 == InflatedValue(nominal=400, real=200)
        assert 2 * a == InflatedValue(nominal=400, real=200)
        assert a / 4 == InflatedValue(nominal=50, real=25)

    def test_division_by_zero_yields_zero(self):
        assert InflatedValue(nominal=200, real=100) / 0 == InflatedValue.zero()

    def test_is_valid(self):
        assert InflatedValue(nominal=1, real=1).is_valid()
        assert not InflatedValue(nominal=float("inf"), real=1).is_valid()
        assert not InflatedValue(nominal=1, real=float("nan")).is_valid()

    def test_immutable(self):
        """Test that values cannot be modified in place."""
        value = InflatedValue(nominal=1, real=1)
        with pytest.raises(Exception):
            value.nominal = 2


class TestInflationAdjuster:
    """Test the calendar-year adjuster."""

    def test_adjust_between_years(self):
        adjuster = InflationAdjuster(inflation_rate=3, base_year=2025)

        assert adjuster.adjust_for_inflation(100, 2025, 2026) == pytest.approx(103)
        assert adjuster.adjust_for_inflation(103, 2026, 2025) == pytest.approx(100)
        assert adjuster.adjust_for_inflation(100, 2030, 2030) == 100

    def test_adjust_with_collapsed_price_level(self):
        adjuster = InflationAdjuster(inflation_rate=-100, base_year=2025)

        assert adjuster.adjust_for_inflation(100, 2025, 2026) == 0.0
        assert adjuster.adjust_for_inflation(100, 2026, 2025) == 0.0

    def test_real_and_nominal_relative_to_base_year(self):
        adjuster = InflationAdjuster(inflation_rate=5, base_year=2025)

        assert adjuster.to_real_value(1102.5, 2027) == pytest.approx(1000)
        assert adjuster.to_nominal_value(1000, 2027) == pytest.approx(1102.5)
        assert adjuster.to_real_value(1000, 2020) == 1000

    def test_inflated(self):
        adjuster = InflationAdjuster(inflation_rate=5, base_year=2025)
        value = adjuster.inflated(1102.5, 2027)

        assert value.nominal == 1102.5
        assert value.real == pytest.approx(1000)

    def test_invalid_base_year(self):
        """Test that an out-of-range base year is rejected."""
        with pytest.raises(Exception):  # Pydantic validation error
            InflationAdjuster(inflation_rate=3, base_year=1800)


class TestDisplayMode:
    """Test display-mode labels."""

    def test_suffix(self):
        assert display_mode_suffix("real") == "(in today's dollars)"
        assert display_mode_suffix("real", short=True) == "(today's $)"
        assert display_mode_suffix("nominal") == "(in future dollars)"
        assert display_mode_suffix("nominal", short=True) == "(future $)"

    def test_description(self):
        assert "purchasing power" in display_mode_description("real")
        assert "actual future amounts" in display_mode_description("nominal")
