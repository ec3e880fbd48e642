"""
Tax engine for one income year.

Computes federal income tax, state income tax and FICA for a gross income,
filing status and state, keeping the per-bracket breakdown of every
progressive calculation. The engine never rejects input: zero or negative
income collapses every line to zero and an unknown state code means no state
tax.
"""

import logging
from typing import List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from fi_engine.models.scenario import FilingStatus, IncomeProfile, PreTaxContributions
from fi_engine.models.tax_tables import (
    ADDITIONAL_MEDICARE_RATE,
    ADDITIONAL_MEDICARE_THRESHOLD,
    FEDERAL_BRACKETS,
    FEDERAL_STANDARD_DEDUCTION,
    MEDICARE_BASE_RATE,
    SOCIAL_SECURITY_RATE,
    SOCIAL_SECURITY_WAGE_CAP,
    STATE_TAX_POLICIES,
    Bracket,
    StateTaxType,
    get_state_policy,
)

logger = logging.getLogger(__name__)


class BracketAmount(BaseModel):
    """Tax owed within one bracket."""

    model_config = ConfigDict(frozen=True)

    bracket_min: float = Field(..., description="Lower bound of the bracket")
    bracket_max: Optional[float] = Field(
        ..., description="Upper bound of the bracket (None if unbounded)"
    )
    rate: float = Field(..., description="Bracket rate (decimal)")
    taxable_in_bracket: float = Field(..., description="Income taxed in this bracket")
    tax_from_bracket: float = Field(..., description="Tax owed from this bracket")


class BracketTax(BaseModel):
    """Result of applying a bracket schedule to an income."""

    model_config = ConfigDict(frozen=True)

    tax: float
    marginal_rate: float
    breakdown: Tuple[BracketAmount, ...]


class FicaBreakdown(BaseModel):
    """Social Security and Medicare payroll taxes."""

    model_config = ConfigDict(frozen=True)

    social_security_rate: float = SOCIAL_SECURITY_RATE
    social_security_wage_cap: float = SOCIAL_SECURITY_WAGE_CAP
    social_security_wages: float = 0.0
    wages_above_ss_cap: float = 0.0
    social_security_tax: float = 0.0
    medicare_base_rate: float = MEDICARE_BASE_RATE
    medicare_base_tax: float = 0.0
    additional_medicare_threshold: float = 0.0
    additional_medicare_rate: float = ADDITIONAL_MEDICARE_RATE
    additional_medicare_wages: float = 0.0
    additional_medicare_tax: float = 0.0
    total_medicare_tax: float = 0.0
    total_fica_tax: float = 0.0
    effective_fica_rate: float = 0.0


class StateTaxResult(BaseModel):
    """State income tax for one income year."""

    model_config = ConfigDict(frozen=True)

    state_code: Optional[str] = None
    state_name: Optional[str] = None
    tax_type: StateTaxType = "none"
    adjusted_gross_income: float = 0.0
    standard_deduction: float = 0.0
    personal_exemption: float = 0.0
    taxable_income: float = 0.0
    bracket_breakdown: Tuple[BracketAmount, ...] = ()
    tax: float = 0.0
    marginal_rate: float = 0.0


class TaxResult(BaseModel):
    """Complete tax picture for one income year. Rates are decimals."""

    model_config = ConfigDict(frozen=True)

    gross_income: float
    filing_status: FilingStatus
    state_code: Optional[str] = None

    pre_tax_contributions: PreTaxContributions = Field(
        default_factory=PreTaxContributions
    )
    total_pre_tax_contributions: float = 0.0

    # Federal
    adjusted_gross_income: float = 0.0
    federal_standard_deduction: float = 0.0
    federal_taxable_income: float = 0.0
    federal_bracket_breakdown: Tuple[BracketAmount, ...] = ()
    federal_tax: float = 0.0
    marginal_federal_rate: float = 0.0
    effective_federal_rate: float = 0.0

    # State
    state_tax_type: StateTaxType = "none"
    state_adjusted_gross_income: float = 0.0
    state_standard_deduction: float = 0.0
    state_personal_exemption: float = 0.0
    state_taxable_income: float = 0.0
    state_bracket_breakdown: Tuple[BracketAmount, ...] = ()
    state_tax: float = 0.0
    marginal_state_rate: float = 0.0
    effective_state_rate: float = 0.0

    # Payroll
    fica: FicaBreakdown = Field(default_factory=FicaBreakdown)

    # Totals
    total_tax: float = 0.0
    effective_total_rate: float = 0.0
    net_income: float = 0.0
    monthly_net_income: float = 0.0
    take_home_pay: float = 0.0


class CashFlowBreakdown(BaseModel):
    """Where one year of gross income goes."""

    model_config = ConfigDict(frozen=True)

    taxes: TaxResult
    annual_spending: float
    total_annual_savings: float
    monthly_savings_available: float
    savings_rate_of_gross: float = Field(..., description="Savings as % of gross")


PreTaxInput = Union[PreTaxContributions, Mapping[str, float], None]


def normalize_filing_status(filing_status: Optional[str]) -> FilingStatus:
    """Map a filing status onto a known one, falling back to single."""
    if filing_status in FEDERAL_BRACKETS:
        return filing_status  # type: ignore[return-value]
    if filing_status:
        logger.warning(f"Unknown filing status '{filing_status}', using single")
    return "single"


def _to_pre_tax(pre_tax: PreTaxInput) -> PreTaxContributions:
    if pre_tax is None:
        return PreTaxContributions()
    if isinstance(pre_tax, PreTaxContributions):
        return pre_tax
    return PreTaxContributions(**pre_tax)


def apply_brackets(income: float, brackets: Sequence[Bracket]) -> BracketTax:
    """
    Apply a progressive bracket schedule to an income.

    Args:
        income: Taxable income
        brackets: ``(lower_bound, rate)`` pairs in ascending order

    Returns:
        BracketTax with the total, the marginal rate and the brackets that
        received a nonzero amount
    """
    if income <= 0 or not brackets:
        return BracketTax(tax=0.0, marginal_rate=0.0, breakdown=())

    lowers = np.array([b[0] for b in brackets], dtype=np.float64)
    rates = np.array([b[1] for b in brackets], dtype=np.float64)
    uppers = np.append(lowers[1:], np.inf)

    taxable = np.clip(income - lowers, 0.0, uppers - lowers)
    taxes = taxable * rates

    used = np.nonzero(taxable > 0)[0]
    breakdown = tuple(
        BracketAmount(
            bracket_min=float(lowers[i]),
            bracket_max=None if np.isinf(uppers[i]) else float(uppers[i]),
            rate=float(rates[i]),
            taxable_in_bracket=float(taxable[i]),
            tax_from_bracket=float(taxes[i]),
        )
        for i in used
    )
    marginal_rate = float(rates[used[-1]]) if used.size else 0.0
    return BracketTax(
        tax=float(taxes.sum()), marginal_rate=marginal_rate, breakdown=breakdown
    )


def calculate_federal_tax(taxable_income: float, filing_status: str) -> BracketTax:
    """Federal income tax on taxable income (after the standard deduction)."""
    status = normalize_filing_status(filing_status)
    return apply_brackets(taxable_income, FEDERAL_BRACKETS[status])


def calculate_state_tax(
    gross_income: float,
    filing_status: str,
    state_code: Optional[str],
    pre_tax_contributions: PreTaxInput = None,
) -> StateTaxResult:
    """
    State income tax for one income year.

    States that tax HSA contributions add them back to the state base even
    though federal AGI excludes them. Unknown or missing state codes produce a
    zero-tax result.

    Args:
        gross_income: Annual gross income
        filing_status: Tax filing status
        state_code: 2-letter state code
        pre_tax_contributions: Annual pre-tax contributions

    Returns:
        StateTaxResult
    """
    policy = get_state_policy(state_code)
    if policy is None:
        if state_code:
            logger.warning(f"No tax table for state '{state_code}', assuming no tax")
        return StateTaxResult(state_code=state_code or None)

    if gross_income <= 0 or policy.tax_type == "none":
        return StateTaxResult(
            state_code=policy.code, state_name=policy.name, tax_type=policy.tax_type
        )

    status = normalize_filing_status(filing_status)
    pre_tax = _to_pre_tax(pre_tax_contributions)
    excluded = pre_tax.total
    if policy.taxes_hsa_contributions:
        excluded -= pre_tax.hsa
    state_agi = max(0.0, gross_income - excluded)

    deduction = policy.standard_deduction_for(status)
    exemption = policy.personal_exemption_for(status)
    taxable = max(0.0, state_agi - deduction - exemption)
    bracket_tax = apply_brackets(taxable, policy.brackets_for(status))

    return StateTaxResult(
        state_code=policy.code,
        state_name=policy.name,
        tax_type=policy.tax_type,
        adjusted_gross_income=state_agi,
        standard_deduction=deduction,
        personal_exemption=exemption,
        taxable_income=taxable,
        bracket_breakdown=bracket_tax.breakdown,
        tax=bracket_tax.tax,
        marginal_rate=bracket_tax.marginal_rate,
    )


def calculate_fica(gross_income: float, filing_status: str) -> FicaBreakdown:
    """Social Security and Medicare on gross wages (never reduced by pre-tax)."""
    status = normalize_filing_status(filing_status)
    threshold = ADDITIONAL_MEDICARE_THRESHOLD[status]
    if gross_income <= 0:
        return FicaBreakdown(additional_medicare_threshold=threshold)

    ss_wages = min(gross_income, SOCIAL_SECURITY_WAGE_CAP)
    ss_tax = ss_wages * SOCIAL_SECURITY_RATE
    medicare_base = gross_income * MEDICARE_BASE_RATE
    additional_wages = max(0.0, gross_income - threshold)
    additional_tax = additional_wages * ADDITIONAL_MEDICARE_RATE
    total_medicare = medicare_base + additional_tax
    total = ss_tax + total_medicare

    return FicaBreakdown(
        social_security_wages=ss_wages,
        wages_above_ss_cap=max(0.0, gross_income - SOCIAL_SECURITY_WAGE_CAP),
        social_security_tax=ss_tax,
        medicare_base_tax=medicare_base,
        additional_medicare_threshold=threshold,
        additional_medicare_wages=additional_wages,
        additional_medicare_tax=additional_tax,
        total_medicare_tax=total_medicare,
        total_fica_tax=total,
        effective_fica_rate=total / gross_income,
    )


def calculate_taxes(
    gross_income: float,
    filing_status: str = "single",
    state_code: Optional[str] = None,
    pre_tax_contributions: PreTaxInput = None,
) -> TaxResult:
    """
    Calculate federal, state and payroll taxes for one income year.

    Pre-tax contributions reduce federal (and most state) taxable income but
    remain part of ``net_income``, since the money still lands in net worth.
    ``take_home_pay`` is net income minus those contributions.

    Args:
        gross_income: Annual gross income
        filing_status: Tax filing status (unknown values fall back to single)
        state_code: 2-letter state code, or None for no state tax
        pre_tax_contributions: Annual pre-tax contributions

    Returns:
        TaxResult with the full breakdown
    """
    status = normalize_filing_status(filing_status)
    pre_tax = _to_pre_tax(pre_tax_contributions)
    federal_deduction = FEDERAL_STANDARD_DEDUCTION[status]

    if gross_income <= 0:
        return TaxResult(
            gross_income=gross_income,
            filing_status=status,
            state_code=state_code,
            pre_tax_contributions=pre_tax,
            total_pre_tax_contributions=pre_tax.total,
            federal_standard_deduction=federal_deduction,
            fica=calculate_fica(0.0, status),
        )

    agi = max(0.0, gross_income - pre_tax.total)
    federal_taxable = max(0.0, agi - federal_deduction)
    federal = calculate_federal_tax(federal_taxable, status)
    state = calculate_state_tax(gross_income, status, state_code, pre_tax)
    fica = calculate_fica(gross_income, status)

    total_tax = federal.tax + state.tax + fica.total_fica_tax
    net_income = gross_income - total_tax

    return TaxResult(
        gross_income=gross_income,
        filing_status=status,
        state_code=state.state_code,
        pre_tax_contributions=pre_tax,
        total_pre_tax_contributions=pre_tax.total,
        adjusted_gross_income=agi,
        federal_standard_deduction=federal_deduction,
        federal_taxable_income=federal_taxable,
        federal_bracket_breakdown=federal.breakdown,
        federal_tax=federal.tax,
        marginal_federal_rate=federal.marginal_rate,
        effective_federal_rate=federal.tax / gross_income,
        state_tax_type=state.tax_type,
        state_adjusted_gross_income=state.adjusted_gross_income,
        state_standard_deduction=state.standard_deduction,
        state_personal_exemption=state.personal_exemption,
        state_taxable_income=state.taxable_income,
        state_bracket_breakdown=state.bracket_breakdown,
        state_tax=state.tax,
        marginal_state_rate=state.marginal_rate,
        effective_state_rate=state.tax / gross_income,
        fica=fica,
        total_tax=total_tax,
        effective_total_rate=total_tax / gross_income,
        net_income=net_income,
        monthly_net_income=net_income / 12,
        take_home_pay=net_income - pre_tax.total,
    )


def calculate_taxes_for_income(income: IncomeProfile, growth: float = 1.0) -> TaxResult:
    """Run :func:`calculate_taxes` for an income block scaled by ``growth``."""
    return calculate_taxes(
        income.gross_income * growth,
        income.filing_status,
        income.state_code,
        income.pre_tax_contributions.scaled(growth),
    )


def calculate_cash_flow_breakdown(
    taxes: TaxResult, annual_spending: float
) -> CashFlowBreakdown:
    """Split one year's income into taxes, spending and savings."""
    savings = taxes.net_income - annual_spending
    savings_rate = (
        savings / taxes.gross_income * 100 if taxes.gross_income > 0 else 0.0
    )
    return CashFlowBreakdown(
        taxes=taxes,
        annual_spending=annual_spending,
        total_annual_savings=savings,
        monthly_savings_available=savings / 12,
        savings_rate_of_gross=savings_rate,
    )


def list_supported_states() -> List[str]:
    """State codes with a tax table, sorted."""
    return sorted(STATE_TAX_POLICIES)
