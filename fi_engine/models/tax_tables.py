"""
Tax year 2025 tables for federal, state and payroll taxes.

Everything here is data. Brackets are ``(lower_bound, rate)`` pairs with rates
as decimals; a bracket runs up to the next bracket's lower bound and the last
one is unbounded. State schedules are stored for single and joint filers;
married-filing-separately and head-of-household filers use the single
schedule.
"""

from types import MappingProxyType
from typing import Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

Bracket = Tuple[float, float]
StateTaxType = Literal["none", "flat", "progressive"]

TAX_YEAR = 2025

# Federal income tax
FEDERAL_BRACKETS: Mapping[str, Tuple[Bracket, ...]] = MappingProxyType(
    {
        "single": (
            (0, 0.10),
            (11_925, 0.12),
            (48_475, 0.22),
            (103_350, 0.24),
            (197_300, 0.32),
            (250_525, 0.35),
            (626_350, 0.37),
        ),
        "married_filing_jointly": (
            (0, 0.10),
            (23_850, 0.12),
            (96_950, 0.22),
            (206_700, 0.24),
            (394_600, 0.32),
            (501_050, 0.35),
            (751_600, 0.37),
        ),
        "married_filing_separately": (
            (0, 0.10),
            (11_925, 0.12),
            (48_475, 0.22),
            (103_350, 0.24),
            (197_300, 0.32),
            (250_525, 0.35),
            (375_800, 0.37),
        ),
        "head_of_household": (
            (0, 0.10),
            (17_000, 0.12),
            (64_850, 0.22),
            (103_350, 0.24),
            (197_300, 0.32),
            (250_500, 0.35),
            (626_350, 0.37),
        ),
    }
)

FEDERAL_STANDARD_DEDUCTION: Mapping[str, float] = MappingProxyType(
    {
        "single": 15_000,
        "married_filing_jointly": 30_000,
        "married_filing_separately": 15_000,
        "head_of_household": 22_500,
    }
)

# Payroll (FICA)
SOCIAL_SECURITY_RATE = 0.062
SOCIAL_SECURITY_WAGE_CAP = 176_100
MEDICARE_BASE_RATE = 0.0145
ADDITIONAL_MEDICARE_RATE = 0.009
ADDITIONAL_MEDICARE_THRESHOLD: Mapping[str, float] = MappingProxyType(
    {
        "single": 200_000,
        "married_filing_jointly": 250_000,
        "married_filing_separately": 125_000,
        "head_of_household": 200_000,
    }
)


def _joint_index(filing_status: str) -> int:
    return 1 if filing_status == "married_filing_jointly" else 0


class StateTaxPolicy(BaseModel):
    """Income tax rules for one state."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., min_length=2, max_length=2, description="2-letter code")
    name: str = Field(..., description="State name")
    tax_type: StateTaxType = Field(..., description="Kind of income tax")
    brackets: Tuple[Bracket, ...] = Field(
        default=(), description="Single-filer schedule"
    )
    joint_brackets: Optional[Tuple[Bracket, ...]] = Field(
        default=None, description="Joint-filer schedule (single schedule if None)"
    )
    standard_deduction: Tuple[float, float] = Field(
        default=(0, 0), description="(single, joint) standard deduction"
    )
    personal_exemption: Tuple[float, float] = Field(
        default=(0, 0), description="(single, joint) personal exemption"
    )
    surtax_threshold: Optional[float] = Field(
        default=None, description="Income above which the surtax applies"
    )
    surtax_rate: float = Field(default=0.0, description="Additional rate above it")
    taxes_hsa_contributions: bool = Field(
        default=False, description="HSA contributions stay in state AGI"
    )

    def brackets_for(self, filing_status: str) -> Tuple[Bracket, ...]:
        """Bracket schedule for a filing status, including any surtax tier."""
        if filing_status == "married_filing_jointly" and self.joint_brackets:
            schedule = self.joint_brackets
        else:
            schedule = self.brackets
        if self.surtax_threshold is not None and schedule:
            base_rate = schedule[-1][1]
            surtax = (self.surtax_threshold, base_rate + self.surtax_rate)
            schedule = schedule + (surtax,)
        return schedule

    def standard_deduction_for(self, filing_status: str) -> float:
        return self.standard_deduction[_joint_index(filing_status)]

    def personal_exemption_for(self, filing_status: str) -> float:
        return self.personal_exemption[_joint_index(filing_status)]


def _no_tax(code: str, name: str) -> StateTaxPolicy:
    return StateTaxPolicy(code=code, name=name, tax_type="none")


def _flat(code: str, name: str, rate: float, **kwargs) -> StateTaxPolicy:
    return StateTaxPolicy(
        code=code, name=name, tax_type="flat", brackets=((0, rate),), **kwargs
    )


def _progressive(
    code: str,
    name: str,
    brackets: Tuple[Bracket, ...],
    joint_brackets: Optional[Tuple[Bracket, ...]] = None,
    **kwargs,
) -> StateTaxPolicy:
    return StateTaxPolicy(
        code=code,
        name=name,
        tax_type="progressive",
        brackets=brackets,
        joint_brackets=joint_brackets,
        **kwargs,
    )


_POLICIES = (
    # No wage income tax
    _no_tax("AK", "Alaska"),
    _no_tax("FL", "Florida"),
    _no_tax("NV", "Nevada"),
    _no_tax("NH", "New Hampshire"),
    _no_tax("SD", "South Dakota"),
    _no_tax("TN", "Tennessee"),
    _no_tax("TX", "Texas"),
    _no_tax("WA", "Washington"),
    _no_tax("WY", "Wyoming"),
    # Flat rate
    _flat("AZ", "Arizona", 0.025, standard_deduction=(15_000, 30_000)),
    _flat("CO", "Colorado", 0.044, standard_deduction=(15_000, 30_000)),
    _flat("GA", "Georgia", 0.0519, standard_deduction=(12_000, 24_000)),
    _flat("ID", "Idaho", 0.053, standard_deduction=(15_000, 30_000)),
    _flat("IL", "Illinois", 0.0495, personal_exemption=(2_850, 5_700)),
    _flat("IN", "Indiana", 0.03, personal_exemption=(1_000, 2_000)),
    _flat("IA", "Iowa", 0.038, standard_deduction=(15_000, 30_000)),
    _flat("KY", "Kentucky", 0.04, standard_deduction=(3_270, 6_540)),
    _flat("LA", "Louisiana", 0.03, standard_deduction=(12_500, 25_000)),
    _flat(
        "MA",
        "Massachusetts",
        0.05,
        personal_exemption=(4_400, 8_800),
        surtax_threshold=1_083_150,
        surtax_rate=0.04,
    ),
    _flat("MI", "Michigan", 0.0425, personal_exemption=(5_800, 11_600)),
    _flat("NC", "North Carolina", 0.0425, standard_deduction=(12_750, 25_500)),
    _flat("PA", "Pennsylvania", 0.0307),
    _flat("UT", "Utah", 0.045),
    # Progressive
    _progressive(
        "AL",
        "Alabama",
        ((0, 0.02), (500, 0.04), (3_000, 0.05)),
        ((0, 0.02), (1_000, 0.04), (6_000, 0.05)),
        standard_deduction=(3_000, 8_500),
        personal_exemption=(1_500, 3_000),
    ),
    _progressive(
        "AR",
        "Arkansas",
        ((0, 0.0), (5_500, 0.02), (10_900, 0.03), (15_600, 0.034), (25_700, 0.039)),
        standard_deduction=(2_410, 4_820),
    ),
    _progressive(
        "CA",
        "California",
        (
            (0, 0.01),
            (10_756, 0.02),
            (25_499, 0.04),
            (40_245, 0.06),
            (55_866, 0.08),
            (70_606, 0.093),
            (360_659, 0.103),
            (432_787, 0.113),
            (721_314, 0.123),
            (1_000_000, 0.133),
        ),
        (
            (0, 0.01),
            (21_512, 0.02),
            (50_998, 0.04),
            (80_490, 0.06),
            (111_732, 0.08),
            (141_212, 0.093),
            (721_318, 0.103),
            (865_574, 0.113),
            (1_442_628, 0.123),
        ),
        standard_deduction=(5_540, 11_080),
        taxes_hsa_contributions=True,
    ),
    _progressive(
        "CT",
        "Connecticut",
        (
            (0, 0.02),
            (10_000, 0.045),
            (50_000, 0.055),
            (100_000, 0.06),
            (200_000, 0.065),
            (250_000, 0.069),
            (500_000, 0.0699),
        ),
        (
            (0, 0.02),
            (20_000, 0.045),
            (100_000, 0.055),
            (200_000, 0.06),
            (400_000, 0.065),
            (500_000, 0.069),
            (1_000_000, 0.0699),
        ),
        personal_exemption=(15_000, 24_000),
    ),
    _progressive(
        "DE",
        "Delaware",
        (
            (0, 0.0),
            (2_000, 0.022),
            (5_000, 0.039),
            (10_000, 0.048),
            (20_000, 0.052),
            (25_000, 0.0555),
            (60_000, 0.066),
        ),
        standard_deduction=(3_250, 6_500),
    ),
    _progressive(
        "DC",
        "District of Columbia",
        (
            (0, 0.04),
            (10_000, 0.06),
            (40_000, 0.065),
            (60_000, 0.085),
            (250_000, 0.0925),
            (500_000, 0.0975),
            (1_000_000, 0.1075),
        ),
        standard_deduction=(15_000, 30_000),
    ),
    _progressive(
        "HI",
        "Hawaii",
        (
            (0, 0.014),
            (9_600, 0.032),
            (14_400, 0.055),
            (19_200, 0.064),
            (24_000, 0.068),
            (36_000, 0.072),
            (48_000, 0.076),
            (125_000, 0.079),
            (175_000, 0.0825),
            (225_000, 0.09),
            (275_000, 0.10),
            (325_000, 0.11),
        ),
        (
            (0, 0.014),
            (19_200, 0.032),
            (28_800, 0.055),
            (38_400, 0.064),
            (48_000, 0.068),
            (72_000, 0.072),
            (96_000, 0.076),
            (250_000, 0.079),
            (350_000, 0.0825),
            (450_000, 0.09),
            (550_000, 0.10),
            (650_000, 0.11),
        ),
        standard_deduction=(4_400, 8_800),
        personal_exemption=(1_144, 2_288),
    ),
    _progressive(
        "KS",
        "Kansas",
        ((0, 0.052), (23_000, 0.0558)),
        ((0, 0.052), (46_000, 0.0558)),
        standard_deduction=(3_605, 8_240),
        personal_exemption=(9_160, 18_320),
    ),
    _progressive(
        "ME",
        "Maine",
        ((0, 0.058), (26_800, 0.0675), (63_450, 0.0715)),
        ((0, 0.058), (53_600, 0.0675), (126_900, 0.0715)),
        standard_deduction=(15_000, 30_000),
        personal_exemption=(5_150, 10_300),
    ),
    _progressive(
        "MD",
        "Maryland",
        (
            (0, 0.02),
            (1_000, 0.03),
            (2_000, 0.04),
            (3_000, 0.0475),
            (100_000, 0.05),
            (125_000, 0.0525),
            (150_000, 0.055),
            (250_000, 0.0575),
            (500_000, 0.0625),
            (1_000_000, 0.065),
        ),
        (
            (0, 0.02),
            (1_000, 0.03),
            (2_000, 0.04),
            (3_000, 0.0475),
            (150_000, 0.05),
            (175_000, 0.0525),
            (225_000, 0.055),
            (300_000, 0.0575),
            (600_000, 0.0625),
            (1_200_000, 0.065),
        ),
        standard_deduction=(3_350, 6_700),
        personal_exemption=(3_200, 6_400),
    ),
    _progressive(
        "MN",
        "Minnesota",
        ((0, 0.0535), (32_570, 0.068), (106_990, 0.0785), (198_630, 0.0985)),
        ((0, 0.0535), (47_620, 0.068), (189_180, 0.0785), (330_410, 0.0985)),
        standard_deduction=(14_950, 29_900),
    ),
    _progressive(
        "MS",
        "Mississippi",
        ((0, 0.0), (10_000, 0.044)),
        standard_deduction=(2_300, 4_600),
        personal_exemption=(6_000, 12_000),
    ),
    _progressive(
        "MO",
        "Missouri",
        (
            (0, 0.0),
            (1_313, 0.02),
            (2_626, 0.025),
            (3_939, 0.03),
            (5_252, 0.035),
            (6_565, 0.04),
            (7_878, 0.045),
            (9_191, 0.047),
        ),
        standard_deduction=(15_000, 30_000),
    ),
    _progressive(
        "MT",
        "Montana",
        ((0, 0.047), (21_100, 0.059)),
        ((0, 0.047), (42_200, 0.059)),
        standard_deduction=(15_000, 30_000),
    ),
    _progressive(
        "NE",
        "Nebraska",
        ((0, 0.0246), (4_030, 0.0351), (24_120, 0.0501), (38_870, 0.052)),
        ((0, 0.0246), (8_040, 0.0351), (48_250, 0.0501), (77_730, 0.052)),
        standard_deduction=(8_600, 17_200),
    ),
    _progressive(
        "NJ",
        "New Jersey",
        (
            (0, 0.014),
            (20_000, 0.0175),
            (35_000, 0.035),
            (40_000, 0.05525),
            (75_000, 0.0637),
            (500_000, 0.0897),
            (1_000_000, 0.1075),
        ),
        (
            (0, 0.014),
            (20_000, 0.0175),
            (50_000, 0.0245),
            (70_000, 0.035),
            (80_000, 0.05525),
            (150_000, 0.0637),
            (500_000, 0.0897),
            (1_000_000, 0.1075),
        ),
        personal_exemption=(1_000, 2_000),
        taxes_hsa_contributions=True,
    ),
    _progressive(
        "NM",
        "New Mexico",
        (
            (0, 0.015),
            (5_500, 0.032),
            (16_500, 0.043),
            (33_500, 0.047),
            (66_500, 0.049),
            (210_000, 0.059),
        ),
        (
            (0, 0.015),
            (8_000, 0.032),
            (25_000, 0.043),
            (50_000, 0.047),
            (100_000, 0.049),
            (315_000, 0.059),
        ),
        standard_deduction=(15_000, 30_000),
    ),
    _progressive(
        "NY",
        "New York",
        (
            (0, 0.04),
            (8_500, 0.045),
            (11_700, 0.0525),
            (13_900, 0.055),
            (80_650, 0.06),
            (215_400, 0.0685),
            (1_077_550, 0.0965),
            (5_000_000, 0.103),
            (25_000_000, 0.109),
        ),
        (
            (0, 0.04),
            (17_150, 0.045),
            (23_600, 0.0525),
            (27_900, 0.055),
            (161_550, 0.06),
            (323_200, 0.0685),
            (2_155_350, 0.0965),
            (5_000_000, 0.103),
            (25_000_000, 0.109),
        ),
        standard_deduction=(8_000, 16_050),
    ),
    _progressive(
        "ND",
        "North Dakota",
        ((0, 0.0), (48_475, 0.0195), (244_825, 0.025)),
        ((0, 0.0), (80_975, 0.0195), (298_075, 0.025)),
        standard_deduction=(15_000, 30_000),
    ),
    _progressive(
        "OH",
        "Ohio",
        ((0, 0.0), (26_050, 0.0275)),
        personal_exemption=(2_400, 4_800),
    ),
    _progressive(
        "OK",
        "Oklahoma",
        (
            (0, 0.0025),
            (1_000, 0.0075),
            (2_500, 0.0175),
            (3_750, 0.0275),
            (4_900, 0.0375),
            (7_200, 0.0475),
        ),
        (
            (0, 0.0025),
            (2_000, 0.0075),
            (5_000, 0.0175),
            (7_500, 0.0275),
            (9_800, 0.0375),
            (14_400, 0.0475),
        ),
        standard_deduction=(6_350, 12_700),
        personal_exemption=(1_000, 2_000),
    ),
    _progressive(
        "OR",
        "Oregon",
        ((0, 0.0475), (4_400, 0.0675), (11_050, 0.0875), (125_000, 0.099)),
        ((0, 0.0475), (8_800, 0.0675), (22_100, 0.0875), (250_000, 0.099)),
        standard_deduction=(2_800, 5_600),
    ),
    _progressive(
        "RI",
        "Rhode Island",
        ((0, 0.0375), (79_900, 0.0475), (181_650, 0.0599)),
        standard_deduction=(10_900, 21_800),
        personal_exemption=(5_100, 10_200),
    ),
    _progressive(
        "SC",
        "South Carolina",
        ((0, 0.0), (3_560, 0.03), (17_830, 0.062)),
        standard_deduction=(15_000, 30_000),
    ),
    _progressive(
        "VT",
        "Vermont",
        ((0, 0.0335), (47_900, 0.066), (116_000, 0.076), (242_000, 0.0875)),
        ((0, 0.0335), (79_950, 0.066), (193_300, 0.076), (294_600, 0.0875)),
        standard_deduction=(7_400, 14_850),
        personal_exemption=(5_100, 10_200),
    ),
    _progressive(
        "VA",
        "Virginia",
        ((0, 0.02), (3_000, 0.03), (5_000, 0.05), (17_000, 0.0575)),
        standard_deduction=(8_500, 17_000),
        personal_exemption=(930, 1_860),
    ),
    _progressive(
        "WV",
        "West Virginia",
        (
            (0, 0.0222),
            (10_000, 0.0296),
            (25_000, 0.0333),
            (40_000, 0.0444),
            (60_000, 0.0482),
        ),
        personal_exemption=(2_000, 4_000),
    ),
    _progressive(
        "WI",
        "Wisconsin",
        ((0, 0.035), (14_680, 0.044), (29_370, 0.053), (323_290, 0.0765)),
        ((0, 0.035), (19_580, 0.044), (39_150, 0.053), (431_060, 0.0765)),
        standard_deduction=(13_560, 25_110),
    ),
)

STATE_TAX_POLICIES: Mapping[str, StateTaxPolicy] = MappingProxyType(
    {policy.code: policy for policy in _POLICIES}
)


def get_state_policy(state_code: Optional[str]) -> Optional[StateTaxPolicy]:
    """Look up a state's policy by 2-letter code (case-insensitive)."""
    if not state_code:
        return None
    return STATE_TAX_POLICIES.get(state_code.strip().upper())
