"""Rate table data types: banded lookups, product specs, fee and eligibility rules.

Everything here is frozen. Mappings are wrapped in MappingProxyType by the
loader so a table can be shared across requests without copying.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

# Cell marker: the lender does not price this combination.
NOT_OFFERED = "n/a"

BandValue = Decimal | str | None


@dataclass(frozen=True)
class Band:
    """Numeric range with explicit endpoint inclusivity.

    ``low``/``high`` of None mean unbounded on that side. ``value`` is a
    Decimal, NOT_OFFERED, or None for a band that is declared but has no
    confirmed number yet.
    """
    low: Decimal | None
    high: Decimal | None
    value: BandValue
    low_inclusive: bool = True
    high_inclusive: bool = False
    max_ltv: Decimal | None = None  # DSCR bands only: above this LTV the band is not offered

    def contains(self, x: Decimal) -> bool:
        if self.low is not None:
            if x < self.low or (x == self.low and not self.low_inclusive):
                return False
        if self.high is not None:
            if x > self.high or (x == self.high and not self.high_inclusive):
                return False
        return True

    def describe(self) -> str:
        left = "[" if self.low_inclusive and self.low is not None else "("
        right = "]" if self.high_inclusive and self.high is not None else ")"
        low = "-inf" if self.low is None else str(self.low)
        high = "+inf" if self.high is None else str(self.high)
        return f"{left}{low}, {high}{right}"


@dataclass(frozen=True)
class BandTable:
    name: str
    bands: tuple[Band, ...]

    def matching(self, x: Decimal) -> list[Band]:
        return [b for b in self.bands if b.contains(x)]


@dataclass(frozen=True)
class FicoTier:
    label: str
    min_fico: int
    max_fico: int | None  # inclusive; None = no ceiling
    ltv_rates: BandTable

    def contains(self, fico: int) -> bool:
        if fico < self.min_fico:
            return False
        return self.max_fico is None or fico <= self.max_fico


@dataclass(frozen=True)
class ProductSpec:
    name: str
    adjustment: Decimal
    term_years: int
    interest_only_available: bool = False


@dataclass(frozen=True)
class ProgramAdjustments:
    cash_out_refinance: Decimal = Decimal("0")
    short_term_rental: Decimal = Decimal("0")
    condo: Decimal = Decimal("0")
    units: Decimal = Decimal("0")  # applied once when units > 1
    rate_adjustment: Decimal = Decimal("0")  # program-wide override on every option


@dataclass(frozen=True)
class FeeSchedule:
    underwriting_fee: Decimal
    small_loan_fee: Band | None = None  # value = fee amount, band = loan amounts it applies to


@dataclass(frozen=True)
class PrepayRestriction:
    min_fico: int
    min_dscr: Decimal


@dataclass(frozen=True)
class EligibilityRules:
    excluded_states: frozenset[str]
    zero_prepay_states: frozenset[str]
    property_types: frozenset[str]
    min_property_value: Decimal
    max_ltv: Decimal
    min_fico: int
    refinance_min_fico: int
    min_dscr: Decimal
    max_units: int
    min_loan_amount: Decimal
    max_loan_amount: Decimal
    prepay_restrictions: Mapping[str, PrepayRestriction]


@dataclass(frozen=True)
class RateTable:
    lender_id: str
    lender_name: str
    program: str
    effective_date: str
    ltv_bands: tuple[Band, ...]
    fico_tiers: tuple[FicoTier, ...]
    products: Mapping[str, ProductSpec]
    interest_only_adjustment: Decimal
    origination_fee_adjustments: Mapping[Decimal, Decimal]  # broker comp points -> rate delta
    ysp_adjustments: Mapping[Decimal, Decimal]  # YSP points -> rate delta
    loan_size_adjustments: BandTable
    prepay_adjustments: Mapping[str, Decimal]
    dscr_adjustments: BandTable
    program_adjustments: ProgramAdjustments
    fees: FeeSchedule
    eligibility: EligibilityRules
    minimum_rate: Decimal

    @property
    def key(self) -> tuple[str, str]:
        return (self.lender_id, self.program)
