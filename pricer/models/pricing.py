"""Pricing inputs and the loan options produced for them."""

from dataclasses import dataclass, fields
from decimal import Decimal
from enum import Enum


class LoanPurpose(Enum):
    PURCHASE = "purchase"
    REFINANCE = "refinance"
    CASH_OUT = "cash_out"


class PropertyType(Enum):
    """Normalized property type keys. Tables list which ones they price."""
    SINGLE_FAMILY = "single_family"
    MULTI_FAMILY = "2-4_units"
    CONDO = "condo"
    TOWNHOUSE = "townhouse"


@dataclass(frozen=True)
class PricingInput:
    fico: int
    ltv: Decimal  # percent, e.g. 80 for 80%
    loan_amount: Decimal
    loan_purpose: LoanPurpose
    property_type: str
    property_state: str
    estimated_home_value: Decimal
    prepay_structure: str = "None"
    occupancy_type: str = "investment"
    product: str | None = None  # None = every product the program offers
    interest_only: bool | None = None  # None = amortizing and interest-only variants
    dscr: Decimal | None = None  # caller's estimate; used for eligibility
    broker_comp: Decimal = Decimal("0")  # points
    ysp: Decimal = Decimal("0")  # points
    discount_points: Decimal = Decimal("0")
    broker_admin_fee: Decimal = Decimal("0")
    monthly_rental_income: Decimal = Decimal("0")
    annual_property_insurance: Decimal = Decimal("0")
    annual_property_taxes: Decimal = Decimal("0")
    monthly_hoa_fee: Decimal = Decimal("0")
    is_short_term_rental: bool = False
    units: int = 1


@dataclass(frozen=True)
class PropertyCashFlow:
    """Property cash-flow inputs shared by pricing (qualifying DSCR) and analytics."""
    monthly_rental_income: Decimal
    annual_property_insurance: Decimal = Decimal("0")
    annual_property_taxes: Decimal = Decimal("0")
    monthly_hoa_fee: Decimal = Decimal("0")
    estimated_home_value: Decimal = Decimal("0")

    @classmethod
    def from_input(cls, pricing_input: PricingInput) -> "PropertyCashFlow":
        return cls(
            monthly_rental_income=pricing_input.monthly_rental_income,
            annual_property_insurance=pricing_input.annual_property_insurance,
            annual_property_taxes=pricing_input.annual_property_taxes,
            monthly_hoa_fee=pricing_input.monthly_hoa_fee,
            estimated_home_value=pricing_input.estimated_home_value,
        )


@dataclass(frozen=True)
class RateBreakdown:
    """Signed percentage-point components of a final rate.

    The final rate is exactly the sum of these fields.
    """
    base_rate: Decimal
    fico_adjustment: Decimal = Decimal("0")
    ltv_adjustment: Decimal = Decimal("0")
    product_adjustment: Decimal = Decimal("0")
    dscr_adjustment: Decimal = Decimal("0")
    origination_fee_adjustment: Decimal = Decimal("0")
    loan_size_adjustment: Decimal = Decimal("0")
    program_adjustment: Decimal = Decimal("0")
    interest_only_adjustment: Decimal = Decimal("0")
    ysp_adjustment: Decimal = Decimal("0")
    prepay_adjustment: Decimal = Decimal("0")
    units_adjustment: Decimal = Decimal("0")
    rate_adjustment: Decimal = Decimal("0")
    minimum_rate_adjustment: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        return sum((getattr(self, f.name) for f in fields(self)), Decimal("0"))

    @property
    def adjustments_total(self) -> Decimal:
        """Everything added on top of the base rate."""
        return self.total - self.base_rate


@dataclass(frozen=True)
class FeeBreakdown:
    origination_fee: Decimal
    underwriting_fee: Decimal
    admin_fee: Decimal
    ysp_fee: Decimal = Decimal("0")
    prepay_fee: Decimal = Decimal("0")
    loan_size_adjustment_fee: Decimal = Decimal("0")
    small_loan_fee: Decimal | None = None

    @property
    def total(self) -> Decimal:
        return (
            self.origination_fee
            + self.underwriting_fee
            + self.ysp_fee
            + self.prepay_fee
            + self.loan_size_adjustment_fee
            + (self.small_loan_fee or Decimal("0"))
            + self.admin_fee
        )


@dataclass(frozen=True)
class LoanOption:
    lender_id: str
    lender_name: str
    product: str
    base_rate: Decimal
    final_rate: Decimal  # percent
    points: Decimal
    monthly_payment: Decimal
    total_fees: Decimal
    term_years: int
    breakdown: RateBreakdown
    fee_breakdown: FeeBreakdown
    loan_amount: Decimal
    interest_only: bool = False
    qualifying_dscr: Decimal | None = None


@dataclass(frozen=True)
class BorrowerForm:
    """Borrower-facing calculator form, before normalization."""
    transaction_type: str  # "Purchase" | "Refinance" | "Cash Out"
    property_state: str  # full name ("Florida") or 2-letter code
    property_type: str  # "Single Family" | "Multi Family" | "Condo" | "Townhouse"
    fico_score: str  # bucket, e.g. "740-759" or "780+"
    estimated_home_value: Decimal
    loan_amount: Decimal
    prepayment_penalty: str = "None"
    broker_points: Decimal = Decimal("0")
    broker_ysp: Decimal = Decimal("0")
    broker_admin_fee: Decimal = Decimal("0")
    discount_points: Decimal = Decimal("0")
    monthly_rental_income: Decimal = Decimal("0")
    annual_property_insurance: Decimal = Decimal("0")
    annual_property_taxes: Decimal = Decimal("0")
    monthly_hoa_fee: Decimal = Decimal("0")
    is_short_term_rental: bool = False
    units: int = 1
