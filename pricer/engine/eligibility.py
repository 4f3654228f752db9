"""Input validation and request-level eligibility rules.

Validation failures reject the request outright. Eligibility failures mean
the input is fine but the program cannot price it; they are collected in full
so the caller sees every reason at once.
"""

import logging
import re
from dataclasses import dataclass, replace
from decimal import Decimal

from pricer.errors import ValidationError
from pricer.models.pricing import LoanPurpose, PricingInput
from pricer.models.rate_table import RateTable

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
QUARTER_POINT = Decimal("0.25")
MAX_DISCOUNT_POINTS = Decimal("3")
ZERO_PREPAY = "0/0/0"

_STATE_CODE = re.compile(r"^[A-Z]{2}$")

_NON_NEGATIVE_FIELDS = (
    "broker_comp",
    "ysp",
    "broker_admin_fee",
    "monthly_rental_income",
    "annual_property_insurance",
    "annual_property_taxes",
    "monthly_hoa_fee",
    "estimated_home_value",
)


@dataclass(frozen=True)
class EligibilityReport:
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def is_eligible(self) -> bool:
        return not self.errors


def validate_pricing_input(pricing_input: PricingInput) -> None:
    """Raise ValidationError listing every missing or malformed field."""
    errors: list[str] = []
    p = pricing_input

    for name in ("ltv", "loan_amount", "dscr", "discount_points") + _NON_NEGATIVE_FIELDS:
        value = getattr(p, name)
        if value is None:
            continue
        if not isinstance(value, Decimal) or not value.is_finite():
            errors.append(f"{name} must be a finite number")
    if errors:
        raise ValidationError(errors)

    if not isinstance(p.fico, int) or not 300 <= p.fico <= 850:
        errors.append("fico must be an integer between 300 and 850")
    if p.loan_amount <= 0:
        errors.append("loan_amount must be positive")
    if not isinstance(p.loan_purpose, LoanPurpose):
        errors.append("loan_purpose must be one of purchase, refinance, cash_out")
    if not p.property_type:
        errors.append("property_type is required")
    if not _STATE_CODE.match(p.property_state or ""):
        errors.append("property_state must be a 2-letter state code")
    if not p.prepay_structure:
        errors.append("prepay_structure is required")
    for name in _NON_NEGATIVE_FIELDS:
        if getattr(p, name) < 0:
            errors.append(f"{name} must not be negative")
    if p.estimated_home_value == 0 and p.ltv <= 0:
        errors.append("estimated_home_value or ltv is required")
    if not Decimal("0") <= p.discount_points <= MAX_DISCOUNT_POINTS or p.discount_points % QUARTER_POINT != 0:
        errors.append("discount_points must be between 0 and 3 in 0.25 increments")
    if p.units < 1:
        errors.append("units must be at least 1")
    if p.dscr is None and p.monthly_rental_income == 0:
        errors.append("dscr or monthly_rental_income is required")

    if errors:
        raise ValidationError(errors)


def derive_ltv(pricing_input: PricingInput) -> PricingInput:
    """Recompute LTV from loan amount and value whenever the value is known."""
    if pricing_input.estimated_home_value <= 0:
        return pricing_input
    ltv = pricing_input.loan_amount / pricing_input.estimated_home_value * HUNDRED
    if ltv != pricing_input.ltv:
        logger.debug("LTV re-derived: caller sent %s, using %s", pricing_input.ltv, ltv)
    return replace(pricing_input, ltv=ltv)


def check_eligibility(pricing_input: PricingInput, table: RateTable) -> EligibilityReport:
    """Apply the program's eligibility rules to a validated input."""
    rules = table.eligibility
    p = pricing_input
    errors: list[str] = []
    warnings: list[str] = []

    if p.property_state in rules.excluded_states:
        errors.append(
            f"Property state {p.property_state} is not eligible; "
            f"program is not available in {', '.join(sorted(rules.excluded_states))}"
        )
    if p.estimated_home_value and p.estimated_home_value < rules.min_property_value:
        errors.append(
            f"Property value ${p.estimated_home_value:,.0f} is below the "
            f"${rules.min_property_value:,.0f} minimum"
        )
    if p.ltv > rules.max_ltv:
        errors.append(f"LTV {p.ltv:.2f}% exceeds the {rules.max_ltv}% maximum")
    if p.fico < rules.min_fico:
        errors.append(f"FICO {p.fico} is below the {rules.min_fico} minimum")
    if p.loan_purpose in (LoanPurpose.REFINANCE, LoanPurpose.CASH_OUT) and p.fico < rules.refinance_min_fico:
        errors.append(f"FICO {p.fico} is below the {rules.refinance_min_fico} minimum for refinance")
    if p.dscr is not None and p.dscr < rules.min_dscr:
        errors.append(f"DSCR {p.dscr:.2f} is below the {rules.min_dscr} minimum")
    if p.property_type not in rules.property_types:
        errors.append(
            f"Property type {p.property_type!r} is not eligible; "
            f"eligible types: {', '.join(sorted(rules.property_types))}"
        )
    if p.units > rules.max_units:
        errors.append(f"{p.units} units exceeds the {rules.max_units}-unit maximum")
    if not rules.min_loan_amount <= p.loan_amount <= rules.max_loan_amount:
        errors.append(
            f"Loan amount ${p.loan_amount:,.0f} is outside "
            f"${rules.min_loan_amount:,.0f}-${rules.max_loan_amount:,.0f}"
        )

    restriction = rules.prepay_restrictions.get(p.prepay_structure)
    if restriction is not None:
        if p.fico < restriction.min_fico or (p.dscr is not None and p.dscr < restriction.min_dscr):
            errors.append(
                f"{p.prepay_structure} prepayment requires FICO {restriction.min_fico}+ "
                f"and DSCR {restriction.min_dscr}+"
            )

    if p.property_state in rules.zero_prepay_states and p.prepay_structure != ZERO_PREPAY:
        warnings.append(
            f"{p.property_state} requires a zero prepayment penalty; use {ZERO_PREPAY}"
        )

    report = EligibilityReport(errors=tuple(errors), warnings=tuple(warnings))
    if not report.is_eligible:
        logger.info("Request not eligible for %s/%s: %s", table.lender_id, table.program, errors)
    return report
