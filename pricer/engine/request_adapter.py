"""Borrower form -> normalized PricingInput.

The calculator form speaks in labels ("Cash Out", "Multi Family", "Florida",
"740-759"); the engine speaks in table keys. Unknown property types pass
through unchanged so eligibility can name them.
"""

import logging
import re
from decimal import Decimal

from pricer.engine import analytics
from pricer.engine.debt import payment_for_rate
from pricer.errors import ValidationError
from pricer.models.pricing import BorrowerForm, LoanPurpose, PricingInput, PropertyCashFlow, PropertyType

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")

# Rate used to estimate DSCR before any product is priced
DSCR_ESTIMATE_RATE = Decimal("7.00")
DSCR_ESTIMATE_TERM_YEARS = 30

_FICO_BUCKET = re.compile(r"^\s*(\d{3})\s*(?:\+|-\s*\d{3})\s*$")

TRANSACTION_TYPES: dict[str, LoanPurpose] = {
    "purchase": LoanPurpose.PURCHASE,
    "refinance": LoanPurpose.REFINANCE,
    "rate/term refinance": LoanPurpose.REFINANCE,
    "cash out": LoanPurpose.CASH_OUT,
    "cash-out": LoanPurpose.CASH_OUT,
    "cash_out": LoanPurpose.CASH_OUT,
}

PROPERTY_TYPES: dict[str, str] = {
    "single family": PropertyType.SINGLE_FAMILY.value,
    "1-4 unit sfr": PropertyType.SINGLE_FAMILY.value,
    "multi family": PropertyType.MULTI_FAMILY.value,
    "2-4 units": PropertyType.MULTI_FAMILY.value,
    "condo": PropertyType.CONDO.value,
    "condos": PropertyType.CONDO.value,
    "townhouse": PropertyType.TOWNHOUSE.value,
    "townhomes": PropertyType.TOWNHOUSE.value,
}

PREPAY_LABELS: dict[str, str] = {
    "5-year term": "5/4/3/2/1",
    "3-year term": "3/2/1",
    "none": "None",
}

STATE_CODES: dict[str, str] = {
    "alabama": "AL", "alaska": "AK", "arizona": "AZ", "arkansas": "AR",
    "california": "CA", "colorado": "CO", "connecticut": "CT", "delaware": "DE",
    "district of columbia": "DC", "florida": "FL", "georgia": "GA", "hawaii": "HI",
    "idaho": "ID", "illinois": "IL", "indiana": "IN", "iowa": "IA",
    "kansas": "KS", "kentucky": "KY", "louisiana": "LA", "maine": "ME",
    "maryland": "MD", "massachusetts": "MA", "michigan": "MI", "minnesota": "MN",
    "mississippi": "MS", "missouri": "MO", "montana": "MT", "nebraska": "NE",
    "nevada": "NV", "new hampshire": "NH", "new jersey": "NJ", "new mexico": "NM",
    "new york": "NY", "north carolina": "NC", "north dakota": "ND", "ohio": "OH",
    "oklahoma": "OK", "oregon": "OR", "pennsylvania": "PA", "rhode island": "RI",
    "south carolina": "SC", "south dakota": "SD", "tennessee": "TN", "texas": "TX",
    "utah": "UT", "vermont": "VT", "virginia": "VA", "washington": "WA",
    "west virginia": "WV", "wisconsin": "WI", "wyoming": "WY",
}


def fico_from_bucket(bucket: str) -> int:
    """Lower bound of a FICO bucket: "740-759" -> 740, "780+" -> 780."""
    match = _FICO_BUCKET.match(bucket or "")
    if not match:
        raise ValidationError([f"fico_score bucket {bucket!r} is not of the form '740-759' or '780+'"])
    return int(match.group(1))


def loan_purpose_from_label(label: str) -> LoanPurpose:
    try:
        return TRANSACTION_TYPES[label.strip().lower()]
    except (KeyError, AttributeError):
        raise ValidationError([f"transaction_type {label!r} is not one of Purchase, Refinance, Cash Out"]) from None


def property_type_key(label: str) -> str:
    return PROPERTY_TYPES.get(label.strip().lower(), label)


def state_code(state: str) -> str:
    """Full state name or 2-letter code -> 2-letter code."""
    cleaned = (state or "").strip()
    if len(cleaned) == 2:
        return cleaned.upper()
    try:
        return STATE_CODES[cleaned.lower()]
    except KeyError:
        raise ValidationError([f"property_state {state!r} is not a US state"]) from None


def prepay_key(label: str) -> str:
    return PREPAY_LABELS.get(label.strip().lower(), label.strip())


def estimate_dscr(form: BorrowerForm) -> Decimal | None:
    """Unrounded DSCR at a 7.00% 30-year amortizing payment, or None without rent."""
    if form.monthly_rental_income <= 0 or form.loan_amount <= 0:
        return None
    payment = payment_for_rate(form.loan_amount, DSCR_ESTIMATE_RATE, DSCR_ESTIMATE_TERM_YEARS)
    cash_flow = PropertyCashFlow(
        monthly_rental_income=form.monthly_rental_income,
        annual_property_insurance=form.annual_property_insurance,
        annual_property_taxes=form.annual_property_taxes,
        monthly_hoa_fee=form.monthly_hoa_fee,
        estimated_home_value=form.estimated_home_value,
    )
    return analytics.dscr_ratio(analytics.noi(cash_flow), analytics.annual_debt_service(payment))


def form_to_pricing_input(form: BorrowerForm, product: str | None = None) -> PricingInput:
    """Normalize a borrower form. Raises ValidationError on unreadable labels."""
    ltv = Decimal("0")
    if form.estimated_home_value > 0:
        ltv = form.loan_amount / form.estimated_home_value * HUNDRED

    pricing_input = PricingInput(
        fico=fico_from_bucket(form.fico_score),
        ltv=ltv,
        loan_amount=form.loan_amount,
        loan_purpose=loan_purpose_from_label(form.transaction_type),
        property_type=property_type_key(form.property_type),
        property_state=state_code(form.property_state),
        estimated_home_value=form.estimated_home_value,
        prepay_structure=prepay_key(form.prepayment_penalty),
        product=product,
        dscr=estimate_dscr(form),
        broker_comp=form.broker_points,
        ysp=form.broker_ysp,
        discount_points=form.discount_points,
        broker_admin_fee=form.broker_admin_fee,
        monthly_rental_income=form.monthly_rental_income,
        annual_property_insurance=form.annual_property_insurance,
        annual_property_taxes=form.annual_property_taxes,
        monthly_hoa_fee=form.monthly_hoa_fee,
        is_short_term_rental=form.is_short_term_rental,
        units=form.units,
    )
    logger.debug("Normalized form: FICO %s, LTV %s, DSCR estimate %s", pricing_input.fico, ltv, pricing_input.dscr)
    return pricing_input
