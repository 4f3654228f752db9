"""Pricing engine: one LoanOption per eligible product variant.

Every adjustment is resolved independently against the request and the
adjustments are added, never compounded. The DSCR band is resolved from the
property's qualifying DSCR: NOI over the annual payment at the rate built from
every other adjustment.

Pure computation. No I/O.
"""

import logging
from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_HALF_UP
from collections.abc import Mapping

from pricer.engine import analytics
from pricer.engine.adjustments import (
    resolve_base_rate,
    resolve_dscr_adjustment,
    resolve_interest_only_adjustment,
    resolve_loan_size_adjustment,
    resolve_origination_fee_adjustment,
    resolve_prepay_adjustment,
    resolve_product_adjustment,
    resolve_program_adjustment,
    resolve_units_adjustment,
    resolve_ysp_adjustment,
)
from pricer.engine.debt import payment_for_rate
from pricer.engine.eligibility import check_eligibility, derive_ltv, validate_pricing_input
from pricer.engine.rate_table import get_rate_table
from pricer.errors import (
    ComputationError,
    DataGapError,
    EligibilityExclusion,
    ValidationError,
)
from pricer.models.pricing import (
    FeeBreakdown,
    LoanOption,
    PricingInput,
    PropertyCashFlow,
    RateBreakdown,
)
from pricer.models.rate_table import ProductSpec, RateTable
from pricer.models.results import (
    NoEligibleProducts,
    PricingFailure,
    PricingOutcome,
    PricingSuccess,
)

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")
HUNDRED = Decimal("100")
INTEREST_ONLY_SUFFIX = " - Interest Only"


@dataclass(frozen=True)
class ProductVariant:
    spec: ProductSpec
    interest_only: bool = False

    @property
    def name(self) -> str:
        if self.interest_only:
            return f"{self.spec.name}{INTEREST_ONLY_SUFFIX}"
        return self.spec.name


def product_variants(
    table: RateTable,
    product: str | None = None,
    interest_only: bool | None = None,
) -> list[ProductVariant]:
    """Variants the program offers, in table order, filtered by the request.

    An unknown ``product`` yields an empty list: not offered, not an error.
    """
    variants: list[ProductVariant] = []
    for spec in table.products.values():
        if product and spec.name != product:
            continue
        if interest_only is not True:
            variants.append(ProductVariant(spec, interest_only=False))
        if interest_only is not False and spec.interest_only_available:
            variants.append(ProductVariant(spec, interest_only=True))
    return variants


def qualifying_dscr(pricing_input: PricingInput, monthly_payment: Decimal) -> Decimal:
    """DSCR used for the rate band.

    Computed from the property cash flows when rent is given; otherwise the
    caller's estimate. Unrounded, so a ratio just past a band edge prices
    in the next band.
    """
    if pricing_input.monthly_rental_income > 0:
        cash_flow = PropertyCashFlow.from_input(pricing_input)
        return analytics.dscr_ratio(analytics.noi(cash_flow), analytics.annual_debt_service(monthly_payment))
    if pricing_input.dscr is None:
        raise ValidationError(["dscr or monthly_rental_income is required"])
    return pricing_input.dscr


def fee_breakdown(pricing_input: PricingInput, table: RateTable) -> FeeBreakdown:
    """Closing fees. YSP, prepayment and loan-size pricing go through the rate, not fees."""
    loan_amount = pricing_input.loan_amount
    small_loan = table.fees.small_loan_fee
    small_loan_fee = None
    if small_loan is not None and small_loan.contains(loan_amount):
        small_loan_fee = small_loan.value

    return FeeBreakdown(
        origination_fee=(pricing_input.broker_comp * loan_amount / HUNDRED).quantize(
            TWO_PLACES, ROUND_HALF_UP
        ),
        underwriting_fee=table.fees.underwriting_fee,
        admin_fee=pricing_input.broker_admin_fee,
        small_loan_fee=small_loan_fee,
    )


def price_variant(
    pricing_input: PricingInput,
    table: RateTable,
    variant: ProductVariant,
    prepay_adjustment: Decimal,
) -> LoanOption:
    """Price one product variant. Raises EligibilityExclusion or DataGapError."""
    p = pricing_input
    spec = variant.spec

    partial = RateBreakdown(
        base_rate=resolve_base_rate(table, p.fico, p.ltv),
        product_adjustment=resolve_product_adjustment(table, spec.name),
        interest_only_adjustment=resolve_interest_only_adjustment(table, spec.name, variant.interest_only),
        origination_fee_adjustment=resolve_origination_fee_adjustment(table, p.broker_comp),
        loan_size_adjustment=resolve_loan_size_adjustment(table, p.loan_amount),
        ysp_adjustment=resolve_ysp_adjustment(table, p.ysp),
        prepay_adjustment=prepay_adjustment,
        program_adjustment=resolve_program_adjustment(
            table, p.loan_purpose, p.property_type, p.is_short_term_rental
        ),
        units_adjustment=resolve_units_adjustment(table, p.units),
        rate_adjustment=table.program_adjustments.rate_adjustment,
    )

    # The DSCR band depends on the payment, so qualify at the rate without it
    pre_dscr_rate = max(partial.total, table.minimum_rate)
    pre_dscr_payment = payment_for_rate(p.loan_amount, pre_dscr_rate, spec.term_years, variant.interest_only)
    try:
        property_dscr = qualifying_dscr(p, pre_dscr_payment)
    except ComputationError as e:
        raise EligibilityExclusion(f"{variant.name}: cannot qualify DSCR ({e})") from None
    dscr_adjustment = resolve_dscr_adjustment(table, property_dscr, p.ltv)

    unfloored = replace(partial, dscr_adjustment=dscr_adjustment)
    floor_lift = max(table.minimum_rate - unfloored.total, Decimal("0"))
    breakdown = replace(unfloored, minimum_rate_adjustment=floor_lift)
    final_rate = breakdown.total

    fees = fee_breakdown(p, table)
    logger.debug(
        "%s: base %s + adjustments %s = %s (qualifying DSCR %s)",
        variant.name, breakdown.base_rate, breakdown.adjustments_total, final_rate, property_dscr,
    )

    return LoanOption(
        lender_id=table.lender_id,
        lender_name=table.lender_name,
        product=variant.name,
        base_rate=breakdown.base_rate,
        final_rate=final_rate,
        points=breakdown.adjustments_total,
        monthly_payment=payment_for_rate(p.loan_amount, final_rate, spec.term_years, variant.interest_only),
        total_fees=fees.total,
        term_years=spec.term_years,
        breakdown=breakdown,
        fee_breakdown=fees,
        loan_amount=p.loan_amount,
        interest_only=variant.interest_only,
        qualifying_dscr=property_dscr.quantize(FOUR_PLACES, ROUND_HALF_UP),
    )


def calculate_pricing(pricing_input: PricingInput, table: RateTable) -> PricingSuccess | NoEligibleProducts:
    """Price every eligible variant.

    Raises ValidationError for malformed input and DataGapError for lookups
    the table cannot answer; ineligibility is returned, not raised.
    """
    validate_pricing_input(pricing_input)
    p = derive_ltv(pricing_input)

    # An unknown structure is a data error even when the request is ineligible
    prepay_adjustment = resolve_prepay_adjustment(table, p.prepay_structure)

    report = check_eligibility(p, table)
    if not report.is_eligible:
        return NoEligibleProducts(reasons=report.errors, warnings=report.warnings)

    variants = product_variants(table, p.product, p.interest_only)
    if not variants:
        reason = f"Product {p.product!r} is not offered" if p.product else "No products offered"
        return NoEligibleProducts(reasons=(reason,), warnings=report.warnings)

    options: list[LoanOption] = []
    excluded: list[str] = []
    for variant in variants:
        try:
            options.append(price_variant(p, table, variant, prepay_adjustment))
        except EligibilityExclusion as e:
            logger.info("Excluded %s: %s", variant.name, e)
            excluded.append(f"{variant.name}: {e}")

    if not options:
        return NoEligibleProducts(reasons=tuple(excluded), warnings=report.warnings)

    options.sort(key=lambda o: o.final_rate)
    logger.info(
        "Priced %d option(s) for %s/%s; best %s at %s%%",
        len(options), table.lender_id, table.program, options[0].product, options[0].final_rate,
    )
    return PricingSuccess(options=tuple(options), warnings=report.warnings, excluded=tuple(excluded))


def price_loan(
    program: str,
    pricing_input: PricingInput,
    tables: Mapping[tuple[str, str], RateTable] | None = None,
    lender_id: str | None = None,
) -> PricingOutcome:
    """Pricing boundary: never raises, always returns a typed outcome."""
    try:
        table = get_rate_table(program, lender_id=lender_id, tables=tables)
        return calculate_pricing(pricing_input, table)
    except ValidationError as e:
        logger.info("Rejected pricing request: %s", e)
        return PricingFailure(kind="validation", error="Invalid pricing request", errors=tuple(e.errors))
    except EligibilityExclusion as e:
        return NoEligibleProducts(reasons=(str(e),))
    except DataGapError as e:
        logger.warning("Rate table gap: %s", e)
        return PricingFailure(kind="data_gap", error=str(e))
    except Exception:
        logger.exception("Unexpected pricing failure for program %s", program)
        return PricingFailure(kind="internal", error="Internal error while pricing")
