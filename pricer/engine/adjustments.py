"""Adjustment resolvers: one pure function per rate adjustment category.

Each takes normalized inputs plus a RateTable and returns a signed Decimal in
percentage points. Inputs that fall in a gap, outside every band, or into a
band with no confirmed value raise DataGapError; combinations the lender does
not price raise EligibilityExclusion. Nothing falls back to zero.

Band inclusivity per table:
    FICO tiers        closed on both ends      740-759 includes 740 and 759
    LTV columns       (low, high]              80.00 prices in 75.01-80
    Loan size         [low, high)              $250,000 prices in 250K-999,999;
                      top band closed at the program maximum
    DSCR              as declared per band     [0.75, 1.00) [1.00, 1.20] (1.20, +inf)
"""

import logging
from decimal import Decimal

from pricer.errors import DataGapError, EligibilityExclusion
from pricer.models.pricing import LoanPurpose, PropertyType
from pricer.models.rate_table import NOT_OFFERED, Band, BandTable, RateTable

logger = logging.getLogger(__name__)


def _single_band(table: BandTable, x: Decimal) -> Band:
    matches = table.matching(x)
    if not matches:
        raise DataGapError(table.name, x, "outside every band")
    if len(matches) > 1:
        ranges = ", ".join(b.describe() for b in matches)
        raise DataGapError(table.name, x, f"matches more than one band: {ranges}")
    return matches[0]


def _band_value(table: BandTable, band: Band, x: Decimal) -> Decimal:
    if band.value is None:
        raise DataGapError(table.name, x, f"band {band.describe()} has no confirmed adjustment")
    if band.value == NOT_OFFERED:
        raise EligibilityExclusion(f"{table.name}: {x} ({band.describe()}) is not offered")
    return band.value


def resolve_base_rate(table: RateTable, fico: int, ltv: Decimal) -> Decimal:
    """Base rate from the FICO tier row and LTV column."""
    tiers = [t for t in table.fico_tiers if t.contains(fico)]
    if not tiers:
        raise DataGapError("base_rates", fico, "FICO outside every tier")
    if len(tiers) > 1:
        raise DataGapError("base_rates", fico, "FICO matches more than one tier")
    tier = tiers[0]

    band = _single_band(tier.ltv_rates, ltv)
    if band.value == NOT_OFFERED:
        raise EligibilityExclusion(
            f"LTV {ltv}% is not offered for FICO tier {tier.label}"
        )
    rate = _band_value(tier.ltv_rates, band, ltv)
    logger.debug("Base rate: FICO %s (%s), LTV %s %s -> %s", fico, tier.label, ltv, band.describe(), rate)
    return rate


def resolve_product_adjustment(table: RateTable, product: str) -> Decimal:
    spec = table.products.get(product)
    if spec is None:
        raise EligibilityExclusion(f"Product {product!r} is not offered")
    return spec.adjustment


def resolve_interest_only_adjustment(table: RateTable, product: str, interest_only: bool) -> Decimal:
    if not interest_only:
        return Decimal("0")
    spec = table.products.get(product)
    if spec is None or not spec.interest_only_available:
        raise EligibilityExclusion(f"Interest-only is not offered on {product!r}")
    return table.interest_only_adjustment


def resolve_dscr_adjustment(table: RateTable, dscr: Decimal, ltv: Decimal) -> Decimal:
    """DSCR band adjustment. Bands may carry an LTV cap above which they are not offered."""
    band = _single_band(table.dscr_adjustments, dscr)
    if band.max_ltv is not None and ltv > band.max_ltv:
        raise EligibilityExclusion(
            f"DSCR {dscr} ({band.describe()}) requires LTV <= {band.max_ltv}%, got {ltv}%"
        )
    if band.value == NOT_OFFERED:
        raise EligibilityExclusion(f"DSCR {dscr} ({band.describe()}) is priced case-by-case")
    adjustment = _band_value(table.dscr_adjustments, band, dscr)
    logger.debug("DSCR adjustment: %s in %s -> %s", dscr, band.describe(), adjustment)
    return adjustment


def resolve_origination_fee_adjustment(table: RateTable, broker_comp: Decimal) -> Decimal:
    try:
        return table.origination_fee_adjustments[broker_comp]
    except KeyError:
        raise DataGapError("origination_fee_adjustments", broker_comp, "unsupported broker comp") from None


def resolve_ysp_adjustment(table: RateTable, ysp: Decimal) -> Decimal:
    try:
        return table.ysp_adjustments[ysp]
    except KeyError:
        raise DataGapError("ysp_adjustments", ysp, "unsupported YSP") from None


def resolve_loan_size_adjustment(table: RateTable, loan_amount: Decimal) -> Decimal:
    band = _single_band(table.loan_size_adjustments, loan_amount)
    adjustment = _band_value(table.loan_size_adjustments, band, loan_amount)
    logger.debug("Loan size adjustment: %s in %s -> %s", loan_amount, band.describe(), adjustment)
    return adjustment


def resolve_prepay_adjustment(table: RateTable, prepay_structure: str) -> Decimal:
    """Exact key lookup. "None" is an ordinary table key, not a default."""
    try:
        return table.prepay_adjustments[prepay_structure]
    except KeyError:
        known = ", ".join(table.prepay_adjustments)
        raise DataGapError("prepay_adjustments", prepay_structure, f"known structures: {known}") from None


def resolve_program_adjustment(
    table: RateTable,
    loan_purpose: LoanPurpose,
    property_type: str,
    is_short_term_rental: bool,
) -> Decimal:
    """Program overrides for cash-out, condo and short-term rental, summed."""
    program = table.program_adjustments
    adjustment = Decimal("0")
    if loan_purpose is LoanPurpose.CASH_OUT:
        adjustment += program.cash_out_refinance
    if property_type == PropertyType.CONDO.value:
        adjustment += program.condo
    if is_short_term_rental:
        adjustment += program.short_term_rental
    return adjustment


def resolve_units_adjustment(table: RateTable, units: int) -> Decimal:
    return table.program_adjustments.units if units > 1 else Decimal("0")
