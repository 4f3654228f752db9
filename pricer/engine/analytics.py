"""DSCR and cash-flow analytics for a selected loan option.

Pure functions: Decimal in, Decimal out. No I/O.
Ratios whose denominator is zero raise ComputationError instead of returning
0, NaN or infinity; ``analyze_selection`` turns that into a typed failure.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP

from pricer.config import settings
from pricer.errors import ComputationError, PricingError
from pricer.models.pricing import LoanOption, LoanPurpose, PropertyCashFlow
from pricer.models.results import (
    AnalyticsFailure,
    AnalyticsOutcome,
    AnalyticsSuccess,
    CashToClose,
    DSCRMetrics,
)

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")
HUNDRED = Decimal("100")


def annual_rental_income(cash_flow: PropertyCashFlow) -> Decimal:
    return cash_flow.monthly_rental_income * 12


def annual_operating_expenses(cash_flow: PropertyCashFlow) -> Decimal:
    """Insurance + taxes + HOA. Management, vacancy and reserves are not underwritten."""
    return (
        cash_flow.annual_property_insurance
        + cash_flow.annual_property_taxes
        + cash_flow.monthly_hoa_fee * 12
    )


def noi(cash_flow: PropertyCashFlow) -> Decimal:
    """Net Operating Income = annual rent - annual operating expenses."""
    return annual_rental_income(cash_flow) - annual_operating_expenses(cash_flow)


def annual_debt_service(monthly_payment: Decimal) -> Decimal:
    return monthly_payment * 12


def dscr_ratio(noi_amount: Decimal, debt_service: Decimal) -> Decimal:
    """Unrounded NOI / annual debt service. Band lookups use this value."""
    if debt_service == 0:
        raise ComputationError("dscr", "annual debt service is zero")
    return noi_amount / debt_service


def dscr(noi_amount: Decimal, debt_service: Decimal) -> Decimal:
    """Debt Service Coverage Ratio = NOI / annual debt service, to four places."""
    return dscr_ratio(noi_amount, debt_service).quantize(FOUR_PLACES, ROUND_HALF_UP)


def cap_rate(noi_amount: Decimal, property_value: Decimal) -> Decimal:
    """Cap rate, percent = NOI / property value * 100."""
    if property_value == 0:
        raise ComputationError("cap_rate", "estimated home value is zero")
    return (noi_amount / property_value * HUNDRED).quantize(FOUR_PLACES, ROUND_HALF_UP)


def cash_on_cash(cash_flow: Decimal, total_cash_invested: Decimal) -> Decimal:
    """Cash-on-cash return, percent = annual cash flow / total cash invested * 100."""
    if total_cash_invested == 0:
        raise ComputationError("cash_on_cash_return", "total cash invested is zero")
    return (cash_flow / total_cash_invested * HUNDRED).quantize(FOUR_PLACES, ROUND_HALF_UP)


def break_even_ratio(operating_expenses: Decimal, debt_service: Decimal, rental_income: Decimal) -> Decimal:
    """(Operating expenses + debt service) / gross rental income."""
    if rental_income == 0:
        raise ComputationError("break_even_ratio", "annual rental income is zero")
    return ((operating_expenses + debt_service) / rental_income).quantize(FOUR_PLACES, ROUND_HALF_UP)


def compute_dscr_metrics(
    option: LoanOption,
    cash_flow: PropertyCashFlow,
    total_cash_invested: Decimal,
) -> DSCRMetrics:
    """All cash-flow metrics for one loan option.

    Raises ComputationError only when DSCR itself is undefined. Cap rate,
    cash-on-cash and break-even come back as None, named in
    ``undefined_metrics``, when their denominator is zero.
    """
    income = annual_rental_income(cash_flow)
    expenses = annual_operating_expenses(cash_flow)
    net = income - expenses
    debt_service = annual_debt_service(option.monthly_payment)
    annual_cash_flow = net - debt_service
    coverage = dscr(net, debt_service)

    ratios: dict[str, Decimal | None] = {}
    undefined: list[str] = []
    for metric, compute in (
        ("cap_rate", lambda: cap_rate(net, cash_flow.estimated_home_value)),
        ("cash_on_cash_return", lambda: cash_on_cash(annual_cash_flow, total_cash_invested)),
        ("break_even_ratio", lambda: break_even_ratio(expenses, debt_service, income)),
    ):
        try:
            ratios[metric] = compute()
        except ComputationError as e:
            logger.info("%s for %s", e, option.product)
            ratios[metric] = None
            undefined.append(e.metric)

    return DSCRMetrics(
        annual_rental_income=income.quantize(TWO_PLACES, ROUND_HALF_UP),
        annual_operating_expenses=expenses.quantize(TWO_PLACES, ROUND_HALF_UP),
        noi=net.quantize(TWO_PLACES, ROUND_HALF_UP),
        debt_service=debt_service.quantize(TWO_PLACES, ROUND_HALF_UP),
        dscr=coverage,
        cash_flow=annual_cash_flow.quantize(TWO_PLACES, ROUND_HALF_UP),
        undefined_metrics=tuple(undefined),
        **ratios,
    )


def analyze_selection(
    option: LoanOption,
    cash_flow: PropertyCashFlow,
    total_cash_invested: Decimal,
) -> AnalyticsOutcome:
    """Boundary wrapper: never raises, returns a success or typed failure."""
    try:
        if total_cash_invested < 0:
            return AnalyticsFailure(kind="validation", error="total_cash_invested must not be negative")
        return AnalyticsSuccess(metrics=compute_dscr_metrics(option, cash_flow, total_cash_invested))
    except ComputationError as e:
        logger.info("Analytics undefined for %s: %s", option.product, e)
        return AnalyticsFailure(kind="undefined", error=str(e), metric=e.metric)
    except PricingError as e:
        return AnalyticsFailure(kind="validation", error=str(e))
    except Exception:
        logger.exception("Unexpected analytics failure for %s", option.product)
        return AnalyticsFailure(kind="internal", error="Internal error computing DSCR metrics")


def cash_to_close(
    option: LoanOption,
    estimated_home_value: Decimal,
    loan_purpose: LoanPurpose,
    third_party_fee_pct: Decimal | None = None,
) -> CashToClose:
    """Borrower cash needed at closing: down payment + loan fees + third-party estimate.

    Refinances bring no down payment.
    """
    if third_party_fee_pct is None:
        third_party_fee_pct = settings.third_party_fee_pct
    down_payment = Decimal("0")
    if loan_purpose is LoanPurpose.PURCHASE:
        down_payment = max(estimated_home_value - option.loan_amount, Decimal("0"))
    return CashToClose(
        down_payment=down_payment.quantize(TWO_PLACES, ROUND_HALF_UP),
        loan_fees=option.total_fees,
        estimated_third_party_fees=(option.loan_amount * third_party_fee_pct).quantize(
            TWO_PLACES, ROUND_HALF_UP
        ),
    )
