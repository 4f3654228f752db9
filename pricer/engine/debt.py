"""Mortgage payment math.

Pure functions: Decimal in, Decimal out. No I/O.
Rates here are annual fractions (0.07 for 7%); callers holding percent rates
use ``payment_for_rate``.
"""

from decimal import Decimal, ROUND_HALF_UP

TWO_PLACES = Decimal("0.01")
HUNDRED = Decimal("100")


def monthly_payment(principal: Decimal, annual_rate: Decimal, term_years: int) -> Decimal:
    """Calculate fixed monthly mortgage payment."""
    if principal <= 0:
        return Decimal("0")
    if annual_rate <= 0:
        return (principal / (term_years * 12)).quantize(TWO_PLACES, ROUND_HALF_UP)

    r = annual_rate / 12
    n = term_years * 12
    # M = P * [r(1+r)^n] / [(1+r)^n - 1]
    factor = (1 + r) ** n
    payment = principal * (r * factor) / (factor - 1)
    return payment.quantize(TWO_PLACES, ROUND_HALF_UP)


def interest_only_payment(principal: Decimal, annual_rate: Decimal) -> Decimal:
    """Interest-only monthly payment: no principal component."""
    if principal <= 0 or annual_rate <= 0:
        return Decimal("0")
    return (principal * annual_rate / 12).quantize(TWO_PLACES, ROUND_HALF_UP)


def payment_for_rate(
    principal: Decimal,
    rate_pct: Decimal,
    term_years: int,
    interest_only: bool = False,
) -> Decimal:
    """Monthly payment for a percent rate (7.4 for 7.4%)."""
    annual_rate = rate_pct / HUNDRED
    if interest_only:
        return interest_only_payment(principal, annual_rate)
    return monthly_payment(principal, annual_rate, term_years)
