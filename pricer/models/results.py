"""Analytics records and the typed outcomes returned across the engine boundary."""

from dataclasses import dataclass, field
from decimal import Decimal

from pricer.models.pricing import LoanOption


@dataclass(frozen=True)
class DSCRMetrics:
    annual_rental_income: Decimal
    annual_operating_expenses: Decimal
    noi: Decimal
    debt_service: Decimal
    dscr: Decimal
    cash_flow: Decimal  # annual
    cap_rate: Decimal | None = None  # percent; None when undefined
    cash_on_cash_return: Decimal | None = None  # percent; None when undefined
    break_even_ratio: Decimal | None = None  # None when undefined
    undefined_metrics: tuple[str, ...] = ()


@dataclass(frozen=True)
class CashToClose:
    down_payment: Decimal
    loan_fees: Decimal
    estimated_third_party_fees: Decimal

    @property
    def total(self) -> Decimal:
        return self.down_payment + self.loan_fees + self.estimated_third_party_fees


# ---- Pricing outcomes ----

@dataclass(frozen=True)
class PricingSuccess:
    options: tuple[LoanOption, ...]
    warnings: tuple[str, ...] = ()
    excluded: tuple[str, ...] = ()  # products dropped as ineligible, with reasons
    success: bool = field(default=True, init=False)


@dataclass(frozen=True)
class NoEligibleProducts:
    """Input was valid but nothing could be offered."""
    reasons: tuple[str, ...]
    warnings: tuple[str, ...] = ()
    success: bool = field(default=False, init=False)

    @property
    def error(self) -> str:
        return "No eligible products"


@dataclass(frozen=True)
class PricingFailure:
    kind: str  # "validation" | "data_gap" | "internal"
    error: str
    errors: tuple[str, ...] = ()
    success: bool = field(default=False, init=False)


PricingOutcome = PricingSuccess | NoEligibleProducts | PricingFailure


# ---- Analytics outcomes ----

@dataclass(frozen=True)
class AnalyticsSuccess:
    metrics: DSCRMetrics
    success: bool = field(default=True, init=False)


@dataclass(frozen=True)
class AnalyticsFailure:
    kind: str  # "undefined" | "validation" | "internal"
    error: str
    metric: str | None = None
    success: bool = field(default=False, init=False)


AnalyticsOutcome = AnalyticsSuccess | AnalyticsFailure
