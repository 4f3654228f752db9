"""Pydantic schemas for API request/response models.

JSON bodies are camelCase; Python attributes stay snake_case.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pricer.engine.request_adapter import property_type_key
from pricer.models.pricing import (
    BorrowerForm,
    FeeBreakdown,
    LoanOption,
    LoanPurpose,
    PricingInput,
    PropertyCashFlow,
    RateBreakdown,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ---- Request schemas ----

class PricingInputSchema(CamelModel):
    fico: int
    ltv: Decimal = Decimal("0")
    loan_amount: Decimal
    loan_purpose: LoanPurpose
    property_type: str
    property_state: str
    estimated_home_value: Decimal = Decimal("0")
    prepay_structure: str = "None"
    occupancy_type: str = "investment"
    product: str | None = None
    interest_only: bool | None = None
    dscr: Decimal | None = None
    broker_comp: Decimal = Decimal("0")
    ysp: Decimal = Decimal("0")
    discount_points: Decimal = Decimal("0")
    broker_admin_fee: Decimal = Decimal("0")
    monthly_rental_income: Decimal = Decimal("0")
    annual_property_insurance: Decimal = Decimal("0")
    annual_property_taxes: Decimal = Decimal("0")
    monthly_hoa_fee: Decimal = Decimal("0")
    is_short_term_rental: bool = False
    units: int = 1

    def to_domain(self) -> PricingInput:
        data = self.model_dump()
        data["property_type"] = property_type_key(data["property_type"])
        return PricingInput(**data)


class PricingRequest(CamelModel):
    loan_program: str = "DSCR"
    input: PricingInputSchema


class BorrowerFormSchema(CamelModel):
    transaction_type: str
    property_state: str
    property_type: str
    fico_score: str
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

    def to_domain(self) -> BorrowerForm:
        return BorrowerForm(**self.model_dump())


class FormPricingRequest(CamelModel):
    loan_program: str = "DSCR"
    product: str | None = None
    form: BorrowerFormSchema


class PropertyCashFlowSchema(CamelModel):
    monthly_rental_income: Decimal
    annual_property_insurance: Decimal = Decimal("0")
    annual_property_taxes: Decimal = Decimal("0")
    monthly_hoa_fee: Decimal = Decimal("0")
    estimated_home_value: Decimal = Decimal("0")

    def to_domain(self) -> PropertyCashFlow:
        return PropertyCashFlow(**self.model_dump())


# ---- Loan option (response, and echoed back by clients) ----

class RateBreakdownSchema(CamelModel):
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


class FeeBreakdownSchema(CamelModel):
    origination_fee: Decimal
    underwriting_fee: Decimal
    admin_fee: Decimal
    ysp_fee: Decimal = Decimal("0")
    prepay_fee: Decimal = Decimal("0")
    loan_size_adjustment_fee: Decimal = Decimal("0")
    small_loan_fee: Decimal | None = None
    total: Decimal | None = None  # output only


class LoanOptionSchema(CamelModel):
    lender_id: str
    lender_name: str
    product: str
    base_rate: Decimal
    final_rate: Decimal
    points: Decimal
    monthly_payment: Decimal
    total_fees: Decimal
    term_years: int
    breakdown: RateBreakdownSchema
    fee_breakdown: FeeBreakdownSchema
    loan_amount: Decimal
    interest_only: bool = False
    qualifying_dscr: Decimal | None = None

    def to_domain(self) -> LoanOption:
        data = self.model_dump(exclude={"breakdown", "fee_breakdown"})
        return LoanOption(
            **data,
            breakdown=RateBreakdown(**self.breakdown.model_dump()),
            fee_breakdown=FeeBreakdown(**self.fee_breakdown.model_dump(exclude={"total"})),
        )


class AnalyticsRequest(CamelModel):
    option: LoanOptionSchema
    property: PropertyCashFlowSchema
    total_cash_invested: Decimal


class CashToCloseRequest(CamelModel):
    option: LoanOptionSchema
    estimated_home_value: Decimal
    loan_purpose: LoanPurpose
    third_party_fee_pct: Decimal | None = Field(None, description="Fraction of the loan, e.g. 0.015")


# ---- Response schemas ----

class PricingResponse(CamelModel):
    success: bool = True
    data: list[LoanOptionSchema]
    warnings: list[str] = []
    excluded: list[str] = []


class DSCRMetricsSchema(CamelModel):
    annual_rental_income: Decimal
    annual_operating_expenses: Decimal
    noi: Decimal
    debt_service: Decimal
    dscr: Decimal
    cash_flow: Decimal
    cap_rate: Decimal | None = None
    cash_on_cash_return: Decimal | None = None
    break_even_ratio: Decimal | None = None
    undefined_metrics: list[str] = []


class AnalyticsResponse(CamelModel):
    success: bool = True
    data: DSCRMetricsSchema


class CashToCloseSchema(CamelModel):
    down_payment: Decimal
    loan_fees: Decimal
    estimated_third_party_fees: Decimal
    total: Decimal


class CashToCloseResponse(CamelModel):
    success: bool = True
    data: CashToCloseSchema


class SelectionResponse(CamelModel):
    application_id: str
    selected_loan: LoanOptionSchema


class ErrorResponse(CamelModel):
    success: bool = False
    error: str
    kind: str | None = None
    errors: list[str] = []
    warnings: list[str] = []
    metric: str | None = None
