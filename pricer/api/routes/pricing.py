"""Loan pricing routes: the primary API entry point."""

import logging
from collections.abc import Mapping

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from pricer.api.deps import get_rate_tables
from pricer.api.schemas import (
    AnalyticsRequest,
    AnalyticsResponse,
    CashToCloseRequest,
    CashToCloseResponse,
    CashToCloseSchema,
    DSCRMetricsSchema,
    ErrorResponse,
    FormPricingRequest,
    LoanOptionSchema,
    PricingRequest,
    PricingResponse,
)
from pricer.engine.analytics import analyze_selection, cash_to_close
from pricer.engine.pricing import price_loan
from pricer.engine.request_adapter import form_to_pricing_input
from pricer.errors import ValidationError
from pricer.models.pricing import PricingInput
from pricer.models.rate_table import RateTable
from pricer.models.results import AnalyticsSuccess, NoEligibleProducts, PricingFailure, PricingSuccess

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/loan-pricing", tags=["pricing"])


def _error(status_code: int, **kwargs) -> JSONResponse:
    body = ErrorResponse(**kwargs)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", by_alias=True))


def _price(program: str, pricing_input: PricingInput, tables: Mapping[tuple[str, str], RateTable]):
    outcome = price_loan(program, pricing_input, tables=tables)
    if isinstance(outcome, PricingSuccess):
        return PricingResponse(
            data=[LoanOptionSchema.model_validate(o) for o in outcome.options],
            warnings=list(outcome.warnings),
            excluded=list(outcome.excluded),
        )
    if isinstance(outcome, NoEligibleProducts):
        return _error(
            400,
            error=outcome.error,
            kind="ineligible",
            errors=list(outcome.reasons),
            warnings=list(outcome.warnings),
        )
    status_code = 500 if outcome.kind == "internal" else 400
    return _error(status_code, error=outcome.error, kind=outcome.kind, errors=list(outcome.errors))


@router.post("", response_model=PricingResponse, responses={400: {"model": ErrorResponse}})
async def price(req: PricingRequest, tables=Depends(get_rate_tables)):
    """Price a normalized scenario: every eligible product, best rate first."""
    return _price(req.loan_program, req.input.to_domain(), tables)


@router.post("/form", response_model=PricingResponse, responses={400: {"model": ErrorResponse}})
async def price_form(req: FormPricingRequest, tables=Depends(get_rate_tables)):
    """Price the borrower calculator form as submitted."""
    try:
        pricing_input = form_to_pricing_input(req.form.to_domain(), product=req.product)
    except ValidationError as e:
        return _error(400, error="Invalid pricing request", kind="validation", errors=e.errors)
    return _price(req.loan_program, pricing_input, tables)


@router.post("/analytics", response_model=AnalyticsResponse, responses={400: {"model": ErrorResponse}})
async def analytics(req: AnalyticsRequest):
    """Cash-flow metrics for a selected loan option."""
    outcome = analyze_selection(req.option.to_domain(), req.property.to_domain(), req.total_cash_invested)
    if isinstance(outcome, AnalyticsSuccess):
        return AnalyticsResponse(data=DSCRMetricsSchema.model_validate(outcome.metrics))
    status_code = 500 if outcome.kind == "internal" else 400
    return _error(status_code, error=outcome.error, kind=outcome.kind, metric=outcome.metric)


@router.post("/cash-to-close", response_model=CashToCloseResponse)
async def estimate_cash_to_close(req: CashToCloseRequest):
    """Down payment, loan fees and third-party estimate for a selected option."""
    result = cash_to_close(
        req.option.to_domain(),
        req.estimated_home_value,
        req.loan_purpose,
        third_party_fee_pct=req.third_party_fee_pct,
    )
    return CashToCloseResponse(data=CashToCloseSchema.model_validate(result))
