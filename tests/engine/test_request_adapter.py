"""Tests for borrower form normalization."""

from dataclasses import replace
from decimal import Decimal

import pytest

from pricer.engine.pricing import calculate_pricing
from pricer.engine.request_adapter import (
    estimate_dscr,
    fico_from_bucket,
    form_to_pricing_input,
    loan_purpose_from_label,
    prepay_key,
    property_type_key,
    state_code,
)
from pricer.errors import ValidationError
from pricer.models.pricing import BorrowerForm, LoanPurpose
from pricer.models.results import NoEligibleProducts, PricingSuccess


@pytest.fixture
def form() -> BorrowerForm:
    return BorrowerForm(
        transaction_type="Purchase",
        property_state="Florida",
        property_type="Single Family",
        fico_score="740-759",
        estimated_home_value=Decimal("200000"),
        loan_amount=Decimal("160000"),
        prepayment_penalty="5-year term",
        broker_points=Decimal("1"),
        broker_ysp=Decimal("1"),
        monthly_rental_income=Decimal("2200"),
        annual_property_insurance=Decimal("1200"),
        annual_property_taxes=Decimal("3600"),
        monthly_hoa_fee=Decimal("600"),
    )


class TestFicoBucket:
    @pytest.mark.parametrize("bucket,expected", [
        ("740-759", 740),
        ("780+", 780),
        ("660 - 679", 660),
    ])
    def test_lower_bound(self, bucket, expected):
        assert fico_from_bucket(bucket) == expected

    @pytest.mark.parametrize("bucket", ["", "excellent", "74-759", "740"])
    def test_malformed(self, bucket):
        with pytest.raises(ValidationError, match="fico_score"):
            fico_from_bucket(bucket)


class TestLabels:
    @pytest.mark.parametrize("label,expected", [
        ("Purchase", LoanPurpose.PURCHASE),
        ("Refinance", LoanPurpose.REFINANCE),
        ("Cash Out", LoanPurpose.CASH_OUT),
        ("cash-out", LoanPurpose.CASH_OUT),
    ])
    def test_transaction_type(self, label, expected):
        assert loan_purpose_from_label(label) == expected

    def test_unknown_transaction_type(self):
        with pytest.raises(ValidationError):
            loan_purpose_from_label("Construction")

    @pytest.mark.parametrize("label,expected", [
        ("Single Family", "single_family"),
        ("Multi Family", "2-4_units"),
        ("Condo", "condo"),
        ("Townhouse", "townhouse"),
        ("1-4 Unit SFR", "single_family"),
        ("Condos", "condo"),
        ("Townhomes", "townhouse"),
        ("single_family", "single_family"),
        ("Mobile Home", "Mobile Home"),
    ])
    def test_property_type(self, label, expected):
        assert property_type_key(label) == expected

    @pytest.mark.parametrize("state,expected", [
        ("Florida", "FL"),
        ("new york", "NY"),
        ("District of Columbia", "DC"),
        ("tx", "TX"),
    ])
    def test_state(self, state, expected):
        assert state_code(state) == expected

    def test_unknown_state(self):
        with pytest.raises(ValidationError, match="Atlantis"):
            state_code("Atlantis")

    @pytest.mark.parametrize("label,expected", [
        ("5-year term", "5/4/3/2/1"),
        ("3-year term", "3/2/1"),
        ("None", "None"),
        ("3/3/3", "3/3/3"),
    ])
    def test_prepay(self, label, expected):
        assert prepay_key(label) == expected


class TestEstimateDSCR:
    def test_at_seven_percent(self, form):
        # 7.00% / 30yr on $160K = $1,064.48/mo; NOI $14,400 / $12,773.76
        assert estimate_dscr(form).quantize(Decimal("0.0001")) == Decimal("1.1273")

    def test_not_rounded(self, form):
        assert estimate_dscr(form) == Decimal("14400") / Decimal("12773.76")

    def test_no_rent(self, form):
        assert estimate_dscr(replace(form, monthly_rental_income=Decimal("0"))) is None


class TestFormToPricingInput:
    def test_normalized(self, form):
        p = form_to_pricing_input(form)
        assert p.fico == 740
        assert p.ltv == Decimal("80")
        assert p.loan_purpose is LoanPurpose.PURCHASE
        assert p.property_type == "single_family"
        assert p.property_state == "FL"
        assert p.prepay_structure == "5/4/3/2/1"
        assert p.broker_comp == Decimal("1")
        assert p.ysp == Decimal("1")
        assert p.product is None

    def test_prices_like_the_calculator(self, form, visio_table):
        outcome = calculate_pricing(form_to_pricing_input(form, product="30_Year_Fixed"), visio_table)
        assert isinstance(outcome, PricingSuccess)
        fixed = next(o for o in outcome.options if not o.interest_only)
        assert fixed.final_rate == Decimal("7.400")

    def test_multi_family_priced_as_ineligible(self, form, visio_table):
        p = form_to_pricing_input(replace(form, property_type="Multi Family"))
        outcome = calculate_pricing(p, visio_table)
        assert isinstance(outcome, NoEligibleProducts)
        assert any("2-4_units" in r for r in outcome.reasons)

    def test_malformed_bucket(self, form):
        with pytest.raises(ValidationError):
            form_to_pricing_input(replace(form, fico_score="great"))
