"""End-to-end pricing tests against the shipped Visio DSCR matrix.

Canonical scenario: FICO 745, 80% LTV, $160,000, 30-year fixed, 5/4/3/2/1,
1 point broker comp, 1 point YSP.
    base 6.825 + product 0.200 - origination 0.300 + loan size 0.250
    + YSP 0.250 + prepay 0.000 = 7.225 before the DSCR band
"""

import logging
from dataclasses import fields, replace
from decimal import Decimal

import pytest

from pricer.engine.debt import payment_for_rate
from pricer.engine.rate_table import build_rate_table
from pricer.engine.pricing import (
    calculate_pricing,
    fee_breakdown,
    price_loan,
    product_variants,
    qualifying_dscr,
)
from pricer.errors import DataGapError, ValidationError
from pricer.models.pricing import LoanPurpose
from pricer.models.results import NoEligibleProducts, PricingFailure, PricingSuccess


def only_option(outcome):
    assert isinstance(outcome, PricingSuccess)
    assert len(outcome.options) == 1
    return outcome.options[0]


class TestCanonicalScenario:
    def test_components(self, canonical_input, visio_table):
        option = only_option(calculate_pricing(canonical_input, visio_table))
        b = option.breakdown
        assert b.base_rate == Decimal("6.825")
        assert b.product_adjustment == Decimal("0.200")
        assert b.origination_fee_adjustment == Decimal("-0.300")
        assert b.loan_size_adjustment == Decimal("0.250")
        assert b.ysp_adjustment == Decimal("0.250")
        assert b.prepay_adjustment == Decimal("0.000")
        assert b.program_adjustment == Decimal("0")
        assert b.interest_only_adjustment == Decimal("0")
        assert b.total - b.dscr_adjustment == Decimal("7.225")

    def test_caller_dscr_in_middle_band(self, canonical_input, visio_table):
        """No rent given: the caller's 1.10 estimate selects the [1.00, 1.20] band."""
        option = only_option(calculate_pricing(canonical_input, visio_table))
        assert option.qualifying_dscr == Decimal("1.10")
        assert option.breakdown.dscr_adjustment == Decimal("0.175")
        assert option.final_rate == Decimal("7.400")

    def test_rent_2200_prices_at_7_400(self, canonical_with_rent, visio_table):
        option = only_option(calculate_pricing(canonical_with_rent, visio_table))
        assert Decimal("1.09") < option.qualifying_dscr < Decimal("1.11")
        assert option.breakdown.dscr_adjustment == Decimal("0.175")
        assert option.final_rate == Decimal("7.400")

    def test_rent_5000_prices_at_7_100(self, canonical_input, visio_table):
        p = replace(canonical_input, monthly_rental_income=Decimal("5000"))
        option = only_option(calculate_pricing(p, visio_table))
        assert Decimal("3.66") < option.qualifying_dscr < Decimal("3.68")
        assert option.breakdown.dscr_adjustment == Decimal("-0.125")
        assert option.final_rate == Decimal("7.100")

    def test_ratio_just_above_1_20_takes_upper_band(self, canonical_input, visio_table):
        """Rent $2,306.55: NOI 15,678.60 / 13,065.24 = 1.20002, shown as 1.2000."""
        p = replace(canonical_input, monthly_rental_income=Decimal("2306.55"))
        option = only_option(calculate_pricing(p, visio_table))
        assert option.qualifying_dscr == Decimal("1.2000")
        assert option.breakdown.dscr_adjustment == Decimal("-0.125")
        assert option.final_rate == Decimal("7.100")

    def test_rent_2000_at_80_ltv_not_offered(self, canonical_input, visio_table):
        """DSCR ~0.92 needs LTV <= 65."""
        p = replace(canonical_input, monthly_rental_income=Decimal("2000"))
        outcome = calculate_pricing(p, visio_table)
        assert isinstance(outcome, NoEligibleProducts)
        assert "LTV <= 65" in outcome.reasons[0]

    def test_final_rate_is_sum_of_breakdown(self, canonical_with_rent, visio_table):
        option = only_option(calculate_pricing(canonical_with_rent, visio_table))
        total = sum((getattr(option.breakdown, f.name) for f in fields(option.breakdown)), Decimal("0"))
        assert option.final_rate == total

    def test_points_exclude_base_rate(self, canonical_with_rent, visio_table):
        option = only_option(calculate_pricing(canonical_with_rent, visio_table))
        assert option.points == Decimal("0.575")

    def test_monthly_payment(self, canonical_with_rent, visio_table):
        option = only_option(calculate_pricing(canonical_with_rent, visio_table))
        assert option.monthly_payment == payment_for_rate(Decimal("160000"), Decimal("7.400"), 30)
        assert option.term_years == 30

    def test_fees(self, canonical_with_rent, visio_table):
        option = only_option(calculate_pricing(canonical_with_rent, visio_table))
        fees = option.fee_breakdown
        assert fees.origination_fee == Decimal("1600.00")
        assert fees.underwriting_fee == Decimal("1495")
        assert fees.small_loan_fee is None
        assert fees.ysp_fee == Decimal("0")
        assert option.total_fees == Decimal("3095.00")

    def test_identity(self, canonical_with_rent, visio_table):
        option = only_option(calculate_pricing(canonical_with_rent, visio_table))
        assert option.lender_id == "visio"
        assert option.lender_name == "Visio Lending"
        assert option.product == "30_Year_Fixed"
        assert option.loan_amount == Decimal("160000")

    def test_idempotent(self, canonical_with_rent, visio_table):
        first = calculate_pricing(canonical_with_rent, visio_table)
        second = calculate_pricing(canonical_with_rent, visio_table)
        assert first == second


class TestProductVariants:
    def test_all_variants_in_table_order(self, visio_table):
        names = [v.name for v in product_variants(visio_table)]
        assert names == [
            "30_Year_Fixed",
            "30_Year_Fixed - Interest Only",
            "5_6_ARM",
            "7_6_ARM",
        ]

    def test_interest_only_only(self, visio_table):
        names = [v.name for v in product_variants(visio_table, interest_only=True)]
        assert names == ["30_Year_Fixed - Interest Only"]

    def test_single_product(self, visio_table):
        assert len(product_variants(visio_table, "7_6_ARM")) == 1

    def test_empty_product_means_all(self, visio_table):
        assert len(product_variants(visio_table, "")) == 4

    def test_unknown_product(self, visio_table):
        assert product_variants(visio_table, "40_Year_Fixed") == []


class TestAllProducts:
    def test_sorted_by_final_rate(self, canonical_with_rent, visio_table):
        p = replace(canonical_with_rent, product=None, interest_only=None)
        outcome = calculate_pricing(p, visio_table)
        assert isinstance(outcome, PricingSuccess)
        rates = [o.final_rate for o in outcome.options]
        assert rates == sorted(rates)
        assert len(outcome.options) == 4

    def test_arm_rates(self, canonical_with_rent, visio_table):
        p = replace(canonical_with_rent, product=None, interest_only=False)
        outcome = calculate_pricing(p, visio_table)
        by_product = {o.product: o.final_rate for o in outcome.options}
        assert by_product["5_6_ARM"] == Decimal("7.200")
        assert by_product["7_6_ARM"] == Decimal("7.300")
        assert by_product["30_Year_Fixed"] == Decimal("7.400")

    def test_interest_only_option(self, canonical_with_rent, visio_table):
        """IO payment 160,000 x 7.475% / 12 raises the qualifying DSCR above 1.20."""
        p = replace(canonical_with_rent, interest_only=True)
        option = only_option(calculate_pricing(p, visio_table))
        assert option.product == "30_Year_Fixed - Interest Only"
        assert option.interest_only is True
        assert option.breakdown.interest_only_adjustment == Decimal("0.250")
        assert option.breakdown.dscr_adjustment == Decimal("-0.125")
        assert option.final_rate == Decimal("7.350")
        assert option.monthly_payment == payment_for_rate(
            Decimal("160000"), Decimal("7.350"), 30, interest_only=True
        )

    def test_unknown_product_not_offered(self, canonical_input, visio_table):
        outcome = calculate_pricing(replace(canonical_input, product="40_Year_Fixed"), visio_table)
        assert isinstance(outcome, NoEligibleProducts)
        assert outcome.reasons == ("Product '40_Year_Fixed' is not offered",)


class TestProgramRules:
    def test_cash_out_refinance(self, canonical_input, visio_table):
        p = replace(canonical_input, loan_purpose=LoanPurpose.CASH_OUT)
        option = only_option(calculate_pricing(p, visio_table))
        assert option.breakdown.program_adjustment == Decimal("0.250")
        assert option.final_rate == Decimal("7.650")

    def test_multiple_units(self, canonical_input, visio_table):
        option = only_option(calculate_pricing(replace(canonical_input, units=2), visio_table))
        assert option.breakdown.units_adjustment == Decimal("0.250")

    def test_program_wide_rate_adjustment(self, canonical_input, raw_matrix):
        raw_matrix["program_adjustments"]["rate_adjustment"] = "0.100"
        option = only_option(calculate_pricing(canonical_input, build_rate_table(raw_matrix)))
        assert option.breakdown.rate_adjustment == Decimal("0.100")
        assert option.final_rate == Decimal("7.500")

    def test_minimum_rate_floor(self, canonical_input, visio_table):
        table = replace(visio_table, minimum_rate=Decimal("8.000"))
        option = only_option(calculate_pricing(canonical_input, table))
        assert option.final_rate == Decimal("8.000")
        assert option.breakdown.minimum_rate_adjustment == Decimal("0.600")
        assert option.breakdown.total == option.final_rate

    def test_floor_not_binding(self, canonical_input, visio_table):
        option = only_option(calculate_pricing(canonical_input, visio_table))
        assert option.breakdown.minimum_rate_adjustment == Decimal("0")

    def test_small_loan_fee(self, canonical_input, visio_table):
        p = replace(canonical_input, loan_amount=Decimal("120000"), estimated_home_value=Decimal("200000"))
        option = only_option(calculate_pricing(p, visio_table))
        assert option.fee_breakdown.small_loan_fee == Decimal("750")
        assert option.breakdown.loan_size_adjustment == Decimal("0.500")

    def test_multi_family_excluded(self, canonical_input, visio_table):
        outcome = calculate_pricing(replace(canonical_input, property_type="2-4_units"), visio_table)
        assert isinstance(outcome, NoEligibleProducts)
        assert "2-4_units" in outcome.reasons[0]

    def test_zero_prepay_warning_carried(self, canonical_input, visio_table):
        outcome = calculate_pricing(replace(canonical_input, property_state="KS"), visio_table)
        assert isinstance(outcome, PricingSuccess)
        assert outcome.warnings == ("KS requires a zero prepayment penalty; use 0/0/0",)

    def test_unknown_prepay_raises(self, canonical_input, visio_table):
        with pytest.raises(DataGapError, match="2/2/2"):
            calculate_pricing(replace(canonical_input, prepay_structure="2/2/2"), visio_table)

    def test_invalid_input_raises(self, canonical_input, visio_table):
        with pytest.raises(ValidationError):
            calculate_pricing(replace(canonical_input, fico=200), visio_table)


class TestHelpers:
    def test_qualifying_dscr_from_rent(self, canonical_with_rent):
        # NOI 26,400 - 12,000 = 14,400 over 12 x 1,200
        assert qualifying_dscr(canonical_with_rent, Decimal("1200")) == Decimal("1.0000")

    def test_qualifying_dscr_falls_back_to_estimate(self, canonical_input):
        assert qualifying_dscr(canonical_input, Decimal("1200")) == Decimal("1.10")

    def test_qualifying_dscr_not_rounded(self, canonical_input):
        p = replace(canonical_input, monthly_rental_income=Decimal("2306.55"))
        ratio = qualifying_dscr(p, Decimal("1088.77"))
        assert ratio == Decimal("15678.60") / Decimal("13065.24")
        assert ratio > Decimal("1.20")

    def test_fee_breakdown_admin_fee(self, canonical_input, visio_table):
        fees = fee_breakdown(replace(canonical_input, broker_admin_fee=Decimal("995")), visio_table)
        assert fees.admin_fee == Decimal("995")
        assert fees.total == Decimal("4090.00")


class TestPriceLoan:
    def test_success(self, canonical_with_rent, visio_tables):
        outcome = price_loan("DSCR", canonical_with_rent, tables=visio_tables)
        assert outcome.success is True
        assert outcome.options[0].final_rate == Decimal("7.400")

    def test_unknown_program(self, canonical_input, visio_tables):
        outcome = price_loan("FHA", canonical_input, tables=visio_tables)
        assert isinstance(outcome, NoEligibleProducts)
        assert outcome.success is False
        assert "FHA" in outcome.reasons[0]

    def test_validation_failure(self, canonical_input, visio_tables):
        outcome = price_loan("DSCR", replace(canonical_input, property_state="fl"), tables=visio_tables)
        assert isinstance(outcome, PricingFailure)
        assert outcome.kind == "validation"
        assert outcome.errors == ("property_state must be a 2-letter state code",)

    def test_unknown_prepay_is_data_gap(self, canonical_input, visio_tables):
        outcome = price_loan("DSCR", replace(canonical_input, prepay_structure="2/2/2"), tables=visio_tables)
        assert isinstance(outcome, PricingFailure)
        assert outcome.kind == "data_gap"
        assert "2/2/2" in outcome.error

    def test_unknown_prepay_fails_even_when_ineligible(self, canonical_input, visio_tables):
        p = replace(canonical_input, prepay_structure="2/2/2", property_state="VT")
        assert price_loan("DSCR", p, tables=visio_tables).kind == "data_gap"

    def test_unconfirmed_band_is_data_gap(self, canonical_input, raw_matrix, caplog):
        raw_matrix["dscr_adjustments"][2]["value"] = None
        table = build_rate_table(raw_matrix)
        with caplog.at_level(logging.WARNING):
            outcome = price_loan("DSCR", canonical_input, tables={table.key: table})
        assert outcome.kind == "data_gap"
        assert "dscr_adjustments" in caplog.text

    def test_never_raises(self, canonical_input, visio_tables):
        outcome = price_loan("DSCR", replace(canonical_input, loan_purpose="purchase"), tables=visio_tables)
        assert isinstance(outcome, PricingFailure)
