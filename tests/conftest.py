"""Canonical test fixtures used across all engine tests.

Fixture: $200K single-family purchase in Florida, $160K loan (80% LTV),
FICO 745, 5/4/3/2/1 prepay, 1 point broker comp, 1 point YSP.
Property: $1,200 insurance, $3,600 taxes, $600/mo HOA.
"""

import copy
from dataclasses import replace
from decimal import Decimal

import pytest

from pricer.data.matrices import VISIO_DSCR
from pricer.engine.rate_table import build_rate_table, validate_rate_table
from pricer.models.pricing import LoanPurpose, PricingInput
from pricer.models.rate_table import RateTable


@pytest.fixture
def raw_matrix() -> dict:
    """Mutable copy of the shipped Visio DSCR matrix."""
    return copy.deepcopy(VISIO_DSCR)


@pytest.fixture
def visio_table(raw_matrix) -> RateTable:
    table = build_rate_table(raw_matrix)
    validate_rate_table(table)
    return table


@pytest.fixture
def visio_tables(visio_table) -> dict[tuple[str, str], RateTable]:
    return {visio_table.key: visio_table}


@pytest.fixture
def canonical_input() -> PricingInput:
    """745 / 80% / $160K, 30-year fixed, no rent (priced on the caller's DSCR)."""
    return PricingInput(
        fico=745,
        ltv=Decimal("80"),
        loan_amount=Decimal("160000"),
        loan_purpose=LoanPurpose.PURCHASE,
        property_type="single_family",
        property_state="FL",
        estimated_home_value=Decimal("200000"),
        prepay_structure="5/4/3/2/1",
        product="30_Year_Fixed",
        interest_only=False,
        dscr=Decimal("1.10"),
        broker_comp=Decimal("1"),
        ysp=Decimal("1"),
        annual_property_insurance=Decimal("1200"),
        annual_property_taxes=Decimal("3600"),
        monthly_hoa_fee=Decimal("600"),
    )


@pytest.fixture
def canonical_with_rent(canonical_input) -> PricingInput:
    """Canonical scenario renting for $2,200/mo: qualifying DSCR ~1.10."""
    return replace(canonical_input, monthly_rental_income=Decimal("2200"))
