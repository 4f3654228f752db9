"""CLI for pricing a DSCR scenario from a JSON file.

Usage:
    python -m pricer.cli scenario.json
    python -m pricer.cli scenario.json --program DSCR --rent 2200
    python -m pricer.cli scenario.json --product 30_Year_Fixed --cash-invested 60000
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from decimal import Decimal

from pydantic import ValidationError as SchemaError

from pricer.api.schemas import PricingInputSchema
from pricer.config import settings
from pricer.engine.analytics import analyze_selection, cash_to_close
from pricer.engine.pricing import price_loan
from pricer.models.pricing import LoanOption, PropertyCashFlow
from pricer.models.results import AnalyticsSuccess, NoEligibleProducts, PricingSuccess


def print_options(options: tuple[LoanOption, ...]) -> None:
    print(f"\n{'=' * 72}")
    print(f"  {options[0].lender_name} pricing")
    print(f"{'=' * 72}")
    print(f"  {'Product':<32} {'Rate':>8} {'Points':>8} {'Payment':>10} {'Fees':>10}")
    for o in options:
        print(
            f"  {o.product:<32} {o.final_rate:>7.3f}% {o.points:>8.3f} "
            f"${o.monthly_payment:>9,.2f} ${o.total_fees:>9,.2f}"
        )
    print()


def print_breakdown(option: LoanOption) -> None:
    print(f"  Rate breakdown: {option.product}")
    b = option.breakdown
    for name, value in vars(b).items():
        if value:
            print(f"    {name.replace('_', ' '):<30} {value:>8.3f}")
    print(f"    {'final rate':<30} {option.final_rate:>8.3f}")
    print()


def _ratio(value, spec: str, suffix: str = "") -> str:
    return "undefined" if value is None else format(value, spec) + suffix


def print_metrics(metrics) -> None:
    print("  DSCR analytics")
    print(f"    NOI:                ${metrics.noi:,.2f}")
    print(f"    Debt service:       ${metrics.debt_service:,.2f}")
    print(f"    DSCR:               {metrics.dscr:.2f}")
    print(f"    Cap rate:           {_ratio(metrics.cap_rate, '.2f', '%')}")
    print(f"    Cash-on-cash:       {_ratio(metrics.cash_on_cash_return, '.2f', '%')}")
    print(f"    Break-even ratio:   {_ratio(metrics.break_even_ratio, '.2%')}")
    print(f"    Annual cash flow:   ${metrics.cash_flow:,.2f}")
    print()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="DSCR loan pricing CLI")
    parser.add_argument("scenario", help="JSON file with the pricing input (camelCase or snake_case keys)")
    parser.add_argument("--program", default=settings.default_program, help="Loan program (default: %(default)s)")
    parser.add_argument("--product", help="Price a single product, e.g. 30_Year_Fixed")
    parser.add_argument("--rent", type=Decimal, help="Override monthly rental income")
    parser.add_argument("--cash-invested", type=Decimal, help="Total cash invested (default: cash to close)")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default: %(default)s)")

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    with open(args.scenario) as f:
        raw = json.load(f)
    try:
        pricing_input = PricingInputSchema.model_validate(raw).to_domain()
    except SchemaError as e:
        parser.error(f"invalid scenario: {e}")
    if args.rent is not None:
        pricing_input = replace(pricing_input, monthly_rental_income=args.rent)
    if args.product:
        pricing_input = replace(pricing_input, product=args.product)

    outcome = price_loan(args.program, pricing_input)
    if isinstance(outcome, NoEligibleProducts):
        print("No eligible products:", file=sys.stderr)
        for reason in outcome.reasons:
            print(f"  - {reason}", file=sys.stderr)
        return 1
    if not isinstance(outcome, PricingSuccess):
        print(f"Pricing failed ({outcome.kind}): {outcome.error}", file=sys.stderr)
        for error in outcome.errors:
            print(f"  - {error}", file=sys.stderr)
        return 2

    for warning in outcome.warnings:
        print(f"  WARNING: {warning}")
    print_options(outcome.options)

    best = outcome.options[0]
    print_breakdown(best)

    closing = cash_to_close(best, pricing_input.estimated_home_value, pricing_input.loan_purpose)
    print(f"  Cash to close:        ${closing.total:,.2f}\n")

    if pricing_input.monthly_rental_income > 0:
        invested = args.cash_invested if args.cash_invested is not None else closing.total
        analytics = analyze_selection(best, PropertyCashFlow.from_input(pricing_input), invested)
        if isinstance(analytics, AnalyticsSuccess):
            print_metrics(analytics.metrics)
        else:
            print(f"  Analytics unavailable: {analytics.error}\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
