"""Rate table loading and load-time validation.

Raw matrices (``pricer.data.matrices`` or a JSON file) are turned into frozen
RateTable objects once per process and checked for gaps and overlaps so the
resolvers can assume every band table is total over its domain.
"""

import json
import logging
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from collections.abc import Mapping

from pricer.config import settings
from pricer.data.matrices import MATRICES
from pricer.errors import EligibilityExclusion, RateTableError
from pricer.models.rate_table import (
    NOT_OFFERED,
    Band,
    BandTable,
    BandValue,
    EligibilityRules,
    FeeSchedule,
    FicoTier,
    PrepayRestriction,
    ProductSpec,
    ProgramAdjustments,
    RateTable,
)

logger = logging.getLogger(__name__)


def _dec(raw: object, where: str) -> Decimal:
    try:
        return Decimal(str(raw))
    except InvalidOperation:
        raise RateTableError(f"{where}: {raw!r} is not a number") from None


def _cell(raw: object, where: str) -> BandValue:
    if raw is None or raw == NOT_OFFERED:
        return raw
    return _dec(raw, where)


def _band(raw: dict, where: str, value: BandValue | None = None) -> Band:
    bounds = raw.get("bounds", "[)")
    if len(bounds) != 2 or bounds[0] not in "[(" or bounds[1] not in ")]":
        raise RateTableError(f"{where}: bad bounds {bounds!r}")
    low = raw.get("min")
    high = raw.get("max")
    max_ltv = raw.get("max_ltv")
    return Band(
        low=None if low is None else _dec(low, where),
        high=None if high is None else _dec(high, where),
        value=_cell(raw.get("value"), where) if value is None else value,
        low_inclusive=bounds[0] == "[",
        high_inclusive=bounds[1] == "]",
        max_ltv=None if max_ltv is None else _dec(max_ltv, where),
    )


def _fico_range(label: str) -> tuple[int, int | None]:
    """'760+' -> (760, None); '740-759' -> (740, 759)."""
    try:
        if label.endswith("+"):
            return int(label[:-1]), None
        low, high = label.split("-")
        return int(low), int(high)
    except ValueError:
        raise RateTableError(f"base_rates: bad FICO tier label {label!r}") from None


def build_rate_table(raw: dict) -> RateTable:
    """Convert one raw matrix into a RateTable. Structural checks run separately."""
    try:
        ltv_edges = tuple(_band(b, "ltv_bands") for b in raw["ltv_bands"])

        tiers = []
        for label, row in raw["base_rates"].items():
            if len(row) != len(ltv_edges):
                raise RateTableError(
                    f"base_rates[{label}]: {len(row)} cells for {len(ltv_edges)} LTV bands"
                )
            cells = []
            for edge, cell in zip(ltv_edges, row):
                value = _cell(cell, f"base_rates[{label}]")
                if value is None:
                    raise RateTableError(f"base_rates[{label}] {edge.describe()}: missing rate")
                cells.append(Band(edge.low, edge.high, value, edge.low_inclusive, edge.high_inclusive))
            min_fico, max_fico = _fico_range(label)
            tiers.append(FicoTier(
                label=label,
                min_fico=min_fico,
                max_fico=max_fico,
                ltv_rates=BandTable(f"base_rates[{label}]", tuple(cells)),
            ))
        tiers.sort(key=lambda t: t.min_fico)

        products = {
            name: ProductSpec(
                name=name,
                adjustment=_dec(spec["adjustment"], f"products[{name}]"),
                term_years=int(spec.get("term_years", 30)),
                interest_only_available=bool(spec.get("interest_only", False)),
            )
            for name, spec in raw["products"].items()
        }

        program = raw.get("program_adjustments", {})
        fees = raw["fees"]
        small_loan = fees.get("small_loan_fee")
        rules = raw["eligibility"]

        return RateTable(
            lender_id=raw["lender_id"],
            lender_name=raw.get("lender_name", raw["lender_id"]),
            program=raw["program"],
            effective_date=raw.get("effective_date", ""),
            ltv_bands=ltv_edges,
            fico_tiers=tuple(tiers),
            products=MappingProxyType(products),
            interest_only_adjustment=_dec(raw.get("interest_only_adjustment", "0"), "interest_only_adjustment"),
            origination_fee_adjustments=MappingProxyType({
                _dec(k, "origination_fee_adjustments"): _dec(v, "origination_fee_adjustments")
                for k, v in raw["origination_fee_adjustments"].items()
            }),
            ysp_adjustments=MappingProxyType({
                _dec(k, "ysp_adjustments"): _dec(v, "ysp_adjustments")
                for k, v in raw["ysp_adjustments"].items()
            }),
            loan_size_adjustments=BandTable(
                "loan_size_adjustments",
                tuple(_band(b, "loan_size_adjustments") for b in raw["loan_size_adjustments"]),
            ),
            prepay_adjustments=MappingProxyType({
                str(k): _dec(v, "prepay_adjustments") for k, v in raw["prepay_adjustments"].items()
            }),
            dscr_adjustments=BandTable(
                "dscr_adjustments",
                tuple(_band(b, "dscr_adjustments") for b in raw["dscr_adjustments"]),
            ),
            program_adjustments=ProgramAdjustments(
                **{k: _dec(v, f"program_adjustments.{k}") for k, v in program.items()}
            ),
            fees=FeeSchedule(
                underwriting_fee=_dec(fees["underwriting_fee"], "fees.underwriting_fee"),
                small_loan_fee=_band(small_loan, "fees.small_loan_fee") if small_loan else None,
            ),
            eligibility=EligibilityRules(
                excluded_states=frozenset(rules.get("excluded_states", ())),
                zero_prepay_states=frozenset(rules.get("zero_prepay_states", ())),
                property_types=frozenset(rules["property_types"]),
                min_property_value=_dec(rules["min_property_value"], "eligibility.min_property_value"),
                max_ltv=_dec(rules["max_ltv"], "eligibility.max_ltv"),
                min_fico=int(rules["min_fico"]),
                refinance_min_fico=int(rules.get("refinance_min_fico", rules["min_fico"])),
                min_dscr=_dec(rules["min_dscr"], "eligibility.min_dscr"),
                max_units=int(rules.get("max_units", 4)),
                min_loan_amount=_dec(rules["min_loan_amount"], "eligibility.min_loan_amount"),
                max_loan_amount=_dec(rules["max_loan_amount"], "eligibility.max_loan_amount"),
                prepay_restrictions=MappingProxyType({
                    key: PrepayRestriction(
                        min_fico=int(r["min_fico"]),
                        min_dscr=_dec(r["min_dscr"], f"prepay_restrictions[{key}]"),
                    )
                    for key, r in rules.get("prepay_restrictions", {}).items()
                }),
            ),
            minimum_rate=_dec(raw.get("minimum_rate", "0"), "minimum_rate"),
        )
    except KeyError as e:
        raise RateTableError(f"rate matrix is missing required key {e.args[0]!r}") from None
    except TypeError as e:
        raise RateTableError(f"rate matrix has a malformed entry: {e}") from None


# ------------------------------------------------------------------
# Structural checks
# ------------------------------------------------------------------

def _sort_key(band: Band) -> tuple[int, Decimal]:
    return (0, Decimal("0")) if band.low is None else (1, band.low)


def band_problems(name: str, bands: tuple[Band, ...], domain: Band) -> list[str]:
    """Gaps and overlaps between consecutive bands, plus domain endpoints left uncovered."""
    if not bands:
        return [f"{name}: no bands"]

    problems: list[str] = []
    ordered = sorted(bands, key=_sort_key)

    for prev, nxt in zip(ordered, ordered[1:]):
        if prev.high is None or nxt.low is None:
            problems.append(f"{name}: {prev.describe()} overlaps {nxt.describe()}")
        elif nxt.low > prev.high:
            problems.append(f"{name}: gap between {prev.describe()} and {nxt.describe()}")
        elif nxt.low < prev.high:
            problems.append(f"{name}: {prev.describe()} overlaps {nxt.describe()}")
        elif prev.high_inclusive and nxt.low_inclusive:
            problems.append(f"{name}: {prev.high} is in both {prev.describe()} and {nxt.describe()}")
        elif not prev.high_inclusive and not nxt.low_inclusive:
            problems.append(f"{name}: gap at {prev.high} between {prev.describe()} and {nxt.describe()}")

    first, last = ordered[0], ordered[-1]
    if domain.low is None:
        if first.low is not None:
            problems.append(f"{name}: nothing below {first.describe()}")
    elif first.low is not None and (
        first.low > domain.low or (domain.low_inclusive and first.low == domain.low and not first.low_inclusive)
    ):
        problems.append(f"{name}: {domain.describe()} not covered at {domain.low}")
    if domain.high is None:
        if last.high is not None:
            problems.append(f"{name}: nothing above {last.describe()}")
    elif last.high is not None and (
        last.high < domain.high or (domain.high_inclusive and last.high == domain.high and not last.high_inclusive)
    ):
        problems.append(f"{name}: {domain.describe()} not covered at {domain.high}")
    return problems


def validate_rate_table(table: RateTable) -> None:
    """Raise RateTableError listing every structural defect in the table."""
    rules = table.eligibility
    problems: list[str] = []

    ltv_domain = Band(Decimal("0"), rules.max_ltv, None, low_inclusive=False, high_inclusive=True)
    problems += band_problems("ltv_bands", table.ltv_bands, ltv_domain)

    tiers = table.fico_tiers
    if not tiers:
        problems.append("base_rates: no FICO tiers")
    else:
        if tiers[0].min_fico > rules.min_fico:
            problems.append(f"base_rates: lowest tier {tiers[0].label} starts above min FICO {rules.min_fico}")
        for prev, nxt in zip(tiers, tiers[1:]):
            if prev.max_fico is None or nxt.min_fico != prev.max_fico + 1:
                problems.append(f"base_rates: FICO tiers {prev.label} and {nxt.label} are not contiguous")
        if tiers[-1].max_fico is not None:
            problems.append(f"base_rates: nothing above FICO tier {tiers[-1].label}")

    loan_domain = Band(rules.min_loan_amount, rules.max_loan_amount, None, high_inclusive=True)
    problems += band_problems(
        "loan_size_adjustments", table.loan_size_adjustments.bands, loan_domain
    )
    problems += band_problems(
        "dscr_adjustments", table.dscr_adjustments.bands, Band(None, None, None)
    )

    for name, band_table in (
        ("loan_size_adjustments", table.loan_size_adjustments),
        ("dscr_adjustments", table.dscr_adjustments),
    ):
        for band in band_table.bands:
            if band.value is None:
                logger.warning(
                    "%s/%s %s band %s has no value; inputs in it will fail",
                    table.lender_id, table.program, name, band.describe(),
                )

    if not table.products:
        problems.append("products: no products")
    if not table.prepay_adjustments:
        problems.append("prepay_adjustments: no structures")
    if not table.origination_fee_adjustments:
        problems.append("origination_fee_adjustments: empty")
    if not table.ysp_adjustments:
        problems.append("ysp_adjustments: empty")
    if not rules.property_types:
        problems.append("eligibility.property_types: empty")
    for key in rules.prepay_restrictions:
        if key not in table.prepay_adjustments:
            problems.append(f"eligibility.prepay_restrictions: unknown structure {key!r}")

    if problems:
        raise RateTableError(
            f"{table.lender_id}/{table.program} rate table is invalid:\n  " + "\n  ".join(problems)
        )


# ------------------------------------------------------------------
# Process-wide registry
# ------------------------------------------------------------------

def _read_raw(path: str | None) -> list[dict]:
    if path is None:
        return MATRICES
    data = json.loads(Path(path).read_text())
    return data if isinstance(data, list) else [data]


@lru_cache(maxsize=4)
def load_rate_tables(path: str | None = None) -> Mapping[tuple[str, str], RateTable]:
    """Build and validate every matrix once. Keyed by (lender_id, program)."""
    tables: dict[tuple[str, str], RateTable] = {}
    for raw in _read_raw(path):
        table = build_rate_table(raw)
        validate_rate_table(table)
        tables[table.key] = table
        logger.info(
            "Loaded rate table %s/%s (effective %s, %d products)",
            table.lender_id, table.program, table.effective_date, len(table.products),
        )
    return MappingProxyType(tables)


def get_rate_table(
    program: str,
    lender_id: str | None = None,
    tables: Mapping[tuple[str, str], RateTable] | None = None,
) -> RateTable:
    """Look up the table for a program. Unknown programs are not offered."""
    if tables is None:
        tables = load_rate_tables(settings.rate_table_path)
    key = (lender_id or settings.lender_id, program)
    try:
        return tables[key]
    except KeyError:
        raise EligibilityExclusion(f"Loan program {program!r} is not offered by {key[0]}") from None
