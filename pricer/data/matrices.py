"""Lender rate matrices as plain data.

Numbers are strings so they reach Decimal without float rounding. Band
"bounds" use interval notation: "[)" = low inclusive, high exclusive.
A band value of "n/a" means the lender does not price it; null means the band
exists but has no confirmed number (resolving into it fails).

Rate sheet: Visio Lending DSCR, effective 2025-06-02.
"""

VISIO_DSCR: dict = {
    "lender_id": "visio",
    "lender_name": "Visio Lending",
    "program": "DSCR",
    "effective_date": "2025-06-02",
    "minimum_rate": "5.500",

    # LTV columns shared by every FICO row; (low, high] so 80.00 prices in 75.01-80
    "ltv_bands": [
        {"min": None, "max": "50", "bounds": "(]"},
        {"min": "50", "max": "55", "bounds": "(]"},
        {"min": "55", "max": "60", "bounds": "(]"},
        {"min": "60", "max": "65", "bounds": "(]"},
        {"min": "65", "max": "70", "bounds": "(]"},
        {"min": "70", "max": "75", "bounds": "(]"},
        {"min": "75", "max": "80", "bounds": "(]"},
    ],
    "base_rates": {
        "760+":    ["5.950", "6.000", "6.075", "6.150", "6.300", "6.475", "6.700"],
        "740-759": ["6.075", "6.125", "6.200", "6.275", "6.425", "6.600", "6.825"],
        "720-739": ["6.200", "6.250", "6.325", "6.400", "6.550", "6.750", "6.975"],
        "700-719": ["6.350", "6.400", "6.475", "6.550", "6.725", "6.925", "7.175"],
        "680-699": ["6.525", "6.575", "6.650", "6.750", "6.925", "7.150", "n/a"],
        "660-679": ["6.775", "6.825", "6.900", "7.025", "7.250", "n/a", "n/a"],
    },

    "products": {
        "30_Year_Fixed": {"adjustment": "0.200", "term_years": 30, "interest_only": True},
        "5_6_ARM": {"adjustment": "0.000", "term_years": 30, "interest_only": False},
        "7_6_ARM": {"adjustment": "0.100", "term_years": 30, "interest_only": False},
    },
    "interest_only_adjustment": "0.250",

    # Keyed by broker compensation points
    "origination_fee_adjustments": {
        "0": "0.000",
        "0.5": "-0.150",
        "1": "-0.300",
        "1.5": "-0.400",
        "2": "-0.500",
    },
    # Keyed by YSP points
    "ysp_adjustments": {
        "0": "0.000",
        "0.5": "0.125",
        "1": "0.250",
        "1.5": "0.375",
        "2": "0.500",
    },

    "loan_size_adjustments": [
        {"min": "100000", "max": "125000", "bounds": "[)", "value": "0.500"},
        {"min": "125000", "max": "250000", "bounds": "[)", "value": "0.250"},
        {"min": "250000", "max": "1000000", "bounds": "[)", "value": "0.000"},
        {"min": "1000000", "max": "1500000", "bounds": "[)", "value": "0.125"},
        {"min": "1500000", "max": "2000000", "bounds": "[]", "value": "0.250"},
    ],

    "prepay_adjustments": {
        "5/5/5/5/5": "-0.250",
        "3/3/3": "-0.175",
        "5/4/3/2/1": "0.000",
        "3/2/1": "0.250",
        "3/0/0": "0.500",
        "0/0/0": "1.000",
        "None": "0.000",
    },

    "dscr_adjustments": [
        {"min": None, "max": "0.75", "bounds": "()", "value": "n/a"},  # case-by-case
        {"min": "0.75", "max": "1.00", "bounds": "[)", "value": "0.500", "max_ltv": "65"},
        # Confirmed against the lender quote of 7.400% at 745 / 80% / $160K
        {"min": "1.00", "max": "1.20", "bounds": "[]", "value": "0.175"},
        {"min": "1.20", "max": None, "bounds": "()", "value": "-0.125"},
    ],

    "program_adjustments": {
        "cash_out_refinance": "0.250",
        "short_term_rental": "0.250",
        "condo": "0.125",
        "units": "0.250",
        "rate_adjustment": "0.000",
    },

    "fees": {
        "underwriting_fee": "1495",
        "small_loan_fee": {"min": "100000", "max": "150000", "bounds": "[)", "value": "750"},
    },

    "eligibility": {
        "excluded_states": ["ND", "SD", "VT"],
        "zero_prepay_states": ["KS", "MI", "MN", "NM", "RI"],
        "property_types": ["single_family", "condo", "townhouse"],
        "min_property_value": "100000",
        "max_ltv": "80",
        "min_fico": 660,
        "refinance_min_fico": 680,
        "min_dscr": "0.75",
        "max_units": 4,
        "min_loan_amount": "100000",
        "max_loan_amount": "2000000",
        "prepay_restrictions": {
            "3/3/3": {"min_fico": 720, "min_dscr": "1.00"},
        },
    },
}

MATRICES: list[dict] = [VISIO_DSCR]
