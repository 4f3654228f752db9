"""Pricing error taxonomy.

Engine code raises these; the boundary functions in ``pricer.engine.pricing``
and ``pricer.engine.analytics`` turn them into typed outcomes.
"""


class PricingError(Exception):
    """Base class for every pricing and analytics failure."""


class ValidationError(PricingError):
    """A required input field is missing or malformed. Rejects the whole request."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class EligibilityExclusion(PricingError):
    """Input is valid but the product, property type or program is not offered."""


class DataGapError(PricingError):
    """A lookup fell outside a table that must be total over its domain."""

    def __init__(self, table: str, value: object, detail: str = ""):
        self.table = table
        self.value = value
        message = f"{table}: no entry for {value!r}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class ComputationError(PricingError):
    """Degenerate arithmetic, e.g. a zero denominator in an analytics ratio."""

    def __init__(self, metric: str, reason: str):
        self.metric = metric
        self.reason = reason
        super().__init__(f"{metric} is undefined: {reason}")


class RateTableError(Exception):
    """A rate table failed its load-time structural checks."""
