"""FastAPI dependency injection."""

from collections.abc import Mapping

from pricer.config import settings
from pricer.data.base import InMemoryLoanSelectionStore, LoanSelectionStore
from pricer.engine.rate_table import load_rate_tables
from pricer.models.rate_table import RateTable

_selection_store = InMemoryLoanSelectionStore()


def get_rate_tables() -> Mapping[tuple[str, str], RateTable]:
    return load_rate_tables(settings.rate_table_path)


def get_selection_store() -> LoanSelectionStore:
    return _selection_store
