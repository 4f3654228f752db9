"""Protocol definitions for persistence.

The application service owns where a selected loan lives; pricing only hands
it an opaque JSON document.
"""

import logging
from threading import Lock
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class LoanSelectionStore(Protocol):
    def save_selection(self, application_id: str, selection: dict[str, Any]) -> None:
        """Store the chosen LoanOption for an application, replacing any earlier choice."""
        ...

    def get_selection(self, application_id: str) -> dict[str, Any] | None:
        """Return the stored selection, or None if nothing was chosen."""
        ...


class InMemoryLoanSelectionStore:
    """Process-local store for development and tests."""

    def __init__(self) -> None:
        self._selections: dict[str, dict[str, Any]] = {}
        self._lock = Lock()

    def save_selection(self, application_id: str, selection: dict[str, Any]) -> None:
        with self._lock:
            self._selections[application_id] = dict(selection)
        logger.info("Stored loan selection for application %s", application_id)

    def get_selection(self, application_id: str) -> dict[str, Any] | None:
        with self._lock:
            selection = self._selections.get(application_id)
        return dict(selection) if selection is not None else None
