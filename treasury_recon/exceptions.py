"""Domain exceptions raised by the reconciliation engine."""

from typing import Any, Optional


class ReconciliationError(Exception):
    """Base exception for reconciliation errors."""
    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidTransition(ReconciliationError):
    """A lifecycle operation is not allowed from the item's current status."""
    def __init__(
        self,
        item_id: str,
        current: str,
        target: str,
        reason: Optional[str] = None,
    ):
        message = reason or f"Cannot move item {item_id} from {current} to {target}"
        super().__init__(message, details={"current": current, "target": target})
        self.item_id = item_id
        self.current = current
        self.target = target


class RepositoryFailure(ReconciliationError):
    """Storage read or write failed. Not retried by the engine."""


class ItemNotFound(ReconciliationError):
    """No reconciliation item exists with the given id."""
    def __init__(self, item_id: str):
        super().__init__(f"Reconciliation item not found: {item_id}")
        self.item_id = item_id


class CandidateNotFound(ReconciliationError):
    """The referenced candidate record does not exist."""
    def __init__(self, candidate_id: str, variant: str):
        super().__init__(f"Candidate {variant}/{candidate_id} not found")
        self.candidate_id = candidate_id
        self.variant = variant


class ClassificationUnavailable(ReconciliationError):
    """The optional text classifier could not answer in time.

    Always recovered by the categorization chain falling back to rules.
    """
