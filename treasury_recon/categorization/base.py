"""Categorization strategy interface."""

from dataclasses import dataclass
from typing import Optional, Protocol

from ..models import Family, Transaction


@dataclass(frozen=True)
class CategorizationResult:
    category: str
    confidence: float
    method: str


class CategorizationStrategy(Protocol):
    """Returns None when the strategy has no opinion."""

    name: str

    def categorize(self, transaction: Transaction, family: Family) -> Optional[CategorizationResult]:
        ...
