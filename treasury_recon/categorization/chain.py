"""Ordered categorization strategies with a rule-based fallback."""

from typing import List, Optional, Sequence

import structlog

from ..config import Settings, get_settings
from ..models import Family, Transaction
from .base import CategorizationResult, CategorizationStrategy
from .llm import LLMCategorizer, OllamaClassifier
from .rules import RuleBasedCategorizer

logger = structlog.get_logger()


class CategorizationChain:
    """
    Tries each strategy in order until one reaches the confidence floor.

    Keyword rules always answer last, so categorize never fails.
    """

    def __init__(
        self,
        strategies: Sequence[CategorizationStrategy] = (),
        fallback: Optional[RuleBasedCategorizer] = None,
        confidence_floor: Optional[float] = None,
    ):
        self.strategies: List[CategorizationStrategy] = list(strategies)
        self.fallback = fallback or RuleBasedCategorizer()
        if confidence_floor is None:
            confidence_floor = get_settings().categorization_confidence_floor
        self.confidence_floor = confidence_floor

    def categorize(self, transaction: Transaction, family: Family) -> CategorizationResult:
        for strategy in self.strategies:
            try:
                result = strategy.categorize(transaction, family)
            except Exception as e:
                logger.warning(
                    "Categorization strategy failed",
                    strategy=strategy.name,
                    transaction_id=transaction.id,
                    error=str(e),
                )
                continue
            if result is not None and result.confidence >= self.confidence_floor:
                return result
            logger.debug(
                "Categorization strategy declined",
                strategy=strategy.name,
                transaction_id=transaction.id,
            )
        return self.fallback.categorize(transaction, family)


def build_default_chain(settings: Optional[Settings] = None) -> CategorizationChain:
    """Rules only, with the LLM classifier in front when enabled."""
    settings = settings or get_settings()
    strategies: List[CategorizationStrategy] = []
    if settings.classifier_enabled:
        strategies.append(LLMCategorizer(OllamaClassifier(settings)))
    return CategorizationChain(
        strategies,
        confidence_floor=settings.categorization_confidence_floor,
    )
