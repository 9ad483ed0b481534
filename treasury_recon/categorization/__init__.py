"""Transaction categorization."""

from .base import CategorizationResult, CategorizationStrategy
from .rules import RuleBasedCategorizer, categories_for
from .llm import LLMCategorizer, OllamaClassifier
from .chain import CategorizationChain, build_default_chain

__all__ = [
    "CategorizationResult",
    "CategorizationStrategy",
    "RuleBasedCategorizer",
    "categories_for",
    "LLMCategorizer",
    "OllamaClassifier",
    "CategorizationChain",
    "build_default_chain",
]
