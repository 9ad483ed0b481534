"""
Text overlap between bank descriptions and reference labels.
"""

import re
from typing import List, Optional

import structlog
from rapidfuzz import fuzz

from ..config import get_settings

logger = structlog.get_logger()

_TOKEN_RE = re.compile(r"[a-z0-9]+")
_SPACE_RE = re.compile(r"\s+")


class TextMatcher:
    """
    Case-insensitive overlap scoring.

    Tries, in order: substring containment, token overlap, and a fuzzy
    partial ratio that only counts above the configured threshold, so
    typos in bank narratives ("ABC Corporaton") still register.
    """

    def __init__(self, fuzzy_threshold: Optional[float] = None):
        if fuzzy_threshold is None:
            fuzzy_threshold = get_settings().text_similarity_threshold
        self.fuzzy_threshold = fuzzy_threshold

    @staticmethod
    def normalize(text: Optional[str]) -> str:
        if not text:
            return ""
        return _SPACE_RE.sub(" ", text.lower()).strip()

    @classmethod
    def tokens(cls, text: Optional[str]) -> List[str]:
        return _TOKEN_RE.findall(cls.normalize(text))

    def contains(self, haystack: Optional[str], needle: Optional[str]) -> bool:
        """Case-insensitive substring test; empty needles never match."""
        needle = self.normalize(needle)
        if not needle:
            return False
        return needle in self.normalize(haystack)

    def token_share(self, description: Optional[str], label: Optional[str]) -> float:
        """Fraction of label tokens (2+ chars) present in the description."""
        label_tokens = [t for t in self.tokens(label) if len(t) > 1]
        if not label_tokens:
            return 0.0
        description_tokens = set(self.tokens(description))
        found = sum(1 for t in label_tokens if t in description_tokens)
        return found / len(label_tokens)

    def label_overlap(self, description: Optional[str], label: Optional[str]) -> float:
        """
        Overlap of a reference label with a description, in [0, 1].

        1.0 means the whole label appears in the description.
        """
        norm_label = self.normalize(label)
        norm_description = self.normalize(description)
        if not norm_label or not norm_description:
            return 0.0

        if norm_label in norm_description:
            return 1.0

        share = self.token_share(norm_description, norm_label)

        fuzzy = fuzz.partial_ratio(norm_label, norm_description) / 100.0
        if fuzzy < self.fuzzy_threshold:
            fuzzy = 0.0

        overlap = max(share, fuzzy)
        if overlap > 0:
            logger.debug(
                "Partial label overlap",
                label=norm_label,
                token_share=share,
                fuzzy=fuzzy,
            )
        return min(overlap, 1.0)
