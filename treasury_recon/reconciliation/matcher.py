"""
Candidate matcher.

Scores every candidate of a tier, sorts by a total order and classifies
the best one as accepted, needs review or no match. Tiers are searched
in order; the first accepted candidate wins.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import structlog

from ..models import (
    Match,
    MatchOutcome,
    MatchOutcomeKind,
    MatchType,
    ReferenceRecord,
    ReferenceVariant,
)
from .scoring import Scorable, Scorer, ScoreResult

logger = structlog.get_logger()

# Below this a best candidate is reported as no match
REVIEW_FLOOR = 0.0


@dataclass
class ScoredCandidate:
    candidate: ReferenceRecord
    result: ScoreResult

    @property
    def sort_key(self) -> Tuple:
        distance = self.result.date_distance_days
        return (
            -self.result.value,
            distance if distance is not None else float("inf"),
            0 if self.candidate.is_ledger_backed else 1,
            self.candidate.id,
        )

    def to_match(self, match_type: MatchType = MatchType.AUTO) -> Match:
        return Match(
            candidate_id=self.candidate.id,
            variant=self.candidate.variant,
            score=self.result.value,
            reasons=list(self.result.reasons),
            date_distance_days=self.result.date_distance_days,
            is_ledger_backed=self.candidate.is_ledger_backed,
            match_type=match_type,
        )


@dataclass
class MatchTier:
    """One group of candidates searched with its own threshold."""
    variant: ReferenceVariant
    candidates: Sequence[ReferenceRecord]
    threshold: float


class Matcher:
    """Deterministic best-candidate selection."""

    def __init__(self, scorers: Dict[ReferenceVariant, Scorer]):
        self.scorers = scorers

    def rank(
        self,
        subject: Scorable,
        variant: ReferenceVariant,
        candidates: Sequence[ReferenceRecord],
    ) -> List[ScoredCandidate]:
        """Score all candidates and return them best first."""
        scorer = self.scorers[variant]
        scored = [
            ScoredCandidate(candidate=c, result=scorer.score(subject, c))
            for c in candidates
        ]
        scored.sort(key=lambda s: s.sort_key)
        return scored

    def match(
        self,
        subject: Scorable,
        variant: ReferenceVariant,
        candidates: Sequence[ReferenceRecord],
        threshold: float,
    ) -> MatchOutcome:
        """Pick the best candidate of one tier."""
        if not candidates:
            return MatchOutcome.no_match(0)

        ranked = self.rank(subject, variant, candidates)
        best = ranked[0]

        if best.result.value <= REVIEW_FLOOR:
            return MatchOutcome.no_match(len(ranked))

        kind = (
            MatchOutcomeKind.ACCEPTED
            if best.result.value >= threshold
            else MatchOutcomeKind.NEEDS_REVIEW
        )
        return MatchOutcome(
            kind=kind,
            match=best.to_match(),
            candidate=best.candidate,
            threshold=threshold,
            candidates_evaluated=len(ranked),
        )

    def match_tiers(self, subject: Scorable, tiers: Sequence[MatchTier]) -> MatchOutcome:
        """
        Search tiers in order.

        The first accepted candidate short-circuits. Otherwise the best
        below-threshold candidate across all tiers, by the same total order
        used within a tier, is returned for review.
        """
        evaluated = 0
        best_review: Optional[Tuple[ScoredCandidate, float]] = None

        for tier in tiers:
            if not tier.candidates:
                continue
            ranked = self.rank(subject, tier.variant, tier.candidates)
            evaluated += len(ranked)
            best = ranked[0]

            if best.result.value <= REVIEW_FLOOR:
                continue

            if best.result.value >= tier.threshold:
                logger.debug(
                    "Candidate accepted",
                    variant=tier.variant.value,
                    candidate_id=best.candidate.id,
                    score=best.result.value,
                )
                return MatchOutcome(
                    kind=MatchOutcomeKind.ACCEPTED,
                    match=best.to_match(),
                    candidate=best.candidate,
                    threshold=tier.threshold,
                    candidates_evaluated=evaluated,
                )

            if best_review is None or best.sort_key < best_review[0].sort_key:
                best_review = (best, tier.threshold)

        if best_review is None:
            return MatchOutcome.no_match(evaluated)

        best, threshold = best_review
        return MatchOutcome(
            kind=MatchOutcomeKind.NEEDS_REVIEW,
            match=best.to_match(),
            candidate=best.candidate,
            threshold=threshold,
            candidates_evaluated=evaluated,
        )
