"""
Scoring functions, one per reference variant.

A score is a capped sum of independent factors:
- amount proximity (exact, within 5%, within 10%)
- identity overlap (label and reference number against the description)
- date proximity (<=1, <=3, <=7, <=30 days)
- variant bonus (forecast confidence tier)

Values are clamped to [0, 1] and rounded to 4 decimals so threshold
comparisons are exact.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Protocol, Tuple

from ..config import Settings, get_settings
from ..models import (
    CashForecastEntry,
    DepositPlacement,
    FlowType,
    ForecastConfidence,
    IntercompanyRecord,
    PayrollEntry,
    ReferenceRecord,
    ReferenceVariant,
    TransactionDirection,
)
from ..utils.text_matching import TextMatcher

SCORE_PRECISION = 4


class Scorable(Protocol):
    """Anything shaped like a bank line: Transaction or ReconciliationItem."""
    amount_cents: int
    transaction_date: Optional[date]
    description: str
    reference: Optional[str]
    direction: TransactionDirection


@dataclass(frozen=True)
class AmountBands:
    exact: float
    within_5pct: float
    within_10pct: float


@dataclass(frozen=True)
class DateBands:
    """(max_days, weight) pairs in ascending day order."""
    bands: Tuple[Tuple[int, float], ...]


@dataclass
class ScoreResult:
    value: float
    reasons: List[str] = field(default_factory=list)
    date_distance_days: Optional[int] = None


def days_between(d1: Optional[date], d2: Optional[date]) -> Optional[int]:
    if d1 is None or d2 is None:
        return None
    return abs((d1 - d2).days)


def _money(cents: int) -> str:
    return f"{cents / 100:,.2f}"


class Scorer:
    """Base scoring function; subclasses set weights and variant rules."""

    variant: ReferenceVariant
    amount_bands = AmountBands(exact=0.5, within_5pct=0.3, within_10pct=0.15)
    date_bands = DateBands(bands=((1, 0.2), (3, 0.15), (7, 0.1), (30, 0.05)))
    label_weight = 0.3
    reference_weight = 0.1
    identity_cap = 0.4

    def __init__(
        self,
        text_matcher: Optional[TextMatcher] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.text = text_matcher or TextMatcher(self.settings.text_similarity_threshold)
        self.tolerance_cents = self.settings.amount_tolerance_cents

    def score(self, subject: Scorable, candidate: ReferenceRecord) -> ScoreResult:
        """Score a (transaction, candidate) pair."""
        distance = days_between(
            subject.transaction_date,
            candidate.relevant_date_for(subject.direction),
        )

        ineligible = self.ineligible_reason(subject, candidate)
        if ineligible:
            return ScoreResult(value=0.0, reasons=[ineligible], date_distance_days=distance)

        reasons: List[str] = []
        total = 0.0
        total += self.score_amount(subject, candidate, reasons)
        total += self.score_identity(subject, candidate, reasons)
        total += self.score_date(distance, reasons)
        total += self.score_bonus(subject, candidate, reasons)

        total = max(total, 0.0)
        if total > 1.0:
            reasons.append(f"capped at 1.0 (raw {total:.2f})")
            total = 1.0

        return ScoreResult(
            value=round(total, SCORE_PRECISION),
            reasons=reasons,
            date_distance_days=distance,
        )

    def ineligible_reason(self, subject: Scorable, candidate: ReferenceRecord) -> Optional[str]:
        """Return a reason if the candidate can never match this subject."""
        return None

    def amount_factor(
        self,
        actual_cents: int,
        expected_cents: int,
        bands: AmountBands,
    ) -> Tuple[float, Optional[str]]:
        diff = abs(actual_cents - expected_cents)
        if diff <= self.tolerance_cents:
            return bands.exact, "exact amount match"
        if expected_cents <= 0:
            return 0.0, None
        ratio = diff / expected_cents
        if ratio < 0.05:
            return bands.within_5pct, f"amount within 5% (difference {_money(diff)})"
        if ratio < 0.10:
            return bands.within_10pct, f"amount within 10% (difference {_money(diff)})"
        return 0.0, None

    def score_amount(self, subject: Scorable, candidate: ReferenceRecord, reasons: List[str]) -> float:
        weight, reason = self.amount_factor(
            subject.amount_cents,
            candidate.expected_amount_for(subject.direction),
            self.amount_bands,
        )
        if reason:
            reasons.append(reason)
        return weight

    def score_identity(self, subject: Scorable, candidate: ReferenceRecord, reasons: List[str]) -> float:
        identity = 0.0

        overlap = self.text.label_overlap(subject.description, candidate.label)
        if overlap >= 1.0:
            identity += self.label_weight
            reasons.append(f"'{candidate.label}' found in description")
        elif overlap > 0:
            identity += self.label_weight * overlap
            reasons.append(f"partial overlap with '{candidate.label}' ({overlap:.2f})")

        ref = candidate.reference_number
        if ref and (
            self.text.contains(subject.description, ref)
            or self.text.contains(subject.reference, ref)
        ):
            identity += self.reference_weight
            reasons.append(f"reference {ref} found")

        return min(identity, self.identity_cap)

    def score_date(self, distance: Optional[int], reasons: List[str]) -> float:
        if distance is None:
            return 0.0
        for max_days, weight in self.date_bands.bands:
            if distance <= max_days:
                reasons.append(f"date within {max_days} day(s) ({distance} apart)")
                return weight
        return 0.0

    def score_bonus(self, subject: Scorable, candidate: ReferenceRecord, reasons: List[str]) -> float:
        return 0.0


class ForecastBonusMixin:
    """Forecast confidence tier bonus; ledger variants never get it."""

    tier_bonus: Dict[ForecastConfidence, float] = {
        ForecastConfidence.HIGH: 0.2,
        ForecastConfidence.MEDIUM: 0.1,
        ForecastConfidence.LOW: 0.0,
    }

    def score_bonus(self, subject, candidate, reasons):
        confidence = getattr(candidate, "confidence", None)
        bonus = self.tier_bonus.get(confidence, 0.0)
        if bonus:
            reasons.append(f"forecast confidence {confidence.value} (+{bonus})")
        return bonus


class AgingScorer(Scorer):
    variant = ReferenceVariant.AGING
    amount_bands = AmountBands(exact=0.6, within_5pct=0.4, within_10pct=0.2)
    date_bands = DateBands(bands=((1, 0.2), (3, 0.2), (7, 0.2), (30, 0.1)))
    label_weight = 0.3
    reference_weight = 0.3
    identity_cap = 0.4


class ForecastScorer(ForecastBonusMixin, Scorer):
    variant = ReferenceVariant.FORECAST
    amount_bands = AmountBands(exact=0.5, within_5pct=0.3, within_10pct=0.15)
    date_bands = DateBands(bands=((1, 0.3), (3, 0.3), (7, 0.2), (30, 0.05)))
    label_weight = 0.2
    reference_weight = 0.1
    identity_cap = 0.3


class PayrollScorer(Scorer):
    """Matches against net first, then gross pay."""
    variant = ReferenceVariant.PAYROLL
    date_bands = DateBands(bands=((1, 0.2), (3, 0.2), (7, 0.1), (30, 0.05)))
    net_bands = AmountBands(exact=0.7, within_5pct=0.4, within_10pct=0.2)
    gross_bands = AmountBands(exact=0.5, within_5pct=0.3, within_10pct=0.1)
    full_name_weight = 0.4
    partial_name_weight = 0.3
    identity_cap = 0.4

    def score_amount(self, subject, candidate: PayrollEntry, reasons):
        net, net_reason = self.amount_factor(
            subject.amount_cents, candidate.net_amount_cents, self.net_bands
        )
        gross, gross_reason = 0.0, None
        if candidate.gross_amount_cents:
            gross, gross_reason = self.amount_factor(
                subject.amount_cents, candidate.gross_amount_cents, self.gross_bands
            )
        if net >= gross and net_reason:
            reasons.append(f"net pay: {net_reason}")
            return net
        if gross_reason:
            reasons.append(f"gross pay: {gross_reason}")
        return gross

    def score_identity(self, subject, candidate: PayrollEntry, reasons):
        overlap = self.text.label_overlap(subject.description, candidate.employee_name)
        if overlap >= 1.0:
            reasons.append(f"employee '{candidate.employee_name}' found in description")
            return self.full_name_weight
        if overlap > 0:
            reasons.append(f"partial employee name match ({overlap:.2f})")
            return min(self.partial_name_weight * overlap, self.identity_cap)
        return 0.0


class IntercompanyScorer(Scorer):
    variant = ReferenceVariant.INTERCOMPANY
    label_weight = 0.3
    reference_weight = 0.1

    def ineligible_reason(self, subject, candidate: IntercompanyRecord):
        if candidate.direction != subject.direction:
            return f"direction mismatch ({candidate.direction.value} record)"
        if candidate.status != "pending":
            return f"record already {candidate.status}"
        return None


class CashForecastScorer(ForecastBonusMixin, Scorer):
    variant = ReferenceVariant.CASH_FORECAST
    date_bands = DateBands(bands=((1, 0.3), (3, 0.3), (7, 0.2), (30, 0.05)))
    label_weight = 0.2
    reference_weight = 0.0
    identity_cap = 0.2

    def ineligible_reason(self, subject, candidate: CashForecastEntry):
        expected = (
            FlowType.INFLOW
            if subject.direction == TransactionDirection.CREDIT
            else FlowType.OUTFLOW
        )
        if candidate.flow_type != expected:
            return f"flow mismatch ({candidate.flow_type.value} forecast)"
        return None


class DepositScorer(Scorer):
    """Placement leg for debits, maturity leg (with interest) for credits."""
    variant = ReferenceVariant.DEPOSIT
    label_weight = 0.1
    reference_weight = 0.3

    def ineligible_reason(self, subject, candidate: DepositPlacement):
        if candidate.status != "active":
            return f"deposit already {candidate.status}"
        return None


SCORER_TYPES = (
    AgingScorer,
    ForecastScorer,
    PayrollScorer,
    IntercompanyScorer,
    CashForecastScorer,
    DepositScorer,
)


def build_scorers(
    settings: Optional[Settings] = None,
    text_matcher: Optional[TextMatcher] = None,
) -> Dict[ReferenceVariant, Scorer]:
    """Instantiate one scorer per variant sharing a text matcher."""
    settings = settings or get_settings()
    text_matcher = text_matcher or TextMatcher(settings.text_similarity_threshold)
    return {
        scorer_type.variant: scorer_type(text_matcher=text_matcher, settings=settings)
        for scorer_type in SCORER_TYPES
    }
