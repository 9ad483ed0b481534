"""Reconciliation lifecycle models."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, List, Dict, Any
from uuid import uuid4

from .enums import (
    AuditAction,
    ExtractionStatus,
    Family,
    MatchOutcomeKind,
    MatchType,
    ReconciliationStatus,
    ReferenceVariant,
    TransactionDirection,
)
from .reference import ReferenceRecord


def _iso(value: Optional[Any]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class Match:
    """A scored (item, candidate) pair. Not persisted on its own."""
    candidate_id: str
    variant: ReferenceVariant
    score: float = 0.0
    reasons: List[str] = field(default_factory=list)
    date_distance_days: Optional[int] = None
    is_ledger_backed: bool = True
    match_type: MatchType = MatchType.AUTO
    matched_at: datetime = field(default_factory=datetime.utcnow)

    def same_target(self, other: Optional["Match"]) -> bool:
        """True if both matches point at the same candidate with the same score."""
        if other is None:
            return False
        return (
            self.candidate_id == other.candidate_id
            and self.variant == other.variant
            and self.score == other.score
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "candidate_id": self.candidate_id,
            "variant": self.variant.value,
            "score": self.score,
            "reasons": list(self.reasons),
            "date_distance_days": self.date_distance_days,
            "is_ledger_backed": self.is_ledger_backed,
            "match_type": self.match_type.value,
            "matched_at": _iso(self.matched_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Match":
        return cls(
            candidate_id=data["candidate_id"],
            variant=ReferenceVariant(data["variant"]),
            score=data.get("score", 0.0),
            reasons=list(data.get("reasons", [])),
            date_distance_days=data.get("date_distance_days"),
            is_ledger_backed=data.get("is_ledger_backed", True),
            match_type=MatchType(data.get("match_type", MatchType.AUTO.value)),
            matched_at=datetime.fromisoformat(data["matched_at"]) if data.get("matched_at") else datetime.utcnow(),
        )


@dataclass
class MatchOutcome:
    """Result of running the matcher for one item."""
    kind: MatchOutcomeKind = MatchOutcomeKind.NO_MATCH
    match: Optional[Match] = None
    candidate: Optional[ReferenceRecord] = None
    threshold: Optional[float] = None
    candidates_evaluated: int = 0

    @property
    def is_accepted(self) -> bool:
        return self.kind == MatchOutcomeKind.ACCEPTED

    @property
    def needs_review(self) -> bool:
        return self.kind == MatchOutcomeKind.NEEDS_REVIEW

    @property
    def score(self) -> float:
        return self.match.score if self.match else 0.0

    @classmethod
    def no_match(cls, candidates_evaluated: int = 0) -> "MatchOutcome":
        return cls(kind=MatchOutcomeKind.NO_MATCH, candidates_evaluated=candidates_evaluated)


@dataclass
class ReconciliationItem:
    """
    Tracks one transaction's matching lifecycle.
    Mutated only by the orchestrator; never deleted.
    """
    id: str
    transaction_id: str
    family: Family

    # Snapshot of the source transaction
    account_id: Optional[str] = None
    transaction_date: Optional[date] = None
    description: str = ""
    amount_cents: int = 0
    direction: TransactionDirection = TransactionDirection.CREDIT
    reference: Optional[str] = None

    # Categorization
    category: str = "other"
    category_confidence: float = 0.0
    category_method: str = "rule-based"

    # Reconciliation state
    reconciliation_status: ReconciliationStatus = ReconciliationStatus.PENDING
    confidence_ratio: Optional[float] = None
    matched_entity: Optional[Match] = None
    needs_review: bool = False
    suggested_match: Optional[Match] = None

    # Verification
    verification_date: Optional[datetime] = None
    verified_by: Optional[str] = None
    observations: str = ""

    # Family enrichment (counterparty, deposit number...)
    details: Dict[str, Any] = field(default_factory=dict)

    extracted_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_matched(self) -> bool:
        return self.reconciliation_status in (
            ReconciliationStatus.AUTO_MATCHED,
            ReconciliationStatus.MANUALLY_MATCHED,
        )

    @property
    def is_confirmed(self) -> bool:
        return self.reconciliation_status == ReconciliationStatus.CONFIRMED

    @property
    def amount(self) -> float:
        return self.amount_cents / 100.0

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "family": self.family.value,
            "account_id": self.account_id,
            "transaction_date": _iso(self.transaction_date),
            "description": self.description,
            "amount_cents": self.amount_cents,
            "amount": self.amount,
            "direction": self.direction.value,
            "reference": self.reference,
            "category": self.category,
            "category_confidence": self.category_confidence,
            "category_method": self.category_method,
            "reconciliation_status": self.reconciliation_status.value,
            "confidence_ratio": self.confidence_ratio,
            "matched_entity": self.matched_entity.to_dict() if self.matched_entity else None,
            "needs_review": self.needs_review,
            "suggested_match": self.suggested_match.to_dict() if self.suggested_match else None,
            "verification_date": _iso(self.verification_date),
            "verified_by": self.verified_by,
            "observations": self.observations,
            "details": dict(self.details),
            "extracted_at": _iso(self.extracted_at),
            "updated_at": _iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReconciliationItem":
        matched = data.get("matched_entity")
        suggested = data.get("suggested_match")
        return cls(
            id=data["id"],
            transaction_id=data["transaction_id"],
            family=Family(data["family"]),
            account_id=data.get("account_id"),
            transaction_date=date.fromisoformat(data["transaction_date"]) if data.get("transaction_date") else None,
            description=data.get("description", ""),
            amount_cents=data.get("amount_cents", 0),
            direction=TransactionDirection(data.get("direction", TransactionDirection.CREDIT.value)),
            reference=data.get("reference"),
            category=data.get("category", "other"),
            category_confidence=data.get("category_confidence", 0.0),
            category_method=data.get("category_method", "rule-based"),
            reconciliation_status=ReconciliationStatus(data["reconciliation_status"]),
            confidence_ratio=data.get("confidence_ratio"),
            matched_entity=Match.from_dict(matched) if matched else None,
            needs_review=data.get("needs_review", False),
            suggested_match=Match.from_dict(suggested) if suggested else None,
            verification_date=datetime.fromisoformat(data["verification_date"]) if data.get("verification_date") else None,
            verified_by=data.get("verified_by"),
            observations=data.get("observations", ""),
            details=dict(data.get("details") or {}),
            extracted_at=datetime.fromisoformat(data["extracted_at"]) if data.get("extracted_at") else datetime.utcnow(),
            updated_at=datetime.fromisoformat(data["updated_at"]) if data.get("updated_at") else datetime.utcnow(),
        )


@dataclass
class AuditEntry:
    """An entry in the audit log."""
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.utcnow)
    actor: str = "system"

    action: AuditAction = AuditAction.ITEM_EXTRACTED
    entity_type: str = ""
    entity_id: str = ""

    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "actor": self.actor,
            "action": self.action.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "payload": self.payload,
        }


@dataclass
class ExtractionResult:
    """Outcome of extracting a single transaction."""
    transaction_id: str
    status: ExtractionStatus
    item_id: Optional[str] = None
    outcome: Optional[MatchOutcomeKind] = None
    error: Optional[str] = None


@dataclass
class ExtractionReport:
    """Result of a batch extraction."""
    items: List[ReconciliationItem] = field(default_factory=list)
    results: List[ExtractionResult] = field(default_factory=list)

    def count(self, status: ExtractionStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def created(self) -> int:
        return self.count(ExtractionStatus.CREATED)

    @property
    def failed(self) -> int:
        return self.count(ExtractionStatus.FAILED)


@dataclass
class ReconciliationSummary:
    """Summary statistics of a family's items."""
    total: int = 0
    pending: int = 0
    unknown: int = 0
    auto_matched: int = 0
    manually_matched: int = 0
    confirmed: int = 0
    needs_review: int = 0

    # Amounts (in cents)
    total_amount_cents: int = 0
    matched_amount_cents: int = 0
    unmatched_amount_cents: int = 0

    average_confidence: float = 0.0

    @property
    def matched(self) -> int:
        return self.auto_matched + self.manually_matched

    @property
    def match_rate(self) -> float:
        """Percentage of items matched or confirmed."""
        if self.total == 0:
            return 0.0
        return ((self.matched + self.confirmed) / self.total) * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "pending": self.pending,
            "unknown": self.unknown,
            "auto_matched": self.auto_matched,
            "manually_matched": self.manually_matched,
            "matched": self.matched,
            "confirmed": self.confirmed,
            "needs_review": self.needs_review,
            "total_amount_cents": self.total_amount_cents,
            "matched_amount_cents": self.matched_amount_cents,
            "unmatched_amount_cents": self.unmatched_amount_cents,
            "average_confidence": self.average_confidence,
            "match_rate": self.match_rate,
        }
