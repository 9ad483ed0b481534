"""
Reconciliation Orchestrator - lifecycle owner for one family.

Pipeline per transaction:
1. Applicability (family predicate)
2. Categorization (strategy chain)
3. Item creation (idempotent on transaction id)
4. Automatic matching against the family's candidate tiers

Every successful mutation is persisted first, then announced with one
domain event and recorded with one audit entry.
"""

from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Union

import structlog

from ..categorization import CategorizationChain
from ..config import Settings, get_settings
from ..exceptions import (
    CandidateNotFound,
    InvalidTransition,
    ItemNotFound,
    ReconciliationError,
)
from ..models import (
    AuditAction,
    AuditEntry,
    ExtractionReport,
    ExtractionResult,
    ExtractionStatus,
    Match,
    MatchOutcome,
    MatchOutcomeKind,
    MatchType,
    ReconciliationItem,
    ReconciliationStatus,
    ReconciliationSummary,
    ReferenceVariant,
    Transaction,
)
from ..storage import AuditSink, CandidateRepository, EventBus, ItemRepository
from .families import FamilyDefinition
from .matcher import Matcher, MatchTier
from .scoring import build_scorers, days_between
from .state_machine import AUTO_MATCHABLE, ensure_reopenable, ensure_transition

logger = structlog.get_logger()

S = ReconciliationStatus


class ReconciliationOrchestrator:
    """
    Owns the reconciliation items of one family.

    The engine never overrides a human decision: manually matched and
    confirmed items are out of reach of automatic matching.
    """

    def __init__(
        self,
        definition: FamilyDefinition,
        candidates: CandidateRepository,
        items: ItemRepository,
        audit_sink: AuditSink,
        event_bus: EventBus,
        categorizer: Optional[CategorizationChain] = None,
        matcher: Optional[Matcher] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.definition = definition
        self.family = definition.family
        self.candidates = candidates
        self.items = items
        self.audit_sink = audit_sink
        self.event_bus = event_bus
        self.categorizer = categorizer or CategorizationChain(
            confidence_floor=self.settings.categorization_confidence_floor
        )
        self.matcher = matcher or Matcher(build_scorers(self.settings))

    # =========================================================================
    # Queries
    # =========================================================================

    def get_item(self, item_id: str) -> ReconciliationItem:
        item = self.items.get_by_id(item_id)
        if item is None or item.family != self.family:
            raise ItemNotFound(item_id)
        return item

    def list_items(
        self,
        account_id: Optional[str] = None,
        status: Optional[ReconciliationStatus] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[ReconciliationItem]:
        """Filtered items, newest transaction first."""
        result = []
        for item in self.items.get_all(self.family):
            if account_id and item.account_id != account_id:
                continue
            if status and item.reconciliation_status != status:
                continue
            if date_from and (item.transaction_date is None or item.transaction_date < date_from):
                continue
            if date_to and (item.transaction_date is None or item.transaction_date > date_to):
                continue
            result.append(item)

        result.sort(
            key=lambda i: (i.transaction_date or date.min, i.extracted_at, i.id),
            reverse=True,
        )
        return result

    def get_summary(self, account_id: Optional[str] = None) -> ReconciliationSummary:
        items = self.list_items(account_id=account_id)
        summary = ReconciliationSummary(total=len(items))
        confidences = []

        for item in items:
            status = item.reconciliation_status
            if status == S.PENDING:
                summary.pending += 1
            elif status == S.UNKNOWN:
                summary.unknown += 1
            elif status == S.AUTO_MATCHED:
                summary.auto_matched += 1
            elif status == S.MANUALLY_MATCHED:
                summary.manually_matched += 1
            elif status == S.CONFIRMED:
                summary.confirmed += 1

            if item.needs_review:
                summary.needs_review += 1

            summary.total_amount_cents += item.amount_cents
            if item.is_matched or item.is_confirmed:
                summary.matched_amount_cents += item.amount_cents

            if item.confidence_ratio is not None:
                confidences.append(item.confidence_ratio)

        summary.unmatched_amount_cents = summary.total_amount_cents - summary.matched_amount_cents
        if confidences:
            summary.average_confidence = round(sum(confidences) / len(confidences), 4)

        return summary

    # =========================================================================
    # Extraction
    # =========================================================================

    def extract(
        self,
        transactions: Iterable[Transaction],
        account_id: Optional[str] = None,
    ) -> ExtractionReport:
        """
        Build items for the transactions this family owns.

        Args:
            transactions: Bank transactions, processed in order
            account_id: Default account for transactions without one

        Returns:
            ExtractionReport with the new items and one result per transaction
        """
        report = ExtractionReport()

        for transaction in transactions:
            if not self.definition.applies(transaction):
                report.results.append(ExtractionResult(
                    transaction_id=transaction.id,
                    status=ExtractionStatus.SKIPPED,
                ))
                continue

            item_id = self.definition.item_id(transaction.id)
            try:
                if self.items.get_by_id(item_id) is not None:
                    report.results.append(ExtractionResult(
                        transaction_id=transaction.id,
                        status=ExtractionStatus.DUPLICATE,
                        item_id=item_id,
                    ))
                    continue

                item = self._build_item(transaction, account_id)
                self._commit(
                    item,
                    event="EXTRACTED",
                    action=AuditAction.ITEM_EXTRACTED,
                    payload={
                        "category": item.category,
                        "category_method": item.category_method,
                        "amount_cents": item.amount_cents,
                    },
                )

                outcome = self._auto_reconcile(item)
                report.items.append(item)
                report.results.append(ExtractionResult(
                    transaction_id=transaction.id,
                    status=ExtractionStatus.CREATED,
                    item_id=item.id,
                    outcome=outcome.kind,
                ))

            except ReconciliationError as e:
                logger.error(
                    "Extraction failed",
                    family=self.family.value,
                    transaction_id=transaction.id,
                    error=e.message,
                )
                report.results.append(ExtractionResult(
                    transaction_id=transaction.id,
                    status=ExtractionStatus.FAILED,
                    item_id=item_id,
                    error=e.message,
                ))

        logger.info(
            "Extraction complete",
            family=self.family.value,
            created=report.created,
            duplicates=report.count(ExtractionStatus.DUPLICATE),
            skipped=report.count(ExtractionStatus.SKIPPED),
            failed=report.failed,
        )
        return report

    def _build_item(
        self,
        transaction: Transaction,
        account_id: Optional[str],
    ) -> ReconciliationItem:
        categorization = self.categorizer.categorize(transaction, self.family)

        return ReconciliationItem(
            id=self.definition.item_id(transaction.id),
            transaction_id=transaction.id,
            family=self.family,
            account_id=transaction.account_id or account_id,
            transaction_date=transaction.transaction_date,
            description=transaction.description,
            amount_cents=transaction.amount_cents,
            direction=transaction.direction,
            reference=transaction.reference,
            category=categorization.category,
            category_confidence=categorization.confidence,
            category_method=categorization.method,
            details=self.definition.enrich(transaction),
        )

    # =========================================================================
    # Reconciliation
    # =========================================================================

    def perform_auto_reconciliation(self, item_id: str) -> MatchOutcome:
        """Run the matcher for one item and apply the outcome."""
        return self._auto_reconcile(self.get_item(item_id))

    def _auto_reconcile(self, item: ReconciliationItem) -> MatchOutcome:
        status = item.reconciliation_status
        if status not in AUTO_MATCHABLE:
            raise InvalidTransition(
                item_id=item.id,
                current=status.value,
                target=S.AUTO_MATCHED.value,
                reason=f"Automatic matching cannot override a {status.value} item",
            )

        tiers = [
            MatchTier(
                variant=tier.variant,
                candidates=self.candidates.get_all(tier.variant, tier.filter_for(item)),
                threshold=tier.threshold,
            )
            for tier in self.definition.tiers
        ]
        outcome = self.matcher.match_tiers(item, tiers)

        if outcome.kind == MatchOutcomeKind.ACCEPTED:
            self._apply_accepted(item, outcome)
        elif outcome.kind == MatchOutcomeKind.NEEDS_REVIEW:
            self._apply_review(item, outcome)
        else:
            self._apply_no_match(item, outcome)

        return outcome

    def _apply_accepted(self, item: ReconciliationItem, outcome: MatchOutcome) -> None:
        match = outcome.match
        if item.reconciliation_status == S.AUTO_MATCHED and match.same_target(item.matched_entity):
            logger.debug("Auto match unchanged", item_id=item.id)
            return

        ensure_transition(item, S.AUTO_MATCHED)
        previous = item.matched_entity
        item.reconciliation_status = S.AUTO_MATCHED
        item.confidence_ratio = match.score
        item.matched_entity = match
        item.needs_review = False
        item.suggested_match = None

        self._commit(
            item,
            event="RECONCILED",
            action=AuditAction.AUTO_RECONCILED,
            payload={
                "match": match.to_dict(),
                "threshold": outcome.threshold,
                "previous_candidate_id": previous.candidate_id if previous else None,
            },
        )
        logger.info(
            "Auto reconciliation accepted",
            item_id=item.id,
            candidate_id=match.candidate_id,
            variant=match.variant.value,
            score=match.score,
        )

    def _apply_review(self, item: ReconciliationItem, outcome: MatchOutcome) -> None:
        match = outcome.match
        if item.reconciliation_status == S.AUTO_MATCHED:
            logger.warning(
                "Re-run scored below threshold, keeping existing match",
                item_id=item.id,
                candidate_id=match.candidate_id,
                score=match.score,
            )
            return

        if item.needs_review and match.same_target(item.suggested_match):
            return

        item.needs_review = True
        item.suggested_match = match

        self._commit(
            item,
            event="UPDATED",
            action=AuditAction.REVIEW_SUGGESTED,
            payload={"suggested_match": match.to_dict(), "threshold": outcome.threshold},
        )
        logger.info(
            "Match needs review",
            item_id=item.id,
            candidate_id=match.candidate_id,
            score=match.score,
            threshold=outcome.threshold,
        )

    def _apply_no_match(self, item: ReconciliationItem, outcome: MatchOutcome) -> None:
        status = item.reconciliation_status
        if status == S.AUTO_MATCHED:
            logger.warning(
                "Re-run found no candidate, keeping existing match",
                item_id=item.id,
            )
            return

        if status == S.UNKNOWN and not item.needs_review:
            return

        if status == S.PENDING:
            ensure_transition(item, S.UNKNOWN)
            item.reconciliation_status = S.UNKNOWN
        item.needs_review = False
        item.suggested_match = None

        self._commit(
            item,
            event="UPDATED",
            action=AuditAction.MARKED_UNKNOWN,
            payload={"candidates_evaluated": outcome.candidates_evaluated},
        )

    def perform_manual_reconciliation(
        self,
        item_id: str,
        candidate_id: str,
        variant: Union[ReferenceVariant, str],
        notes: str = "",
        actor: str = "user",
    ) -> ReconciliationItem:
        """Force a match chosen by a person. Confidence is always 1.0."""
        item = self.get_item(item_id)
        variant = ReferenceVariant(variant)

        if item.is_confirmed:
            raise InvalidTransition(
                item_id=item.id,
                current=item.reconciliation_status.value,
                target=S.MANUALLY_MATCHED.value,
                reason="Confirmed items must be reopened before re-matching",
            )

        if self.definition.tier_for(variant) is None:
            raise ReconciliationError(
                f"{self.family.value} items cannot be matched to {variant.value} records",
                details={"variant": variant.value},
            )

        candidate = self.candidates.get_by_id(variant, candidate_id)
        if candidate is None:
            raise CandidateNotFound(candidate_id, variant.value)

        ensure_transition(item, S.MANUALLY_MATCHED)

        match = Match(
            candidate_id=candidate.id,
            variant=variant,
            score=1.0,
            reasons=["manual selection"] + ([notes] if notes else []),
            date_distance_days=days_between(
                item.transaction_date, candidate.relevant_date_for(item.direction)
            ),
            is_ledger_backed=candidate.is_ledger_backed,
            match_type=MatchType.MANUAL,
        )

        if item.reconciliation_status == S.MANUALLY_MATCHED and match.same_target(item.matched_entity):
            return item

        previous = item.matched_entity
        item.reconciliation_status = S.MANUALLY_MATCHED
        item.confidence_ratio = 1.0
        item.matched_entity = match
        item.needs_review = False
        item.suggested_match = None
        if notes:
            item.observations = notes

        self._commit(
            item,
            event="RECONCILED",
            action=AuditAction.MANUAL_RECONCILIATION,
            actor=actor,
            payload={
                "match": match.to_dict(),
                "notes": notes,
                "previous_candidate_id": previous.candidate_id if previous else None,
            },
        )
        logger.info(
            "Manual reconciliation",
            item_id=item.id,
            candidate_id=candidate.id,
            variant=variant.value,
            actor=actor,
        )
        return item

    def confirm(
        self,
        item_id: str,
        verified_by: str,
        observations: Optional[str] = None,
    ) -> ReconciliationItem:
        item = self.get_item(item_id)
        ensure_transition(
            item,
            S.CONFIRMED,
            reason=f"Only matched items can be confirmed (item is {item.reconciliation_status.value})",
        )

        item.reconciliation_status = S.CONFIRMED
        item.verification_date = datetime.utcnow()
        item.verified_by = verified_by
        if observations is not None:
            item.observations = observations

        self._commit(
            item,
            event="CONFIRMED",
            action=AuditAction.TRANSACTION_CONFIRMED,
            actor=verified_by,
            payload={"observations": item.observations},
        )
        return item

    def amend(
        self,
        item_id: str,
        observations: Optional[str] = None,
        verified_by: Optional[str] = None,
        actor: str = "user",
    ) -> ReconciliationItem:
        """Update notes without touching the status."""
        item = self.get_item(item_id)
        changes: Dict[str, Any] = {}

        if observations is not None and observations != item.observations:
            changes["observations"] = {"old": item.observations, "new": observations}
            item.observations = observations
        if verified_by is not None and verified_by != item.verified_by:
            changes["verified_by"] = {"old": item.verified_by, "new": verified_by}
            item.verified_by = verified_by

        if not changes:
            return item

        self._commit(
            item,
            event="UPDATED",
            action=AuditAction.ITEM_AMENDED,
            actor=actor,
            payload={"changes": changes},
        )
        return item

    def reopen(self, item_id: str, actor: str, reason: str) -> ReconciliationItem:
        """Send a confirmed item back to pending. Clears the match."""
        item = self.get_item(item_id)
        ensure_reopenable(item)

        previous = item.matched_entity
        item.reconciliation_status = S.PENDING
        item.confidence_ratio = None
        item.matched_entity = None
        item.needs_review = False
        item.suggested_match = None
        item.verification_date = None
        item.verified_by = None

        self._commit(
            item,
            event="REOPENED",
            action=AuditAction.ITEM_REOPENED,
            actor=actor,
            payload={
                "reason": reason,
                "previous_match": previous.to_dict() if previous else None,
            },
        )
        logger.info("Item reopened", item_id=item.id, actor=actor, reason=reason)
        return item

    # =========================================================================
    # Side effects
    # =========================================================================

    def _commit(
        self,
        item: ReconciliationItem,
        event: str,
        action: AuditAction,
        payload: Dict[str, Any],
        actor: str = "system",
    ) -> None:
        """Persist, then emit one event and append one audit entry."""
        item.touch()
        self.items.upsert(item)

        event_name = f"{self.family.event_prefix}_{event}"
        try:
            self.event_bus.emit(event_name, {
                "item_id": item.id,
                "transaction_id": item.transaction_id,
                "account_id": item.account_id,
                "status": item.reconciliation_status.value,
                **payload,
            })
        except Exception as e:
            logger.error("Event emission failed", event_name=event_name, item_id=item.id, error=str(e))

        try:
            self.audit_sink.append(AuditEntry(
                actor=actor,
                action=action,
                entity_type=self.family.value,
                entity_id=item.id,
                payload={"status": item.reconciliation_status.value, **payload},
            ))
        except Exception as e:
            logger.error("Audit append failed", action=action.value, item_id=item.id, error=str(e))
