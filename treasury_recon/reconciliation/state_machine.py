"""Allowed reconciliation status transitions."""

from typing import Dict, FrozenSet

from ..exceptions import InvalidTransition
from ..models import ReconciliationItem, ReconciliationStatus

S = ReconciliationStatus

ALLOWED_TRANSITIONS: Dict[ReconciliationStatus, FrozenSet[ReconciliationStatus]] = {
    S.PENDING: frozenset({S.AUTO_MATCHED, S.MANUALLY_MATCHED, S.UNKNOWN}),
    S.UNKNOWN: frozenset({S.AUTO_MATCHED, S.MANUALLY_MATCHED}),
    S.AUTO_MATCHED: frozenset({S.MANUALLY_MATCHED, S.CONFIRMED, S.AUTO_MATCHED}),
    S.MANUALLY_MATCHED: frozenset({S.CONFIRMED, S.MANUALLY_MATCHED}),
    # Terminal; reopen is handled separately
    S.CONFIRMED: frozenset(),
}

# Statuses the engine may still write an automatic match onto
AUTO_MATCHABLE = frozenset({S.PENDING, S.UNKNOWN, S.AUTO_MATCHED})


def can_transition(current: ReconciliationStatus, target: ReconciliationStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_transition(
    item: ReconciliationItem,
    target: ReconciliationStatus,
    reason: str = None,
) -> None:
    """Raise InvalidTransition unless item may move to target."""
    current = item.reconciliation_status
    if not can_transition(current, target):
        raise InvalidTransition(
            item_id=item.id,
            current=current.value,
            target=target.value,
            reason=reason,
        )


def ensure_reopenable(item: ReconciliationItem) -> None:
    if item.reconciliation_status != S.CONFIRMED:
        raise InvalidTransition(
            item_id=item.id,
            current=item.reconciliation_status.value,
            target=S.PENDING.value,
            reason=f"Only confirmed items can be reopened (item is {item.reconciliation_status.value})",
        )
