"""
Collaborator interfaces consumed by the reconciliation core.

Any backing store (file, SQL, in-memory) that satisfies these protocols
can be injected into the orchestrator.
"""

from typing import Any, Callable, List, Optional, Protocol

from ..models import (
    AuditEntry,
    Family,
    ReconciliationItem,
    ReferenceRecord,
    ReferenceVariant,
)

CandidateFilter = Callable[[ReferenceRecord], bool]


class CandidateRepository(Protocol):
    """Read-only query surface over reference records."""

    def get_all(
        self,
        variant: ReferenceVariant,
        filter: Optional[CandidateFilter] = None,
    ) -> List[ReferenceRecord]:
        ...

    def get_by_id(
        self,
        variant: ReferenceVariant,
        record_id: str,
    ) -> Optional[ReferenceRecord]:
        ...


class ItemRepository(Protocol):
    """Key-value store of reconciliation items."""

    def get_all(self, family: Family) -> List[ReconciliationItem]:
        ...

    def get_by_id(self, item_id: str) -> Optional[ReconciliationItem]:
        ...

    def upsert(self, item: ReconciliationItem) -> None:
        ...


class AuditSink(Protocol):
    def append(self, entry: AuditEntry) -> None:
        ...


class EventBus(Protocol):
    def emit(self, event_name: str, payload: Any = None) -> None:
        ...
