"""In-memory repositories."""

import copy
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from ..models import (
    Family,
    ReconciliationItem,
    ReferenceRecord,
    ReferenceVariant,
)
from .base import CandidateFilter


class InMemoryCandidateRepository:
    """Reference records grouped by variant, in insertion order."""

    def __init__(self, records: Optional[Iterable[ReferenceRecord]] = None):
        self._records: Dict[ReferenceVariant, Dict[str, ReferenceRecord]] = defaultdict(dict)
        if records:
            self.add_many(records)

    def add(self, record: ReferenceRecord) -> None:
        self._records[record.variant][record.id] = record

    def add_many(self, records: Iterable[ReferenceRecord]) -> None:
        for record in records:
            self.add(record)

    def replace(self, variant: ReferenceVariant, records: Iterable[ReferenceRecord]) -> None:
        self._records[variant] = {r.id: r for r in records}

    def get_all(
        self,
        variant: ReferenceVariant,
        filter: Optional[CandidateFilter] = None,
    ) -> List[ReferenceRecord]:
        records = list(self._records.get(variant, {}).values())
        if filter is not None:
            records = [r for r in records if filter(r)]
        return records

    def get_by_id(
        self,
        variant: ReferenceVariant,
        record_id: str,
    ) -> Optional[ReferenceRecord]:
        return self._records.get(variant, {}).get(record_id)


class InMemoryItemRepository:
    """
    Item store keyed by item id.

    Items are copied in and out so callers never share mutable state
    with the store.
    """

    def __init__(self):
        self._items: Dict[str, ReconciliationItem] = {}

    def get_all(self, family: Family) -> List[ReconciliationItem]:
        return [
            copy.deepcopy(item)
            for item in self._items.values()
            if item.family == family
        ]

    def get_by_id(self, item_id: str) -> Optional[ReconciliationItem]:
        item = self._items.get(item_id)
        return copy.deepcopy(item) if item else None

    def upsert(self, item: ReconciliationItem) -> None:
        self._items[item.id] = copy.deepcopy(item)

    def __len__(self) -> int:
        return len(self._items)
