"""
JSON file item repository.

Stores every reconciliation item in one JSON document, rewritten on each
upsert. Suitable for a single-process back office; concurrent writers get
last-write-wins at file granularity.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import structlog

from ..exceptions import RepositoryFailure
from ..models import Family, ReconciliationItem

logger = structlog.get_logger()


class JsonFileItemRepository:
    """Item store persisted to a JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> Dict[str, dict]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise RepositoryFailure(
                f"Failed to read item store: {e}",
                details={"path": str(self.path)},
            ) from e

        items = data.get("items", {}) if isinstance(data, dict) else None
        if not isinstance(items, dict) or not all(isinstance(raw, dict) for raw in items.values()):
            raise RepositoryFailure(
                "Corrupt item store: expected an object of item records",
                details={"path": str(self.path)},
            )
        return items

    def _save(self, items: Dict[str, dict]) -> None:
        data = {
            "saved_at": datetime.utcnow().isoformat(),
            "total_items": len(items),
            "items": items,
        }
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.path)
        except OSError as e:
            raise RepositoryFailure(
                f"Failed to write item store: {e}",
                details={"path": str(self.path)},
            ) from e

    def _decode(self, raw: dict) -> ReconciliationItem:
        try:
            return ReconciliationItem.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            raise RepositoryFailure(
                f"Corrupt item record: {e}",
                details={"item_id": raw.get("id")},
            ) from e

    def get_all(self, family: Family) -> List[ReconciliationItem]:
        return [
            self._decode(raw)
            for raw in self._load().values()
            if raw.get("family") == family.value
        ]

    def get_by_id(self, item_id: str) -> Optional[ReconciliationItem]:
        raw = self._load().get(item_id)
        return self._decode(raw) if raw else None

    def upsert(self, item: ReconciliationItem) -> None:
        items = self._load()
        items[item.id] = item.to_dict()
        self._save(items)
        logger.debug("Item persisted", item_id=item.id, path=str(self.path))
