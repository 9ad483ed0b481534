"""
Audit logging for reconciliation decisions.
"""

import json
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import structlog

from ..config import get_settings
from ..models import AuditEntry

logger = structlog.get_logger()


class AuditLogger:
    """
    Append-only audit trail of reconciliation decisions.
    Keeps entries in memory, mirrors them to structlog and exports to JSON.
    """

    def __init__(self, session_id: str = "default"):
        self.session_id = session_id
        self.entries: List[AuditEntry] = []
        self.settings = get_settings()

    def append(self, entry: AuditEntry) -> None:
        """Add an audit entry."""
        self.entries.append(entry)

        logger.info(
            "Audit entry",
            action=entry.action.value,
            actor=entry.actor,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
        )

    def get_entries(
        self,
        action_filter: Optional[str] = None,
        entity_id: Optional[str] = None,
    ) -> List[AuditEntry]:
        """Get filtered audit entries."""
        entries = self.entries

        if action_filter:
            entries = [e for e in entries if e.action.value == action_filter]

        if entity_id:
            entries = [e for e in entries if e.entity_id == entity_id]

        return entries

    def export_to_file(self, output_path: Optional[Path] = None) -> Path:
        """Export audit log to JSON file."""
        if output_path is None:
            output_path = self.settings.reports_dir / f"audit_{self.session_id}.json"

        output_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "session_id": self.session_id,
            "exported_at": datetime.utcnow().isoformat(),
            "total_entries": len(self.entries),
            "entries": [e.to_dict() for e in self.entries],
        }

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)

        logger.info("Audit log exported", path=str(output_path))
        return output_path

    def summary(self) -> dict:
        """Get summary statistics of audit log."""
        action_counts = Counter(e.action.value for e in self.entries)
        actor_counts = Counter(e.actor for e in self.entries)

        return {
            "total_entries": len(self.entries),
            "action_counts": dict(action_counts),
            "actor_counts": dict(actor_counts),
        }
