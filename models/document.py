"""Persisted document: the column mapping and the print history.

This is the only state that outlives a session. It is loaded and saved
explicitly; nothing else in the engine touches storage.
"""

import json
import logging
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

MAPPING_KEY = "std_mapping"
HISTORY_KEY = "std_history"


@dataclass
class LabelDocument:
    column_mapping: Dict[str, str] = field(default_factory=dict)
    history: List[Dict[str, Any]] = field(default_factory=list)

    def to_store(self) -> dict:
        return {
            MAPPING_KEY: dict(self.column_mapping),
            HISTORY_KEY: [dict(h) for h in self.history],
        }

    @classmethod
    def from_store(cls, store: dict) -> "LabelDocument":
        return cls(
            column_mapping=dict(store.get(MAPPING_KEY) or {}),
            history=[dict(h) for h in store.get(HISTORY_KEY) or []],
        )

    def save_json(self, path: str) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_store(), f, indent=2)

    @classmethod
    def load_json(cls, path: str) -> "LabelDocument":
        """Load from ``path``; a missing file gives an empty document."""
        if not os.path.exists(path):
            logger.debug("No document at %s, starting empty", path)
            return cls()
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_store(json.load(f))

    def record_print(self, label_id: str, product: Optional[str], price: Optional[str],
                     printed_at: Optional[str] = None) -> Dict[str, Any]:
        record = {
            "id": uuid.uuid4().hex[:12],
            "label_id": label_id,
            "printed_at": printed_at or datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "product": product or "",
            "price": price or "",
        }
        self.history.append(record)
        return record

    def update_history_record(self, record_id: str, key: str, value: Any) -> bool:
        """Set one field on a history record. Returns False for an unknown id."""
        updated = False
        new_history = []
        for record in self.history:
            if record.get("id") == record_id:
                record = {**record, key: value}
                updated = True
            new_history.append(record)
        self.history = new_history
        return updated
