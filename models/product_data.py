"""Imported product rows: each row maps a column header to a string value."""

import csv
import logging
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

Product = Dict[str, str]


class ProductData:
    """Loads a CSV export of the inventory and exposes headers and rows."""

    def __init__(self, rows: Optional[List[Product]] = None):
        self.rows: List[Product] = [dict(r) for r in rows or []]
        self.headers: List[str] = list(self.rows[0].keys()) if self.rows else []
        self.file_path: str = ""

    def load(self, path: str) -> None:
        """Load CSV with utf-8-sig (handles BOM), fallback to latin-1."""
        self.file_path = path
        for encoding in ("utf-8-sig", "latin-1"):
            try:
                with open(path, "r", encoding=encoding, newline="") as f:
                    reader = csv.DictReader(f)
                    self.headers = list(reader.fieldnames or [])
                    # DictReader fills short rows with None; treat those cells as absent
                    self.rows = [{k: v for k, v in row.items() if k is not None and v is not None}
                                 for row in reader]
                logger.info("Loaded %d products from %s (%s)", len(self.rows), path, encoding)
                return
            except UnicodeDecodeError:
                continue
        raise ValueError(f"Could not read CSV file: {path}")

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def is_loaded(self) -> bool:
        return len(self.rows) > 0

    def get(self, index: int) -> Optional[Product]:
        if 0 <= index < len(self.rows):
            return self.rows[index]
        return None

    def search(self, term: str) -> List[int]:
        """Indices of rows where any value contains ``term`` (case-insensitive)."""
        needle = term.lower().strip()
        if not needle:
            return list(range(len(self.rows)))
        return [i for i, row in enumerate(self.rows)
                if any(needle in str(val).lower() for val in row.values())]

    def display_name(self, index: int) -> str:
        """First column value, used as the row's list title."""
        row = self.get(index)
        if not row:
            return "Unknown"
        return next(iter(row.values()), "") or "Unknown"
