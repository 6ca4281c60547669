# lead_intake/models/suppression.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Sequence

OPTOUT_COLUMNS = ("created_at", "email", "phone", "request_type", "notes")


@dataclass(frozen=True)
class SuppressionRecord:
    created_at: str = ""
    email: str = ""
    phone: str = ""
    request_type: str = ""
    notes: str = ""

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "SuppressionRecord":
        """Short rows are padded; missing columns read as empty strings."""
        cells = [("" if c is None else str(c)) for c in list(row)[: len(OPTOUT_COLUMNS)]]
        cells += [""] * (len(OPTOUT_COLUMNS) - len(cells))
        return cls(*cells)

    def to_row(self) -> List[str]:
        return [self.created_at, self.email, self.phone, self.request_type, self.notes]
