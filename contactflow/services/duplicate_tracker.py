"""Batch-scoped duplicate tracking keyed by standardized phone number."""

from dataclasses import dataclass
from typing import Dict, List, Tuple

KEPT_FIRST = "kept_first"


@dataclass(frozen=True)
class DuplicateGroup:
    """Rows that normalized to the same phone; the first row's record was kept."""
    phone: str
    rows: Tuple[int, ...]
    resolution: str = KEPT_FIRST

    @property
    def count(self) -> int:
        return len(self.rows)


class DuplicateTracker:
    """
    Standardized phone -> originating row numbers, for one pipeline run.

    Row order of registration decides which occurrence is first.
    """

    def __init__(self):
        self._rows: Dict[str, List[int]] = {}

    def register(self, phone: str, row_number: int) -> bool:
        """Record an occurrence; True when this is the first one for the phone."""
        if phone in self._rows:
            self._rows[phone].append(row_number)
            return False
        self._rows[phone] = [row_number]
        return True

    def __len__(self) -> int:
        return len(self._rows)

    def groups(self) -> List[DuplicateGroup]:
        """Phones seen on more than one row, in first-seen order."""
        return [
            DuplicateGroup(phone=phone, rows=tuple(rows))
            for phone, rows in self._rows.items()
            if len(rows) > 1
        ]
