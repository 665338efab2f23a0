"""Selection/review ledger.

Process-local bookkeeping of entries marked for promotion from A to B and of
entries inspected through a diff. Synchronous, in-memory, and total: no
operation raises. Promotion is tracked only, never executed.

Example:
--------
>>> ledger = SelectionLedger()
>>> ledger.mark("ApexClass", "Foo")
>>> ledger.is_marked("ApexClass", "Foo")
True
>>> ledger.unmark("ApexClass", "Foo")
>>> ledger.list()
[]
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from orgdiff.domain import SelectionEntry, SelectionOrigin, Verdict

__all__ = ["SelectionLedger"]

logger = logging.getLogger(__name__)

_Key = Tuple[str, str]


class SelectionLedger:
    """Promotion set plus review log, keyed by (category, entry_name)."""

    def __init__(self):
        # dicts keep insertion order
        self._promotions: Dict[_Key, SelectionEntry] = {}
        self._reviews: Dict[_Key, SelectionEntry] = {}

    def mark(self, category: str, entry_name: str) -> None:
        """Add an entry to the promotion set. Idempotent."""
        key = (category, entry_name)
        if key not in self._promotions:
            self._promotions[key] = SelectionEntry(
                category=category, entry_name=entry_name, origin=SelectionOrigin.PROMOTION
            )

    def unmark(self, category: str, entry_name: str) -> None:
        """Remove an entry from the promotion set. Idempotent."""
        self._promotions.pop((category, entry_name), None)

    def toggle(self, category: str, entry_name: str) -> bool:
        """Flip promotion membership and return the new state."""
        if self.is_marked(category, entry_name):
            self.unmark(category, entry_name)
            return False
        self.mark(category, entry_name)
        return True

    def is_marked(self, category: str, entry_name: str) -> bool:
        return (category, entry_name) in self._promotions

    def record_reviewed(self, category: str, entry_name: str, verdict: Verdict) -> None:
        """Log that an entry was inspected; the latest verdict wins."""
        # reassigning an existing key keeps its first-review position
        self._reviews[(category, entry_name)] = SelectionEntry(
            category=category, entry_name=entry_name, origin=SelectionOrigin.REVIEW, verdict=verdict
        )
        logger.debug(f"Reviewed {category}:{entry_name} ({verdict.value})")

    def reviewed_verdict(self, category: str, entry_name: str) -> Optional[Verdict]:
        entry = self._reviews.get((category, entry_name))
        return entry.verdict if entry else None

    def list(self) -> List[SelectionEntry]:
        """Promotion entries, then review entries, each in insertion order."""
        return [*self._promotions.values(), *self._reviews.values()]

    def clear(self) -> None:
        self._promotions.clear()
        self._reviews.clear()

    def __len__(self) -> int:
        return len(self._promotions) + len(self._reviews)
