"""Reconciliation models.

Annotated, unioned views produced by the reconciliation engine. The raw
``Entry`` objects are never modified; presence and equality hints live on the
wrapping ``ReconciledEntry``.

Model Hierarchy:
---------------
- UnionedCategories
  └── Category (tuple, sorted by name)
- ReconciledView
  └── ReconciledEntry (tuple, sorted by name)
      ├── entry_a: Entry | None
      └── entry_b: Entry | None
- UnionedFileList
  └── ReconciledFile (tuple, sorted by path)

Key Features:
-------------
- **Immutable**: views are replaced wholesale, never patched
- **Sorted**: case-sensitive lexicographic order on the union key
- **Self-checking**: an equality hint other than UNKNOWN requires presence BOTH
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from orgdiff.domain.catalog import Category, Entry

__all__ = [
    "Presence",
    "EqualityHint",
    "ReconciledEntry",
    "ReconciledView",
    "UnionedCategories",
    "ReconciledFile",
    "UnionedFileList",
    "CategoryCounts",
]


class Presence(str, Enum):
    """Which environments hold an entry."""

    A_ONLY = "A_ONLY"
    B_ONLY = "B_ONLY"
    BOTH = "BOTH"


class EqualityHint(str, Enum):
    """Listing-time equality signal. Advisory only."""

    LIKELY_EQUAL = "LIKELY_EQUAL"
    LIKELY_DIFFERENT = "LIKELY_DIFFERENT"
    UNKNOWN = "UNKNOWN"


class ReconciledEntry(BaseModel):
    """An entry annotated with presence and a best-effort equality hint."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., description="Entry name shared by both sides")
    presence: Presence = Field(..., description="A_ONLY | B_ONLY | BOTH")
    equality_hint: EqualityHint = Field(default=EqualityHint.UNKNOWN, description="Fingerprint-based hint")
    entry_a: Optional[Entry] = Field(default=None, description="Raw entry from environment A")
    entry_b: Optional[Entry] = Field(default=None, description="Raw entry from environment B")

    @model_validator(mode="after")
    def _check_consistency(self) -> "ReconciledEntry":
        if self.presence is not Presence.BOTH and self.equality_hint is not EqualityHint.UNKNOWN:
            raise ValueError(f"equality_hint must be UNKNOWN when presence is {self.presence.value}")
        if (self.entry_a is not None) != (self.presence in (Presence.A_ONLY, Presence.BOTH)):
            raise ValueError("entry_a must be set exactly when the entry is present in A")
        if (self.entry_b is not None) != (self.presence in (Presence.B_ONLY, Presence.BOTH)):
            raise ValueError("entry_b must be set exactly when the entry is present in B")
        return self


class ReconciledView(BaseModel):
    """Unioned, annotated entry list for one category.

    Attributes:
        category: Category name
        entries: Annotated entries sorted by name
        count_a: Number of entries listed by environment A
        count_b: Number of entries listed by environment B
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    category: str
    entries: Tuple[ReconciledEntry, ...] = ()
    count_a: int = Field(default=0, ge=0)
    count_b: int = Field(default=0, ge=0)

    def names(self) -> Tuple[str, ...]:
        return tuple(entry.name for entry in self.entries)

    def get(self, name: str) -> Optional[ReconciledEntry]:
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def presence_counts(self) -> Dict[Presence, int]:
        counts = {presence: 0 for presence in Presence}
        for entry in self.entries:
            counts[entry.presence] += 1
        return counts


class UnionedCategories(BaseModel):
    """Deduplicated category list across both environments.

    The raw per-environment counts are kept so a caller can decide whether the
    two environments differ enough to warn about (e.g. missing permissions).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    categories: Tuple[Category, ...] = ()
    count_a: int = Field(default=0, ge=0)
    count_b: int = Field(default=0, ge=0)

    def names(self) -> Tuple[str, ...]:
        return tuple(category.name for category in self.categories)

    def get(self, name: str) -> Optional[Category]:
        for category in self.categories:
            if category.name == name:
                return category
        return None


class ReconciledFile(BaseModel):
    """One member file of a composite entry, with presence only."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = Field(..., min_length=1, description="POSIX path relative to the bundle root")
    presence: Presence


class UnionedFileList(BaseModel):
    """Unioned member files of one composite entry."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    category: str
    entry_name: str
    files: Tuple[ReconciledFile, ...] = ()
    count_a: int = Field(default=0, ge=0)
    count_b: int = Field(default=0, ge=0)

    def paths(self) -> Tuple[str, ...]:
        return tuple(f.path for f in self.files)


class CategoryCounts(BaseModel):
    """Per-environment entry counts for one category."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    category: str
    count_a: int = Field(..., ge=0)
    count_b: int = Field(..., ge=0)
