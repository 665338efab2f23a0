"""Domain models for orgdiff.

Pydantic-based value types shared by every layer. Models are organized by
responsibility and all re-exported here.

Package Structure:
-----------------
- environment: EnvironmentRef, EnvironmentInfo
- catalog: Category, Entry (normalized gateway output)
- reconciliation: Presence, EqualityHint, ReconciledEntry, ReconciledView,
  UnionedCategories, ReconciledFile, UnionedFileList, CategoryCounts
- comparison: Verdict, ComparisonResult
- selection: SelectionOrigin, SelectionEntry

Design Principles:
------------------
1. **Immutability**: All models use frozen=True
2. **Strict Validation**: All models use extra="forbid"
3. **Fixed Shapes**: Raw CLI payloads never leave the gateway

Import Patterns:
---------------
# Direct module imports
from orgdiff.domain.catalog import Category, Entry

# Package root imports
from orgdiff.domain import Category, Entry, ReconciledView

Example:
--------
>>> from orgdiff.domain import Entry, Presence
>>> entry = Entry(name="AccountService", fingerprint=1024)
>>> entry.model_dump()["name"]
'AccountService'
"""

from orgdiff.domain.catalog import Category, Entry, Fingerprint
from orgdiff.domain.comparison import ComparisonResult, Verdict
from orgdiff.domain.environment import EnvironmentInfo, EnvironmentRef
from orgdiff.domain.reconciliation import (
    CategoryCounts,
    EqualityHint,
    Presence,
    ReconciledEntry,
    ReconciledFile,
    ReconciledView,
    UnionedCategories,
    UnionedFileList,
)
from orgdiff.domain.selection import SelectionEntry, SelectionOrigin

__all__ = [
    # Environment
    "EnvironmentRef",
    "EnvironmentInfo",
    # Catalog
    "Fingerprint",
    "Category",
    "Entry",
    # Reconciliation
    "Presence",
    "EqualityHint",
    "ReconciledEntry",
    "ReconciledView",
    "UnionedCategories",
    "ReconciledFile",
    "UnionedFileList",
    "CategoryCounts",
    # Comparison
    "Verdict",
    "ComparisonResult",
    # Selection
    "SelectionOrigin",
    "SelectionEntry",
]
