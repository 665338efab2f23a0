"""Reconciliation engine: union two per-environment listings into one view.

All functions are pure and never raise on data. Missing or malformed
fingerprints degrade to ``EqualityHint.UNKNOWN``.

Public API:
-----------
- union_categories: dedupe two category lists by name
- union_entries: annotated, sorted ReconciledView for one category
- union_files: presence-only union of composite member paths
- equality_hint: listing-time equality signal from two fingerprints
- count_difference_ratio / exceeds_count_threshold: count-gap check inputs
- filter_categories: case-insensitive substring filter over names
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from orgdiff.domain import (
    Category,
    Entry,
    EqualityHint,
    Fingerprint,
    Presence,
    ReconciledEntry,
    ReconciledFile,
    ReconciledView,
    UnionedCategories,
    UnionedFileList,
)

__all__ = [
    "union_categories",
    "union_entries",
    "union_files",
    "equality_hint",
    "count_difference_ratio",
    "exceeds_count_threshold",
    "filter_categories",
    "DEFAULT_COUNT_THRESHOLD",
]

DEFAULT_COUNT_THRESHOLD = 0.10


# ============================================================================
# Categories
# ============================================================================


def union_categories(list_a: Sequence[Category], list_b: Sequence[Category]) -> UnionedCategories:
    """Deduplicate two category lists by name, sorted by name.

    The first occurrence wins: A before B, earlier before later. Metadata of a
    category already captured is never overwritten by a later duplicate.

    Args:
        list_a: Categories listed by environment A
        list_b: Categories listed by environment B

    Returns:
        UnionedCategories with the raw input lengths as count_a / count_b
    """
    by_name: Dict[str, Category] = {}
    for category in [*list_a, *list_b]:
        by_name.setdefault(category.name, category)

    return UnionedCategories(
        categories=tuple(by_name[name] for name in sorted(by_name)),
        count_a=len(list_a),
        count_b=len(list_b),
    )


def filter_categories(categories: Iterable[Category], text: str, limit: Optional[int] = None) -> List[Category]:
    """Categories whose name contains ``text``, case-insensitively.

    An empty filter keeps everything. ``limit`` caps the result size.
    """
    needle = text.strip().lower()
    matches = [category for category in categories if needle in category.name.lower()]
    return matches if limit is None else matches[:limit]


# ============================================================================
# Entries
# ============================================================================


def equality_hint(fingerprint_a: Optional[Fingerprint], fingerprint_b: Optional[Fingerprint]) -> EqualityHint:
    """Hint from two fingerprints: UNKNOWN unless both are present.

    Fingerprints of different kinds (a number and a string) are compared as
    written; ``1`` and ``1.0`` count as equal.
    """
    if fingerprint_a is None or fingerprint_b is None:
        return EqualityHint.UNKNOWN
    if fingerprint_a == fingerprint_b:
        return EqualityHint.LIKELY_EQUAL
    return EqualityHint.LIKELY_DIFFERENT


def _first_by_name(entries: Sequence[Entry]) -> Dict[str, Entry]:
    by_name: Dict[str, Entry] = {}
    for entry in entries:
        by_name.setdefault(entry.name, entry)
    return by_name


def union_entries(category: str, entries_a: Sequence[Entry], entries_b: Sequence[Entry]) -> ReconciledView:
    """Union two raw entry lists of one category into a ReconciledView.

    Algorithm:
        1. Index B by name.
        2. Each A entry is BOTH when B has the name (hint from fingerprints),
           otherwise A_ONLY.
        3. Each unmatched B entry is B_ONLY.
        4. Sort by name (case-sensitive).

    Duplicate names within one side keep the first occurrence, so names in the
    view are unique.

    Args:
        category: Category name
        entries_a: Entries listed by environment A
        entries_b: Entries listed by environment B

    Returns:
        ReconciledView with the raw input lengths as count_a / count_b
    """
    index_a = _first_by_name(entries_a)
    index_b = _first_by_name(entries_b)

    reconciled: List[ReconciledEntry] = []
    for name, entry_a in index_a.items():
        entry_b = index_b.get(name)
        if entry_b is None:
            reconciled.append(ReconciledEntry(name=name, presence=Presence.A_ONLY, entry_a=entry_a))
        else:
            reconciled.append(
                ReconciledEntry(
                    name=name,
                    presence=Presence.BOTH,
                    equality_hint=equality_hint(entry_a.fingerprint, entry_b.fingerprint),
                    entry_a=entry_a,
                    entry_b=entry_b,
                )
            )

    for name, entry_b in index_b.items():
        if name not in index_a:
            reconciled.append(ReconciledEntry(name=name, presence=Presence.B_ONLY, entry_b=entry_b))

    reconciled.sort(key=lambda entry: entry.name)

    return ReconciledView(
        category=category,
        entries=tuple(reconciled),
        count_a=len(entries_a),
        count_b=len(entries_b),
    )


# ============================================================================
# Composite Member Files
# ============================================================================


def union_files(category: str, entry_name: str, paths_a: Sequence[str], paths_b: Sequence[str]) -> UnionedFileList:
    """Presence-only union of member file paths, sorted by path."""
    set_a = set(paths_a)
    set_b = set(paths_b)

    files = []
    for path in sorted(set_a | set_b):
        if path in set_a and path in set_b:
            presence = Presence.BOTH
        elif path in set_a:
            presence = Presence.A_ONLY
        else:
            presence = Presence.B_ONLY
        files.append(ReconciledFile(path=path, presence=presence))

    return UnionedFileList(
        category=category,
        entry_name=entry_name,
        files=tuple(files),
        count_a=len(set_a),
        count_b=len(set_b),
    )


# ============================================================================
# Count Gap
# ============================================================================


def count_difference_ratio(count_a: int, count_b: int) -> float:
    """Relative gap ``(max - min) / max``; 0.0 when both counts are zero."""
    largest = max(count_a, count_b)
    if largest <= 0:
        return 0.0
    return (largest - min(count_a, count_b)) / largest


def exceeds_count_threshold(count_a: int, count_b: int, threshold: float = DEFAULT_COUNT_THRESHOLD) -> bool:
    """Whether the relative count gap is strictly above ``threshold``."""
    return count_difference_ratio(count_a, count_b) > threshold
