"""Reconciliation engine for orgdiff.

Pure functions that union two per-environment listings into annotated views.
No I/O, no hidden state: the same inputs always produce equal outputs.

Example:
--------
>>> from orgdiff.domain import Entry
>>> from orgdiff.reconcile import union_entries
>>> view = union_entries("ApexClass", [Entry(name="Foo", fingerprint=10)], [Entry(name="Foo", fingerprint=10)])
>>> view.entries[0].equality_hint.value
'LIKELY_EQUAL'
"""

from orgdiff.reconcile.core import (
    DEFAULT_COUNT_THRESHOLD,
    count_difference_ratio,
    equality_hint,
    exceeds_count_threshold,
    filter_categories,
    union_categories,
    union_entries,
    union_files,
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
