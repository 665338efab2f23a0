"""Content comparator for orgdiff.

Example:
--------
>>> from orgdiff.compare import compare_entry
>>> result = await compare_entry(gateway, "ApexClass", "Foo", "Org A", "Org B")
>>> result.verdict
<Verdict.EQUAL: 'EQUAL'>
"""

from orgdiff.compare.core import (
    LANGUAGE_BY_CATEGORY,
    compare_entry,
    gather_pair,
    language_for_category,
    list_composite_files,
)

__all__ = ["compare_entry", "list_composite_files", "gather_pair", "language_for_category", "LANGUAGE_BY_CATEGORY"]
