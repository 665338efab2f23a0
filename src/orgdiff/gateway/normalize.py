"""Normalization of CLI JSON envelopes into fixed domain shapes.

The CLI returns the same logical data in several envelope shapes depending on
command, version and result size (``result`` as a list, as an object holding
``metadataObjects``, as a single object, or missing entirely). Everything is
mapped here, once, so nothing downstream branches on shape.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from orgdiff.domain import Category, EnvironmentInfo, Entry, Fingerprint

__all__ = [
    "COMPOSITE_CATEGORIES",
    "extract_rows",
    "extract_fingerprint",
    "entry_name_of",
    "is_composite_category",
    "is_third_party",
    "normalize_environments",
    "normalize_categories",
    "normalize_entries",
]

logger = logging.getLogger(__name__)

COMPOSITE_CATEGORIES = frozenset(
    {
        "LightningComponentBundle",
        "AuraDefinitionBundle",
        "ExperienceBundle",
        "WaveTemplateBundle",
    }
)

_ENTRY_NAME_KEYS = ("fullName", "name", "fileName")
_CATEGORY_NAME_KEYS = ("xmlName", "metadataType")


# ============================================================================
# Envelope Handling
# ============================================================================


def extract_rows(payload: Dict[str, Any], list_key: str, name_keys: Sequence[str]) -> List[Dict[str, Any]]:
    """Return the row objects of an envelope, whatever its shape.

    Args:
        payload: Parsed CLI JSON envelope
        list_key: Key holding the row list when ``result`` is an object
        name_keys: Keys that identify a single-row object

    Returns:
        List of row dicts (non-dict rows dropped)
    """
    result = payload.get("result")

    if isinstance(result, list):
        rows: Iterable[Any] = result
    elif isinstance(result, dict):
        nested = result.get(list_key)
        if isinstance(nested, list):
            rows = nested
        elif any(key in result for key in name_keys):
            rows = [result]
        else:
            rows = []
    else:
        rows = []

    return [row for row in rows if isinstance(row, dict)]


def _first_text(row: Dict[str, Any], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = row.get(key)
        if isinstance(value, str) and value:
            return value
    return None


# ============================================================================
# Row Classification
# ============================================================================


def entry_name_of(row: Dict[str, Any]) -> Optional[str]:
    """Entry name: ``fullName``, then ``name``, then ``fileName``."""
    return _first_text(row, _ENTRY_NAME_KEYS)


def extract_fingerprint(row: Dict[str, Any], keys: Sequence[str]) -> Optional[Fingerprint]:
    """First scalar value found among ``keys``.

    Booleans, containers and empty strings are not fingerprints and degrade
    to None.
    """
    for key in keys:
        value = row.get(key)
        if isinstance(value, bool) or value is None:
            continue
        if isinstance(value, (int, float)):
            return value
        if isinstance(value, str) and value:
            return value
    return None


def is_composite_category(name: str) -> bool:
    """Whether entries of this category are bundles of member files."""
    return name in COMPOSITE_CATEGORIES or name.endswith("Bundle")


def is_third_party(row: Dict[str, Any]) -> bool:
    """Whether a listed entry belongs to an installed package.

    Package entries carry a ``namespacePrefix`` or a double underscore in
    their name.
    """
    if row.get("namespacePrefix"):
        return True
    name = entry_name_of(row) or ""
    return "__" in name


# ============================================================================
# Normalizers
# ============================================================================


def normalize_environments(payload: Dict[str, Any]) -> List[EnvironmentInfo]:
    """Map ``sf org list`` output to EnvironmentInfo rows.

    Only non-scratch orgs are listed. The alias falls back to the username.
    """
    result = payload.get("result")
    if not isinstance(result, dict) or not isinstance(result.get("nonScratchOrgs"), list):
        return []

    environments = []
    for org in result["nonScratchOrgs"]:
        if not isinstance(org, dict):
            continue
        alias = org.get("alias") or org.get("username")
        if not alias:
            continue
        environments.append(
            EnvironmentInfo(
                alias=alias,
                display_name=org.get("alias") or org.get("username") or alias,
                id=org.get("orgId") or "",
                is_default=bool(org.get("isDefaultUsername", False)),
                instance_url=org.get("instanceUrl"),
            )
        )
    return environments


def normalize_categories(payload: Dict[str, Any]) -> List[Category]:
    """Map ``sf org list metadata-types`` output to Category rows."""
    categories = []
    for row in extract_rows(payload, "metadataObjects", _CATEGORY_NAME_KEYS):
        name = _first_text(row, _CATEGORY_NAME_KEYS)
        if name is None:
            continue

        children = row.get("childXmlNames") or []
        if isinstance(children, str):
            children = [children]

        categories.append(
            Category(
                name=name,
                directory_name=row.get("directoryName") or None,
                suffix=row.get("suffix") or None,
                in_folder=bool(row.get("inFolder", False)),
                meta_file=bool(row.get("metaFile", False)),
                is_composite=is_composite_category(name),
                child_names=tuple(str(child) for child in children),
            )
        )
    return categories


def normalize_entries(
    payload: Dict[str, Any],
    fingerprint_keys: Sequence[str],
    exclude_namespaced: bool = True,
) -> List[Entry]:
    """Map ``sf org list metadata`` output to Entry rows.

    Args:
        payload: Parsed CLI JSON envelope
        fingerprint_keys: Row keys tried in order for the fingerprint
        exclude_namespaced: Drop entries from installed packages

    Returns:
        Raw, unreconciled entries in listing order
    """
    entries = []
    skipped = 0
    for row in extract_rows(payload, "metadataObjects", _ENTRY_NAME_KEYS):
        name = entry_name_of(row)
        if name is None:
            continue
        if exclude_namespaced and is_third_party(row):
            skipped += 1
            continue
        entries.append(
            Entry(
                name=name,
                fingerprint=extract_fingerprint(row, fingerprint_keys),
                metadata=row,
            )
        )

    if skipped:
        logger.debug(f"Excluded {skipped} namespaced entries")
    return entries
