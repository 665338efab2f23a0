"""Catalog models: categories (metadata types) and raw entries (components).

These are the fixed shapes every gateway response is normalized into. Nothing
downstream of the gateway inspects raw CLI payloads.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

__all__ = ["Fingerprint", "Category", "Entry"]

Fingerprint = Union[int, float, str]


class Category(BaseModel):
    """One kind of artifact grouping (a metadata type).

    Only ``name`` and ``is_composite`` are interpreted by the core; the rest is
    descriptive metadata carried through unmodified.

    Attributes:
        name: Unique identifier, used as the union key
        directory_name: Directory convention used in retrieved source trees
        suffix: On-disk file suffix, when the type has one
        in_folder: Whether entries live inside folders
        meta_file: Whether entries carry a ``-meta.xml`` companion
        is_composite: Whether each entry is a bundle of member files
        child_names: Child type names reported by the environment
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, description="Category name (union key)")
    directory_name: Optional[str] = Field(default=None, description="Source directory convention")
    suffix: Optional[str] = Field(default=None, description="On-disk suffix")
    in_folder: bool = Field(default=False, description="Entries are organized in folders")
    meta_file: bool = Field(default=False, description="Entries have a -meta.xml companion")
    is_composite: bool = Field(default=False, description="Entries are bundles of member files")
    child_names: Tuple[str, ...] = Field(default=(), description="Child type names")


class Entry(BaseModel):
    """One artifact instance within a category, as listed by one environment.

    Attributes:
        name: Unique within its category and environment, used as the union key
        fingerprint: Environment-supplied scalar proxy for content. A heuristic
            only, never proof of equality.
        metadata: Opaque pass-through fields (timestamps, ids, ...)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, description="Entry name (union key)")
    fingerprint: Optional[Fingerprint] = Field(default=None, description="Heuristic content proxy")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Opaque pass-through metadata")
