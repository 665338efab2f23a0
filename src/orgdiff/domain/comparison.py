"""Comparison result model.

Transient value returned by the content comparator. Either both payloads and a
verdict are present, or an error is present and no payload is exposed.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from orgdiff.exceptions import ErrorKind

__all__ = ["Verdict", "ComparisonResult"]


class Verdict(str, Enum):
    """Literal content verdict from full-content comparison."""

    EQUAL = "EQUAL"
    DIFFERENT = "DIFFERENT"


class ComparisonResult(BaseModel):
    """Outcome of comparing one entry (or one member file) across environments.

    Attributes:
        category: Category name
        entry_name: Entry name
        file_path: Member file path for composite entries
        environment_a: Alias of environment A
        environment_b: Alias of environment B
        content_a: Full content from A (None on failure)
        content_b: Full content from B (None on failure)
        verdict: EQUAL | DIFFERENT (None on failure)
        error: Display message of the failing side
        error_kind: Failure class of the failing side
        failed_environment: Alias whose fetch failed
        language: Syntax hint for the diff renderer
        superseded: True when a newer comparison of the same key completed first
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    category: str
    entry_name: str
    file_path: Optional[str] = None
    environment_a: str
    environment_b: str
    content_a: Optional[str] = None
    content_b: Optional[str] = None
    verdict: Optional[Verdict] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    failed_environment: Optional[str] = None
    language: str = Field(default="xml")
    superseded: bool = False

    @model_validator(mode="after")
    def _check_all_or_nothing(self) -> "ComparisonResult":
        if self.error is None:
            if self.content_a is None or self.content_b is None or self.verdict is None:
                raise ValueError("successful comparison requires both contents and a verdict")
        elif self.content_a is not None or self.content_b is not None or self.verdict is not None:
            raise ValueError("failed comparison must not expose partial content")
        return self

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def are_equal(self) -> Optional[bool]:
        """True/False from the verdict, None when the comparison failed."""
        if self.verdict is None:
            return None
        return self.verdict is Verdict.EQUAL
