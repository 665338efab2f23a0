"""Selection/review ledger entries."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from orgdiff.domain.comparison import Verdict

__all__ = ["SelectionOrigin", "SelectionEntry"]


class SelectionOrigin(str, Enum):
    """Why an entry is in the ledger."""

    PROMOTION = "PROMOTION"  # A-only entry marked to be copied to B
    REVIEW = "REVIEW"  # both-present entry inspected through a diff


class SelectionEntry(BaseModel):
    """One ledger row."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    category: str
    entry_name: str
    origin: SelectionOrigin
    verdict: Optional[Verdict] = None
