"""Environment models.

An environment is referenced by an opaque alias string. Aliases are compared by
exact string equality and may contain spaces; quoting is a gateway concern.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

__all__ = ["EnvironmentRef", "EnvironmentInfo"]

EnvironmentRef = str


class EnvironmentInfo(BaseModel):
    """One authorized environment as reported by the CLI.

    Attributes:
        alias: Alias used to target the environment (falls back to username)
        display_name: Name shown to the operator
        id: Environment identifier (org id)
        is_default: Whether the CLI marks it as the default target
        instance_url: Instance URL, when reported
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    alias: EnvironmentRef = Field(..., min_length=1, description="Alias used with --target-org")
    display_name: str = Field(..., description="Human-readable name")
    id: str = Field(default="", description="Environment (org) id")
    is_default: bool = Field(default=False, description="Default target in the CLI")
    instance_url: Optional[str] = Field(default=None, description="Instance URL")
