"""Content comparator: fetch one entry from both environments and compare.

The only place full content is ever read. Each call issues exactly two
concurrent fetches and never retries; a failure on either side yields an error
result with no partial payload.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Optional, Tuple, TypeVar

from orgdiff.domain import ComparisonResult, EnvironmentRef, UnionedFileList, Verdict
from orgdiff.exceptions import ErrorKind, OrgDiffError
from orgdiff.gateway.protocols import RemoteGateway
from orgdiff.reconcile import union_files

__all__ = [
    "compare_entry",
    "list_composite_files",
    "gather_pair",
    "language_for_category",
    "LANGUAGE_BY_CATEGORY",
]

logger = logging.getLogger(__name__)

A = TypeVar("A")
B = TypeVar("B")

LANGUAGE_BY_CATEGORY = {
    "ApexClass": "apex",
    "ApexTrigger": "apex",
    "ApexPage": "html",
    "ApexComponent": "html",
    "LightningComponentBundle": "javascript",
    "AuraDefinitionBundle": "javascript",
}


def language_for_category(category: str) -> str:
    """Syntax hint for the diff renderer (xml unless known)."""
    return LANGUAGE_BY_CATEGORY.get(category, "xml")


def _describe(error: BaseException) -> tuple[str, ErrorKind]:
    if isinstance(error, OrgDiffError):
        return error.message, error.kind
    return str(error) or type(error).__name__, ErrorKind.UNEXPECTED


async def gather_pair(first: Awaitable[A], second: Awaitable[B]) -> Tuple[A, B]:
    """Await two operations concurrently and settle both before raising.

    Neither side is left running when the other fails. The first side's
    failure is raised when both fail.

    Raises:
        Whatever the first failing side raised (cancellation first)
    """
    outcome_first, outcome_second = await asyncio.gather(first, second, return_exceptions=True)

    outcomes = (outcome_first, outcome_second)
    for outcome in outcomes:
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome
    return outcome_first, outcome_second  # type: ignore[return-value]


async def compare_entry(
    gateway: RemoteGateway,
    category: str,
    entry_name: str,
    environment_a: EnvironmentRef,
    environment_b: EnvironmentRef,
    file_path: Optional[str] = None,
) -> ComparisonResult:
    """Compare the full content of one entry across two environments.

    Args:
        gateway: Remote listing gateway
        category: Category name
        entry_name: Entry name
        environment_a: Alias of environment A
        environment_b: Alias of environment B
        file_path: Member file of a composite entry (optional)

    Returns:
        ComparisonResult with both payloads and an EQUAL/DIFFERENT verdict, or
        an error naming the failing environment (A when both fail)
    """
    fetch_a, fetch_b = await asyncio.gather(
        gateway.fetch_content(category, entry_name, environment_a, file_path),
        gateway.fetch_content(category, entry_name, environment_b, file_path),
        return_exceptions=True,
    )

    base = {
        "category": category,
        "entry_name": entry_name,
        "file_path": file_path,
        "environment_a": environment_a,
        "environment_b": environment_b,
        "language": language_for_category(category),
    }

    for alias, outcome in ((environment_a, fetch_a), (environment_b, fetch_b)):
        if isinstance(outcome, BaseException):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            message, kind = _describe(outcome)
            if kind is ErrorKind.UNEXPECTED:
                logger.error(f"Unexpected error fetching {category}:{entry_name} from {alias}", exc_info=outcome)
            else:
                logger.warning(f"Fetching {category}:{entry_name} from {alias} failed: {message}")
            return ComparisonResult(**base, error=message, error_kind=kind, failed_environment=alias)

    verdict = Verdict.EQUAL if fetch_a == fetch_b else Verdict.DIFFERENT
    logger.debug(f"Compared {category}:{entry_name}: {verdict.value}")
    return ComparisonResult(**base, content_a=fetch_a, content_b=fetch_b, verdict=verdict)


async def list_composite_files(
    gateway: RemoteGateway,
    category: str,
    entry_name: str,
    environment_a: EnvironmentRef,
    environment_b: EnvironmentRef,
) -> UnionedFileList:
    """Union the member files of a composite entry across both environments.

    Gateway failures propagate unchanged once both listings have settled.
    """
    paths_a, paths_b = await gather_pair(
        gateway.list_member_files(category, entry_name, environment_a),
        gateway.list_member_files(category, entry_name, environment_b),
    )
    return union_files(category, entry_name, paths_a, paths_b)
