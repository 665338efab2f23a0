"""Outermost boundary exposed to a UI collaborator.

Every public coroutine returns an ``OperationResult``: known orgdiff errors map
to their ``ErrorKind``, anything else is logged with its traceback and
returned as ``UNEXPECTED``. No exception escapes to the caller.

Example:
--------
>>> service = OrgDiffService(CliGateway(settings.gateway), settings)
>>> await service.select_environments("Org A", "Org B")
>>> result = await service.get_reconciled_entries("ApexClass")
>>> if result.success:
...     print(result.value.names())
... else:
...     print(result.error)
"""

from __future__ import annotations

from dataclasses import dataclass
import functools
import logging
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, Sequence, TypeVar, Union

from orgdiff.compare import gather_pair
from orgdiff.config import Settings
from orgdiff.domain import (
    CategoryCounts,
    ComparisonResult,
    EnvironmentInfo,
    EnvironmentRef,
    ReconciledView,
    SelectionEntry,
    UnionedCategories,
    UnionedFileList,
)
from orgdiff.exceptions import ErrorKind, InvalidRequestError, OrgDiffError
from orgdiff.gateway.protocols import RemoteGateway
from orgdiff.session import ComparisonSession

__all__ = ["OperationResult", "OrgDiffService"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Discriminated success/failure result (immutable).

    Attributes:
        success: Whether the operation succeeded
        value: Operation value (None on failure)
        error: Message suitable for direct display (None on success)
        error_kind: Failure class (None on success)
    """

    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, value: T) -> "OperationResult[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: BaseException) -> "OperationResult[T]":
        if isinstance(error, OrgDiffError):
            return cls(success=False, error=error.message, error_kind=error.kind)
        return cls(success=False, error=str(error) or type(error).__name__, error_kind=ErrorKind.UNEXPECTED)


def _boundary(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[OperationResult]]:
    """Convert a coroutine's outcome into an OperationResult."""

    @functools.wraps(func)
    async def wrapper(self: "OrgDiffService", *args: Any, **kwargs: Any) -> OperationResult:
        try:
            value = await func(self, *args, **kwargs)
        except OrgDiffError as e:
            logger.warning(f"{func.__name__} failed ({e.kind.value}): {e.message}")
            return OperationResult.fail(e)
        except Exception as e:
            logger.exception(f"Unexpected error in {func.__name__}")
            return OperationResult.fail(e)

        if isinstance(value, OperationResult):
            return value
        return OperationResult.ok(value)

    return wrapper


class OrgDiffService:
    """Environment selection plus session-scoped reconciliation operations.

    Args:
        gateway: Remote listing gateway
        settings: Settings (defaults when omitted)
    """

    def __init__(self, gateway: RemoteGateway, settings: Optional[Settings] = None):
        self.gateway = gateway
        self.settings = settings or Settings()
        self._session: Optional[ComparisonSession] = None

    @property
    def session(self) -> Optional[ComparisonSession]:
        return self._session

    def _require_session(self) -> ComparisonSession:
        if self._session is None:
            raise InvalidRequestError("Select environment A and environment B first")
        return self._session

    # ========================================================================
    # Environment Selection
    # ========================================================================

    @_boundary
    async def list_environments(self) -> List[EnvironmentInfo]:
        return await self.gateway.list_environments()

    @_boundary
    async def validate_environment(self, alias: EnvironmentRef) -> Dict[str, Any]:
        return await self.gateway.validate_environment(alias)

    @_boundary
    async def select_environments(self, alias_a: EnvironmentRef, alias_b: EnvironmentRef) -> Dict[str, Any]:
        """Validate both environments concurrently and open a fresh session.

        Returns:
            {"environment_a": descriptor, "environment_b": descriptor}
        """
        if not alias_a or not alias_b:
            raise InvalidRequestError("Both environments must be selected")
        if alias_a == alias_b:
            raise InvalidRequestError("Environment A and environment B must be different")

        descriptor_a, descriptor_b = await gather_pair(
            self.gateway.validate_environment(alias_a),
            self.gateway.validate_environment(alias_b),
        )

        self._close_session()
        self._session = ComparisonSession(self.gateway, alias_a, alias_b, self.settings)
        return {"environment_a": descriptor_a, "environment_b": descriptor_b}

    def reset(self) -> None:
        """Return to environment selection, dropping cache and ledger."""
        self._close_session()

    def _close_session(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    # ========================================================================
    # Session Operations
    # ========================================================================

    @_boundary
    async def get_reconciled_categories(self) -> UnionedCategories:
        return await self._require_session().get_reconciled_categories()

    @_boundary
    async def get_reconciled_entries(self, category: str) -> ReconciledView:
        return await self._require_session().get_reconciled_entries(category)

    @_boundary
    async def compare_entry(
        self, category: str, entry_name: str, file_path: Optional[str] = None
    ) -> Union[ComparisonResult, OperationResult[ComparisonResult]]:
        """Compare one entry; a failed comparison is a failed result still carrying the details."""
        result = await self._require_session().compare_entry(category, entry_name, file_path)
        if result.success:
            return result
        return OperationResult(success=False, value=result, error=result.error, error_kind=result.error_kind)

    @_boundary
    async def get_reconciled_files(self, category: str, entry_name: str) -> UnionedFileList:
        return await self._require_session().get_reconciled_files(category, entry_name)

    @_boundary
    async def prefetch_counts(
        self, categories: Optional[Sequence[str]] = None
    ) -> Dict[str, Union[CategoryCounts, str]]:
        return await self._require_session().prefetch_counts(categories)

    @_boundary
    async def toggle_selection(self, category: str, entry_name: str) -> bool:
        return self._require_session().toggle_selection(category, entry_name)

    @_boundary
    async def get_review_list(self) -> List[SelectionEntry]:
        return self._require_session().get_review_list()

    @_boundary
    async def refresh(self) -> None:
        self._require_session().refresh()
