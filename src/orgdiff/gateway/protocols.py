"""Protocol definition for the remote listing gateway.

The session, comparator and service depend on this protocol instead of the
concrete CLI implementation, so tests can substitute an in-memory gateway.
"""

from typing import Any, Dict, List, Optional, Protocol

from orgdiff.domain import Category, EnvironmentInfo, EnvironmentRef, Entry


class RemoteGateway(Protocol):
    """Read-only operations against external environments.

    Every call is independent and may fail with a ``GatewayError`` subclass.
    ``list_entries`` raises ``UnsupportedCategoryError`` when the category is
    not available in the environment; callers normalize that to an empty list.
    """

    async def list_environments(self) -> List[EnvironmentInfo]: ...

    async def validate_environment(self, alias: EnvironmentRef) -> Dict[str, Any]: ...

    async def list_categories(self, alias: EnvironmentRef) -> List[Category]: ...

    async def list_entries(self, category: str, alias: EnvironmentRef) -> List[Entry]: ...

    async def fetch_content(
        self,
        category: str,
        entry_name: str,
        alias: EnvironmentRef,
        file_path: Optional[str] = None,
    ) -> str: ...

    async def list_member_files(self, category: str, entry_name: str, alias: EnvironmentRef) -> List[str]: ...
