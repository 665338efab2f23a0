"""CLI-backed implementation of the remote listing gateway.

Public API:
-----------
- CliGateway: RemoteGateway over the ``sf`` CLI
- is_unsupported_failure: recognize "category not available" failures

Retrieval (content and member files) materializes the component into a
temporary directory owned by a single call; the directory is deleted before
the call returns or raises.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
import logging
from pathlib import Path
import shutil
import tempfile
from typing import Any, AsyncIterator, Dict, List, Optional

from orgdiff.config import GatewayConfig
from orgdiff.domain import Category, EnvironmentInfo, EnvironmentRef, Entry
from orgdiff.exceptions import (
    CommandFailedError,
    GatewayError,
    InvalidRequestError,
    NotFoundError,
    ResponseParseError,
    UnsupportedCategoryError,
)
from orgdiff.gateway.normalize import normalize_categories, normalize_entries, normalize_environments
from orgdiff.gateway.retrieve import list_bundle_files, locate_bundle_dir, locate_content_file
from orgdiff.gateway.runner import CommandRunner
from orgdiff.utils import safe_join

__all__ = ["CliGateway", "is_unsupported_failure", "UNSUPPORTED_MARKERS"]

logger = logging.getLogger(__name__)

UNSUPPORTED_MARKERS = (
    "not found",
    "does not exist",
    "not available",
    "invalid metadata type",
    "command failed",
)

_MISSING_MARKERS = ("not found", "does not exist")


def is_unsupported_failure(error: GatewayError) -> bool:
    """Whether a listing failure means the category is unavailable.

    Any CLI-reported failure status counts, as do the usual "type not
    available" messages. Auth, timeout and parse failures never do.
    """
    if not isinstance(error, CommandFailedError):
        return False
    if error.status is not None and error.status != 0:
        return True
    message = error.message.lower()
    return any(marker in message for marker in UNSUPPORTED_MARKERS)


def _not_found(entry_name: str, alias: str, category: str) -> NotFoundError:
    return NotFoundError(
        f"Component {entry_name} not found in org {alias}. It may have been removed since the list was loaded.",
        {"category": category, "entry_name": entry_name, "alias": alias},
    )


class CliGateway:
    """RemoteGateway over the ``sf`` CLI.

    Args:
        config: Gateway settings (defaults when omitted)
        runner: Command runner (built from config when omitted)

    Example:
        >>> gateway = CliGateway(GatewayConfig(timeout_s=120))
        >>> categories = await gateway.list_categories("Org A")
    """

    def __init__(self, config: Optional[GatewayConfig] = None, runner: Optional[CommandRunner] = None):
        self.config = config or GatewayConfig()
        self.runner = runner or CommandRunner(
            executable=self.config.executable,
            timeout_s=self.config.timeout_s,
            max_output_bytes=self.config.max_output_bytes,
            cwd=self.config.project_dir,
        )

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def list_environments(self) -> List[EnvironmentInfo]:
        payload = await self.runner.run_json(["org", "list"])
        return normalize_environments(payload)

    async def validate_environment(self, alias: EnvironmentRef) -> Dict[str, Any]:
        """Confirm an environment is reachable and return its descriptor."""
        payload = await self.runner.run_json(["org", "display"], alias)
        result = payload.get("result")
        if not isinstance(result, dict):
            raise ResponseParseError(f"Unexpected response validating org {alias}", {"alias": alias})
        return result

    async def list_categories(self, alias: EnvironmentRef) -> List[Category]:
        payload = await self.runner.run_json(["org", "list", "metadata-types"], alias)
        return normalize_categories(payload)

    async def list_entries(self, category: str, alias: EnvironmentRef) -> List[Entry]:
        """List entries of one category.

        Raises:
            UnsupportedCategoryError: Category not enabled in this environment
        """
        try:
            payload = await self.runner.run_json(["org", "list", "metadata", "--metadata-type", category], alias)
        except CommandFailedError as e:
            if is_unsupported_failure(e):
                logger.warning(f"Metadata type {category} not available in org {alias}: {e.message}")
                raise UnsupportedCategoryError(
                    f"Metadata type {category} is not available in org {alias}",
                    {"category": category, "alias": alias, "status": e.status},
                ) from e
            raise

        return normalize_entries(
            payload,
            fingerprint_keys=self.config.fingerprint_keys,
            exclude_namespaced=self.config.exclude_namespaced,
        )

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def materialize(self, category: str, entry_name: str, alias: EnvironmentRef) -> AsyncIterator[Path]:
        """Retrieve one component into a temporary directory.

        Yields:
            Retrieve output directory, deleted on exit
        """
        retrieve_dir = await asyncio.to_thread(self._make_retrieve_dir)

        try:
            try:
                await self.runner.run_json(
                    [
                        "project",
                        "retrieve",
                        "start",
                        "--metadata",
                        f"{category}:{entry_name}",
                        "--output-dir",
                        str(retrieve_dir),
                    ],
                    alias,
                )
            except CommandFailedError as e:
                if any(marker in e.message.lower() for marker in _MISSING_MARKERS):
                    raise _not_found(entry_name, alias, category) from e
                raise
            yield retrieve_dir
        finally:
            await asyncio.to_thread(shutil.rmtree, retrieve_dir, ignore_errors=True)
            logger.debug(f"Removed retrieve directory {retrieve_dir}")

    async def fetch_content(
        self,
        category: str,
        entry_name: str,
        alias: EnvironmentRef,
        file_path: Optional[str] = None,
    ) -> str:
        """Full content of an entry, or of one member file of a composite.

        Raises:
            NotFoundError: Entry or member file absent from the retrieve
            InvalidRequestError: file_path is absolute or escapes the bundle
        """
        async with self.materialize(category, entry_name, alias) as root:
            return await asyncio.to_thread(_read_entry, root, category, entry_name, alias, file_path)

    async def list_member_files(self, category: str, entry_name: str, alias: EnvironmentRef) -> List[str]:
        async with self.materialize(category, entry_name, alias) as root:
            return await asyncio.to_thread(_list_members, root, category, entry_name, alias)

    def _make_retrieve_dir(self) -> Path:
        tmp_root = self.config.tmp_root
        if tmp_root is not None:
            tmp_root.mkdir(parents=True, exist_ok=True)
        return Path(tempfile.mkdtemp(prefix="retrieve_", dir=tmp_root))


# ============================================================================
# Retrieved Tree Access (run in worker threads)
# ============================================================================


def _read_entry(
    root: Path, category: str, entry_name: str, alias: EnvironmentRef, file_path: Optional[str]
) -> str:
    if file_path:
        bundle = locate_bundle_dir(root, category, entry_name)
        if bundle is None:
            raise _not_found(entry_name, alias, category)
        try:
            path: Optional[Path] = safe_join(bundle, file_path)
        except ValueError as e:
            raise InvalidRequestError(str(e), {"file_path": file_path}) from e
    else:
        path = locate_content_file(root, category, entry_name)

    if path is None or not path.is_file():
        raise _not_found(entry_name if not file_path else f"{entry_name}/{file_path}", alias, category)

    return path.read_text(encoding="utf-8", errors="replace")


def _list_members(root: Path, category: str, entry_name: str, alias: EnvironmentRef) -> List[str]:
    bundle = locate_bundle_dir(root, category, entry_name)
    if bundle is None:
        raise _not_found(entry_name, alias, category)
    return list_bundle_files(bundle)
