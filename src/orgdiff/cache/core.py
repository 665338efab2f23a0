"""On-demand cache of reconciled views and composite file lists.

Two levels, same invalidation policy (full clear only):
- views keyed by (environment_a, environment_b, category)
- file lists keyed by (environment_a, environment_b, category, entry_name)

Stores replace wholesale (last writer wins). Nothing is stored for a key whose
fetch failed, so the key stays absent and the next access retries.

Staleness is tracked separately by ``GenerationTracker``: a result is only
stored when it is still the latest request for its key.
"""

from __future__ import annotations

from contextlib import contextmanager
import itertools
import logging
from typing import Dict, Hashable, Iterator, Optional, Tuple

from orgdiff.domain import EnvironmentRef, ReconciledView, UnionedFileList

__all__ = ["ViewKey", "FilesKey", "view_key", "files_key", "ReconciliationCache", "GenerationTracker"]

logger = logging.getLogger(__name__)

ViewKey = Tuple[str, str, str]
FilesKey = Tuple[str, str, str, str]


def view_key(environment_a: EnvironmentRef, environment_b: EnvironmentRef, category: str) -> ViewKey:
    return (environment_a, environment_b, category)


def files_key(
    environment_a: EnvironmentRef, environment_b: EnvironmentRef, category: str, entry_name: str
) -> FilesKey:
    return (environment_a, environment_b, category, entry_name)


class ReconciliationCache:
    """In-memory store of reconciled views and unioned file lists."""

    def __init__(self):
        self._views: Dict[ViewKey, ReconciledView] = {}
        self._files: Dict[FilesKey, UnionedFileList] = {}

    def get_view(
        self, environment_a: EnvironmentRef, environment_b: EnvironmentRef, category: str
    ) -> Optional[ReconciledView]:
        return self._views.get(view_key(environment_a, environment_b, category))

    def put_view(
        self, environment_a: EnvironmentRef, environment_b: EnvironmentRef, category: str, view: ReconciledView
    ) -> None:
        self._views[view_key(environment_a, environment_b, category)] = view

    def get_files(
        self, environment_a: EnvironmentRef, environment_b: EnvironmentRef, category: str, entry_name: str
    ) -> Optional[UnionedFileList]:
        return self._files.get(files_key(environment_a, environment_b, category, entry_name))

    def put_files(
        self,
        environment_a: EnvironmentRef,
        environment_b: EnvironmentRef,
        category: str,
        entry_name: str,
        files: UnionedFileList,
    ) -> None:
        self._files[files_key(environment_a, environment_b, category, entry_name)] = files

    def clear(self) -> None:
        """Drop every view and file list."""
        logger.debug(f"Clearing cache ({len(self._views)} views, {len(self._files)} file lists)")
        self._views.clear()
        self._files.clear()

    @property
    def view_count(self) -> int:
        return len(self._views)

    @property
    def files_count(self) -> int:
        return len(self._files)


class GenerationTracker:
    """Monotonic request tokens for "last request for this key wins".

    ``begin`` issues a token when a request starts. ``commit`` accepts the
    result only if no newer request for the same key has already committed and
    no ``invalidate`` happened since the token was issued. ``finish`` marks the
    request as settled; once no request for a key is in flight its committed
    token is dropped, so the map only holds keys with requests in flight or
    just completed. ``track`` pairs ``begin`` and ``finish``.

    Example:
        >>> tracker = GenerationTracker()
        >>> old = tracker.begin("ApexClass")
        >>> new = tracker.begin("ApexClass")
        >>> tracker.commit("ApexClass", new)
        True
        >>> tracker.commit("ApexClass", old)
        False
    """

    def __init__(self):
        self._counter = itertools.count(1)
        self._issued = 0
        self._floor = 0
        self._committed: Dict[Hashable, int] = {}
        self._pending: Dict[Hashable, int] = {}

    def begin(self, key: Hashable) -> int:
        self._issued = next(self._counter)
        self._pending[key] = self._pending.get(key, 0) + 1
        return self._issued

    def finish(self, key: Hashable) -> None:
        """Mark one request for ``key`` as settled (committed or abandoned)."""
        remaining = self._pending.get(key, 0) - 1
        if remaining > 0:
            self._pending[key] = remaining
            return
        # tokens are global, so a later begin always outranks the dropped mark
        self._pending.pop(key, None)
        self._committed.pop(key, None)

    @contextmanager
    def track(self, key: Hashable) -> Iterator[int]:
        """Issue a token for ``key`` and finish the request on exit."""
        token = self.begin(key)
        try:
            yield token
        finally:
            self.finish(key)

    @property
    def committed_count(self) -> int:
        return len(self._committed)

    def is_current(self, key: Hashable, token: int) -> bool:
        """Whether committing ``token`` for ``key`` would be accepted."""
        if token <= self._floor:
            return False
        return token > self._committed.get(key, 0)

    def commit(self, key: Hashable, token: int) -> bool:
        """Record ``token`` as the latest result for ``key`` if still current."""
        if not self.is_current(key, token):
            logger.debug(f"Discarding stale result for {key!r} (token {token})")
            return False
        self._committed[key] = token
        return True

    def invalidate(self) -> None:
        """Reject every token issued so far."""
        self._floor = self._issued
        self._committed.clear()
