"""Comparison session: state scoped to one selected environment pair.

A session owns one cache, one generation tracker, one ledger and one prefetch
queue. It is built when the operator selects environments and torn down with
``close()`` when they return to environment selection, so nothing leaks from
one pair to the next.

Example:
--------
>>> session = ComparisonSession(CliGateway(), "Org A", "Org B")
>>> categories = await session.get_reconciled_categories()
>>> view = await session.get_reconciled_entries("ApexClass")
>>> result = await session.compare_entry("ApexClass", "AccountService")
>>> session.close()
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Union

from orgdiff.cache import GenerationTracker, RateLimitedQueue, ReconciliationCache, files_key, view_key
from orgdiff.compare import compare_entry, gather_pair, list_composite_files
from orgdiff.config import Settings
from orgdiff.domain import (
    CategoryCounts,
    ComparisonResult,
    EnvironmentRef,
    Entry,
    Presence,
    ReconciledView,
    SelectionEntry,
    UnionedCategories,
    UnionedFileList,
)
from orgdiff.exceptions import InvalidRequestError, OrgDiffError, UnsupportedCategoryError
from orgdiff.gateway.protocols import RemoteGateway
from orgdiff.ledger import SelectionLedger
from orgdiff.reconcile import count_difference_ratio, exceeds_count_threshold, union_categories, union_entries

__all__ = ["ComparisonSession"]

logger = logging.getLogger(__name__)


class ComparisonSession:
    """Cached, staleness-aware reconciliation for one environment pair.

    Args:
        gateway: Remote listing gateway
        environment_a: Alias of environment A (source of promotions)
        environment_b: Alias of environment B
        settings: Settings (defaults when omitted)

    Raises:
        InvalidRequestError: If an alias is empty or both aliases are equal
    """

    def __init__(
        self,
        gateway: RemoteGateway,
        environment_a: EnvironmentRef,
        environment_b: EnvironmentRef,
        settings: Optional[Settings] = None,
    ):
        if not environment_a or not environment_b:
            raise InvalidRequestError("Both environments must be selected")
        if environment_a == environment_b:
            raise InvalidRequestError("Environment A and environment B must be different")

        self.gateway = gateway
        self.environment_a = environment_a
        self.environment_b = environment_b
        self.settings = settings or Settings()

        self.cache = ReconciliationCache()
        self.generations = GenerationTracker()
        self.ledger = SelectionLedger()
        self.queue: RateLimitedQueue[str, CategoryCounts] = RateLimitedQueue(
            batch_size=self.settings.prefetch.batch_size,
            batch_delay_s=self.settings.prefetch.batch_delay_s,
            max_items=self.settings.prefetch.max_categories,
        )
        self._closed = False

        logger.info(f"Opened comparison session: '{environment_a}' vs '{environment_b}'")

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise InvalidRequestError("Comparison session is closed")

    # ========================================================================
    # Categories
    # ========================================================================

    async def get_reconciled_categories(self) -> UnionedCategories:
        """Fetch both category lists concurrently and union them."""
        self._ensure_open()
        list_a, list_b = await gather_pair(
            self.gateway.list_categories(self.environment_a),
            self.gateway.list_categories(self.environment_b),
        )
        unioned = union_categories(list_a, list_b)

        if self.has_count_gap(unioned):
            logger.warning(
                f"Category counts differ by {count_difference_ratio(unioned.count_a, unioned.count_b):.1%} "
                f"({unioned.count_a} vs {unioned.count_b}); permissions may differ between environments"
            )
        return unioned

    def has_count_gap(self, unioned: UnionedCategories) -> bool:
        """Whether the category count gap exceeds the configured threshold."""
        return exceeds_count_threshold(
            unioned.count_a, unioned.count_b, self.settings.reconcile.count_warning_threshold
        )

    # ========================================================================
    # Entries
    # ========================================================================

    async def _list_entries_or_empty(self, category: str, alias: EnvironmentRef) -> List[Entry]:
        try:
            return await self.gateway.list_entries(category, alias)
        except UnsupportedCategoryError as e:
            logger.info(f"Treating {category} as empty in '{alias}': {e.message}")
            return []

    async def get_reconciled_entries(self, category: str) -> ReconciledView:
        """Reconciled view of one category, served from cache when present.

        Gateway errors propagate and leave the cache key absent. A result
        superseded by a newer request (or a refresh) is returned but not
        stored.
        """
        self._ensure_open()
        cached = self.cache.get_view(self.environment_a, self.environment_b, category)
        if cached is not None:
            return cached

        key = view_key(self.environment_a, self.environment_b, category)
        with self.generations.track(key) as token:
            entries_a, entries_b = await gather_pair(
                self._list_entries_or_empty(category, self.environment_a),
                self._list_entries_or_empty(category, self.environment_b),
            )
            view = union_entries(category, entries_a, entries_b)

            if self.generations.commit(key, token):
                self.cache.put_view(self.environment_a, self.environment_b, category, view)
                return view

        return self.cache.get_view(self.environment_a, self.environment_b, category) or view

    async def get_reconciled_files(self, category: str, entry_name: str) -> UnionedFileList:
        """Unioned member files of a composite entry, served from cache when present."""
        self._ensure_open()
        cached = self.cache.get_files(self.environment_a, self.environment_b, category, entry_name)
        if cached is not None:
            return cached

        key = files_key(self.environment_a, self.environment_b, category, entry_name)
        with self.generations.track(key) as token:
            files = await list_composite_files(
                self.gateway, category, entry_name, self.environment_a, self.environment_b
            )

            if self.generations.commit(key, token):
                self.cache.put_files(self.environment_a, self.environment_b, category, entry_name, files)
                return files

        return self.cache.get_files(self.environment_a, self.environment_b, category, entry_name) or files

    # ========================================================================
    # Content Comparison
    # ========================================================================

    async def compare_entry(
        self, category: str, entry_name: str, file_path: Optional[str] = None
    ) -> ComparisonResult:
        """Compare one entry (or member file); current successes are logged as reviewed."""
        self._ensure_open()
        key = ("compare", self.environment_a, self.environment_b, category, entry_name, file_path)
        with self.generations.track(key) as token:
            result = await compare_entry(
                self.gateway, category, entry_name, self.environment_a, self.environment_b, file_path
            )
            current = self.generations.commit(key, token)

        if not current:
            return result.model_copy(update={"superseded": True})

        if result.success and result.verdict is not None:
            self.ledger.record_reviewed(category, entry_name, result.verdict)
        return result

    # ========================================================================
    # Prefetch
    # ========================================================================

    async def prefetch_counts(
        self, categories: Optional[Sequence[str]] = None
    ) -> Dict[str, Union[CategoryCounts, str]]:
        """Warm the cache for many categories under the queue's rate limits.

        Args:
            categories: Category names (all unioned categories when omitted)

        Returns:
            Mapping of category name to its counts, or to an error message
        """
        self._ensure_open()
        if categories is None:
            categories = list((await self.get_reconciled_categories()).names())

        async def _count(category: str) -> CategoryCounts:
            view = await self.get_reconciled_entries(category)
            return CategoryCounts(category=category, count_a=view.count_a, count_b=view.count_b)

        outcomes = await self.queue.run(categories, _count)

        counts: Dict[str, Union[CategoryCounts, str]] = {}
        for category, outcome in outcomes:
            if isinstance(outcome, OrgDiffError):
                counts[category] = outcome.message
            elif isinstance(outcome, BaseException):
                logger.error(f"Unexpected error prefetching {category}", exc_info=outcome)
                counts[category] = str(outcome) or type(outcome).__name__
            else:
                counts[category] = outcome
        return counts

    # ========================================================================
    # Selection
    # ========================================================================

    def toggle_selection(self, category: str, entry_name: str) -> bool:
        """Flip promotion membership; returns True when now marked."""
        self._ensure_open()
        view = self.cache.get_view(self.environment_a, self.environment_b, category)
        entry = view.get(entry_name) if view else None
        if entry is not None and entry.presence is not Presence.A_ONLY:
            logger.warning(f"{category}:{entry_name} is {entry.presence.value}; promotion applies to A-only entries")
        return self.ledger.toggle(category, entry_name)

    def get_review_list(self) -> List[SelectionEntry]:
        self._ensure_open()
        return self.ledger.list()

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def refresh(self) -> None:
        """Drop every cached view and file list; in-flight results become stale."""
        self._ensure_open()
        self.cache.clear()
        self.generations.invalidate()
        logger.info("Cache cleared")

    def close(self) -> None:
        """Tear down: stop prefetch, drop cache and ledger. Idempotent."""
        if self._closed:
            return
        self.queue.close()
        self.cache.clear()
        self.generations.invalidate()
        self.ledger.clear()
        self._closed = True
        logger.info(f"Closed comparison session: '{self.environment_a}' vs '{self.environment_b}'")
