"""On-demand cache, staleness tracking and prefetch queue.

Package Structure:
-----------------
- core: ReconciliationCache, GenerationTracker, cache key helpers
- queue: RateLimitedQueue (bounded batch concurrency for bulk prefetch)
"""

from orgdiff.cache.core import FilesKey, GenerationTracker, ReconciliationCache, ViewKey, files_key, view_key
from orgdiff.cache.queue import RateLimitedQueue

__all__ = [
    "ReconciliationCache",
    "GenerationTracker",
    "RateLimitedQueue",
    "ViewKey",
    "FilesKey",
    "view_key",
    "files_key",
]
