"""Rate-limited task queue for bulk prefetch.

Runs a coroutine worker over many items in fixed-size batches, pausing between
batches so the remote CLI is not flooded. Failures are captured per item and
never abort the remaining batches.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar, Union

__all__ = ["RateLimitedQueue"]

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class RateLimitedQueue(Generic[T, R]):
    """Bounded batch concurrency with an inter-batch delay.

    Args:
        batch_size: Items processed concurrently per batch
        batch_delay_s: Pause between consecutive batches
        max_items: Ceiling on items accepted per run (None for no ceiling)

    Example:
        >>> queue = RateLimitedQueue(batch_size=2, batch_delay_s=0.5, max_items=50)
        >>> outcomes = await queue.run(["ApexClass", "ApexPage"], fetch_counts)
    """

    def __init__(self, batch_size: int = 2, batch_delay_s: float = 0.5, max_items: Optional[int] = 50):
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if batch_delay_s < 0:
            raise ValueError(f"batch_delay_s must be >= 0, got {batch_delay_s}")
        self.batch_size = batch_size
        self.batch_delay_s = batch_delay_s
        self.max_items = max_items
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop scheduling further batches. In-flight batches still finish."""
        self._closed = True

    async def run(
        self, items: Sequence[T], worker: Callable[[T], Awaitable[R]]
    ) -> List[Tuple[T, Union[R, BaseException]]]:
        """Process items batch by batch.

        Args:
            items: Work items, processed in order
            worker: Coroutine function applied to each item

        Returns:
            (item, result or raised exception) pairs for every processed item,
            in input order. Items beyond max_items, or left over after close(),
            are not included.
        """
        selected = list(items)
        if self.max_items is not None and len(selected) > self.max_items:
            logger.info(f"Limiting prefetch to {self.max_items} of {len(selected)} items")
            selected = selected[: self.max_items]

        outcomes: List[Tuple[T, Union[R, BaseException]]] = []
        for start in range(0, len(selected), self.batch_size):
            if self._closed:
                logger.debug(f"Queue closed, skipping {len(selected) - start} items")
                break

            if start > 0 and self.batch_delay_s > 0:
                await asyncio.sleep(self.batch_delay_s)

            batch = selected[start : start + self.batch_size]
            results = await asyncio.gather(*(worker(item) for item in batch), return_exceptions=True)
            outcomes.extend(zip(batch, results))

        return outcomes
