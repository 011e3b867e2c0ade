"""Transient TTL cache for decoded task listings.

Two stores: one keyed by (start, end) query window, one holding the
unassigned-task listing. Entries expire a fixed time after they are written
(reads do not refresh them). Any task mutation invalidates both stores
together, since a single write can move a task between them.

The cache is only touched from the event loop thread, so it uses no locks.
A write generation counter guards against a fetch that started before an
invalidation storing its (now stale) result after it.
"""

import asyncio
import logging
import os
import time
from typing import Awaitable, Callable, Dict, List, Optional, Set, Tuple

from trafficboard.engine.periods import adjacent_windows
from trafficboard.models.constants import DEFAULT_CACHE_TTL_SECONDS
from trafficboard.models.task import Task

logger = logging.getLogger(__name__)

Window = Tuple[str, str]
WindowFetch = Callable[[str, str], Awaitable[List[Task]]]


class TaskCache:
    """TTL cache for windowed and unassigned task listings."""

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        """Initialize the cache.

        Args:
            ttl_seconds: Entry lifetime. If None, reads TASK_CACHE_TTL_SECONDS (defaults to 300).
            clock: Monotonic clock in seconds (injectable for tests).
        """
        if ttl_seconds is None:
            ttl_seconds = float(os.getenv("TASK_CACHE_TTL_SECONDS", str(DEFAULT_CACHE_TTL_SECONDS)))
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._windows: Dict[Window, Tuple[float, List[Task]]] = {}
        self._unassigned: Optional[Tuple[float, List[Task]]] = None
        self._generation = 0
        self._background: Set[asyncio.Task] = set()

    @property
    def generation(self) -> int:
        """Incremented by every invalidation."""
        return self._generation

    def _fresh(self, stored_at: float) -> bool:
        return self._clock() - stored_at < self.ttl_seconds

    def _accepts(self, generation: Optional[int]) -> bool:
        return generation is None or generation == self._generation

    def get(self, start: str, end: str) -> Optional[List[Task]]:
        """Cached tasks for a window, or None on miss/expiry."""
        entry = self._windows.get((start, end))
        if entry is None:
            return None
        stored_at, tasks = entry
        if not self._fresh(stored_at):
            del self._windows[(start, end)]
            return None
        return list(tasks)

    def put(self, start: str, end: str, tasks: List[Task], generation: Optional[int] = None) -> None:
        """Store tasks for a window.

        Args:
            generation: Generation observed before the fetch started; the write is
                dropped if an invalidation happened since.
        """
        if not self._accepts(generation):
            logger.debug(f"Dropped stale cache write for window {start}..{end}")
            return
        self._windows[(start, end)] = (self._clock(), list(tasks))

    def get_unassigned(self) -> Optional[List[Task]]:
        if self._unassigned is None:
            return None
        stored_at, tasks = self._unassigned
        if not self._fresh(stored_at):
            self._unassigned = None
            return None
        return list(tasks)

    def put_unassigned(self, tasks: List[Task], generation: Optional[int] = None) -> None:
        if not self._accepts(generation):
            logger.debug("Dropped stale cache write for unassigned tasks")
            return
        self._unassigned = (self._clock(), list(tasks))

    def invalidate_all(self) -> None:
        """Drop every window and the unassigned listing."""
        self._windows.clear()
        self._unassigned = None
        self._generation += 1
        logger.debug(f"Task cache invalidated (generation {self._generation})")

    def prewarm(self, start: str, end: str, granularity: str, fetch: WindowFetch) -> List[asyncio.Task]:
        """Start background fetches for the windows adjacent to [start, end].

        Fire-and-forget: the caller does not await the returned tasks. Failures
        are logged by a done callback and never propagate. Windows already
        cached are skipped.

        Returns:
            The scheduled background tasks (exposed for shutdown and tests)
        """
        scheduled = []
        for window_start, window_end in adjacent_windows(start, end, granularity):
            if self.get(window_start, window_end) is not None:
                continue
            job = asyncio.create_task(
                fetch(window_start, window_end),
                name=f"prewarm {window_start}..{window_end}",
            )
            self._background.add(job)
            job.add_done_callback(self._on_prewarm_done)
            scheduled.append(job)
        return scheduled

    def _on_prewarm_done(self, job: asyncio.Task) -> None:
        self._background.discard(job)
        if job.cancelled():
            return
        error = job.exception()
        if error is not None:
            logger.warning(f"Pre-warm {job.get_name()} failed: {type(error).__name__}: {str(error)}")
        else:
            logger.debug(f"Pre-warm {job.get_name()} done")

    async def aclose(self) -> None:
        """Cancel pre-warm fetches still in flight."""
        pending = list(self._background)
        for job in pending:
            job.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._background.clear()
