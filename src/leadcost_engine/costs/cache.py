"""Single-flight, age-expiring cache for the current month's metrics."""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from typing import Awaitable, Callable, Optional

from leadcost_engine.common.models import utc_now
from leadcost_engine.costs.metrics import MetricsSnapshot

logger = logging.getLogger(__name__)

SnapshotLoader = Callable[[], Awaitable[MetricsSnapshot]]


class MetricsCache:
    """
    Holds the last computed snapshot for the current month.

    A snapshot is served until it is older than ``ttl_seconds``, belongs to a
    previous calendar month, or was invalidated by a write. Concurrent misses
    share a single in-flight recompute. When a recompute fails the previous
    snapshot is kept and served flagged ``stale``; the failure is kept in
    ``last_error``.
    """

    def __init__(
        self,
        loader: SnapshotLoader,
        ttl_seconds: float = 60,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._loader = loader
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._snapshot: Optional[MetricsSnapshot] = None
        self._invalidated = False
        self._generation = 0
        self._inflight: Optional[asyncio.Task] = None
        self.last_error: Optional[BaseException] = None
        self.recompute_count = 0

    @property
    def snapshot(self) -> Optional[MetricsSnapshot]:
        return self._snapshot

    def is_fresh(self, now: datetime | None = None) -> bool:
        snapshot = self._snapshot
        if snapshot is None or self._invalidated:
            return False
        now = now or self._clock()
        if (snapshot.year, snapshot.month) != (now.year, now.month):
            return False
        return snapshot.age_seconds(now) <= self.ttl_seconds

    def invalidate(self) -> None:
        """Force the next get() to recompute, even inside the TTL window."""
        self._invalidated = True
        self._generation += 1

    async def get(self, force_refresh: bool = False) -> MetricsSnapshot:
        if not force_refresh and self.is_fresh():
            return self._snapshot

        # No await between the check and the assignment, so only one task starts
        task = self._inflight
        if task is None:
            task = self._inflight = asyncio.create_task(self._refresh())
        return await asyncio.shield(task)

    async def _refresh(self) -> MetricsSnapshot:
        generation = self._generation
        try:
            self.recompute_count += 1
            try:
                snapshot = await self._loader()
            except Exception as exc:
                self.last_error = exc
                if self._snapshot is None:
                    raise
                logger.warning(
                    "Metrics recompute failed, serving snapshot from %s",
                    self._snapshot.computed_at.isoformat(),
                    exc_info=exc,
                )
                return replace(self._snapshot, stale=True)

            self._snapshot = snapshot
            self.last_error = None
            # A write that landed mid-recompute keeps the cache invalidated
            if generation == self._generation:
                self._invalidated = False
            return snapshot
        finally:
            self._inflight = None
