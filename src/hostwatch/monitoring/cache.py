"""
Most-recent-snapshot cache.

The cache holds a single immutable :class:`CacheState`. Publishing builds a
new state and swaps the reference, so a reader always sees either the old or
the new state in full, never a mix. Reads take no lock.
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Iterable, Optional

from ..models.snapshot import CacheState, MetricsSnapshot, ProbeResult

logger = logging.getLogger(__name__)

# Runs a full refresh cycle; returns the state it published, or None if it failed.
Refresher = Callable[[], Awaitable[Optional[CacheState]]]


class SnapshotCache:
    """
    Holds the latest published snapshot and probe results.

    ``force_refresh`` delegates to a refresher bound by the scheduler.
    Concurrent force-refresh callers share one in-flight refresh.
    """

    def __init__(self):
        self._state = CacheState.unavailable()
        self._refresher: Optional[Refresher] = None
        self._inflight: Optional[asyncio.Task] = None
        self.stats = {
            "publishes": 0,
            "forced_refreshes": 0,
            "coalesced_requests": 0,
            "failed_refreshes": 0,
        }

    def read(self) -> CacheState:
        """Return the current published state."""
        return self._state

    def publish(
        self,
        snapshot: MetricsSnapshot,
        results: Iterable[ProbeResult],
        timestamp: datetime,
    ) -> CacheState:
        """
        Replace the published state with a new complete one.

        Args:
            snapshot: Normalized host snapshot
            results: Probe results in target order
            timestamp: Completion time of the cycle

        Returns:
            The newly published state
        """
        state = CacheState(
            snapshot=snapshot,
            probe_results=tuple(results),
            last_updated=timestamp,
            available=True,
            cycle=self._state.cycle + 1,
        )
        self._state = state
        self.stats["publishes"] += 1
        logger.debug(f"Published cycle {state.cycle} with {len(state.probe_results)} probe results")
        return state

    def bind_refresher(self, refresher: Refresher) -> None:
        """Set the coroutine function that performs a full refresh cycle."""
        self._refresher = refresher

    async def force_refresh(self) -> CacheState:
        """
        Run a refresh now and return the resulting state.

        If a refresh is already in flight, wait for that one instead of
        starting another. Every caller sharing a refresh gets the state that
        refresh published. A failed refresh leaves the cache untouched and the
        last good state is returned.

        Raises:
            RuntimeError: If no refresher has been bound
        """
        if self._refresher is None:
            raise RuntimeError("No refresher bound to the snapshot cache")

        if self._inflight is None or self._inflight.done():
            self.stats["forced_refreshes"] += 1
            self._inflight = asyncio.create_task(self._refresher(), name="forced-refresh")
        else:
            self.stats["coalesced_requests"] += 1

        task = self._inflight
        try:
            # Shielded so one caller's cancellation does not abort the shared refresh.
            published = await asyncio.shield(task)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.stats["failed_refreshes"] += 1
            logger.warning(f"Forced refresh failed, serving previous state: {e}")
            return self._state

        if published is None:
            logger.warning("Forced refresh did not publish, serving previous state")
            return self._state
        return published

    @property
    def refresh_in_progress(self) -> bool:
        return self._inflight is not None and not self._inflight.done()
