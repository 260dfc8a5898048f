"""
Fixed-interval refresh loop.

:class:`RefreshScheduler` drives one refresh cycle per tick: dynamic host
metrics (in the thread pool) and target probes run concurrently, the platform
normalizer turns the raw facts into a snapshot, and the cache publishes the
result as a single swap. A collector failure or timeout does not stop the
cycle: the last good host metrics are published with the fresh probe results.
Any other failure publishes nothing; the previous state stays visible and the
loop carries on with the next tick.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..collectors import HostMetricsCollector
from ..executor import ManagedThreadPoolExecutor, ThreadPoolConfig
from ..models.config import AppConfig
from ..models.snapshot import UNKNOWN, CacheState, DynamicFacts, ProbeResult, StaticFacts
from ..platforms import PlatformNormalizer, get_normalizer
from ..probing import Prober
from ..validation import CycleErrorHandler, CycleErrorType, ErrorSeverity
from .cache import SnapshotCache

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SchedulerState(Enum):
    """Lifecycle state of the refresh loop."""
    IDLE = "idle"
    COLLECTING = "collecting"
    PUBLISHING = "publishing"
    STOPPED = "stopped"


class RefreshScheduler:
    """
    Runs refresh cycles at a fixed interval and publishes them to the cache.

    The first cycle runs as soon as :meth:`start` is called. Cycles never
    overlap: the periodic loop and forced refreshes from the cache share one
    lock.

    Args:
        config: Application configuration (targets and engine settings)
        collector: Host metrics collector
        prober: Target prober
        cache: Cache that receives each completed cycle
        normalizer: Platform normalizer; defaults to the prober's
        pool: Thread pool for blocking collection; created from config if omitted
        clock: Returns the timezone-aware time stamped on published states
        error_handler: Records cycle failures
    """

    def __init__(
        self,
        config: AppConfig,
        collector: HostMetricsCollector,
        prober: Prober,
        cache: SnapshotCache,
        normalizer: Optional[PlatformNormalizer] = None,
        pool: Optional[ManagedThreadPoolExecutor] = None,
        clock: Optional[Callable[[], datetime]] = None,
        error_handler: Optional[CycleErrorHandler] = None,
    ):
        self.config = config
        self.collector = collector
        self.prober = prober
        self.cache = cache
        self.normalizer = normalizer or getattr(prober, "normalizer", None) or get_normalizer()
        self.clock = clock or utc_now
        self.error_handler = error_handler or CycleErrorHandler(logger)

        self._owns_pool = pool is None
        self.pool = pool or ManagedThreadPoolExecutor(
            ThreadPoolConfig(max_workers=config.monitor.collector_workers)
        )

        self._state = SchedulerState.IDLE
        self._static: Optional[StaticFacts] = None
        self._static_pending = False
        self._cycle_lock = asyncio.Lock()
        self._shutdown_event = asyncio.Event()
        self._loop_task: Optional[asyncio.Task] = None

        self.stats = {
            "cycles_started": 0,
            "cycles_published": 0,
            "cycles_failed": 0,
            "last_cycle_duration": 0.0,
        }

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def static_facts(self) -> Optional[StaticFacts]:
        return self._static

    async def start(self) -> None:
        """
        Collect static facts and start the periodic loop.

        Raises:
            RuntimeError: If the scheduler is already running or was stopped
        """
        if self.is_running:
            raise RuntimeError("Scheduler already running")
        if self._state is SchedulerState.STOPPED:
            raise RuntimeError("Scheduler was stopped and cannot be restarted")

        await self.prepare()
        self._loop_task = asyncio.create_task(self._run_loop(), name="refresh-loop")
        logger.info(
            f"Refresh loop started: {len(self.config.targets)} targets, "
            f"interval {self.config.monitor.refresh_interval_seconds}s, "
            f"probe concurrency {self.config.monitor.probe_concurrency}"
        )

    async def prepare(self) -> None:
        """
        Start the thread pool, collect static facts once and bind the cache.

        Safe to call more than once; later calls only rebind the cache.
        """
        if not self.pool.is_running:
            self.pool.start()

        if self._static is None:
            self._static = await self._collect_static()
            self._adopt_arch(self._static)

        self.cache.bind_refresher(self.refresh)

    async def _collect_static(self) -> StaticFacts:
        async with self.error_handler.error_context(
            "collector",
            "collect_static",
            error_type=CycleErrorType.COLLECTOR_ERROR,
            severity=ErrorSeverity.WARNING,
        ):
            return await self.pool.run(
                self.collector.collect_static,
                timeout=self.config.monitor.static_collect_timeout_seconds,
            )
        # The worker may still finish; _current_static() picks its result up later.
        self._static_pending = True
        return StaticFacts.unknown()

    def _current_static(self) -> StaticFacts:
        if self._static_pending:
            late = getattr(self.collector, "last_static", None)
            if late is not None:
                logger.info(f"Static facts became available late for host '{late.hostname}'")
                self._static = late
                self._static_pending = False
                self._adopt_arch(late)
        return self._static or StaticFacts.unknown()

    def _adopt_arch(self, static: StaticFacts) -> None:
        # Latency correction keys off the collected architecture, not the interpreter's.
        if static.arch != UNKNOWN and static.arch != self.normalizer.arch:
            logger.debug(f"Normalizer arch set to '{static.arch}' (was '{self.normalizer.arch}')")
            self.normalizer.arch = static.arch

    async def run_cycle(self) -> bool:
        """
        Run one refresh cycle.

        Returns:
            True if a new state was published, False if the cycle failed
        """
        return await self.refresh() is not None

    async def refresh(self) -> Optional[CacheState]:
        """
        Run one refresh cycle and return the state it published.

        This is the refresher bound to the cache for forced refreshes.

        Returns:
            The published CacheState, or None if the cycle failed or the
            scheduler is stopped
        """
        if self._state is SchedulerState.STOPPED:
            logger.warning("Refresh requested after scheduler stop; ignoring")
            return None

        async with self._cycle_lock:
            self.stats["cycles_started"] += 1
            cycle = self.stats["cycles_started"]
            started = time.monotonic()
            state: Optional[CacheState] = None

            self._state = SchedulerState.COLLECTING
            try:
                async with self.error_handler.error_context(
                    "scheduler", "run_cycle", error_type=CycleErrorType.CYCLE_ERROR, cycle=cycle
                ):
                    static = self._current_static()
                    dynamic, results = await self._gather_cycle(cycle)
                    snapshot = self.normalizer.build_snapshot(static, dynamic)

                    self._state = SchedulerState.PUBLISHING
                    state = self.cache.publish(snapshot, results, self.clock())
            finally:
                if self._state is not SchedulerState.STOPPED:
                    self._state = SchedulerState.IDLE

            duration = time.monotonic() - started
            self.stats["last_cycle_duration"] = duration
            if state is not None:
                self.stats["cycles_published"] += 1
                online = sum(r.is_online for r in state.probe_results)
                logger.info(
                    f"Cycle {cycle} published in {duration:.2f}s: "
                    f"{online}/{len(state.probe_results)} targets online"
                )
            else:
                self.stats["cycles_failed"] += 1
                logger.warning(f"Cycle {cycle} failed after {duration:.2f}s; keeping previous state")
            return state

    async def _gather_cycle(self, cycle: int) -> Tuple[DynamicFacts, List[ProbeResult]]:
        monitor = self.config.monitor
        collect_task = asyncio.ensure_future(self._collect_dynamic(cycle))
        probe_task = asyncio.ensure_future(
            self.prober.probe(
                self.config.targets,
                timeout_ms=monitor.tcp_timeout_ms,
                concurrency=monitor.probe_concurrency,
                icmp_timeout_ms=monitor.icmp_timeout_ms,
            )
        )
        try:
            dynamic, results = await asyncio.gather(collect_task, probe_task)
        except BaseException:
            for task in (collect_task, probe_task):
                task.cancel()
            await asyncio.gather(collect_task, probe_task, return_exceptions=True)
            raise
        return dynamic, results

    async def _collect_dynamic(self, cycle: int) -> DynamicFacts:
        """Collect per-cycle metrics, falling back to the last good ones on failure."""
        async with self.error_handler.error_context(
            "collector",
            "collect_dynamic",
            error_type=CycleErrorType.COLLECTOR_ERROR,
            severity=ErrorSeverity.WARNING,
            cycle=cycle,
        ):
            return await self.pool.run(
                self.collector.collect_dynamic,
                timeout=self.config.monitor.collect_timeout_seconds,
            )
        previous = getattr(self.collector, "last_dynamic", None)
        logger.warning(
            f"Cycle {cycle}: serving {'previous' if previous is not None else 'unknown'} host metrics "
            f"alongside fresh probe results"
        )
        return previous if previous is not None else DynamicFacts.unknown()

    async def _run_loop(self) -> None:
        interval = self.config.monitor.refresh_interval_seconds
        while not self._shutdown_event.is_set():
            await self.run_cycle()
            try:
                await asyncio.wait_for(self._shutdown_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                continue
        logger.debug("Refresh loop exiting")

    async def stop(self, grace_seconds: Optional[float] = None) -> None:
        """
        Stop the loop, letting an in-flight cycle finish within the grace period.

        Args:
            grace_seconds: How long to wait before cancelling; defaults to config
        """
        if self._state is SchedulerState.STOPPED:
            return
        grace = self.config.monitor.shutdown_grace_seconds if grace_seconds is None else grace_seconds

        self._shutdown_event.set()
        if self._loop_task is not None and not self._loop_task.done():
            try:
                await asyncio.wait_for(asyncio.shield(self._loop_task), timeout=grace)
            except asyncio.TimeoutError:
                logger.warning(f"Refresh cycle did not finish within {grace}s grace period; cancelling")
                self._loop_task.cancel()
                await asyncio.gather(self._loop_task, return_exceptions=True)

        self._state = SchedulerState.STOPPED
        if self._owns_pool:
            self.pool.shutdown(wait=False, cancel_futures=True)

        summary = await self.error_handler.get_error_summary()
        logger.info(
            f"Scheduler stopped after {self.stats['cycles_published']} published cycles "
            f"({summary['total_errors']} errors)"
        )

    def get_stats(self) -> Dict[str, Any]:
        """Return cycle counters and the current state."""
        stats = self.stats.copy()
        stats["state"] = self._state.value
        stats["running"] = self.is_running
        return stats
