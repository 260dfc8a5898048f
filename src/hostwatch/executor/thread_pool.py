"""
Thread pool for blocking collector calls.

psutil reads and external discovery commands block; they run here so the
asyncio loop stays responsive for probes and cache readers while a collection
is in progress.
"""

import asyncio
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Set

from ..validation import ErrorSeverity, handle_error

logger = logging.getLogger(__name__)


@dataclass
class ThreadPoolConfig:
    """Configuration for the collector thread pool."""

    max_workers: int = 2
    thread_name_prefix: str = "CollectorWorker"
    shutdown_timeout: float = 10.0


class ManagedThreadPoolExecutor:
    """
    ThreadPoolExecutor wrapper with task accounting and an awaitable entry point.

    Usable as a context manager; ``run`` bridges a blocking call into the
    running event loop with an optional timeout.
    """

    def __init__(self, config: Optional[ThreadPoolConfig] = None):
        """
        Initialize the managed thread pool executor.

        Args:
            config: Thread pool configuration
        """
        self.config = config or ThreadPoolConfig()
        self.executor: Optional[ThreadPoolExecutor] = None
        self.active_futures: Set[Future] = set()
        self.is_shutdown = False
        self._lock = threading.Lock()

        self.stats = {
            "tasks_submitted": 0,
            "tasks_completed": 0,
            "tasks_failed": 0,
            "tasks_timed_out": 0,
        }

    @property
    def is_running(self) -> bool:
        return self.executor is not None and not self.is_shutdown

    def start(self) -> None:
        """
        Start the thread pool executor.

        Raises:
            RuntimeError: If already started
        """
        if self.executor is not None:
            raise RuntimeError("Thread pool already started")

        try:
            self.executor = ThreadPoolExecutor(
                max_workers=max(1, self.config.max_workers),
                thread_name_prefix=self.config.thread_name_prefix,
            )
            self.is_shutdown = False
            logger.info(f"Started collector thread pool with {self.config.max_workers} workers")

        except Exception as e:
            handle_error(
                error=e,
                context="starting collector thread pool",
                severity=ErrorSeverity.ERROR,
                reraise=True,
                logger=logger,
            )

    def submit(self, fn: Callable, *args, **kwargs) -> Future:
        """
        Submit a task to the thread pool.

        Args:
            fn: Function to execute
            *args: Positional arguments
            **kwargs: Keyword arguments

        Returns:
            Future representing the task

        Raises:
            RuntimeError: If executor is not started or is shutdown
        """
        if self.executor is None:
            raise RuntimeError("Thread pool not started")
        if self.is_shutdown:
            raise RuntimeError("Thread pool is shutdown")

        with self._lock:
            self.stats["tasks_submitted"] += 1

        future = self.executor.submit(fn, *args, **kwargs)
        with self._lock:
            self.active_futures.add(future)
        future.add_done_callback(self._task_completed)
        return future

    async def run(self, fn: Callable, *args, timeout: Optional[float] = None, **kwargs) -> Any:
        """
        Run a blocking function in the pool and await its result.

        Args:
            fn: Function to execute
            *args: Positional arguments
            timeout: Seconds to wait before giving up, or None to wait forever
            **kwargs: Keyword arguments

        Returns:
            The function's return value

        Raises:
            asyncio.TimeoutError: If the call did not finish within ``timeout``
            RuntimeError: If executor is not started or is shutdown
        """
        future = asyncio.wrap_future(self.submit(fn, *args, **kwargs))
        try:
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            # The worker thread keeps running; its result is discarded.
            with self._lock:
                self.stats["tasks_timed_out"] += 1
            logger.warning(f"{getattr(fn, '__name__', fn)} did not finish within {timeout}s")
            raise

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        """
        Shutdown the thread pool executor.

        Args:
            wait: Whether to wait for completion
            cancel_futures: Whether to cancel pending futures
        """
        if self.executor is None or self.is_shutdown:
            return

        try:
            self.is_shutdown = True

            if cancel_futures:
                with self._lock:
                    for future in list(self.active_futures):
                        future.cancel()

            self.executor.shutdown(wait=wait, cancel_futures=cancel_futures)

            if wait:
                logger.info("Collector thread pool shutdown completed")
            else:
                logger.info("Collector thread pool shutdown initiated")

        except Exception as e:
            handle_error(
                error=e,
                context="shutting down collector thread pool",
                severity=ErrorSeverity.WARNING,
                reraise=False,
                logger=logger,
            )
        finally:
            self.executor = None
            with self._lock:
                self.active_futures.clear()

    def get_stats(self) -> Dict[str, Any]:
        """
        Get current thread pool statistics.

        Returns:
            Dictionary containing usage statistics
        """
        with self._lock:
            stats = self.stats.copy()
            stats["active_futures"] = len(self.active_futures)

        stats["is_shutdown"] = self.is_shutdown
        stats["success_rate"] = stats["tasks_completed"] / max(1, stats["tasks_submitted"]) * 100
        return stats

    def _task_completed(self, future: Future) -> None:
        with self._lock:
            self.active_futures.discard(future)
            if future.cancelled():
                return
            if future.exception() is not None:
                self.stats["tasks_failed"] += 1
            else:
                self.stats["tasks_completed"] += 1

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.shutdown(wait=True)
