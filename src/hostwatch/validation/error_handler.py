"""
Asynchronous error handling for the refresh loop.

The scheduler must survive every failure of a cycle: collector outages,
normalization bugs and timeouts are logged with structured context and counted,
and the loop proceeds with the next tick.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, AsyncGenerator, Dict, List, Optional

from .exceptions import ErrorSeverity


class CycleErrorType(Enum):
    """Types of refresh cycle errors."""
    COLLECTOR_ERROR = "collector_error"
    CYCLE_ERROR = "cycle_error"
    TIMEOUT_ERROR = "timeout_error"
    UNKNOWN_ERROR = "unknown_error"


@dataclass
class CycleErrorContext:
    """Context information for a refresh cycle error."""
    error_type: CycleErrorType
    severity: ErrorSeverity
    component: str
    operation: str
    timestamp: datetime
    cycle: Optional[int] = None
    additional_data: Optional[Dict[str, Any]] = None


class CycleErrorHandler:
    """
    Centralized async error handling with structured logging.

    This class provides:
    - Structured error logging with context
    - Classification of timeouts versus other failures
    - Error counts per type and a bounded history for inspection
    """

    def __init__(self, logger: Optional[logging.Logger] = None, max_history_size: int = 100):
        """
        Initialize the error handler.

        Args:
            logger: Optional logger instance, defaults to module logger
            max_history_size: Number of error contexts to retain
        """
        self.logger = logger or logging.getLogger(__name__)
        self.error_history: List[CycleErrorContext] = []
        self.error_counts: Dict[CycleErrorType, int] = {}
        self.max_history_size = max_history_size
        self._lock = asyncio.Lock()

    async def handle_error(
        self,
        error: BaseException,
        context: CycleErrorContext,
        reraise: bool = False,
    ) -> None:
        """
        Record and log an error.

        Args:
            error: The exception that occurred
            context: Error context information
            reraise: Whether to reraise the exception after logging
        """
        async with self._lock:
            self.error_counts[context.error_type] = self.error_counts.get(context.error_type, 0) + 1
            self.error_history.append(context)
            if len(self.error_history) > self.max_history_size:
                self.error_history.pop(0)

        self._log_error(error, context)

        if reraise:
            raise error

    @asynccontextmanager
    async def error_context(
        self,
        component: str,
        operation: str,
        error_type: CycleErrorType = CycleErrorType.UNKNOWN_ERROR,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        cycle: Optional[int] = None,
        reraise: bool = False,
    ) -> AsyncGenerator[None, None]:
        """
        Async context manager that records any exception raised in its body.

        ``asyncio.CancelledError`` is never swallowed.

        Usage:
            async with handler.error_context("scheduler", "run_cycle"):
                ...
        """
        try:
            yield
        except asyncio.CancelledError:
            raise
        except Exception as e:
            effective_type = error_type
            if isinstance(e, asyncio.TimeoutError):
                effective_type = CycleErrorType.TIMEOUT_ERROR
            context = CycleErrorContext(
                error_type=effective_type,
                severity=severity,
                component=component,
                operation=operation,
                timestamp=datetime.now(timezone.utc),
                cycle=cycle,
            )
            await self.handle_error(e, context, reraise=reraise)

    async def get_error_summary(self) -> Dict[str, Any]:
        """
        Get a summary of all errors handled.

        Returns:
            Dictionary containing error statistics and recent errors
        """
        async with self._lock:
            recent_errors = self.error_history[-10:]

            return {
                'total_errors': sum(self.error_counts.values()),
                'error_counts': {k.value: v for k, v in self.error_counts.items()},
                'recent_errors': [
                    {
                        'error_type': ctx.error_type.value,
                        'severity': ctx.severity.value,
                        'component': ctx.component,
                        'operation': ctx.operation,
                        'timestamp': ctx.timestamp.isoformat(),
                        'cycle': ctx.cycle,
                    }
                    for ctx in recent_errors
                ]
            }

    def _log_error(self, error: BaseException, context: CycleErrorContext) -> None:
        log_level = {
            ErrorSeverity.DEBUG: logging.DEBUG,
            ErrorSeverity.INFO: logging.INFO,
            ErrorSeverity.WARNING: logging.WARNING,
            ErrorSeverity.ERROR: logging.ERROR,
            ErrorSeverity.CRITICAL: logging.CRITICAL
        }.get(context.severity, logging.ERROR)

        log_data = {
            'error_type': context.error_type.value,
            'component': context.component,
            'operation': context.operation,
            'cycle': context.cycle,
            'exception_type': type(error).__name__,
        }
        if context.additional_data:
            log_data.update(context.additional_data)

        if context.severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL):
            self.logger.log(
                log_level,
                f"Error in {context.component}.{context.operation}: {error!r}",
                extra=log_data,
                exc_info=error,
            )
        else:
            self.logger.log(
                log_level,
                f"{context.severity.value.capitalize()} in {context.component}.{context.operation}: {error!r}",
                extra=log_data,
            )
