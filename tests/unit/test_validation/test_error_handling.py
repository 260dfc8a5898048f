"""
Unit tests for error handling helpers and the cycle error handler.
"""

import asyncio
import logging

import pytest

from hostwatch.validation import (
    CycleErrorHandler,
    CycleErrorType,
    ErrorSeverity,
    ValidationError,
    handle_cli_error,
    handle_error,
    validate_address,
    validate_port,
)


@pytest.mark.unit
class TestHandleError:
    """Test cases for handle_error and its wrappers."""

    def test_handle_error_reraises(self):
        """Test the error is re-raised by default."""
        with pytest.raises(ValueError):
            handle_error(ValueError("boom"), "testing")

    def test_handle_error_logs_without_reraise(self, caplog):
        """Test the error is logged at the requested severity."""
        test_logger = logging.getLogger("test.handle_error")

        with caplog.at_level(logging.WARNING):
            handle_error(
                ValueError("boom"),
                "testing",
                severity=ErrorSeverity.WARNING,
                reraise=False,
                logger=test_logger,
            )

        assert "Error in testing: boom" in caplog.text
        assert caplog.records[-1].levelno == logging.WARNING

    def test_handle_cli_error_exits(self):
        """Test CLI errors exit with the given code."""
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_error(ValueError("bad"), "parsing", exit_code=3)

        assert exc_info.value.code == 3


@pytest.mark.unit
class TestFieldValidators:
    """Test cases for address and port validators."""

    @pytest.mark.parametrize("address", ["10.0.0.1", "::1", "example.org", "host-1.lan", "localhost"])
    def test_valid_addresses(self, address):
        assert validate_address(address) == address

    @pytest.mark.parametrize("address", ["", "-bad.example", "a b", "under_score.example"])
    def test_invalid_addresses(self, address):
        with pytest.raises(ValidationError):
            validate_address(address)

    def test_port_none_and_minus_one(self):
        assert validate_port(None) is None
        assert validate_port(-1) is None
        assert validate_port(22) == 22

    def test_port_bool_rejected(self):
        with pytest.raises(ValidationError):
            validate_port(True)


@pytest.mark.unit
class TestCycleErrorHandler:
    """Test cases for CycleErrorHandler."""

    @pytest.mark.asyncio
    async def test_error_context_swallows_and_records(self):
        """Test errors inside the context are recorded and not raised."""
        handler = CycleErrorHandler()

        async with handler.error_context("scheduler", "run_cycle", CycleErrorType.CYCLE_ERROR, cycle=4):
            raise RuntimeError("collector down")

        summary = await handler.get_error_summary()
        assert summary["total_errors"] == 1
        assert summary["error_counts"] == {"cycle_error": 1}
        assert summary["recent_errors"][0]["cycle"] == 4
        assert summary["recent_errors"][0]["component"] == "scheduler"

    @pytest.mark.asyncio
    async def test_error_context_classifies_timeouts(self):
        """Test timeouts are recorded as timeout errors."""
        handler = CycleErrorHandler()

        async with handler.error_context("collector", "collect_dynamic", CycleErrorType.COLLECTOR_ERROR):
            raise asyncio.TimeoutError()

        summary = await handler.get_error_summary()
        assert summary["error_counts"] == {"timeout_error": 1}

    @pytest.mark.asyncio
    async def test_error_context_reraise(self):
        """Test reraise=True propagates after recording."""
        handler = CycleErrorHandler()

        with pytest.raises(ValueError):
            async with handler.error_context("x", "y", reraise=True):
                raise ValueError("boom")

        assert handler.error_counts[CycleErrorType.UNKNOWN_ERROR] == 1

    @pytest.mark.asyncio
    async def test_error_context_does_not_swallow_cancellation(self):
        """Test cancellation passes through unrecorded."""
        handler = CycleErrorHandler()

        with pytest.raises(asyncio.CancelledError):
            async with handler.error_context("x", "y"):
                raise asyncio.CancelledError()

        assert handler.error_counts == {}

    @pytest.mark.asyncio
    async def test_history_is_bounded(self):
        """Test only the most recent contexts are kept."""
        handler = CycleErrorHandler(max_history_size=3)

        for i in range(5):
            async with handler.error_context("x", "y", cycle=i, severity=ErrorSeverity.WARNING):
                raise RuntimeError(str(i))

        assert [ctx.cycle for ctx in handler.error_history] == [2, 3, 4]
        assert handler.error_counts[CycleErrorType.UNKNOWN_ERROR] == 5

    def test_error_types_cover_cycle_failures(self):
        """Test only the failure kinds the scheduler records are defined."""
        assert {t.value for t in CycleErrorType} == {
            "collector_error",
            "cycle_error",
            "timeout_error",
            "unknown_error",
        }
