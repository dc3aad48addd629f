"""Tests for async utility functions."""

from __future__ import annotations

import asyncio

import pytest

from trace_locator.utils.async_helpers import (
    LocatorError,
    OperationTimeoutError,
    RemapError,
    TraceParseError,
    UnresolvableTraceError,
    create_retry,
    retry_from_config,
    with_timeout,
)
from trace_locator.config.schema import RetryConfig
from trace_locator.utils.safe_subprocess import CommandTimeoutError


class TestCustomExceptions:
    """Test custom exception classes."""

    def test_locator_error_base(self) -> None:
        error = LocatorError("base error")
        assert str(error) == "base error"
        assert isinstance(error, Exception)

    def test_subclasses(self) -> None:
        for error_type in (
            TraceParseError,
            UnresolvableTraceError,
            RemapError,
            OperationTimeoutError,
        ):
            assert issubclass(error_type, LocatorError)

    def test_unresolvable_trace_default_message(self) -> None:
        assert str(UnresolvableTraceError()) == (
            "unable to parse stack trace, no meaningful data could be extracted"
        )


class TestCreateRetry:
    """Test the retry decorator factory."""

    @pytest.mark.asyncio
    async def test_succeeds_first_try(self) -> None:
        call_count = 0

        @create_retry((CommandTimeoutError,), max_attempts=3, min_wait=0.1, max_wait=0.1)
        async def successful_call() -> str:
            nonlocal call_count
            call_count += 1
            return "success"

        assert await successful_call() == "success"
        assert call_count == 1

    @pytest.mark.asyncio
    async def test_retries_listed_exceptions(self) -> None:
        """A slow fetch is retried until it succeeds."""
        call_count = 0

        @create_retry((CommandTimeoutError,), max_attempts=3, min_wait=0.1, max_wait=0.1)
        async def flaky_fetch() -> str:
            nonlocal call_count
            call_count += 1
            if call_count < 2:
                raise CommandTimeoutError("fetch timed out")
            return "fetched"

        assert await flaky_fetch() == "fetched"
        assert call_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self) -> None:
        call_count = 0

        @create_retry((CommandTimeoutError,), max_attempts=2, min_wait=0.1, max_wait=0.1)
        async def always_fails() -> None:
            nonlocal call_count
            call_count += 1
            raise CommandTimeoutError("fetch timed out")

        with pytest.raises(CommandTimeoutError):
            await always_fails()
        assert call_count == 2

    @pytest.mark.asyncio
    async def test_does_not_retry_other_exceptions(self) -> None:
        call_count = 0

        @create_retry((CommandTimeoutError,), max_attempts=3, min_wait=0.1, max_wait=0.1)
        async def raises_value_error() -> None:
            nonlocal call_count
            call_count += 1
            raise ValueError("not retryable")

        with pytest.raises(ValueError):
            await raises_value_error()
        assert call_count == 1

    @pytest.mark.asyncio
    async def test_retry_from_config(self) -> None:
        call_count = 0
        config = RetryConfig(max_attempts=3, initial_delay=0.1, max_delay=1.0)

        @retry_from_config(config, (CommandTimeoutError,))
        async def always_slow() -> None:
            nonlocal call_count
            call_count += 1
            raise CommandTimeoutError("fetch timed out")

        with pytest.raises(CommandTimeoutError):
            await always_slow()
        assert call_count == 3


class TestWithTimeout:
    """Test the timeout wrapper."""

    @pytest.mark.asyncio
    async def test_completes_within_timeout(self) -> None:
        async def quick() -> str:
            return "done"

        assert await with_timeout(quick(), timeout=1.0) == "done"

    @pytest.mark.asyncio
    async def test_timeout_raises_locator_error(self) -> None:
        async def slow() -> None:
            await asyncio.sleep(1.0)

        with pytest.raises(OperationTimeoutError, match="Operation timed out after 0.05s") as exc:
            await with_timeout(slow(), timeout=0.05)
        assert exc.value.timeout == 0.05

    @pytest.mark.asyncio
    async def test_custom_error_message(self) -> None:
        async def slow() -> None:
            await asyncio.sleep(1.0)

        with pytest.raises(OperationTimeoutError, match="git took too long"):
            await with_timeout(slow(), timeout=0.05, error_message="git took too long")
