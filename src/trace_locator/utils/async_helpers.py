"""Exception hierarchy, retries and timeouts.

Parsers raise ``TraceParseError``; ``parse_stack_trace`` turns a total
failure into ``UnresolvableTraceError``; the remapper raises ``RemapError``.
Git fetches are the only operation retried, see ``retry_from_config``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, ParamSpec, TypeVar

import structlog
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

if TYPE_CHECKING:
    from trace_locator.config.schema import RetryConfig

log = structlog.get_logger()

P = ParamSpec("P")
T = TypeVar("T")

RetryDecorator = Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]


class LocatorError(Exception):
    """Base exception for all trace locator errors."""


class TraceParseError(LocatorError):
    """A parser found nothing it could interpret in the given text."""


class UnresolvableTraceError(LocatorError):
    """No registered parser could extract meaningful data from a trace."""

    def __init__(
        self,
        message: str = "unable to parse stack trace, no meaningful data could be extracted",
    ) -> None:
        super().__init__(message)


class RemapError(LocatorError):
    """A position could not be carried through a diff."""


class OperationTimeoutError(LocatorError):
    """An awaited operation exceeded its deadline."""

    def __init__(self, message: str, timeout: float) -> None:
        super().__init__(message)
        self.timeout = timeout


def _before_sleep(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    if outcome is None or outcome.exception() is None:
        return

    error = outcome.exception()
    log.warning(
        "retrying_operation",
        operation=getattr(retry_state.fn, "__qualname__", repr(retry_state.fn)),
        attempt=retry_state.attempt_number,
        error_type=type(error).__name__,
        error=str(error),
        sleep=retry_state.next_action.sleep if retry_state.next_action else 0,
    )


def create_retry(
    retry_on: tuple[type[Exception], ...],
    max_attempts: int = 2,
    min_wait: float = 1.0,
    max_wait: float = 10.0,
) -> RetryDecorator[P, T]:
    """Build a tenacity decorator retrying ``retry_on`` with exponential backoff.

    The last exception is re-raised once ``max_attempts`` is exhausted.
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=min_wait, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(retry_on),
        before_sleep=_before_sleep,
        reraise=True,
    )


def retry_from_config(
    config: RetryConfig,
    retry_on: tuple[type[Exception], ...],
) -> RetryDecorator[P, T]:
    """``create_retry`` driven by the ``retry`` configuration section."""
    return create_retry(
        retry_on,
        max_attempts=config.max_attempts,
        min_wait=config.initial_delay,
        max_wait=config.max_delay,
    )


async def with_timeout(
    awaitable: Awaitable[T],
    timeout: float,
    error_message: str | None = None,
) -> T:
    """Await ``awaitable``, raising OperationTimeoutError after ``timeout`` seconds."""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        log.warning("operation_timeout", timeout=timeout)
        raise OperationTimeoutError(
            error_message or f"Operation timed out after {timeout}s", timeout
        ) from e
