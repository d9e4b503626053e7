"""
Retry Policy - Bounded retry of transient backend failures.

Operations are retried with capped exponential backoff and jitter until
they succeed, fail with a non-retryable error, or the overall time budget
runs out.
"""

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class RetryTimeoutError(Exception):
    """Raised when a retryable operation did not succeed within its budget."""

    def __init__(self, message: str, last_error: Optional[BaseException] = None):
        self.message = message
        self.last_error = last_error
        super().__init__(message)


class RetryCancelledError(Exception):
    """Raised when shutdown is requested while waiting to retry."""


def compute_backoff_delay(
    attempt: int,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    jitter_factor: float = 0.1,
) -> float:
    """
    Delay before the given retry attempt.

    Args:
        attempt: Zero-based number of the failed attempt
        base_delay: Delay after the first failure, in seconds
        max_delay: Upper bound on the delay before jitter
        jitter_factor: Jitter factor ±X (0.1 = ±10%)

    Returns:
        Delay in seconds, never negative
    """
    delay = min(base_delay * (2 ** min(attempt, 10)), max_delay)
    delay *= 1 + (random.random() * 2 - 1) * jitter_factor
    return max(delay, 0.0)


async def _wait(delay: float, shutdown_event: Optional[asyncio.Event]) -> None:
    if shutdown_event is None:
        await asyncio.sleep(delay)
        return
    try:
        await asyncio.wait_for(shutdown_event.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return
    raise RetryCancelledError("Shutdown requested while waiting to retry")


async def retry_with_backoff(
    operation: Callable[[], Awaitable[Any]],
    is_retryable: Callable[[Exception], bool],
    *,
    timeout: float = 120.0,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    jitter_factor: float = 0.0,
    shutdown_event: Optional[asyncio.Event] = None,
    description: str = "operation",
) -> Any:
    """
    Run ``operation`` until it succeeds or the retry budget runs out.

    Args:
        operation: Zero-argument coroutine function performing one attempt
        is_retryable: Classifies an error as transient (True) or fatal
        timeout: Total time budget in seconds
        base_delay: Backoff base delay in seconds
        max_delay: Backoff cap in seconds
        jitter_factor: Backoff jitter factor
        shutdown_event: Optional event that aborts waiting between attempts
        description: Used in log messages

    Returns:
        The result of the first successful attempt

    Raises:
        RetryTimeoutError: If the budget ran out; chained from the last error
        RetryCancelledError: If shutdown was requested while waiting
        Exception: Any non-retryable error, unchanged
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    attempt = 0

    while True:
        try:
            return await operation()
        except Exception as e:
            if not is_retryable(e):
                raise

            remaining = deadline - loop.time()
            if remaining <= 0:
                raise RetryTimeoutError(
                    f"{description} did not succeed within {timeout}s: {e}", e
                ) from e

            delay = min(
                compute_backoff_delay(attempt, base_delay, max_delay, jitter_factor),
                remaining,
            )
            logger.warning(
                f"{description} failed (attempt {attempt + 1}), "
                f"retrying in {delay:.2f}s: {e}"
            )
            await _wait(delay, shutdown_event)
            attempt += 1
