"""Bounded retry for provider calls.

Only transient failures (network, provider unavailable) are retried; anything
else, and a user rejection in particular, propagates on the first attempt.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog

from swapengine.config import RetryPolicy
from swapengine.errors import is_transient

logger = structlog.get_logger()

T = TypeVar("T")


async def retry_async(
    func: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    operation: str = "call",
    should_retry: Callable[[BaseException], bool] = is_transient,
) -> T:
    """Await func(), retrying transient failures per policy.

    Args:
        func: Zero-argument coroutine factory
        policy: Attempt count and fixed backoff
        operation: Name used in log events
        should_retry: Predicate deciding whether an error is retryable

    Returns:
        The first successful result

    Raises:
        The last error once attempts are exhausted, or any non-retryable error
    """
    for attempt in range(1, policy.attempts + 1):
        try:
            return await func()
        except Exception as e:
            if not should_retry(e) or attempt == policy.attempts:
                raise
            logger.warning(
                "retrying_after_transient_error",
                operation=operation,
                attempt=attempt,
                max_attempts=policy.attempts,
                error=str(e),
            )
            await asyncio.sleep(policy.delay_seconds)
    raise AssertionError("unreachable")
