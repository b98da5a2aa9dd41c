"""Retry strategy for idempotent platform reads.

Exponential backoff with jitter for transient failures (timeouts, connection
errors, 5xx). Writes (draft, consent, answers, submit) are never retried here;
the applicant retries them by clicking Continue again.

WHY JITTER:
- Prevents synchronized retries from many open wizards after an outage
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from app.core.errors import NetworkError

__all__ = ["RetryPolicy", "with_retries"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry settings for platform reads.

    Attributes:
        max_retries: Retries after the first attempt (0 disables retrying).
        base_delay_ms: Delay before the first retry; doubles per attempt.
        max_delay_ms: Cap on a single delay.
    """

    max_retries: int = 2
    base_delay_ms: int = 200
    max_delay_ms: int = 2000


def _is_retryable(error: NetworkError) -> bool:
    return error.transient


async def with_retries(
    func: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
) -> T:
    """Execute function with exponential backoff retry.

    Args:
        func: Async function to execute (no arguments).
        policy: Retry settings.

    Returns:
        Result from successful function execution.

    Raises:
        NetworkError: Immediately for non-transient failures, or the last
            transient failure once retries are exhausted.
    """
    for attempt in range(policy.max_retries + 1):
        try:
            return await func()
        except NetworkError as e:
            if not _is_retryable(e) or attempt == policy.max_retries:
                raise

            base_delay = policy.base_delay_ms * (2**attempt)
            jitter = random.uniform(0, base_delay * 0.1)
            delay = min(base_delay + jitter, policy.max_delay_ms) / 1000

            logger.warning(
                "Platform read failed (attempt %d/%d): %s. Retrying in %.2fs",
                attempt + 1,
                policy.max_retries + 1,
                e,
                delay,
            )
            await asyncio.sleep(delay)

    raise RuntimeError("Retry loop exited without error or result")
