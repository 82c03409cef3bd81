"""Retry policy value and generic async retry wrapper.

Retry behavior:
    `call_with_retry` runs an operation up to `policy.max_attempts` times. Only
    failures accepted by `policy.is_retryable` are retried; anything else is
    re-raised immediately. The last failure is re-raised once attempts run out.

Backoff:
    Fixed delay per retry (`backoff_seconds`) plus uniform jitter in
    `[0, jitter_seconds]`.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_retryable_error(exc: BaseException) -> bool:
    """Default predicate: honour a boolean `retryable` attribute on the error."""
    return bool(getattr(exc, "retryable", False))


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently to retry one outbound call."""

    max_attempts: int = 2
    backoff_seconds: float = 1.0
    jitter_seconds: float = 0.2
    is_retryable: Callable[[BaseException], bool] = is_retryable_error

    def delay(self, attempt: int) -> float:
        """Delay before retry number `attempt` (1-based)."""
        jitter = random.uniform(0, self.jitter_seconds) if self.jitter_seconds > 0 else 0.0
        return max(0.0, self.backoff_seconds) + jitter


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await `operation()` under `policy`.

    Args:
        operation: Zero-argument coroutine factory; called once per attempt.
        policy: Attempt limit, backoff and retryable-failure predicate.
        sleep: Awaitable delay function, replaceable in tests.

    Returns:
        The first successful result.

    Raises:
        The failure of the final attempt, or the first non-retryable failure.
    """
    attempts = max(1, policy.max_attempts)

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as exc:
            if attempt >= attempts or not policy.is_retryable(exc):
                raise
            delay = policy.delay(attempt)
            logger.warning(
                "Retryable failure on attempt %d/%d (%s); retrying in %.2fs",
                attempt,
                attempts,
                exc,
                delay,
            )
            await sleep(delay)

    raise RuntimeError("call_with_retry exhausted without result")
