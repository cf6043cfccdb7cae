from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def compute_backoff(attempt: int, base: float = 0.5, jitter: float = 0.1) -> float:
    """Compute exponential backoff with jitter."""
    delay = base * (2 ** (attempt - 1))
    return delay + random.uniform(0, jitter)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    retries: int,
    description: str = "operation",
    base: float = 0.5,
    jitter: float = 0.1,
) -> T:
    """Await ``operation`` and retry it up to ``retries`` more times.

    The last exception is re-raised once all attempts are used up.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as exc:
            attempt += 1
            if attempt > retries:
                raise
            delay = compute_backoff(attempt, base=base, jitter=jitter)
            logger.warning(
                f"{description} failed (attempt {attempt}/{retries + 1}): {exc}; "
                f"retrying in {delay:.2f}s"
            )
            await asyncio.sleep(delay)
