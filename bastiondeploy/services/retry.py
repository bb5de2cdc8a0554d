"""Bounded retry with exponential backoff for flaky network operations."""

import asyncio
import time
from typing import Awaitable, Callable, Optional, TypeVar

from bastiondeploy.logger import DeployLogger

T = TypeVar("T")

# Floor for the first backoff delay (seconds). Sleeps are still capped at
# duration / 4, so budgets under 4ms pause for less than this.
MIN_DELAY = 0.001


async def retry_for(
    duration: float,
    operation: Callable[[], Awaitable[T]],
    logger: Optional[DeployLogger] = None,
    *,
    description: str = "operation",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> T:
    """
    Keep calling ``operation`` until it succeeds or ``duration`` runs out.

    The first delay is ``duration / 64`` and doubles after every failed
    attempt, never exceeding ``duration / 4``. There is no minimum number of
    attempts: a budget of 0 still allows exactly one. Once the budget is
    spent, the last failure is re-raised unchanged.

    Args:
        duration: Total time budget in seconds
        operation: Zero-argument coroutine function to retry
        logger: Optional logger for progress notices
        description: Label used in progress notices
        sleep: Awaitable sleep (injectable for tests)
        clock: Monotonic clock in seconds (injectable for tests)

    Returns:
        Whatever ``operation`` returned on its first successful attempt
    """
    cap = duration / 4
    delay = max(MIN_DELAY, duration / 64)
    start = clock()
    attempt = 0

    while True:
        attempt += 1
        try:
            return await operation()
        except Exception as e:
            elapsed = clock() - start
            if elapsed > duration:
                if logger:
                    logger.warning(
                        f"{description} timed out after {attempt} attempt(s) ({elapsed:.1f}s): {e}"
                    )
                raise

            pause = min(delay, cap)
            if logger:
                logger.log(
                    f"{description} failed (attempt {attempt}), retrying in {pause:.2f}s: {e}",
                    "DEBUG",
                )
            await sleep(pause)
            delay = min(cap, delay * 2)
