"""
Module: delivery/retry.py
Description: Retry policy for ingest delivery.

Builds the tenacity controller that drives delivery attempts. Each
attempt returns an Attempt value; the controller retries on any
non-success outcome with exponential backoff (base, 2x base, 4x base
...) until the attempt budget is spent.
"""

import asyncio
from typing import Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from ..models.delivery import Attempt
from ..utils.logger import get_logger

logger = get_logger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


def _should_retry(attempt: Attempt) -> bool:
    return attempt.retryable


def _log_backoff(retry_state: RetryCallState) -> None:
    """Log the upcoming backoff delay."""
    delay = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.info(
        "Retrying ingest delivery",
        attempt=retry_state.attempt_number,
        delay_ms=int(delay * 1000)
    )


def build_retrying(
    max_attempts: int,
    base_delay: float,
    sleep: SleepFn = asyncio.sleep,
) -> AsyncRetrying:
    """
    Build an async retry controller for delivery attempts.

    Args:
        max_attempts: Total attempts including the first one
        base_delay: Delay in seconds after the first failed attempt
        sleep: Awaitable sleep used between attempts

    Returns:
        AsyncRetrying that raises tenacity.RetryError once attempts run out
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay, exp_base=2),
        retry=retry_if_result(_should_retry),
        before_sleep=_log_backoff,
        sleep=sleep,
    )
