"""
Startup retry policy.

Only initialization retries. Request-path database calls fail fast and
the retention sweeper waits for its next cycle instead.

Usage:
    async for attempt in startup_retrying(attempts=30, wait_seconds=2):
        with attempt:
            await check_database(engine)
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from notesphere.backend.core.logging import get_logger

logger = get_logger(__name__)


def log_retry(retry_state: RetryCallState) -> None:
    """before_sleep hook: one warning per failed attempt."""
    outcome = retry_state.outcome
    error = str(outcome.exception()) if outcome is not None and outcome.failed else None
    next_action = retry_state.next_action

    logger.warning(
        "Dependency unavailable, retrying",
        extra={
            "resilience_event": "retry_attempt",
            "attempt": retry_state.attempt_number,
            "wait_seconds": next_action.sleep if next_action is not None else None,
            "error": error,
        },
    )


def startup_retrying(
    attempts: int,
    wait_seconds: float,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], Awaitable[Any]] | None = None,
) -> AsyncRetrying:
    """
    Fixed-interval retry that re-raises the last error once `attempts` run out.

    `sleep` replaces asyncio.sleep, for tests.
    """
    return AsyncRetrying(
        sleep=sleep or asyncio.sleep,
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(wait_seconds),
        retry=retry_if_exception_type(retry_on),
        before_sleep=log_retry,
        reraise=True,
    )
