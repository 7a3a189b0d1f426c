"""
Module: utils/retry.py
Description: Opt-in retry policy for transient backend failures.

The queue client never retries on its own. Callers that want retries
on idempotent calls (size, peek, get_url) can wrap them with
backend_retry(). Only BackendUnavailable is retried; InvalidReceipt
and validation errors always propagate on the first attempt.
"""

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..errors import BackendUnavailable
from .logger import get_logger

logger = get_logger(__name__)


def _log_before_sleep(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Backend unavailable, retrying",
        attempt=retry_state.attempt_number,
        sleep_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
        error=str(exc)
    )


def _retry_kwargs(attempts: int, min_wait: float, max_wait: float) -> dict:
    if attempts < 1:
        raise ValueError("attempts must be at least 1")
    return dict(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=min_wait, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(BackendUnavailable),
        before_sleep=_log_before_sleep,
        reraise=True,
    )


def backend_retry(attempts: int = 3, min_wait: float = 1, max_wait: float = 10):
    """
    Build a decorator retrying a coroutine function on BackendUnavailable.

    Args:
        attempts: Total number of attempts, including the first
        min_wait: Initial backoff in seconds
        max_wait: Maximum backoff in seconds

    Example:
        >>> @backend_retry(attempts=5)
        ... async def depth():
        ...     return await queue.size()
    """
    return retry(**_retry_kwargs(attempts, min_wait, max_wait))


async def call_with_retry(fn, *args, attempts: int = 3, min_wait: float = 1, max_wait: float = 10, **kwargs):
    """Call ``await fn(*args, **kwargs)`` under the backend_retry policy."""
    async for attempt in AsyncRetrying(**_retry_kwargs(attempts, min_wait, max_wait)):
        with attempt:
            return await fn(*args, **kwargs)
