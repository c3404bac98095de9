"""
Retry helpers for calls to external services.

Only transient failures are retried. Database writes are never wrapped,
so a retry cannot re-apply a counter increment.
"""

from typing import Any, Callable, TypeVar

import tenacity

from flowsync.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def call_with_retry(
    fn: Callable[..., T],
    *args: Any,
    operation: str,
    is_transient: Callable[[BaseException], bool],
    max_attempts: int = 3,
    backoff_seconds: float = 1.0,
    **kwargs: Any,
) -> T:
    """
    Call fn(*args, **kwargs), retrying transient failures with exponential backoff.

    Args:
        fn: Callable to invoke
        operation: Name used in log lines
        is_transient: Predicate deciding whether an exception is worth retrying
        max_attempts: Total attempts including the first call
        backoff_seconds: Base delay; doubles after each failed attempt

    Returns:
        Whatever fn returns. The last exception is re-raised once attempts
        are exhausted or the failure is not transient.
    """

    def before_sleep(retry_state: tenacity.RetryCallState) -> None:
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Transient failure, retrying",
            operation=operation,
            attempt=retry_state.attempt_number,
            max_attempts=max_attempts,
            error=str(exception),
            sleep_seconds=retry_state.next_action.sleep if retry_state.next_action else 0,
        )

    retrying = tenacity.Retrying(
        stop=tenacity.stop_after_attempt(max_attempts),
        wait=tenacity.wait_exponential(multiplier=backoff_seconds, min=backoff_seconds)
        if backoff_seconds > 0
        else tenacity.wait_none(),
        retry=tenacity.retry_if_exception(is_transient),
        before_sleep=before_sleep,
        reraise=True,
    )
    return retrying(fn, *args, **kwargs)
