"""Bounded exponential-backoff retries for backend requests."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .http import RemoteRequestError

logger = logging.getLogger(__name__)

T = TypeVar("T")

__all__ = ["RetryPolicy", "is_transient_error", "retry_request"]

_TRANSIENT_BUILTINS = (
    ConnectionResetError,
    ConnectionAbortedError,
    ConnectionRefusedError,
    TimeoutError,
)


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """How many attempts to make and the delay before the first retry."""

    max_attempts: int = 3
    base_delay: float = 1.0


def is_transient_error(exc: BaseException) -> bool:
    """Return ``True`` for failures worth retrying.

    Connection resets/aborts/refusals, timeouts, HTTP 429 and any 5xx
    status qualify; all other errors are permanent.
    """

    if isinstance(exc, RemoteRequestError):
        if exc.transient:
            return True
        return exc.status is not None and (exc.status == 429 or exc.status >= 500)
    return isinstance(exc, _TRANSIENT_BUILTINS)


def retry_request(
    operation: Callable[[], T],
    *,
    policy: RetryPolicy | None = None,
    sleep: Callable[[float], None] = time.sleep,
    description: str = "request",
) -> T:
    """Call ``operation`` until it succeeds or the retry budget is spent.

    Permanent errors propagate on the first failure. After a transient
    failure on attempt ``i`` (0-based) the call waits
    ``base_delay * 2**i`` seconds before trying again.
    """

    policy = policy or RetryPolicy()
    attempts = max(1, policy.max_attempts)

    def log_retry(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        logger.warning(
            "%s failed (attempt %d/%d): %s; retrying in %.1fs",
            description,
            state.attempt_number,
            attempts,
            exc,
            state.next_action.sleep if state.next_action else 0.0,
        )

    retrying = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=policy.base_delay, exp_base=2),
        retry=retry_if_exception(is_transient_error),
        sleep=sleep,
        before_sleep=log_retry,
        reraise=True,
    )
    try:
        return retrying(operation)
    except Exception as exc:
        if is_transient_error(exc):
            logger.error("%s failed after %d attempts: %s", description, attempts, exc)
        raise
