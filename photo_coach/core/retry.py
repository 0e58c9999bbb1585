"""
Bounded exponential backoff for remote requests.

Runs a zero-argument async operation, retrying transient failures.
Fatal failures are raised immediately regardless of remaining budget.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from .errors import (
    ErrorClass,
    FatalRequestError,
    RequestError,
    TransientRequestError,
    classify_error,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 2
DEFAULT_INITIAL_DELAY_MS = 1000


@dataclass(frozen=True)
class RetryAttempt:
    """A scheduled retry, reported before the backoff delay starts."""
    attempt_number: int  # Number of the attempt about to run (2, 3, ...)
    delay_ms: int
    classification: ErrorClass


def backoff_delay_ms(retry_index: int, initial_delay_ms: int) -> int:
    """Delay before the Nth retry (1-based): initial * 2^(N-1)."""
    return initial_delay_ms * 2 ** (retry_index - 1)


def _as_request_error(error: BaseException, classification: ErrorClass, attempts: int) -> RequestError:
    error_cls = FatalRequestError if classification == ErrorClass.FATAL else TransientRequestError
    return error_cls(str(error) or type(error).__name__, attempts=attempts, cause=error)


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_delay_ms: int = DEFAULT_INITIAL_DELAY_MS,
    *,
    classify: Callable[[BaseException], ErrorClass] = classify_error,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_retry: Optional[Callable[[RetryAttempt], None]] = None
) -> T:
    """Run an operation with bounded exponential backoff.

    At most ``max_retries + 1`` attempts are made. The wait before retry
    N is ``initial_delay_ms * 2^(N-1)``.

    Args:
        operation: Zero-argument coroutine function performing one attempt
        max_retries: Retries allowed after the first attempt
        initial_delay_ms: Delay before the first retry, in milliseconds
        classify: Failure classifier
        sleep: Awaitable sleep taking seconds
        on_retry: Optional callback invoked for each scheduled retry

    Returns:
        The operation's result

    Raises:
        FatalRequestError: On the first fatal failure
        TransientRequestError: When transient failures exhaust the budget
        ValueError: If the retry parameters are negative
    """
    if max_retries < 0:
        raise ValueError("max_retries cannot be negative")
    if initial_delay_ms < 0:
        raise ValueError("initial_delay_ms cannot be negative")

    total_attempts = max_retries + 1
    for attempt in range(1, total_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            classification = classify(e)
            if classification == ErrorClass.FATAL or attempt == total_attempts:
                if isinstance(e, RequestError):
                    e.attempts = attempt
                    raise
                raise _as_request_error(e, classification, attempt) from e

            delay_ms = backoff_delay_ms(attempt, initial_delay_ms)
            logger.warning(
                "Transient API error (%s). Retrying in %sms... (%s retries left)",
                e, delay_ms, total_attempts - attempt
            )
            if on_retry is not None:
                on_retry(RetryAttempt(
                    attempt_number=attempt + 1,
                    delay_ms=delay_ms,
                    classification=classification
                ))
            await sleep(delay_ms / 1000)

    # Unreachable: the final attempt either returns or raises
    raise AssertionError("retry loop exited without a result")
