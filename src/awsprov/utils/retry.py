"""Bounded retry of remote calls that fail with specific, known-transient errors."""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple, TypeVar

from botocore.exceptions import ClientError

from ..context import OperationContext, background
from ..errors import RetryTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (error code, message substring) pairs
ErrorMatcher = Tuple[str, str]


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    timeout: float = 120.0
    initial_delay: float = 0.5
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0
    final_attempt_on_timeout: bool = True


def aws_error_code(error: BaseException) -> Optional[str]:
    """Return the AWS error code of a botocore ClientError, or None."""
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code")
    return None


def aws_error_message(error: BaseException) -> str:
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Message", "") or ""
    return ""


def aws_error_code_equals(error: Optional[BaseException], code: str) -> bool:
    """Check whether ``error`` is a ClientError with the given code."""
    return error is not None and aws_error_code(error) == code


def aws_error_message_contains(error: Optional[BaseException], code: str, substring: str) -> bool:
    """Check whether ``error`` has the given code and its message contains ``substring``."""
    if not aws_error_code_equals(error, code):
        return False
    return substring in aws_error_message(error) or substring in str(error)


def matches_any(matchers: Sequence[ErrorMatcher]) -> Callable[[BaseException], bool]:
    """Build a retryable-error predicate from (code, substring) pairs."""

    def predicate(error: BaseException) -> bool:
        return any(aws_error_message_contains(error, code, text) for code, text in matchers)

    return predicate


def retry_on_error(
    operation: Callable[[], T],
    is_retryable: Callable[[BaseException], bool],
    config: Optional[RetryConfig] = None,
    ctx: Optional[OperationContext] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Optional[Callable[[float], None]] = None,
    description: str = "operation",
) -> T:
    """
    Run ``operation`` until it succeeds or fails with a non-retryable error.

    Errors accepted by ``is_retryable`` are retried with exponential backoff
    until ``config.timeout`` elapses. Once the window has elapsed one final
    attempt is made and its result is returned or its error raised, so a
    slow-to-propagate dependency still gets a last chance.

    Args:
        operation: Zero-argument callable performing the remote call
        is_retryable: Predicate deciding whether an error is transient
        config: Retry configuration
        ctx: Operation context for cancellation and deadline
        clock: Monotonic clock, overridable in tests
        sleep: Sleep function, defaults to the context's interruptible sleep
        description: Name of the operation for log messages

    Returns:
        Result of the first successful attempt

    Raises:
        RetryTimeoutError: If the window elapsed and the final attempt is disabled
        Exception: The first non-retryable error, or the final attempt's error
    """
    config = config or RetryConfig()
    ctx = ctx or background()
    sleep = sleep or ctx.sleep

    deadline = clock() + ctx.remaining(config.timeout)
    delay = config.initial_delay
    attempt = 0
    last_error: Optional[BaseException] = None

    while True:
        ctx.check()
        attempt += 1
        try:
            return operation()
        except Exception as e:
            if not is_retryable(e):
                raise
            last_error = e

        remaining = deadline - clock()
        if remaining <= 0:
            break

        logger.debug(
            f"Retrying {description} after retryable error (attempt {attempt}): {last_error}"
        )
        sleep(min(delay, remaining))
        delay = min(delay * config.backoff_multiplier, config.max_delay)

    if not config.final_attempt_on_timeout:
        raise RetryTimeoutError(config.timeout, last_error)

    logger.debug(f"Retry window for {description} elapsed after {attempt} attempts, trying once more")
    ctx.check()
    return operation()
