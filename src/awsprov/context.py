"""Caller-supplied deadline and cancellation for handler operations."""

import threading
import time
from typing import Callable, Optional

from .errors import OperationCancelledError


class OperationContext:
    """
    Deadline and cancellation signal shared by one handler invocation.

    Retry and poll loops call ``check()`` between attempts and sleep through
    ``sleep()`` so that a cancelled caller aborts the in-flight loop.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the operation context.

        Args:
            timeout: Overall deadline in seconds from now (None for no deadline)
            cancel_event: Event set by the caller to cancel the operation
            clock: Monotonic clock, overridable in tests
        """
        self._clock = clock
        self.deadline = clock() + timeout if timeout is not None else None
        self.cancel_event = cancel_event or threading.Event()

    def cancel(self) -> None:
        """Signal cancellation to every loop using this context."""
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def expired(self) -> bool:
        return self.deadline is not None and self._clock() >= self.deadline

    def check(self) -> None:
        """Raise if the operation was cancelled or its deadline has passed."""
        if self.cancelled:
            raise OperationCancelledError("operation cancelled")
        if self.expired():
            raise OperationCancelledError("operation deadline exceeded")

    def remaining(self, timeout: float) -> float:
        """Clamp ``timeout`` to the time left before the deadline."""
        if self.deadline is None:
            return timeout
        return max(0.0, min(timeout, self.deadline - self._clock()))

    def sleep(self, seconds: float) -> None:
        """Sleep for ``seconds`` or until cancelled, whichever comes first."""
        if seconds > 0 and self.cancel_event.wait(self.remaining(seconds)):
            raise OperationCancelledError("operation cancelled")
        self.check()


def background() -> OperationContext:
    """Return a context with no deadline that is never cancelled."""
    return OperationContext()
