"""Polling of a remote status field until it reaches a terminal value."""

import logging
import time
from typing import Any, Callable, Iterable, Optional, Tuple

from ..context import OperationContext, background
from ..errors import ResourceNotFoundError, UnexpectedStateError, WaitTimeoutError

logger = logging.getLogger(__name__)

# A refresh function returns the refreshed object (None if it does not exist)
# and its current status string.
RefreshFunc = Callable[[], Tuple[Any, str]]

INITIAL_POLL_INTERVAL = 0.1
MAX_POLL_INTERVAL = 10.0


class StateWaiter:
    """
    Waits for a resource to move from a pending status to a target status.

    Each poll calls ``refresh``. A status in ``target`` ends the wait and the
    refreshed object is returned. A status in ``pending`` schedules another
    poll; the interval starts at 100ms, doubles up to 10s and is never shorter
    than ``min_timeout``. Any other status raises ``UnexpectedStateError``.
    """

    def __init__(
        self,
        pending: Iterable[str],
        target: Iterable[str],
        refresh: RefreshFunc,
        timeout: float,
        min_timeout: float = 0.0,
        delay: float = 0.0,
        not_found_checks: int = 20,
        ctx: Optional[OperationContext] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        """
        Initialize the state waiter.

        Args:
            pending: Statuses that mean "still working"
            target: Terminal statuses that end the wait successfully
            refresh: Function returning (object, status)
            timeout: Overall timeout in seconds
            min_timeout: Minimum interval between polls in seconds
            delay: Initial delay before the first poll in seconds
            not_found_checks: Consecutive "object missing" polls tolerated
            ctx: Operation context for cancellation and deadline
            clock: Monotonic clock, overridable in tests
            sleep: Sleep function, defaults to the context's interruptible sleep
        """
        self.pending = list(pending)
        self.target = list(target)
        self.refresh = refresh
        self.timeout = timeout
        self.min_timeout = min_timeout
        self.delay = delay
        self.not_found_checks = not_found_checks
        self.ctx = ctx or background()
        self.clock = clock
        self.sleep = sleep or self.ctx.sleep

    def wait(self) -> Any:
        """
        Poll until a target status is observed.

        Returns:
            The object returned by the refresh call that reported a target status

        Raises:
            WaitTimeoutError: If the timeout elapses while still pending
            UnexpectedStateError: If an unknown status is reported
            ResourceNotFoundError: If the object stays missing too long
        """
        deadline = self.clock() + self.ctx.remaining(self.timeout)
        interval = INITIAL_POLL_INTERVAL
        not_found = 0
        last_state: Optional[str] = None

        if self.delay > 0:
            self.sleep(self.delay)

        while True:
            self.ctx.check()

            obj, state = self.refresh()
            last_state = state

            if obj is None:
                not_found += 1
                if not_found > self.not_found_checks:
                    raise ResourceNotFoundError(
                        f"couldn't find resource ({self.not_found_checks} retries)"
                    )
            else:
                not_found = 0
                if state in self.target:
                    logger.debug(f"Reached target state '{state}'")
                    return obj
                if state not in self.pending:
                    raise UnexpectedStateError(state, self.target)

            remaining = deadline - self.clock()
            if remaining <= 0:
                raise WaitTimeoutError(last_state, self.target, self.timeout)

            wait_for = min(max(interval, self.min_timeout), remaining)
            logger.debug(f"Waiting {wait_for:.1f}s for state to become {self.target} (now '{state}')")
            self.sleep(wait_for)
            interval = min(interval * 2, MAX_POLL_INTERVAL)


def wait_for_state(
    pending: Iterable[str],
    target: Iterable[str],
    refresh: RefreshFunc,
    timeout: float,
    min_timeout: float = 0.0,
    **kwargs: Any,
) -> Any:
    """Shortcut for ``StateWaiter(...).wait()``."""
    return StateWaiter(pending, target, refresh, timeout, min_timeout=min_timeout, **kwargs).wait()
