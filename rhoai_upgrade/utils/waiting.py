"""Deadline-bounded polling.

Every wait in the tools (deployment rollouts, pods becoming Ready) goes
through :func:`wait_for` so the timeout and poll interval live in one place.

Usage:
    wait_for(
        lambda: client.is_pod_ready(pod_name, namespace),
        timeout=300,
        interval=5,
        description=f"pod {pod_name} to become Ready",
    )
"""

import threading
import time
from collections.abc import Callable
from typing import TypeVar

from rhoai_upgrade.exceptions import WaitCancelledError, WaitTimeoutError

T = TypeVar("T")


class Deadline:
    """Point in time after which a wait gives up."""

    def __init__(self, timeout: float, clock: Callable[[], float] = time.monotonic):
        """Start the deadline clock.

        Args:
            timeout: Seconds from now until the deadline expires
            clock: Monotonic clock, injectable for tests
        """
        if timeout < 0:
            raise ValueError("timeout must not be negative")
        self.timeout = timeout
        self._clock = clock
        self._expires_at = clock() + timeout

    def remaining(self) -> float:
        """Seconds left before expiry, never negative."""
        return max(0.0, self._expires_at - self._clock())

    def expired(self) -> bool:
        """Whether the deadline has passed."""
        return self._clock() >= self._expires_at


def wait_for(
    condition: Callable[[], T],
    timeout: float,
    interval: float = 2.0,
    description: str = "condition",
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
    stop_event: threading.Event | None = None,
) -> T:
    """Poll ``condition`` until it returns a truthy value.

    The condition is always evaluated at least once, so a zero timeout
    degrades to a single check.

    Args:
        condition: Callable returning a truthy value when the wait is over
        timeout: Maximum seconds to wait
        interval: Seconds between polls
        description: Human-readable subject used in the timeout message
        sleep: Sleep function, injectable for tests
        clock: Monotonic clock, injectable for tests
        stop_event: Optional event; setting it cancels the wait

    Returns:
        The first truthy value returned by ``condition``

    Raises:
        WaitTimeoutError: If the deadline passes first
        WaitCancelledError: If ``stop_event`` is set during the wait
    """
    if interval <= 0:
        raise ValueError("interval must be positive")

    deadline = Deadline(timeout, clock=clock)

    while True:
        if stop_event is not None and stop_event.is_set():
            raise WaitCancelledError(f"Wait for {description} was cancelled")

        result = condition()
        if result:
            return result

        if deadline.expired():
            raise WaitTimeoutError(description, timeout)

        delay = min(interval, deadline.remaining())
        if stop_event is not None:
            if stop_event.wait(delay):
                raise WaitCancelledError(f"Wait for {description} was cancelled")
        else:
            sleep(delay)
