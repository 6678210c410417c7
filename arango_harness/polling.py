"""Retry-until-condition polling.

A probe is called immediately and then once per interval until it raises
:class:`Interrupt` (success), raises anything else (propagated at once), or
the deadline passes (:class:`PollTimeoutError`).

Usage:
    def probe() -> None:
        if client.server_availability():
            raise Interrupt()

    Timeout(probe).run(timeout=60.0, interval=2.0)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

# Lower bound for the sleep between probes; a zero interval still yields.
MIN_INTERVAL = 0.001


class Interrupt(Exception):
    """Raised by a probe to stop polling successfully."""

    def __str__(self) -> str:
        return "interrupt"


class PollTimeoutError(TimeoutError):
    """The deadline passed before the probe interrupted."""

    def __init__(self, timeout: float, attempts: int) -> None:
        super().__init__(f"Timed out after {timeout:.3f}s ({attempts} attempts)")
        self.timeout = timeout
        self.attempts = attempts


class Timeout:
    """Polling combinator around a no-argument probe."""

    def __init__(
        self,
        probe: Callable[[], object],
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._probe = probe
        self._clock = clock
        self._sleep = sleep

    def run(self, timeout: float, interval: float) -> int:
        """Poll until interrupted.

        Args:
            timeout: Seconds before giving up
            interval: Seconds between probe invocations

        Returns:
            Number of probe invocations, including the interrupting one

        Raises:
            PollTimeoutError: If the deadline passes first
            Exception: Whatever the probe raises other than Interrupt
        """
        interval = max(interval, MIN_INTERVAL)
        deadline = self._clock() + timeout
        attempts = 0

        while True:
            attempts += 1
            try:
                self._probe()
            except Interrupt:
                logger.debug("Polling interrupted after %d attempts", attempts)
                return attempts

            remaining = deadline - self._clock()
            if remaining <= 0:
                raise PollTimeoutError(timeout, attempts)
            if interval >= remaining:
                # Next tick would land after the deadline.
                self._sleep(remaining)
                raise PollTimeoutError(timeout, attempts)
            self._sleep(interval)


def poll(probe: Callable[[], object], timeout: float, interval: float) -> int:
    """Shorthand for ``Timeout(probe).run(timeout, interval)``."""
    return Timeout(probe).run(timeout, interval)


__all__ = ["MIN_INTERVAL", "Interrupt", "PollTimeoutError", "Timeout", "poll"]
