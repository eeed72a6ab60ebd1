"""Uptime and shutdown state of a running conversion server.

The serve command creates one ServerLifecycle. Signal handlers flip it into
shutdown, the API guard then refuses new uploads, and the cleanup hook asks
it how much of the shutdown budget is left for running conversions.
"""

from __future__ import annotations

import time
from collections.abc import Callable

Clock = Callable[[], float]


class ServerLifecycle:
    """Tracks when the server started and when shutdown began.

    Times come from a monotonic clock, injectable for tests.

    Example:
        lifecycle = ServerLifecycle(shutdown_timeout=30.0)
        lifecycle.initiate_shutdown()
        await asyncio.wait_for(drain(), timeout=lifecycle.drain_budget())
    """

    def __init__(
        self, shutdown_timeout: float = 30.0, *, clock: Clock = time.monotonic
    ) -> None:
        """Initialize the lifecycle.

        Args:
            shutdown_timeout: Seconds running conversions get once shutdown
                starts.
            clock: Monotonic time source in seconds.
        """
        self.shutdown_timeout = shutdown_timeout
        self._clock = clock
        self._started_at = clock()
        self._shutdown_at: float | None = None

    @property
    def uptime_seconds(self) -> float:
        return self._clock() - self._started_at

    @property
    def is_shutting_down(self) -> bool:
        return self._shutdown_at is not None

    def initiate_shutdown(self) -> bool:
        """Enter shutdown.

        Returns:
            True on the first call, False if shutdown was already underway.
        """
        if self._shutdown_at is not None:
            return False
        self._shutdown_at = self._clock()
        return True

    def drain_budget(self) -> float:
        """Seconds left for running conversions to finish.

        The full timeout before shutdown starts; afterwards the timeout minus
        the time already spent shutting down, never below zero.
        """
        if self._shutdown_at is None:
            return self.shutdown_timeout
        elapsed = self._clock() - self._shutdown_at
        return max(0.0, self.shutdown_timeout - elapsed)
