"""Background retention purge task for the server.

Finished conversion jobs are kept for ``jobs.retention_hours``. This task
periodically removes older jobs together with the files they own in the
upload and output directories.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fcs.jobs.services.conversion import ConversionService

logger = logging.getLogger(__name__)

# Number of consecutive failures before marking unhealthy
_UNHEALTHY_THRESHOLD = 3


class PurgeTask:
    """Background task that periodically purges expired jobs.

    Usage:
        task = PurgeTask(service, interval_seconds=300)
        asyncio.create_task(task.run())
        # ... later ...
        task.stop()
    """

    def __init__(
        self,
        service: ConversionService,
        *,
        interval_seconds: float,
        startup_delay_seconds: float | None = None,
    ) -> None:
        """Initialize the purge task.

        Args:
            service: Conversion service whose expired jobs are purged.
            interval_seconds: Seconds between purge runs.
            startup_delay_seconds: Seconds to wait before the first run
                (default: one interval).
        """
        self.service = service
        self.interval_seconds = interval_seconds
        self.startup_delay_seconds = (
            interval_seconds if startup_delay_seconds is None else startup_delay_seconds
        )
        self._stop_event = asyncio.Event()
        self._last_run: datetime | None = None
        self._last_purged = 0
        self._running = False
        self._state_lock = asyncio.Lock()
        self._consecutive_failures: int = 0
        self._is_healthy: bool = True

    async def run(self) -> None:
        """Run the purge loop until stop() is called."""
        async with self._state_lock:
            if self._running:
                logger.warning("Purge task already running")
                return
            self._running = True

        logger.info(
            "Purge task started (first run in %g seconds, interval %g seconds)",
            self.startup_delay_seconds,
            self.interval_seconds,
        )

        try:
            if await self._wait_or_stop(self.startup_delay_seconds):
                return

            while not self._stop_event.is_set():
                await self.run_once()
                if await self._wait_or_stop(self.interval_seconds):
                    break
        except asyncio.CancelledError:
            pass
        finally:
            async with self._state_lock:
                self._running = False
            logger.info("Purge task stopped")

    def stop(self) -> None:
        """Signal the purge task to stop."""
        self._stop_event.set()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def last_run(self) -> datetime | None:
        """Timestamp of the last successful purge run."""
        return self._last_run

    @property
    def last_purged(self) -> int:
        """Number of jobs removed by the last successful run."""
        return self._last_purged

    @property
    def is_healthy(self) -> bool:
        return self._is_healthy

    async def _wait_or_stop(self, timeout: float) -> bool:
        """Wait up to ``timeout`` seconds; return True if stop() was called."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    async def run_once(self) -> int:
        """Execute a single purge run.

        Returns:
            Number of jobs purged (0 on failure).
        """
        start_time = datetime.now(timezone.utc)
        try:
            purged = await asyncio.to_thread(self.service.purge_expired)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._consecutive_failures += 1
            if (
                self._consecutive_failures >= _UNHEALTHY_THRESHOLD
                and self._is_healthy
            ):
                self._is_healthy = False
                logger.error(
                    "Purge task marked unhealthy after %d consecutive failures",
                    self._consecutive_failures,
                )
            logger.exception("Purge run failed: %s", e)
            return 0

        async with self._state_lock:
            self._last_run = start_time
            self._last_purged = purged

        self._consecutive_failures = 0
        if not self._is_healthy:
            self._is_healthy = True
            logger.info("Purge task recovered, marking healthy")

        if purged:
            logger.info("Purged %d expired conversion job(s)", purged)
        else:
            logger.debug("Purge run found no expired jobs")
        return purged
