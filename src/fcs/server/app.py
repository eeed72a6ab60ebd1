"""HTTP application for server mode.

This module provides the aiohttp Application with the conversion API,
health check endpoints and the background retention purge task.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass

from aiohttp import web

from fcs import __version__
from fcs.domain.enums import JobStatus
from fcs.jobs.services.conversion import ConversionService
from fcs.server.api import setup_conversion_routes
from fcs.server.lifecycle import ServerLifecycle
from fcs.server.maintenance import PurgeTask

logger = logging.getLogger(__name__)

HEALTH_CHECK_TIMEOUT = 5.0  # seconds

GPU_STATUS_PENDING = "GPU acceleration detection in progress"


@dataclass
class HealthStatus:
    """Health check response payload."""

    status: str
    """Overall status: 'healthy' or 'unhealthy'."""

    ffmpeg: str
    """Transcoder availability: 'AVAILABLE' or 'NOT_AVAILABLE'."""

    gpu: str
    """Hardware acceleration status message."""

    version: str
    """Service version string."""

    uptime_seconds: float = 0.0
    """Seconds since server startup."""

    shutting_down: bool = False
    """True if graceful shutdown is in progress."""

    ffmpeg_version: str | None = None
    """First line of ``ffmpeg -version``, None if unavailable."""

    jobs_pending: int = 0
    """Number of jobs waiting for a worker."""

    jobs_processing: int = 0
    """Number of jobs currently being converted."""

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


async def _probe_with_timeout(func, default):
    """Run a blocking probe in a thread, returning ``default`` on timeout."""
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(func), timeout=HEALTH_CHECK_TIMEOUT
        )
    except asyncio.TimeoutError:
        logger.warning(
            "Health probe %s timed out after %.1fs",
            getattr(func, "__name__", func),
            HEALTH_CHECK_TIMEOUT,
        )
        return default


async def health_handler(request: web.Request) -> web.Response:
    """Handle GET /health and GET /api/health requests.

    Returns JSON health status with appropriate HTTP status code:
    - 200: healthy (ffmpeg available, not shutting down)
    - 503: unhealthy (ffmpeg missing or shutting down)
    """
    service: ConversionService = request.app["service"]
    lifecycle: ServerLifecycle | None = request.app.get("lifecycle")

    ffmpeg_version = await _probe_with_timeout(service.ffmpeg_version, None)
    gpu = await _probe_with_timeout(service.gpu_status, GPU_STATUS_PENDING)

    shutting_down = lifecycle.is_shutting_down if lifecycle else False
    uptime = lifecycle.uptime_seconds if lifecycle else 0.0
    counts = service.store.count_by_status()

    healthy = ffmpeg_version is not None and not shutting_down
    health = HealthStatus(
        status="healthy" if healthy else "unhealthy",
        ffmpeg="AVAILABLE" if ffmpeg_version is not None else "NOT_AVAILABLE",
        gpu=gpu,
        version=__version__,
        uptime_seconds=round(uptime, 1),
        shutting_down=shutting_down,
        ffmpeg_version=ffmpeg_version,
        jobs_pending=counts[JobStatus.PENDING],
        jobs_processing=counts[JobStatus.PROCESSING],
    )
    return web.json_response(health.to_dict(), status=200 if healthy else 503)


async def _start_purge_task(app: web.Application) -> None:
    """Start the background retention purge task."""
    service: ConversionService = app["service"]
    jobs = service.config.jobs
    if jobs.retention_hours <= 0:
        logger.info("Job retention purge disabled")
        return

    task = PurgeTask(service, interval_seconds=jobs.purge_interval_seconds)
    app["purge_task"] = task
    app["purge_task_handle"] = asyncio.create_task(task.run())
    logger.debug("Started background purge task")


async def _stop_purge_task(app: web.Application) -> None:
    """Stop the background retention purge task."""
    task: PurgeTask | None = app.get("purge_task")
    task_handle: asyncio.Task | None = app.get("purge_task_handle")

    if task:
        task.stop()

    if task_handle and not task_handle.done():
        try:
            await asyncio.wait_for(task_handle, timeout=5.0)
        except asyncio.TimeoutError:
            logger.warning("Purge task did not stop in time, cancelling")
            task_handle.cancel()
            try:
                await task_handle
            except asyncio.CancelledError:
                pass

    logger.debug("Stopped background purge task")


async def _shutdown_service(app: web.Application) -> None:
    """Cancel queued conversions and wait for running ones."""
    service: ConversionService = app["service"]
    lifecycle: ServerLifecycle | None = app.get("lifecycle")
    timeout = lifecycle.drain_budget() if lifecycle else None

    try:
        await asyncio.wait_for(
            asyncio.to_thread(service.shutdown, wait=True), timeout=timeout
        )
    except asyncio.TimeoutError:
        logger.warning(
            "Running conversions did not finish within %.1fs",
            timeout,
        )


def create_app(
    service: ConversionService,
    *,
    lifecycle: ServerLifecycle | None = None,
) -> web.Application:
    """Create and configure the aiohttp Application.

    Args:
        service: Conversion service backing the API.
        lifecycle: Lifecycle used for uptime and shutdown state. The serve
            command provides one; tests may omit it.

    Returns:
        Configured aiohttp Application instance.
    """
    app = web.Application()

    # Store runtime state in app dict
    app["service"] = service
    app["lifecycle"] = lifecycle
    app["purge_task"] = None
    app["purge_task_handle"] = None

    app.router.add_get("/health", health_handler)
    app.router.add_get("/api/health", health_handler)
    setup_conversion_routes(app)

    app.on_startup.append(_start_purge_task)
    app.on_cleanup.append(_stop_purge_task)
    app.on_cleanup.append(_shutdown_service)

    return app
