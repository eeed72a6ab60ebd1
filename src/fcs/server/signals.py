"""SIGTERM/SIGINT handling for ``fcs serve``.

The first signal puts the lifecycle into shutdown and wakes the serve loop
through an asyncio.Event. Later signals are only logged; the shutdown
budget is not restarted.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fcs.server.lifecycle import ServerLifecycle

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGTERM, signal.SIGINT)


def setup_signal_handlers(
    loop: asyncio.AbstractEventLoop,
    lifecycle: ServerLifecycle,
    shutdown_event: asyncio.Event,
) -> list[signal.Signals]:
    """Route shutdown signals to ``lifecycle`` and ``shutdown_event``.

    Returns:
        The signals that got a handler. Loops without signal support (for
        example on Windows, or outside the main thread) register none.
    """

    def on_signal(sig: signal.Signals) -> None:
        if lifecycle.initiate_shutdown():
            logger.info("Received %s, initiating graceful shutdown", sig.name)
        else:
            logger.info("Received %s, shutdown already in progress", sig.name)
        shutdown_event.set()

    installed = []
    for sig in SHUTDOWN_SIGNALS:
        try:
            loop.add_signal_handler(sig, on_signal, sig)
        except (ValueError, RuntimeError, NotImplementedError) as e:
            logger.warning("Cannot handle %s on this event loop: %s", sig.name, e)
            continue
        installed.append(sig)
    logger.debug("Shutdown signals: %s", ", ".join(s.name for s in installed))
    return installed


def remove_signal_handlers(loop: asyncio.AbstractEventLoop) -> None:
    """Drop the shutdown handlers; signals without one are skipped."""
    for sig in SHUTDOWN_SIGNALS:
        try:
            loop.remove_signal_handler(sig)
        except (ValueError, RuntimeError, NotImplementedError):
            continue
