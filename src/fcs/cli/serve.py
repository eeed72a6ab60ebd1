"""CLI serve command for server mode.

This module provides the `fcs serve` command that runs the conversion
service as a long-lived HTTP server suitable for systemd management.
"""

from __future__ import annotations

import asyncio
import errno
import logging
import os
import sys
from pathlib import Path

import click

from fcs.cli import load_cli_config, setup_logging
from fcs.cli.exit_codes import ExitCode
from fcs.config.models import FcsConfig

logger = logging.getLogger(__name__)

LOOPBACK_ADDRESSES = frozenset({"127.0.0.1", "localhost", "::1"})


async def run_server(config: FcsConfig, bind: str, port: int) -> int:
    """Run the conversion server until a shutdown signal arrives.

    Args:
        config: Effective configuration.
        bind: Address to bind to.
        port: Port to bind to.

    Returns:
        Exit code (0 for clean shutdown, non-zero for errors).
    """
    from aiohttp import web

    from fcs.jobs.services.conversion import ConversionService
    from fcs.server.app import create_app
    from fcs.server.lifecycle import ServerLifecycle
    from fcs.server.signals import remove_signal_handlers, setup_signal_handlers

    lifecycle = ServerLifecycle(shutdown_timeout=config.server.shutdown_timeout)
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    setup_signal_handlers(loop, lifecycle, shutdown_event)

    service = ConversionService.from_config(config)
    app = create_app(service, lifecycle=lifecycle)

    runner = web.AppRunner(app)
    await runner.setup()

    try:
        site = web.TCPSite(runner, bind, port)
        await site.start()

        logger.info(
            "Conversion server started on http://%s:%d (PID %d)",
            bind,
            port,
            os.getpid(),
        )
        logger.info("Health endpoint: http://%s:%d/health", bind, port)
        logger.info("Press Ctrl+C or send SIGTERM to stop")

        await shutdown_event.wait()

        logger.info(
            "Shutdown initiated, waiting up to %.1fs for running conversions",
            config.server.shutdown_timeout,
        )
        # Brief pause for in-flight requests
        await asyncio.sleep(0.5)

    except OSError as e:
        if e.errno == errno.EADDRINUSE:
            logger.error("Port %d is already in use", port)
            return ExitCode.GENERAL_ERROR
        if e.errno == errno.EADDRNOTAVAIL:
            logger.error("Cannot bind to address %s", bind)
            return ExitCode.GENERAL_ERROR
        logger.error("Server error: %s", e)
        return ExitCode.GENERAL_ERROR
    finally:
        remove_signal_handlers(loop)
        await runner.cleanup()
        logger.info("Conversion server stopped")

    return ExitCode.SUCCESS


@click.command("serve")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: ~/.fcs/config.toml).",
)
@click.option(
    "--bind",
    type=str,
    default=None,
    help="Address to bind to (default: 127.0.0.1).",
)
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to bind to (default: 8080).",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level for server mode (default: info).",
)
@click.option(
    "--log-format",
    type=click.Choice(["text", "json"], case_sensitive=False),
    default=None,
    help="Log format: text or json (default: text).",
)
def serve_command(
    config_path: Path | None,
    bind: str | None,
    port: int | None,
    log_level: str | None,
    log_format: str | None,
) -> None:
    """Run the conversion HTTP server.

    Serves the conversion API under /api and a health endpoint at /health.
    Handles graceful shutdown on SIGTERM (from systemd) or SIGINT (Ctrl+C):
    queued conversions are cancelled and running ones are given
    server.shutdown_timeout seconds to finish.

    Configuration precedence (highest to lowest):
      1. CLI flags (--bind, --port, --log-level, etc.)
      2. Environment variables (FCS_*)
      3. Config file (--config or ~/.fcs/config.toml)
      4. Default values

    \b
    Examples:
        fcs serve                           # Start with defaults
        fcs serve --port 9000               # Custom port
        fcs serve --bind 0.0.0.0            # Listen on all interfaces
        fcs serve --log-format json         # JSON logging for systemd
    """
    # Validate port range
    if port is not None and not 1 <= port <= 65535:
        logger.error("Port must be 1-65535, got %d", port)
        click.echo(f"Error: Port must be 1-65535, got {port}", err=True)
        sys.exit(ExitCode.INVALID_ARGUMENTS)

    config = load_cli_config(config_path, server_bind=bind, server_port=port)
    try:
        # stderr stays on so journald sees the log
        setup_logging(
            config.logging,
            level=log_level,
            log_format=log_format,
            include_stderr=True,
        )
    except ValueError as e:
        click.echo(f"Error: Invalid logging configuration: {e}", err=True)
        sys.exit(ExitCode.CONFIG_ERROR)

    server_bind = config.server.bind
    server_port = config.server.port

    if server_bind not in LOOPBACK_ADDRESSES:
        logger.warning(
            "Binding to %s exposes the conversion API to the network; "
            "uploads are not authenticated",
            server_bind,
        )

    # Warn about privileged ports
    if server_port < 1024:
        logger.warning("Port %d is privileged and may require root", server_port)

    logger.info(
        "Starting conversion server (bind=%s, port=%d, workers=%d)",
        server_bind,
        server_port,
        config.jobs.max_workers,
    )

    try:
        exit_code = asyncio.run(run_server(config, server_bind, server_port))
        sys.exit(exit_code)
    except KeyboardInterrupt:
        # User pressed Ctrl+C before server started
        logger.info("Interrupted before server started")
        sys.exit(ExitCode.INTERRUPTED)
