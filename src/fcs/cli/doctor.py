"""fcs doctor command for checking transcoder health.

Reports ffmpeg availability, hardware acceleration status, the supported
formats and the effective storage directories.
"""

from __future__ import annotations

import json
import sys
from typing import Any

import click

from fcs.cli import load_cli_config
from fcs.cli.exit_codes import ExitCode
from fcs.config.models import FcsConfig
from fcs.core.formatting import format_file_size
from fcs.formats import supported_formats
from fcs.tools import AccelerationDetector, ffmpeg_version


def _format_status(available: bool) -> str:
    """Format status for display."""
    return "✓" if available else "✗"


def _format_version(version: str | None) -> str:
    """Format version for display."""
    return version if version else "not found"


def collect_report(config: FcsConfig) -> dict[str, Any]:
    """Gather the doctor report for a configuration."""
    version = ffmpeg_version(config.tools.ffmpeg)
    detector = AccelerationDetector(
        config.tools.ffmpeg,
        enabled=config.hardware.enabled,
        auto_detect=config.hardware.auto_detect,
        preferred=config.hardware.preferred,
    )
    if version is not None:
        choice = detector.detect()
        gpu = detector.status_message()
        encoder = choice.encoder.value if choice.encoder else None
    else:
        gpu = "GPU acceleration not available"
        encoder = None

    storage = config.storage
    return {
        "ffmpeg": {
            "path": config.tools.ffmpeg,
            "available": version is not None,
            "version": version,
        },
        "gpu": gpu,
        "encoder": encoder,
        "formats": supported_formats(),
        "directories": {
            "upload": str(storage.upload_dir),
            "output": str(storage.output_dir),
        },
        "max_file_size": storage.max_file_size_bytes,
    }


def _print_report(report: dict[str, Any]) -> None:
    ffmpeg = report["ffmpeg"]
    click.echo("Transcoder")
    click.echo(
        f"  {_format_status(ffmpeg['available'])} ffmpeg ({ffmpeg['path']}): "
        f"{_format_version(ffmpeg['version'])}"
    )
    click.echo("")
    click.echo("Hardware acceleration")
    click.echo(f"  {report['gpu']}")
    click.echo("")
    click.echo("Supported formats")
    for category, formats in report["formats"].items():
        click.echo(f"  {category}: {', '.join(formats)}")
    click.echo("")
    click.echo("Storage")
    click.echo(f"  upload dir: {report['directories']['upload']}")
    click.echo(f"  output dir: {report['directories']['output']}")
    click.echo(f"  max file size: {format_file_size(report['max_file_size'])}")


@click.command("doctor")
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output results as JSON",
)
def doctor_command(json_output: bool) -> None:
    """Check ffmpeg availability and hardware acceleration.

    Exit codes:
      0 - ffmpeg available
      4 - ffmpeg not found
    """
    config = load_cli_config(json_output=json_output)
    report = collect_report(config)

    if json_output:
        click.echo(json.dumps(report, indent=2))
    else:
        _print_report(report)

    if not report["ffmpeg"]["available"]:
        if not json_output:
            click.echo("")
            click.echo(
                "Install ffmpeg or set tools.ffmpeg / FCS_FFMPEG_PATH.", err=True
            )
        sys.exit(ExitCode.FFMPEG_NOT_FOUND)
