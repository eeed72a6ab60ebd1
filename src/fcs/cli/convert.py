"""CLI convert command.

Converts a single local file synchronously, using the same job pipeline as
the HTTP server.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from pydantic import ValidationError

from fcs.cli import load_cli_config
from fcs.cli.exit_codes import ExitCode
from fcs.cli.output import error_exit, report_conversion
from fcs.domain.enums import JobStatus
from fcs.jobs.exceptions import UnsupportedFormatError, UploadValidationError
from fcs.jobs.requests import ConversionRequest
from fcs.jobs.services.conversion import ConversionService

logger = logging.getLogger(__name__)


@click.command("convert")
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--to",
    "target_format",
    required=True,
    help="Target format, e.g. mp4, mp3, png.",
)
@click.option(
    "--quality",
    type=click.Choice(["low", "medium", "high"], case_sensitive=False),
    default="medium",
    show_default=True,
    help="Quality tier.",
)
@click.option("--width", type=click.IntRange(min=1), help="Output width in pixels.")
@click.option("--height", type=click.IntRange(min=1), help="Output height in pixels.")
@click.option("--bitrate", type=click.IntRange(min=1), help="Bitrate in kbit/s.")
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for the converted file (default: storage.output_dir).",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: ~/.fcs/config.toml).",
)
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output result as JSON",
)
def convert_command(
    input_file: Path,
    target_format: str,
    quality: str,
    width: int | None,
    height: int | None,
    bitrate: int | None,
    output_dir: Path | None,
    config_path: Path | None,
    json_output: bool,
) -> None:
    """Convert INPUT_FILE to another format.

    \b
    Examples:
        fcs convert clip.mov --to mp4
        fcs convert clip.mov --to mp4 --quality high --width 1280 --height 720
        fcs convert song.wav --to mp3 --bitrate 192
        fcs convert photo.png --to jpg -o converted/
    """
    config = load_cli_config(config_path, json_output)

    try:
        ConversionService.validate_target_format(target_format)
        request = ConversionRequest(
            target_format=target_format,
            quality=quality,
            width=width,
            height=height,
            bitrate=bitrate,
        )
    except UnsupportedFormatError as e:
        error_exit(str(e), ExitCode.INVALID_ARGUMENTS, json_output)
    except ValidationError as e:
        messages = "; ".join(err["msg"] for err in e.errors())
        error_exit(messages, ExitCode.INVALID_ARGUMENTS, json_output)

    service = ConversionService.from_config(config)
    try:
        if not service.is_ffmpeg_available():
            error_exit(
                f"FFmpeg not found: {config.tools.ffmpeg}",
                ExitCode.FFMPEG_NOT_FOUND,
                json_output,
            )

        try:
            job = service.convert_file(input_file, request, output_dir=output_dir)
        except UploadValidationError as e:
            error_exit(str(e), ExitCode.INVALID_ARGUMENTS, json_output)
        except OSError as e:
            error_exit(
                f"Cannot read {input_file}: {e}", ExitCode.GENERAL_ERROR, json_output
            )
        except KeyboardInterrupt:
            error_exit("Interrupted", ExitCode.INTERRUPTED, json_output)
    finally:
        service.shutdown()

    if job.status is not JobStatus.COMPLETED:
        error_exit(
            job.error_message or "Conversion failed",
            ExitCode.CONVERSION_FAILED,
            json_output,
            job=job,
        )
    report_conversion(job, json_output)
