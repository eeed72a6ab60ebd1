"""CLI module for the file conversion service."""

import dataclasses
from pathlib import Path

import click

from fcs.cli.exit_codes import ExitCode
from fcs.cli.output import error_exit
from fcs.config import FcsConfig, LoggingConfig, TomlParseError, get_config
from fcs.logging import configure_logging

_logging_configured: bool = False


def setup_logging(
    settings: LoggingConfig,
    *,
    level: str | None = None,
    log_file: Path | None = None,
    log_format: str | None = None,
    include_stderr: bool | None = None,
) -> LoggingConfig:
    """Configure logging from config-file settings and command-line flags.

    Flags left as None keep the configured value.

    Returns:
        The effective logging settings.

    Raises:
        ValueError: If a flag value fails LoggingConfig validation.
    """
    flags = {
        "level": level,
        "file": log_file,
        "format": log_format,
        "include_stderr": include_stderr,
    }
    effective = dataclasses.replace(
        settings, **{name: value for name, value in flags.items() if value is not None}
    )
    configure_logging(effective)
    return effective


def _configure_logging(
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Apply the group's global logging flags once per process."""
    global _logging_configured
    if _logging_configured:
        return
    setup_logging(
        get_config().logging,
        level=log_level,
        log_file=log_file,
        log_format="json" if log_json else None,
    )
    _logging_configured = True


def load_cli_config(
    config_path: Path | None = None,
    json_output: bool = False,
    **overrides,
) -> FcsConfig:
    """Load configuration for a command, exiting with CONFIG_ERROR on failure."""
    try:
        return get_config(config_path=config_path, strict=True, **overrides)
    except (TomlParseError, ValueError) as e:
        error_exit(f"Invalid configuration: {e}", ExitCode.CONFIG_ERROR, json_output)


@click.group()
@click.version_option(package_name="fcs")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.pass_context
def main(
    ctx: click.Context,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """File conversion service - convert video, audio and image files."""
    ctx.ensure_object(dict)
    try:
        _configure_logging(log_level, log_file, log_json)
    except (TomlParseError, ValueError) as e:
        error_exit(f"Invalid configuration: {e}", ExitCode.CONFIG_ERROR)


# Defer import to avoid circular dependency
def _register_commands():
    from fcs.cli.convert import convert_command
    from fcs.cli.doctor import doctor_command
    from fcs.cli.serve import serve_command

    main.add_command(convert_command)
    main.add_command(doctor_command)
    main.add_command(serve_command)


_register_commands()
