"""Centralized exit codes for all CLI commands."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for fcs CLI commands."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    INVALID_ARGUMENTS = 2
    CONVERSION_FAILED = 3
    FFMPEG_NOT_FOUND = 4
    CONFIG_ERROR = 5
    INTERRUPTED = 130  # Ctrl+C / SIGINT
