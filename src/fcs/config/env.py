"""FCS_* environment variables as a configuration layer.

ENV_VARS maps each supported variable to the ConfigSource field it sets and
the parser for its text value. EnvReader reads a mapping (os.environ unless
one is injected) and returns only the fields whose variables are set and
parse cleanly.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

TRUE_VALUES = frozenset({"true", "1", "yes", "on"})


def parse_bool(text: str) -> bool:
    """True for true/1/yes/on in any case; anything else is False."""
    return text.strip().casefold() in TRUE_VALUES


def parse_path(text: str) -> Path:
    """Expand ``~``; blank values are rejected."""
    if not text.strip():
        raise ValueError("empty path")
    return Path(text.strip()).expanduser()


@dataclass(frozen=True)
class EnvVar:
    """One supported environment variable."""

    name: str
    field: str
    parse: Callable[[str], Any] = str


ENV_VARS: tuple[EnvVar, ...] = (
    EnvVar("FCS_FFMPEG_PATH", "ffmpeg_path"),
    EnvVar("FCS_UPLOAD_DIR", "upload_dir", parse_path),
    EnvVar("FCS_OUTPUT_DIR", "output_dir", parse_path),
    EnvVar("FCS_MAX_FILE_SIZE", "max_file_size"),
    EnvVar("FCS_HW_ENABLED", "hw_enabled", parse_bool),
    EnvVar("FCS_HW_AUTO_DETECT", "hw_auto_detect", parse_bool),
    EnvVar("FCS_HW_PREFERRED", "hw_preferred"),
    EnvVar("FCS_MAX_WORKERS", "jobs_max_workers", int),
    EnvVar("FCS_JOB_TIMEOUT", "jobs_timeout_seconds", int),
    EnvVar("FCS_REQUIRE_OUTPUT_FILE", "jobs_require_output_file", parse_bool),
    EnvVar("FCS_RETENTION_HOURS", "jobs_retention_hours", int),
    EnvVar("FCS_SERVER_BIND", "server_bind"),
    EnvVar("FCS_SERVER_PORT", "server_port", int),
    EnvVar("FCS_SERVER_SHUTDOWN_TIMEOUT", "server_shutdown_timeout", float),
    EnvVar("FCS_LOG_LEVEL", "logging_level"),
    EnvVar("FCS_LOG_FILE", "logging_file", parse_path),
    EnvVar("FCS_LOG_FORMAT", "logging_format"),
)


class EnvReader:
    """Reads the FCS_* variables from a mapping.

    Example:
        EnvReader(env={"FCS_SERVER_PORT": "9000"}).values()
        # {"server_port": 9000}
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = os.environ if env is None else env

    def values(self) -> dict[str, Any]:
        """Parsed values keyed by ConfigSource field.

        Unset variables are left out. A set variable that fails to parse is
        logged as a warning and left out too, so the lower layers apply.
        """
        found: dict[str, Any] = {}
        for var in ENV_VARS:
            text = self._env.get(var.name)
            if text is None:
                continue
            try:
                found[var.field] = var.parse(text)
            except ValueError:
                logger.warning("Ignoring invalid %s value: %r", var.name, text)
        return found
