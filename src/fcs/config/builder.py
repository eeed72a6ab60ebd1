"""Layered configuration construction.

ConfigSource holds one layer of settings (file, environment or CLI) with
every field optional; None means "not specified by this layer".
ConfigBuilder applies layers in precedence order and fills the gaps with
defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from fcs.config.env import EnvReader
from fcs.config.models import (
    FcsConfig,
    HardwareConfig,
    JobsConfig,
    LoggingConfig,
    ServerConfig,
    StorageConfig,
    ToolPathsConfig,
)


@dataclass
class ConfigSource:
    """One layer of configuration values. None means unspecified."""

    # Tools
    ffmpeg_path: str | None = None
    # Storage
    upload_dir: Path | None = None
    output_dir: Path | None = None
    max_file_size: str | None = None
    # Hardware
    hw_enabled: bool | None = None
    hw_auto_detect: bool | None = None
    hw_preferred: str | None = None
    # Jobs
    jobs_max_workers: int | None = None
    jobs_timeout_seconds: int | None = None
    jobs_require_output_file: bool | None = None
    jobs_retention_hours: int | None = None
    jobs_purge_interval_seconds: int | None = None
    # Server
    server_bind: str | None = None
    server_port: int | None = None
    server_shutdown_timeout: float | None = None
    # Logging
    logging_level: str | None = None
    logging_file: Path | None = None
    logging_format: str | None = None
    logging_include_stderr: bool | None = None
    logging_max_bytes: int | None = None
    logging_backup_count: int | None = None


class ConfigBuilder:
    """Builds FcsConfig by layering ConfigSources with precedence.

    Later sources override earlier ones (for non-None values).

    Example:
        builder = ConfigBuilder()
        builder.apply(source_from_file(file_config))
        builder.apply(source_from_env(reader))
        builder.apply(cli_source)
        config = builder.build()
    """

    def __init__(self) -> None:
        """Initialize the builder with no values set."""
        self._values: dict[str, Any] = {}
        self._origins: dict[str, str] = {}

    def apply(self, source: ConfigSource, source_name: str = "unknown") -> None:
        """Apply configuration source, overriding existing values.

        Args:
            source: Configuration source to apply.
            source_name: Label recorded for each value taken from the source
                (e.g. "file", "env", "cli").
        """
        for field_obj in fields(source):
            value = getattr(source, field_obj.name)
            if value is not None:
                self._values[field_obj.name] = value
                self._origins[field_obj.name] = source_name

    def origin(self, key: str) -> str:
        """Return which source supplied a value, or "default"."""
        return self._origins.get(key, "default")

    def _get(self, key: str, default: Any) -> Any:
        return self._values.get(key, default)

    def build(self) -> FcsConfig:
        """Build the final FcsConfig with defaults for unset values.

        Raises:
            ValueError: If any resulting value fails section validation.
        """
        tools = ToolPathsConfig(ffmpeg=self._get("ffmpeg_path", "ffmpeg"))

        storage = StorageConfig(
            upload_dir=self._get("upload_dir", Path("./uploads")),
            output_dir=self._get("output_dir", Path("./output")),
            max_file_size=self._get("max_file_size", "100MB"),
        )

        hardware = HardwareConfig(
            enabled=self._get("hw_enabled", True),
            auto_detect=self._get("hw_auto_detect", True),
            preferred=self._get("hw_preferred", "auto"),
        )

        jobs = JobsConfig(
            max_workers=self._get("jobs_max_workers", 2),
            timeout_seconds=self._get("jobs_timeout_seconds", 3600),
            require_output_file=self._get("jobs_require_output_file", True),
            retention_hours=self._get("jobs_retention_hours", 24),
            purge_interval_seconds=self._get("jobs_purge_interval_seconds", 300),
        )

        server = ServerConfig(
            bind=self._get("server_bind", "127.0.0.1"),
            port=self._get("server_port", 8080),
            shutdown_timeout=self._get("server_shutdown_timeout", 30.0),
        )

        logging_config = LoggingConfig(
            level=self._get("logging_level", "info"),
            file=self._get("logging_file", None),
            format=self._get("logging_format", "text"),
            include_stderr=self._get("logging_include_stderr", False),
            max_bytes=self._get("logging_max_bytes", 10_485_760),
            backup_count=self._get("logging_backup_count", 5),
        )

        return FcsConfig(
            tools=tools,
            storage=storage,
            hardware=hardware,
            jobs=jobs,
            server=server,
            logging=logging_config,
        )


def _path_or_none(value: Any) -> Path | None:
    return Path(str(value)).expanduser() if value else None


def _str_or_none(value: Any) -> str | None:
    return str(value) if value is not None and value != "" else None


def source_from_file(file_config: dict[str, Any]) -> ConfigSource:
    """Create ConfigSource from a parsed TOML config file.

    Expected layout::

        [tools]
        ffmpeg = "/usr/bin/ffmpeg"

        [storage]
        upload_dir = "./uploads"
        output_dir = "./output"
        max_file_size = "100MB"

        [hardware]
        enabled = true
        auto_detect = true
        preferred = "auto"

        [jobs]
        max_workers = 2
        timeout_seconds = 3600

        [server]
        port = 8080

        [logging]
        level = "info"
    """
    tools = file_config.get("tools", {})
    storage = file_config.get("storage", {})
    hardware = file_config.get("hardware", {})
    jobs = file_config.get("jobs", {})
    server = file_config.get("server", {})
    logging_conf = file_config.get("logging", {})

    return ConfigSource(
        # Tools
        ffmpeg_path=_str_or_none(tools.get("ffmpeg")),
        # Storage
        upload_dir=_path_or_none(storage.get("upload_dir")),
        output_dir=_path_or_none(storage.get("output_dir")),
        max_file_size=_str_or_none(storage.get("max_file_size")),
        # Hardware
        hw_enabled=hardware.get("enabled"),
        hw_auto_detect=hardware.get("auto_detect"),
        hw_preferred=hardware.get("preferred"),
        # Jobs
        jobs_max_workers=jobs.get("max_workers"),
        jobs_timeout_seconds=jobs.get("timeout_seconds"),
        jobs_require_output_file=jobs.get("require_output_file"),
        jobs_retention_hours=jobs.get("retention_hours"),
        jobs_purge_interval_seconds=jobs.get("purge_interval_seconds"),
        # Server
        server_bind=server.get("bind"),
        server_port=server.get("port"),
        server_shutdown_timeout=server.get("shutdown_timeout"),
        # Logging
        logging_level=logging_conf.get("level"),
        logging_file=_path_or_none(logging_conf.get("file")),
        logging_format=logging_conf.get("format"),
        logging_include_stderr=logging_conf.get("include_stderr"),
        logging_max_bytes=logging_conf.get("max_bytes"),
        logging_backup_count=logging_conf.get("backup_count"),
    )


def source_from_env(reader: EnvReader) -> ConfigSource:
    """Create ConfigSource from FCS_* environment variables."""
    return ConfigSource(**reader.values())
