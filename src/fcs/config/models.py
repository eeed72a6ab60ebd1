"""Configuration models for the conversion service.

Each section is a dataclass that validates itself in __post_init__, so an
invalid value fails at load time with a ValueError naming the field.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from fcs.core.formatting import parse_file_size

VALID_HW_PREFERENCES = frozenset({"auto", "videotoolbox", "nvenc", "amf", "qsv"})


@dataclass
class ToolPathsConfig:
    """Paths to external tools."""

    ffmpeg: str = "ffmpeg"
    """ffmpeg executable; a bare name is resolved through PATH."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        self.ffmpeg = str(self.ffmpeg).strip()
        if not self.ffmpeg:
            raise ValueError("ffmpeg path must not be empty")


@dataclass
class StorageConfig:
    """Where uploads and converted files are kept."""

    upload_dir: Path = field(default_factory=lambda: Path("./uploads"))
    output_dir: Path = field(default_factory=lambda: Path("./output"))

    max_file_size: str = "100MB"
    """Upload size limit: a number with optional KB/MB/GB suffix."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        self.upload_dir = Path(self.upload_dir).expanduser()
        self.output_dir = Path(self.output_dir).expanduser()
        self.max_file_size = str(self.max_file_size).strip()

    @property
    def max_file_size_bytes(self) -> int:
        """Upload size limit in bytes (100MB if the configured value is invalid)."""
        return parse_file_size(self.max_file_size)


@dataclass
class HardwareConfig:
    """Hardware-accelerated video encoding."""

    enabled: bool = True
    """Use a hardware encoder when one is available."""

    auto_detect: bool = True
    """Probe encoders at first use. When off, ``preferred`` is trusted."""

    preferred: str = "auto"
    """Either "auto" or a vendor key (videotoolbox, nvenc, amf, qsv) probed first."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        self.preferred = self.preferred.strip().lower()
        if self.preferred not in VALID_HW_PREFERENCES:
            raise ValueError(
                f"preferred must be one of {sorted(VALID_HW_PREFERENCES)}, "
                f"got {self.preferred}"
            )


@dataclass
class JobsConfig:
    """Conversion job execution and retention."""

    max_workers: int = 2
    """Maximum number of concurrent transcodes."""

    timeout_seconds: int = 3600
    """Kill a transcode after this many seconds (0 = no limit)."""

    require_output_file: bool = True
    """Fail jobs whose transcoder exits 0 without writing the output file."""

    retention_hours: int = 24
    """Purge finished jobs and their files after this many hours (0 = keep)."""

    purge_interval_seconds: int = 300
    """Seconds between retention purge runs in server mode."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.timeout_seconds < 0:
            raise ValueError(
                f"timeout_seconds must be non-negative, got {self.timeout_seconds}"
            )
        if self.retention_hours < 0:
            raise ValueError(
                f"retention_hours must be non-negative, got {self.retention_hours}"
            )
        if self.purge_interval_seconds < 1:
            raise ValueError(
                "purge_interval_seconds must be at least 1, "
                f"got {self.purge_interval_seconds}"
            )


@dataclass
class ServerConfig:
    """Configuration for `fcs serve`."""

    bind: str = "127.0.0.1"
    """Network address to bind to. Default localhost."""

    port: int = 8080
    """Port number for the HTTP server."""

    shutdown_timeout: float = 30.0
    """Seconds to wait for running conversions during graceful shutdown."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not 1 <= self.port <= 65535:
            raise ValueError(f"port must be 1-65535, got {self.port}")
        if self.shutdown_timeout <= 0:
            raise ValueError(
                f"shutdown_timeout must be positive, got {self.shutdown_timeout}"
            )


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )


@dataclass
class FcsConfig:
    """Main configuration container.

    Aggregates all configuration sections.
    """

    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    hardware: HardwareConfig = field(default_factory=HardwareConfig)
    jobs: JobsConfig = field(default_factory=JobsConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
