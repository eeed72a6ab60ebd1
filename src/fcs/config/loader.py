"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. CLI arguments (passed directly to get_config)
2. Environment variables (FCS_*)
3. Config file (~/.fcs/config.toml, or FCS_CONFIG_PATH)
4. Default values

Environment variables:
- FCS_CONFIG_PATH: Path to config file (overrides default location)
- FCS_FFMPEG_PATH: ffmpeg executable
- FCS_UPLOAD_DIR / FCS_OUTPUT_DIR: storage directories
- FCS_MAX_FILE_SIZE: upload size limit, e.g. "100MB"
- FCS_HW_ENABLED / FCS_HW_AUTO_DETECT / FCS_HW_PREFERRED: hardware encoding
- FCS_MAX_WORKERS / FCS_JOB_TIMEOUT / FCS_REQUIRE_OUTPUT_FILE /
  FCS_RETENTION_HOURS: job execution
- FCS_SERVER_BIND / FCS_SERVER_PORT / FCS_SERVER_SHUTDOWN_TIMEOUT: server
- FCS_LOG_LEVEL / FCS_LOG_FILE / FCS_LOG_FORMAT: logging
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Any

from fcs.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from fcs.config.env import EnvReader
from fcs.config.models import FcsConfig
from fcs.config.toml_parser import load_toml_file

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".fcs"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

# Parsed config files keyed by path, with the mtime they were read at
_config_cache: dict[Path, tuple[dict[str, Any], float]] = {}
_config_cache_lock = threading.Lock()


def get_default_config_path() -> Path:
    """Get the config file path, honouring FCS_CONFIG_PATH."""
    env_path = os.environ.get("FCS_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_FILE


def load_config_file(
    path: Path | None = None, *, strict: bool = False
) -> dict[str, Any]:
    """Load a config file, reusing the parsed result while its mtime is unchanged.

    Args:
        path: Config file path. None uses get_default_config_path().
        strict: Raise TomlParseError if the file cannot be parsed.

    Returns:
        Parsed config dictionary (empty if the file doesn't exist).

    Raises:
        TomlParseError: When strict=True and the file cannot be parsed.
    """
    if path is None:
        path = get_default_config_path()

    try:
        current_mtime = path.stat().st_mtime
    except OSError:
        current_mtime = 0.0

    with _config_cache_lock:
        cached = _config_cache.get(path)
        if cached is not None and cached[1] == current_mtime:
            return cached[0]

        result = load_toml_file(path, strict=strict)
        _config_cache[path] = (result, current_mtime)
        return result


def clear_config_cache() -> None:
    """Clear the config file cache. Primarily useful for testing."""
    with _config_cache_lock:
        _config_cache.clear()


def get_config(
    config_path: Path | None = None,
    # CLI overrides (highest precedence)
    ffmpeg_path: str | None = None,
    upload_dir: Path | None = None,
    output_dir: Path | None = None,
    server_bind: str | None = None,
    server_port: int | None = None,
    # Optional dependency injection for testing
    env_reader: EnvReader | None = None,
    *,
    strict: bool = False,
) -> FcsConfig:
    """Get configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides FCS_CONFIG_PATH).
        ffmpeg_path: CLI override for ffmpeg path.
        upload_dir: CLI override for the upload directory.
        output_dir: CLI override for the output directory.
        server_bind: CLI override for the server bind address.
        server_port: CLI override for the server port.
        env_reader: Optional EnvReader for testing (uses os.environ if None).
        strict: If True, raise TomlParseError on config file parse failures.

    Returns:
        FcsConfig with merged configuration.

    Raises:
        TomlParseError: When strict=True and the config file cannot be parsed.
        ValueError: When a merged value fails validation.
    """
    reader = env_reader or EnvReader()
    file_config = load_config_file(config_path, strict=strict)

    cli_source = ConfigSource(
        ffmpeg_path=ffmpeg_path,
        upload_dir=upload_dir,
        output_dir=output_dir,
        server_bind=server_bind,
        server_port=server_port,
    )

    builder = ConfigBuilder()
    builder.apply(source_from_file(file_config), source_name="file")
    builder.apply(source_from_env(reader), source_name="env")
    builder.apply(cli_source, source_name="cli")
    return builder.build()
