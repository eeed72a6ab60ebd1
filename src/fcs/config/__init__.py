"""Configuration management for the conversion service.

This module provides configuration loading with precedence handling:
1. CLI flags (highest priority)
2. Environment variables (FCS_*)
3. Config file (~/.fcs/config.toml)
4. Default values (lowest priority)
"""

from fcs.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from fcs.config.env import EnvReader
from fcs.config.loader import (
    clear_config_cache,
    get_config,
    get_default_config_path,
    load_config_file,
)
from fcs.config.models import (
    FcsConfig,
    HardwareConfig,
    JobsConfig,
    LoggingConfig,
    ServerConfig,
    StorageConfig,
    ToolPathsConfig,
)
from fcs.config.toml_parser import TomlParseError, load_toml_file, parse_toml

__all__ = [
    # Models
    "FcsConfig",
    "HardwareConfig",
    "JobsConfig",
    "LoggingConfig",
    "ServerConfig",
    "StorageConfig",
    "ToolPathsConfig",
    # Loader
    "clear_config_cache",
    "get_config",
    "get_default_config_path",
    "load_config_file",
    # Layering
    "EnvReader",
    "ConfigBuilder",
    "ConfigSource",
    "source_from_env",
    "source_from_file",
    # TOML
    "TomlParseError",
    "load_toml_file",
    "parse_toml",
]
