"""Fixtures for CLI command tests."""

from pathlib import Path

import pytest

import fcs.cli
from fcs.config.loader import clear_config_cache


@pytest.fixture(autouse=True)
def isolated_cli(monkeypatch, tmp_path: Path):
    """Keep CLI tests away from the user's config and logging setup."""
    monkeypatch.setattr(fcs.cli, "_logging_configured", True)
    monkeypatch.setenv("FCS_CONFIG_PATH", str(tmp_path / "absent-config.toml"))
    for name in ("FCS_FFMPEG_PATH", "FCS_SERVER_PORT", "FCS_SERVER_BIND"):
        monkeypatch.delenv(name, raising=False)
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def write_config(tmp_path: Path):
    """Write a config.toml rooted in tmp_path and return its path.

    Usage:
        path = write_config(ffmpeg=fake_ffmpeg)
    """

    def _write(ffmpeg: str | Path = "ffmpeg", extra: str = "") -> Path:
        path = tmp_path / "config.toml"
        path.write_text(
            f"""
[tools]
ffmpeg = "{ffmpeg}"

[storage]
upload_dir = "{tmp_path / 'uploads'}"
output_dir = "{tmp_path / 'output'}"

[hardware]
enabled = false
{extra}
"""
        )
        return path

    return _write
