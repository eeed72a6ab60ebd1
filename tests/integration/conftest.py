"""Integration test fixtures backed by a real ffmpeg.

This module provides pytest fixtures for:
- ffmpeg availability detection
- Short test clips generated with ffmpeg's lavfi sources
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

# Seconds of test video generated for conversion runs
CLIP_DURATION = 10


def _tool_available(name: str) -> bool:
    """Check if an external tool is available in PATH."""
    return shutil.which(name) is not None


@pytest.fixture(scope="session")
def ffmpeg_available() -> bool:
    """Check if ffmpeg is available."""
    return _tool_available("ffmpeg")


@pytest.fixture
def require_ffmpeg(ffmpeg_available: bool) -> None:
    """Skip the test when ffmpeg is not installed."""
    if not ffmpeg_available:
        pytest.skip("ffmpeg not available")


@pytest.fixture(scope="module")
def generated_clip(tmp_path_factory, ffmpeg_available: bool) -> Path:
    """A 10 second 320x240 test pattern with a sine tone, as MOV."""
    if not ffmpeg_available:
        pytest.skip("ffmpeg not available")

    path = tmp_path_factory.mktemp("media") / "pattern.mov"
    subprocess.run(
        [
            "ffmpeg",
            "-hide_banner",
            "-loglevel",
            "error",
            "-f",
            "lavfi",
            "-i",
            f"testsrc=duration={CLIP_DURATION}:size=320x240:rate=25",
            "-f",
            "lavfi",
            "-i",
            f"sine=frequency=440:duration={CLIP_DURATION}",
            "-c:v",
            "mpeg4",
            "-c:a",
            "pcm_s16le",
            "-shortest",
            "-y",
            str(path),
        ],
        check=True,
        capture_output=True,
        timeout=120,
    )
    return path


@pytest.fixture(scope="module")
def generated_image(tmp_path_factory, ffmpeg_available: bool) -> Path:
    """A single 320x240 PNG frame."""
    if not ffmpeg_available:
        pytest.skip("ffmpeg not available")

    path = tmp_path_factory.mktemp("media") / "frame.png"
    subprocess.run(
        [
            "ffmpeg",
            "-hide_banner",
            "-loglevel",
            "error",
            "-f",
            "lavfi",
            "-i",
            "testsrc=size=320x240:rate=1",
            "-frames:v",
            "1",
            "-y",
            str(path),
        ],
        check=True,
        capture_output=True,
        timeout=60,
    )
    return path
