"""Shared test fixtures for the file conversion service."""

import shutil
import stat
import tempfile
from pathlib import Path

import pytest

from fcs.config.models import (
    FcsConfig,
    HardwareConfig,
    JobsConfig,
    StorageConfig,
    ToolPathsConfig,
)
from fcs.domain.models import ConversionJob

FAKE_FFMPEG_TEMPLATE = """#!/bin/sh
# Stand-in transcoder: the last argument is the output path.
if [ "$1" = "-version" ]; then
    echo "ffmpeg version 6.1-fake Copyright (c) the FFmpeg developers"
    exit 0
fi
for last; do :; done
echo "Input #0, from '$3'"
echo "frame=    1 fps=0.0 q=0.0 size=       0kB"
sleep {sleep} >/dev/null 2>&1
if [ {write_output} = 1 ] && [ "$last" != "-" ]; then
    printf 'converted-data' > "$last"
fi
exit {exit_code}
"""

@pytest.fixture
def temp_dir():
    """Create a temporary directory for test isolation."""
    dir_path = tempfile.mkdtemp()
    yield Path(dir_path)
    shutil.rmtree(dir_path, ignore_errors=True)


@pytest.fixture
def make_fake_ffmpeg(tmp_path: Path):
    """Factory for fake ffmpeg executables with scripted behavior.

    Usage:
        ffmpeg = make_fake_ffmpeg(exit_code=1)
    """
    counter = 0

    def _make(
        *, exit_code: int = 0, write_output: bool = True, sleep: float = 0
    ) -> Path:
        nonlocal counter
        counter += 1
        script = tmp_path / f"fake-ffmpeg-{counter}"
        script.write_text(
            FAKE_FFMPEG_TEMPLATE.format(
                exit_code=exit_code,
                write_output=1 if write_output else 0,
                sleep=sleep,
            )
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP)
        return script

    return _make


@pytest.fixture
def fake_ffmpeg(make_fake_ffmpeg) -> Path:
    """A fake ffmpeg that succeeds and writes its output file."""
    return make_fake_ffmpeg()


@pytest.fixture
def make_config(tmp_path: Path):
    """Factory for FcsConfig rooted in tmp_path, hardware disabled."""

    def _make(
        ffmpeg: str | Path = "ffmpeg",
        *,
        max_file_size: str = "100MB",
        **jobs_overrides,
    ) -> FcsConfig:
        return FcsConfig(
            tools=ToolPathsConfig(ffmpeg=str(ffmpeg)),
            storage=StorageConfig(
                upload_dir=tmp_path / "uploads",
                output_dir=tmp_path / "output",
                max_file_size=max_file_size,
            ),
            hardware=HardwareConfig(enabled=False),
            jobs=JobsConfig(**jobs_overrides),
        )

    return _make


@pytest.fixture
def make_job(tmp_path: Path):
    """Factory for PENDING ConversionJobs with paths under tmp_path."""

    def _make(
        target_format: str = "mp4",
        *,
        job_id: str = "1b4e28ba-2fa1-11d2-883f-0016d3cca427",
        source_name: str = "clip.mov",
        **kwargs,
    ) -> ConversionJob:
        basename = source_name.rsplit(".", 1)[0]
        converted_name = f"{basename}_converted.{target_format}"
        extension = source_name.rsplit(".", 1)[-1] if "." in source_name else ""
        return ConversionJob(
            job_id=job_id,
            original_file_name=source_name,
            original_file_path=tmp_path / "uploads" / f"{job_id}_original.{extension}",
            original_format=extension,
            target_format=target_format,
            converted_file_name=converted_name,
            converted_file_path=tmp_path / "output" / f"{job_id}_{converted_name}",
            **kwargs,
        )

    return _make
