"""Low-level ffmpeg probes.

Each function runs one short ffmpeg invocation and reduces the outcome to a
plain value. None of them raise: a missing binary, a timeout or a non-zero
exit all read as "not available".
"""

from __future__ import annotations

import logging
import subprocess  # nosec B404
from pathlib import Path

from fcs.core.subprocess_utils import run_command

logger = logging.getLogger(__name__)

# Timeout for detection commands in seconds
DETECTION_TIMEOUT = 10

# One second of generated test pattern is enough to initialise an encoder
PROBE_SOURCE = "testsrc=duration=1:size=64x64:rate=1"


def build_probe_command(ffmpeg_path: str | Path, encoder: str) -> list[str]:
    """Build the test-encode command used to probe an encoder."""
    return [
        str(ffmpeg_path),
        "-hide_banner",
        "-f",
        "lavfi",
        "-i",
        PROBE_SOURCE,
        "-c:v",
        encoder,
        "-f",
        "null",
        "-",
    ]


def probe_encoder(ffmpeg_path: str | Path, encoder: str) -> bool:
    """Probe a single encoder for actual usability.

    An encoder being listed by ``ffmpeg -encoders`` does not mean the
    hardware behind it is present, so this runs a short test encode.

    Args:
        ffmpeg_path: Path or command name of the ffmpeg executable.
        encoder: Encoder name to test (e.g., "h264_nvenc").

    Returns:
        True if the test encode exited with code 0, False otherwise.
    """
    cmd = build_probe_command(ffmpeg_path, encoder)
    try:
        _, _, returncode = run_command(
            cmd, timeout=DETECTION_TIMEOUT, merge_stderr=True
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("Probe for %s could not run: %s", encoder, e)
        return False
    logger.debug("Probe for %s exited with code %d", encoder, returncode)
    return returncode == 0


def ffmpeg_version(ffmpeg_path: str | Path) -> str | None:
    """Return the first line of ``ffmpeg -version``, or None if unavailable."""
    try:
        stdout, _, returncode = run_command(
            [str(ffmpeg_path), "-version"], timeout=DETECTION_TIMEOUT
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("ffmpeg -version failed for %s: %s", ffmpeg_path, e)
        return None
    if returncode != 0:
        return None
    first_line = stdout.strip().splitlines()[0] if stdout.strip() else ""
    return first_line or "ffmpeg (unknown version)"


def is_ffmpeg_available(ffmpeg_path: str | Path) -> bool:
    """Returns True if ``ffmpeg -version`` exits with code 0."""
    return ffmpeg_version(ffmpeg_path) is not None
