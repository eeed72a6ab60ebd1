"""Short ffmpeg invocations: version checks and encoder probes.

run_command waits for the child and returns everything it printed. Long
transcodes stream their output instead; see fcs.executor.runner.
"""

from __future__ import annotations

import logging
import subprocess  # nosec B404 - ffmpeg is an external program
import time
from collections.abc import Sequence
from pathlib import Path
from typing import NamedTuple

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0


class CommandOutput(NamedTuple):
    """Captured output of a finished command."""

    stdout: str
    stderr: str
    returncode: int


def run_command(
    args: Sequence[str | Path],
    timeout: float = DEFAULT_TIMEOUT,
    merge_stderr: bool = False,
) -> CommandOutput:
    """Run ``args`` to completion with a time limit.

    Output is decoded as text with undecodable bytes replaced. With
    ``merge_stderr`` the child's stderr is folded into stdout and the
    returned stderr is empty.

    Raises:
        subprocess.TimeoutExpired: The child ran past ``timeout`` and was
            killed.
        OSError: The executable could not be started.
    """
    argv = [str(arg) for arg in args]
    program = Path(argv[0]).name if argv else "?"
    started = time.monotonic()
    logger.debug("Running %s", " ".join(argv))

    try:
        completed = subprocess.run(  # nosec B603 - argv built by fcs
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.warning("%s killed after %gs", program, timeout)
        raise

    logger.debug(
        "%s exited with %d in %.2fs",
        program,
        completed.returncode,
        time.monotonic() - started,
    )
    return CommandOutput(
        completed.stdout or "", completed.stderr or "", completed.returncode
    )
