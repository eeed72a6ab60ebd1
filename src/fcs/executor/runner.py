"""Transcoder execution.

TranscodeRunner runs ffmpeg for one job and reduces everything that can
happen (non-zero exit, missing binary, I/O errors, timeouts) to a
TranscodeResult. It never changes job state; the dispatcher applies the
result.
"""

from __future__ import annotations

import logging
import subprocess  # nosec B404 - subprocess is required for FFmpeg invocation
import threading
import time
from collections import deque
from pathlib import Path

from fcs.domain.models import ConversionJob, TranscodeResult
from fcs.executor.command import build_command
from fcs.tools.detection import ffmpeg_version
from fcs.tools.hwaccel import AccelerationDetector

logger = logging.getLogger(__name__)

# Number of trailing output lines kept for error diagnostics
OUTPUT_TAIL_LINES = 20


class TranscodeRunner:
    """Runs ffmpeg conversions.

    Example:
        runner = TranscodeRunner("ffmpeg", detector)
        result = runner.run(job)
        if not result.success:
            print(result.error_message)
    """

    def __init__(
        self,
        ffmpeg_path: str | Path,
        detector: AccelerationDetector,
        *,
        timeout_seconds: float | None = None,
        require_output: bool = True,
    ) -> None:
        """Initialize the runner.

        Args:
            ffmpeg_path: Path or command name of the ffmpeg executable.
            detector: Shared hardware encoder detector.
            timeout_seconds: Kill the transcoder after this many seconds.
                None or 0 means no limit.
            require_output: Treat a zero exit without an output file as a
                failure.
        """
        self.ffmpeg_path = str(ffmpeg_path)
        self.detector = detector
        self.timeout_seconds = timeout_seconds or None
        self.require_output = require_output

    def build_command(self, job: ConversionJob) -> list[str]:
        """Build the ffmpeg command for a job, detecting encoders if needed."""
        choice = self.detector.detect()
        return build_command(
            job, ffmpeg_path=self.ffmpeg_path, encoder=choice.encoder
        )

    def run(self, job: ConversionJob) -> TranscodeResult:
        """Convert a job's source file to its target format.

        Never raises; every failure is reported in the result.

        Args:
            job: Job to convert.

        Returns:
            TranscodeResult describing the outcome.
        """
        try:
            Path(job.converted_file_path).parent.mkdir(parents=True, exist_ok=True)
            cmd = self.build_command(job)
            logger.info("Executing FFmpeg command: %s", " ".join(cmd))
            returncode, tail, timed_out = self._execute(cmd)
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            logger.error("FFmpeg conversion error for job %s: %s", job.job_id, e)
            return TranscodeResult(
                success=False, error_message=f"Conversion error: {e}"
            )

        if timed_out:
            message = (
                f"FFmpeg conversion timed out after {self.timeout_seconds:g} seconds"
            )
            logger.error("%s (job %s)", message, job.job_id)
            return TranscodeResult(
                success=False,
                exit_code=returncode,
                error_message=message,
                output_tail=tail,
            )

        if returncode != 0:
            message = f"FFmpeg conversion failed with exit code: {returncode}"
            logger.error("%s (job %s)", message, job.job_id)
            for line in tail:
                logger.debug("ffmpeg: %s", line)
            return TranscodeResult(
                success=False,
                exit_code=returncode,
                error_message=message,
                output_tail=tail,
            )

        output_path = Path(job.converted_file_path)
        if not output_path.exists():
            if self.require_output:
                message = "FFmpeg exited successfully but produced no output file"
                logger.error("%s: %s (job %s)", message, output_path, job.job_id)
                return TranscodeResult(
                    success=False,
                    exit_code=returncode,
                    error_message=message,
                    output_tail=tail,
                )
            logger.warning(
                "FFmpeg exited successfully but %s does not exist (job %s)",
                output_path,
                job.job_id,
            )
            return TranscodeResult(
                success=True, exit_code=returncode, output_tail=tail
            )

        output_size = output_path.stat().st_size
        logger.info(
            "FFmpeg conversion finished: %s (%d bytes)", output_path, output_size
        )
        return TranscodeResult(
            success=True,
            exit_code=returncode,
            output_size=output_size,
            output_tail=tail,
        )

    def _execute(self, cmd: list[str]) -> tuple[int, list[str], bool]:
        """Run the command, draining merged output before waiting for exit.

        Returns:
            Tuple of (returncode, last output lines, timed_out).
        """
        process = subprocess.Popen(  # nosec B603 - args built by build_command
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
        )

        timed_out = threading.Event()

        def _kill() -> None:
            timed_out.set()
            logger.warning("Killing FFmpeg (pid %d) after timeout", process.pid)
            process.kill()

        timer: threading.Timer | None = None
        if self.timeout_seconds is not None:
            timer = threading.Timer(self.timeout_seconds, _kill)
            timer.daemon = True
            timer.start()

        tail: deque[str] = deque(maxlen=OUTPUT_TAIL_LINES)
        start_time = time.monotonic()
        try:
            assert process.stdout is not None
            with process.stdout:
                for line in process.stdout:
                    line = line.rstrip()
                    if line:
                        tail.append(line)
                        logger.debug("FFmpeg: %s", line)
            returncode = process.wait()
        finally:
            if timer is not None:
                timer.cancel()
            if process.poll() is None:
                process.kill()
                process.wait()

        logger.debug(
            "FFmpeg exited with code %d after %.1fs",
            returncode,
            time.monotonic() - start_time,
        )
        # A timer that fires after a clean exit has nothing left to kill.
        return returncode, list(tail), timed_out.is_set() and returncode != 0

    def version(self) -> str | None:
        """Return the ffmpeg version line, or None if ffmpeg is unavailable."""
        return ffmpeg_version(self.ffmpeg_path)

    def is_available(self) -> bool:
        """Returns True if ``ffmpeg -version`` exits with code 0."""
        return self.version() is not None
