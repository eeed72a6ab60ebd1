"""Unit tests for TranscodeRunner."""

import sys
from unittest.mock import MagicMock, patch

import pytest

from fcs.domain.enums import HardwareEncoder
from fcs.domain.models import EncoderChoice
from fcs.executor.runner import TranscodeRunner
from fcs.tools.hwaccel import AccelerationDetector

pytestmark = pytest.mark.skipif(
    sys.platform == "win32", reason="fake transcoder is a POSIX shell script"
)


@pytest.fixture
def software_detector():
    """Detector with hardware acceleration disabled."""
    return AccelerationDetector("ffmpeg", enabled=False)


@pytest.fixture
def source_file(make_job):
    """Create the source file of the default job."""
    job = make_job()
    job.original_file_path.parent.mkdir(parents=True, exist_ok=True)
    job.original_file_path.write_bytes(b"source-bytes")
    return job.original_file_path


class TestTranscodeRunnerRun:
    """Tests for TranscodeRunner.run() against a fake transcoder."""

    def test_success_reports_output_size(
        self, make_fake_ffmpeg, software_detector, make_job, source_file
    ):
        """Exit 0 with an output file is a success carrying its size."""
        runner = TranscodeRunner(make_fake_ffmpeg(), software_detector)
        job = make_job()

        result = runner.run(job)

        assert result.success
        assert result.exit_code == 0
        assert result.output_size == len(b"converted-data")
        assert job.converted_file_path.exists()

    def test_creates_output_directory(
        self, make_fake_ffmpeg, software_detector, make_job, source_file
    ):
        """The output directory is created before the transcoder runs."""
        job = make_job()
        assert not job.converted_file_path.parent.exists()

        TranscodeRunner(make_fake_ffmpeg(), software_detector).run(job)

        assert job.converted_file_path.parent.is_dir()

    def test_nonzero_exit(self, make_fake_ffmpeg, software_detector, make_job):
        """A non-zero exit is reported with the exit code in the message."""
        runner = TranscodeRunner(make_fake_ffmpeg(exit_code=3), software_detector)

        result = runner.run(make_job())

        assert not result.success
        assert result.exit_code == 3
        assert result.error_message == "FFmpeg conversion failed with exit code: 3"
        assert any("frame=" in line for line in result.output_tail)

    def test_missing_output_fails_by_default(
        self, make_fake_ffmpeg, software_detector, make_job
    ):
        """Exit 0 without an output file is a failure."""
        runner = TranscodeRunner(
            make_fake_ffmpeg(write_output=False), software_detector
        )

        result = runner.run(make_job())

        assert not result.success
        assert "no output file" in result.error_message

    def test_missing_output_tolerated_when_not_required(
        self, make_fake_ffmpeg, software_detector, make_job
    ):
        """With require_output=False the job succeeds with unknown size."""
        runner = TranscodeRunner(
            make_fake_ffmpeg(write_output=False),
            software_detector,
            require_output=False,
        )

        result = runner.run(make_job())

        assert result.success
        assert result.output_size is None

    def test_timeout_kills_transcoder(
        self, make_fake_ffmpeg, software_detector, make_job
    ):
        """A transcode exceeding the timeout is killed and reported."""
        runner = TranscodeRunner(
            make_fake_ffmpeg(sleep=10), software_detector, timeout_seconds=0.5
        )

        result = runner.run(make_job())

        assert not result.success
        assert result.error_message == "FFmpeg conversion timed out after 0.5 seconds"

    def test_timer_firing_after_clean_exit_is_not_a_timeout(
        self, make_fake_ffmpeg, software_detector, make_job, source_file
    ):
        """A kill timer racing a zero exit does not turn success into a timeout."""

        class LateTimer:
            def __init__(self, interval, function):
                self.function = function
                self.daemon = False

            def start(self):
                pass

            def cancel(self):
                self.function()

        runner = TranscodeRunner(
            make_fake_ffmpeg(), software_detector, timeout_seconds=5
        )
        job = make_job()

        with patch("fcs.executor.runner.threading.Timer", LateTimer):
            result = runner.run(job)

        assert result.success
        assert result.exit_code == 0
        assert result.error_message is None
        assert result.output_size == len(b"converted-data")

    def test_missing_executable(self, software_detector, make_job, tmp_path):
        """A missing ffmpeg binary becomes a 'Conversion error' result."""
        runner = TranscodeRunner(tmp_path / "no-such-ffmpeg", software_detector)

        result = runner.run(make_job())

        assert not result.success
        assert result.error_message.startswith("Conversion error: ")
        assert result.exit_code is None


class TestTranscodeRunnerCommand:
    """Tests for encoder selection in TranscodeRunner.build_command()."""

    def test_uses_detected_encoder(self, make_job):
        """The detector's choice is passed to the command builder."""
        detector = MagicMock(spec=AccelerationDetector)
        detector.detect.return_value = EncoderChoice(HardwareEncoder.NVENC, "probed")
        runner = TranscodeRunner("ffmpeg", detector)

        cmd = runner.build_command(make_job("mp4"))

        assert "h264_nvenc" in cmd
        detector.detect.assert_called_once()

    def test_popen_receives_built_command(self, make_job, software_detector):
        """run() executes exactly the command returned by build_command()."""
        job = make_job("wav", source_name="a.mp3")
        runner = TranscodeRunner("ffmpeg", software_detector)
        process = MagicMock()
        process.stdout = MagicMock()
        process.stdout.__iter__.return_value = iter(["line one\n"])
        process.wait.return_value = 1
        process.poll.return_value = 1

        with patch(
            "fcs.executor.runner.subprocess.Popen", return_value=process
        ) as popen:
            result = runner.run(job)

        assert popen.call_args.args[0] == runner.build_command(job)
        assert result.exit_code == 1
        assert result.output_tail == ["line one"]


class TestTranscodeRunnerVersion:
    """Tests for version() and is_available()."""

    def test_fake_ffmpeg_is_available(self, make_fake_ffmpeg, software_detector):
        """A working ffmpeg reports its version line."""
        runner = TranscodeRunner(make_fake_ffmpeg(), software_detector)

        assert runner.is_available()
        assert runner.version().startswith("ffmpeg version 6.1-fake")

    def test_missing_ffmpeg_unavailable(self, software_detector, tmp_path):
        """A missing ffmpeg is reported as unavailable."""
        runner = TranscodeRunner(tmp_path / "missing", software_detector)

        assert not runner.is_available()
        assert runner.version() is None
