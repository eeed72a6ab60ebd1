"""Unit tests for domain models."""

from datetime import datetime

import pytest

from fcs.domain.enums import HardwareEncoder, JobStatus
from fcs.domain.models import EncoderChoice
from fcs.jobs.exceptions import InvalidJobTransitionError


class TestEncoderChoice:
    """Tests for EncoderChoice."""

    def test_is_hardware(self):
        """is_hardware reflects whether an encoder was chosen."""
        assert EncoderChoice(HardwareEncoder.AMF, "probed").is_hardware
        assert not EncoderChoice(None, "disabled").is_hardware


class TestConversionJobLifecycle:
    """Tests for ConversionJob state transitions."""

    def test_new_job_is_pending(self, make_job):
        """A new job starts PENDING with no completion data."""
        job = make_job()

        assert job.status is JobStatus.PENDING
        assert job.completed_at is None
        assert job.error_message is None
        assert job.converted_file_size is None
        assert isinstance(job.created_at, datetime)
        assert job.created_at.tzinfo is not None

    def test_happy_path(self, make_job):
        """PENDING -> PROCESSING -> COMPLETED records size and time."""
        job = make_job()
        job.mark_processing()
        assert job.status is JobStatus.PROCESSING

        job.mark_completed(2048)

        assert job.status is JobStatus.COMPLETED
        assert job.converted_file_size == 2048
        assert job.completed_at is not None
        assert job.completed_at >= job.created_at
        assert job.is_terminal

    def test_failure_records_message(self, make_job):
        """mark_failed stores the error message and completion time."""
        job = make_job()
        job.mark_processing()

        job.mark_failed("FFmpeg conversion failed with exit code: 1")

        assert job.status is JobStatus.FAILED
        assert job.error_message == "FFmpeg conversion failed with exit code: 1"
        assert job.completed_at is not None

    def test_pending_job_can_fail_directly(self, make_job):
        """Queued jobs can be failed without running (shutdown cancellation)."""
        job = make_job()

        job.mark_failed("cancelled")

        assert job.status is JobStatus.FAILED

    def test_failed_requires_message(self, make_job):
        """An empty error message is rejected."""
        job = make_job()

        with pytest.raises(ValueError, match="non-empty"):
            job.mark_failed("")
        assert job.status is JobStatus.PENDING

    @pytest.mark.parametrize("finish", ["completed", "failed"])
    def test_terminal_states_are_final(self, make_job, finish):
        """No transition leaves a terminal state."""
        job = make_job()
        job.mark_processing()
        if finish == "completed":
            job.mark_completed(1)
        else:
            job.mark_failed("boom")

        with pytest.raises(InvalidJobTransitionError):
            job.mark_processing()
        with pytest.raises(InvalidJobTransitionError):
            job.mark_completed(5)
        with pytest.raises(InvalidJobTransitionError):
            job.mark_failed("again")

    def test_processing_cannot_restart(self, make_job):
        """mark_processing is only valid from PENDING."""
        job = make_job()
        job.mark_processing()

        with pytest.raises(InvalidJobTransitionError) as exc_info:
            job.mark_processing()

        assert exc_info.value.job_id == job.job_id


class TestConversionJobToDict:
    """Tests for ConversionJob.to_dict()."""

    def test_uses_camel_case_keys(self, make_job):
        """Serialized keys match the HTTP API field names."""
        job = make_job("mp3", source_name="song.wav", bitrate=192)

        data = job.to_dict()

        assert data["jobId"] == job.job_id
        assert data["status"] == "PENDING"
        assert data["originalFileName"] == "song.wav"
        assert data["originalFormat"] == "wav"
        assert data["targetFormat"] == "mp3"
        assert data["convertedFileName"] == "song_converted.mp3"
        assert data["bitrate"] == 192
        assert data["completedAt"] is None

    def test_paths_are_not_exposed(self, make_job):
        """Server-side file paths stay out of the client view."""
        data = make_job().to_dict()

        assert "originalFilePath" not in data
        assert "convertedFilePath" not in data

    def test_timestamps_are_iso_strings(self, make_job):
        """Datetimes are rendered as ISO-8601 strings."""
        job = make_job()
        job.mark_failed("boom")

        data = job.to_dict()

        assert datetime.fromisoformat(data["createdAt"]) == job.created_at
        assert datetime.fromisoformat(data["completedAt"]) == job.completed_at
