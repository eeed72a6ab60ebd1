"""Domain models for conversion jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fcs.domain.enums import HardwareEncoder, JobStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class EncoderChoice:
    """Outcome of hardware encoder detection.

    An ``encoder`` of None means no hardware encoder is usable and the
    software encoder must be used.
    """

    encoder: HardwareEncoder | None
    """Selected hardware encoder, or None for software encoding."""

    reason: str = ""
    """Short human-readable explanation of how the choice was made."""

    @property
    def is_hardware(self) -> bool:
        """Returns True if a hardware encoder was selected."""
        return self.encoder is not None


@dataclass
class ConversionJob:
    """One requested conversion from a source file to a target format.

    State fields (status, completed_at, error_message, converted_file_size)
    must only be changed through the ``mark_*`` methods, which enforce the
    lifecycle PENDING -> PROCESSING -> {COMPLETED, FAILED}.
    """

    job_id: str
    original_file_name: str
    original_file_path: Path
    original_format: str
    target_format: str
    converted_file_name: str
    converted_file_path: Path
    quality: str = "medium"
    width: int | None = None
    height: int | None = None
    bitrate: int | None = None
    original_file_size: int | None = None
    status: JobStatus = JobStatus.PENDING
    created_at: datetime = field(default_factory=_utcnow)
    completed_at: datetime | None = None
    error_message: str | None = None
    converted_file_size: int | None = None

    @property
    def is_terminal(self) -> bool:
        """Returns True once the job has completed or failed."""
        return self.status.is_terminal

    def mark_processing(self) -> None:
        """Transition PENDING -> PROCESSING.

        Raises:
            InvalidJobTransitionError: If the job is not PENDING.
        """
        self._check_transition(JobStatus.PROCESSING, {JobStatus.PENDING})
        self.status = JobStatus.PROCESSING

    def mark_completed(self, converted_file_size: int | None) -> None:
        """Transition to COMPLETED and record the output size.

        Args:
            converted_file_size: Output size in bytes, or None if unknown.

        Raises:
            InvalidJobTransitionError: If the job is already terminal.
        """
        self._check_transition(
            JobStatus.COMPLETED, {JobStatus.PENDING, JobStatus.PROCESSING}
        )
        # Status last: a reader that sees COMPLETED sees size and timestamp
        self.converted_file_size = converted_file_size
        self.completed_at = _utcnow()
        self.status = JobStatus.COMPLETED

    def mark_failed(self, error_message: str) -> None:
        """Transition to FAILED with an error message.

        Args:
            error_message: Human-readable failure reason. Must be non-empty.

        Raises:
            InvalidJobTransitionError: If the job is already terminal.
            ValueError: If error_message is empty.
        """
        if not error_message:
            raise ValueError("error_message must be non-empty")
        self._check_transition(
            JobStatus.FAILED, {JobStatus.PENDING, JobStatus.PROCESSING}
        )
        self.error_message = error_message
        self.completed_at = _utcnow()
        self.status = JobStatus.FAILED

    def _check_transition(
        self, target: JobStatus, allowed_from: set[JobStatus]
    ) -> None:
        from fcs.jobs.exceptions import InvalidJobTransitionError

        if self.status not in allowed_from:
            raise InvalidJobTransitionError(self.job_id, self.status, target)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary with camelCase keys."""
        return {
            "jobId": self.job_id,
            "status": self.status.value,
            "originalFileName": self.original_file_name,
            "originalFormat": self.original_format,
            "targetFormat": self.target_format,
            "quality": self.quality,
            "width": self.width,
            "height": self.height,
            "bitrate": self.bitrate,
            "convertedFileName": self.converted_file_name,
            "createdAt": _isoformat(self.created_at),
            "completedAt": _isoformat(self.completed_at),
            "errorMessage": self.error_message,
            "originalFileSize": self.original_file_size,
            "convertedFileSize": self.converted_file_size,
        }


@dataclass
class TranscodeResult:
    """Outcome of a single transcoder invocation."""

    success: bool
    exit_code: int | None = None
    error_message: str | None = None
    output_size: int | None = None
    output_tail: list[str] = field(default_factory=list)
    """Last lines of combined transcoder output, for diagnostics."""
