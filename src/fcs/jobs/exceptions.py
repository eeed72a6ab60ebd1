"""Custom exceptions for conversion jobs.

This module provides specific exception types for upload validation, job
lookup and job state handling, enabling callers (HTTP handlers, CLI
commands) to map each condition to the right response.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fcs.domain.enums import JobStatus


class ConversionError(Exception):
    """Base exception for conversion errors.

    All conversion-related exceptions inherit from this class, allowing
    callers to catch all of them with a single except clause if desired.
    """


class UploadValidationError(ConversionError):
    """Raised when an upload is rejected before a job is created."""


class FileTooLargeError(UploadValidationError):
    """Raised when an upload exceeds the configured size limit.

    Attributes:
        max_size: The configured limit as written in configuration (e.g. "100MB").
    """

    def __init__(self, max_size: str) -> None:
        self.max_size = max_size
        super().__init__(f"File size exceeds maximum allowed size: {max_size}")


class UnsupportedFormatError(ConversionError):
    """Raised when a target format is not in the supported set.

    Attributes:
        format: The rejected format string.
    """

    def __init__(self, format: str) -> None:
        self.format = format
        super().__init__(f"Unsupported target format: {format or '<empty>'}")


class JobNotFoundError(ConversionError):
    """Raised when a job doesn't exist in the job store.

    Attributes:
        job_id: The ID of the job that was not found.
    """

    def __init__(self, job_id: str) -> None:
        """Initialize the exception.

        Args:
            job_id: The ID of the job that was not found.
        """
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class ConvertedFileUnavailableError(ConversionError):
    """Raised when a job's converted file cannot be served.

    Attributes:
        job_id: The ID of the job.
        reason: Why the file is unavailable.
    """

    def __init__(self, job_id: str, reason: str) -> None:
        self.job_id = job_id
        self.reason = reason
        super().__init__(f"Converted file for job {job_id} unavailable: {reason}")


class InvalidJobTransitionError(ConversionError):
    """Raised when a job state change violates the job lifecycle.

    Attributes:
        job_id: The ID of the job.
        from_status: Current status of the job.
        to_status: Status that was requested.
    """

    def __init__(
        self, job_id: str, from_status: JobStatus, to_status: JobStatus
    ) -> None:
        self.job_id = job_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Job {job_id} cannot move from {from_status.value} to {to_status.value}"
        )


class DispatcherClosedError(ConversionError):
    """Raised when a job is submitted after the dispatcher was shut down."""
