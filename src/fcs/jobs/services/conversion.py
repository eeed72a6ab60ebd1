"""Conversion service: upload validation, job creation and queries.

ConversionService is the entry point used by the HTTP API and the CLI. It
validates and stores uploads, creates ConversionJobs, hands them to the
dispatcher and answers status and download queries.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, BinaryIO

from fcs.config.models import FcsConfig
from fcs.core.formatting import parse_file_size
from fcs.domain.enums import JobStatus
from fcs.domain.models import ConversionJob
from fcs.executor.runner import TranscodeRunner
from fcs.formats import get_basename, get_extension, is_supported
from fcs.jobs.dispatcher import ConversionDispatcher
from fcs.jobs.exceptions import (
    ConvertedFileUnavailableError,
    FileTooLargeError,
    JobNotFoundError,
    UnsupportedFormatError,
    UploadValidationError,
)
from fcs.jobs.requests import ConversionRequest
from fcs.jobs.store import JobStore
from fcs.tools.hwaccel import AccelerationDetector, ProbeFunc

logger = logging.getLogger(__name__)

# Upload copy chunk size in bytes
CHUNK_SIZE = 1024 * 1024

DOWNLOAD_URL_TEMPLATE = "/api/files/download/{job_id}"

ACCEPTED_MESSAGE = "File uploaded successfully. Conversion started."


@dataclass(frozen=True)
class ConversionResponse:
    """Client-facing view of a job."""

    job: dict[str, Any]
    """Job fields as produced by ConversionJob.to_dict()."""

    download_url: str | None = None
    message: str | None = None

    @classmethod
    def from_job(
        cls, job: ConversionJob, message: str | None = None
    ) -> ConversionResponse:
        """Build a response, adding a download URL only for COMPLETED jobs."""
        download_url = None
        if job.status is JobStatus.COMPLETED:
            download_url = DOWNLOAD_URL_TEMPLATE.format(job_id=job.job_id)
        return cls(job=job.to_dict(), download_url=download_url, message=message)

    @classmethod
    def accepted(cls, job: ConversionJob) -> ConversionResponse:
        """Build the response for a freshly submitted job.

        The job is reported in its PENDING state even if a worker has
        already picked it up; clients follow progress through the status
        endpoint.
        """
        view = job.to_dict()
        view.update(
            status=JobStatus.PENDING.value,
            completedAt=None,
            errorMessage=None,
            convertedFileSize=None,
        )
        return cls(job=view, message=ACCEPTED_MESSAGE)

    @property
    def job_id(self) -> str:
        return self.job["jobId"]

    @property
    def status(self) -> str:
        return self.job["status"]

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        body = dict(self.job)
        body["downloadUrl"] = self.download_url
        if self.message is not None:
            body["message"] = self.message
        return body


class ConversionService:
    """Creates conversion jobs and answers queries about them.

    Example:
        service = ConversionService.from_config(get_config())
        with open("clip.mov", "rb") as f:
            job = service.start_conversion(
                f, "clip.mov", ConversionRequest(target_format="mp4")
            )
        service.get_status(job.job_id)
    """

    def __init__(
        self,
        config: FcsConfig,
        *,
        dispatcher: ConversionDispatcher,
        detector: AccelerationDetector,
    ) -> None:
        self.config = config
        self.dispatcher = dispatcher
        self.detector = detector

    @classmethod
    def from_config(
        cls,
        config: FcsConfig,
        *,
        probe: ProbeFunc | None = None,
    ) -> ConversionService:
        """Wire up detector, runner, store and dispatcher from configuration.

        Args:
            config: Service configuration.
            probe: Optional encoder probe override, passed to the detector.

        Returns:
            A ready-to-use ConversionService.
        """
        detector = AccelerationDetector(
            config.tools.ffmpeg,
            enabled=config.hardware.enabled,
            auto_detect=config.hardware.auto_detect,
            preferred=config.hardware.preferred,
            probe=probe,
        )
        runner = TranscodeRunner(
            config.tools.ffmpeg,
            detector,
            timeout_seconds=config.jobs.timeout_seconds or None,
            require_output=config.jobs.require_output_file,
        )
        dispatcher = ConversionDispatcher(
            JobStore(), runner, max_workers=config.jobs.max_workers
        )
        return cls(config, dispatcher=dispatcher, detector=detector)

    @property
    def store(self) -> JobStore:
        return self.dispatcher.store

    @property
    def runner(self) -> TranscodeRunner:
        return self.dispatcher.runner

    @property
    def max_file_size_bytes(self) -> int:
        return self.config.storage.max_file_size_bytes

    @staticmethod
    def parse_file_size(value: str) -> int:
        """Parse "100MB"-style sizes into bytes (100MB on invalid input)."""
        return parse_file_size(value)

    # ==========================================================================
    # Validation
    # ==========================================================================

    def validate_upload(self, filename: str | None, size: int) -> None:
        """Validate an upload before a job is created.

        Args:
            filename: Client-supplied file name.
            size: Upload size in bytes.

        Raises:
            UploadValidationError: If the file is empty or has no name.
            FileTooLargeError: If the file exceeds the configured limit.
        """
        if size <= 0:
            raise UploadValidationError("File is empty")
        if not filename or not filename.strip():
            raise UploadValidationError("File name is required")
        if size > self.max_file_size_bytes:
            raise FileTooLargeError(self.config.storage.max_file_size)

    @staticmethod
    def validate_target_format(target_format: str) -> str:
        """Return the normalized target format.

        Raises:
            UnsupportedFormatError: If the format is not supported.
        """
        normalized = (target_format or "").strip().lstrip(".").casefold()
        if not is_supported(normalized):
            raise UnsupportedFormatError(target_format)
        return normalized

    # ==========================================================================
    # Job creation
    # ==========================================================================

    def start_conversion(
        self,
        stream: BinaryIO,
        filename: str | None,
        request: ConversionRequest,
    ) -> ConversionJob:
        """Store an uploaded file and start converting it in the background.

        Args:
            stream: Readable binary stream with the upload content.
            filename: Client-supplied file name.
            request: Validated conversion parameters.

        Returns:
            The PENDING job, already visible through get_status().

        Raises:
            UploadValidationError: If the upload is empty or has no name.
            FileTooLargeError: If the upload exceeds the size limit.
            UnsupportedFormatError: If the target format is not supported.
            OSError: If the upload cannot be written to disk.
        """
        target_format = self.validate_target_format(request.target_format)

        if not filename or not filename.strip():
            # Report an empty upload ahead of a missing name
            self.validate_upload(filename, len(stream.read(1)))

        original_name = Path(filename.replace("\\", "/")).name
        job_id = str(uuid.uuid4())
        extension = get_extension(original_name)
        stored_name = f"{job_id}_original"
        if extension:
            stored_name = f"{stored_name}.{extension}"
        upload_path = self.config.storage.upload_dir / stored_name

        size = self._save_upload(stream, upload_path)
        try:
            self.validate_upload(original_name, size)
        except UploadValidationError:
            upload_path.unlink(missing_ok=True)
            raise

        logger.info(
            "Saved upload %s (%d bytes) for job %s", original_name, size, job_id
        )
        job = self.create_job(
            upload_path,
            request,
            original_name=original_name,
            original_size=size,
            job_id=job_id,
            target_format=target_format,
        )
        return self.dispatcher.submit(job)

    def convert_file(
        self,
        source: Path,
        request: ConversionRequest,
        *,
        output_dir: Path | None = None,
    ) -> ConversionJob:
        """Convert a local file synchronously.

        The source file is used in place; nothing is copied to the upload
        directory.

        Args:
            source: Existing file to convert.
            request: Validated conversion parameters.
            output_dir: Where to write the result (default: configured
                output directory).

        Returns:
            The job in its terminal state.

        Raises:
            UploadValidationError: If the file is empty or too large.
            UnsupportedFormatError: If the target format is not supported.
            OSError: If the source cannot be read.
        """
        target_format = self.validate_target_format(request.target_format)
        size = source.stat().st_size
        self.validate_upload(source.name, size)
        job = self.create_job(
            source,
            request,
            original_name=source.name,
            original_size=size,
            target_format=target_format,
            output_dir=output_dir,
        )
        return self.dispatcher.run_inline(job)

    def create_job(
        self,
        source_path: Path,
        request: ConversionRequest,
        *,
        original_name: str,
        original_size: int | None = None,
        job_id: str | None = None,
        target_format: str | None = None,
        output_dir: Path | None = None,
    ) -> ConversionJob:
        """Build a PENDING job for a source file without scheduling it."""
        job_id = job_id or str(uuid.uuid4())
        target_format = target_format or self.validate_target_format(
            request.target_format
        )
        converted_name = f"{get_basename(original_name)}_converted.{target_format}"
        output_dir = output_dir or self.config.storage.output_dir
        return ConversionJob(
            job_id=job_id,
            original_file_name=original_name,
            original_file_path=source_path,
            original_format=get_extension(original_name),
            target_format=target_format,
            converted_file_name=converted_name,
            converted_file_path=output_dir / f"{job_id}_{converted_name}",
            quality=request.quality,
            width=request.width,
            height=request.height,
            bitrate=request.bitrate,
            original_file_size=original_size,
        )

    def _save_upload(self, stream: BinaryIO, path: Path) -> int:
        """Copy an upload stream to disk, enforcing the size limit.

        Returns:
            Number of bytes written.

        Raises:
            FileTooLargeError: As soon as the limit is exceeded. The partial
                file is removed.
        """
        limit = self.max_file_size_bytes
        path.parent.mkdir(parents=True, exist_ok=True)
        written = 0
        try:
            with open(path, "wb") as out:
                while chunk := stream.read(CHUNK_SIZE):
                    written += len(chunk)
                    if written > limit:
                        raise FileTooLargeError(self.config.storage.max_file_size)
                    out.write(chunk)
        except Exception:
            path.unlink(missing_ok=True)
            raise
        return written

    # ==========================================================================
    # Queries
    # ==========================================================================

    def get_job(self, job_id: str) -> ConversionJob | None:
        return self.dispatcher.fetch(job_id)

    def get_status(self, job_id: str) -> ConversionResponse | None:
        """Return the client view of a job, or None if the id is unknown."""
        job = self.dispatcher.fetch(job_id)
        if job is None:
            return None
        return ConversionResponse.from_job(job)

    def get_converted_file(self, job_id: str) -> Path:
        """Return the output path of a completed job.

        Raises:
            JobNotFoundError: If the job is unknown.
            ConvertedFileUnavailableError: If the job has not completed or
                its output file no longer exists.
        """
        job = self.dispatcher.fetch(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        if job.status is not JobStatus.COMPLETED:
            raise ConvertedFileUnavailableError(
                job_id, f"job is {job.status.value}"
            )
        path = Path(job.converted_file_path)
        if not path.is_file():
            raise ConvertedFileUnavailableError(job_id, "file no longer exists")
        return path

    def gpu_status(self) -> str:
        """Human-readable hardware acceleration status."""
        return self.detector.status_message()

    def ffmpeg_version(self) -> str | None:
        return self.runner.version()

    def is_ffmpeg_available(self) -> bool:
        return self.runner.is_available()

    # ==========================================================================
    # Retention
    # ==========================================================================

    def purge_expired(self, now: datetime | None = None) -> int:
        """Remove finished jobs older than the retention period, with their files.

        Only files inside the configured upload and output directories are
        deleted.

        Args:
            now: Reference time (default: current UTC time).

        Returns:
            Number of jobs purged.
        """
        retention_hours = self.config.jobs.retention_hours
        if retention_hours <= 0:
            return 0
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(hours=retention_hours)

        purged = self.store.purge_finished(cutoff)
        for job in purged:
            storage = self.config.storage
            self._delete_owned_file(job.original_file_path, storage.upload_dir)
            self._delete_owned_file(job.converted_file_path, storage.output_dir)
        return len(purged)

    @staticmethod
    def _delete_owned_file(path: Path, root: Path) -> None:
        try:
            if not Path(path).resolve().is_relative_to(root.resolve()):
                return
            Path(path).unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not delete %s: %s", path, e)

    def shutdown(self, *, wait: bool = True) -> None:
        """Stop the dispatcher, cancelling queued jobs."""
        self.dispatcher.shutdown(wait=wait)
