"""Domain enums for conversion jobs and encoder selection."""

from __future__ import annotations

from enum import Enum


class JobStatus(Enum):
    """Lifecycle state of a conversion job.

    PENDING -> PROCESSING -> {COMPLETED, FAILED}. Terminal states never change.
    """

    PENDING = "PENDING"  # Accepted, waiting for a worker
    PROCESSING = "PROCESSING"  # Transcoder running
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        """Returns True for COMPLETED and FAILED."""
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class MediaCategory(Enum):
    """Category of a file format, derived from its extension."""

    VIDEO = "video"
    AUDIO = "audio"
    IMAGE = "image"
    UNSUPPORTED = "unsupported"


class QualityTier(Enum):
    """Requested output quality tier."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, value: str | None) -> QualityTier:
        """Parse a tier name case-insensitively.

        Args:
            value: Tier name such as "high" or "LOW". May be None.

        Returns:
            Matching tier, or MEDIUM when the value is absent or unknown.
        """
        if not value:
            return cls.MEDIUM
        try:
            return cls(value.strip().casefold())
        except ValueError:
            return cls.MEDIUM


class HardwareEncoder(Enum):
    """Hardware H.264 encoders, in probe order.

    Values are the ffmpeg encoder names.
    """

    VIDEOTOOLBOX = "h264_videotoolbox"  # Apple
    NVENC = "h264_nvenc"  # NVIDIA
    AMF = "h264_amf"  # AMD
    QSV = "h264_qsv"  # Intel Quick Sync

    @property
    def vendor(self) -> str:
        """Short vendor key used in configuration (e.g. "nvenc")."""
        return self.name.lower()

    @classmethod
    def from_vendor(cls, vendor: str) -> HardwareEncoder | None:
        """Look up an encoder by vendor key, returning None if unknown."""
        key = vendor.strip().upper()
        return cls.__members__.get(key)
