"""FFmpeg command building for conversion jobs.

This module turns a ConversionJob plus the detected hardware encoder into
the ffmpeg argument list. Codec and quality choices are table-driven: each
table maps an enum key (quality tier, hardware encoder, target format) to a
parameter-set record.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from fcs.domain.enums import HardwareEncoder, MediaCategory, QualityTier
from fcs.domain.models import ConversionJob
from fcs.formats import classify

logger = logging.getLogger(__name__)

SOFTWARE_VIDEO_ENCODER = "libx264"


@dataclass(frozen=True)
class SoftwareQuality:
    """Constant-rate-factor baseline for the software encoder."""

    crf: int
    preset: str

    def args(self) -> list[str]:
        return ["-crf", str(self.crf), "-preset", self.preset]


SOFTWARE_QUALITY: dict[QualityTier, SoftwareQuality] = {
    QualityTier.LOW: SoftwareQuality(crf=28, preset="fast"),
    QualityTier.MEDIUM: SoftwareQuality(crf=23, preset="medium"),
    QualityTier.HIGH: SoftwareQuality(crf=18, preset="slow"),
}


@dataclass(frozen=True)
class HardwareQuality:
    """Vendor-specific quality flags for one hardware encoder at one tier.

    Attributes:
        flags: Ordered (flag, value) pairs, emitted as-is after ``-c:v``.
    """

    flags: tuple[tuple[str, str], ...]

    def args(self) -> list[str]:
        args: list[str] = []
        for flag, value in self.flags:
            args.extend([flag, value])
        return args


def _hw(*pairs: tuple[str, object]) -> HardwareQuality:
    return HardwareQuality(tuple((flag, str(value)) for flag, value in pairs))


HARDWARE_QUALITY: dict[HardwareEncoder, dict[QualityTier, HardwareQuality]] = {
    # VideoToolbox uses a 0-100 quality scale, higher is better
    HardwareEncoder.VIDEOTOOLBOX: {
        QualityTier.LOW: _hw(("-q:v", 70)),
        QualityTier.MEDIUM: _hw(("-q:v", 80)),
        QualityTier.HIGH: _hw(("-q:v", 90)),
    },
    HardwareEncoder.NVENC: {
        QualityTier.LOW: _hw(("-preset", "fast"), ("-cq", 28)),
        QualityTier.MEDIUM: _hw(("-preset", "medium"), ("-cq", 23)),
        QualityTier.HIGH: _hw(("-preset", "slow"), ("-cq", 18)),
    },
    # AMF constant-QP: P-frames two steps above I-frames
    HardwareEncoder.AMF: {
        QualityTier.LOW: _hw(
            ("-quality", "speed"), ("-rc", "cqp"), ("-qp_i", 28), ("-qp_p", 30)
        ),
        QualityTier.MEDIUM: _hw(
            ("-quality", "balanced"), ("-rc", "cqp"), ("-qp_i", 23), ("-qp_p", 25)
        ),
        QualityTier.HIGH: _hw(
            ("-quality", "quality"), ("-rc", "cqp"), ("-qp_i", 18), ("-qp_p", 20)
        ),
    },
    HardwareEncoder.QSV: {
        QualityTier.LOW: _hw(("-preset", "fast"), ("-global_quality", 28)),
        QualityTier.MEDIUM: _hw(("-preset", "medium"), ("-global_quality", 23)),
        QualityTier.HIGH: _hw(("-preset", "slow"), ("-global_quality", 18)),
    },
}

# Audio codec carried inside each video container
CONTAINER_AUDIO_CODECS: dict[str, str] = {
    "mp4": "aac",
    "mov": "aac",
    "mkv": "aac",
    "avi": "libmp3lame",
}

AUDIO_CODECS: dict[str, str] = {
    "mp3": "libmp3lame",
    "wav": "pcm_s16le",
    "flac": "flac",
    "aac": "aac",
}

# JPEG -q:v scale: lower is better
JPEG_QUALITY: dict[QualityTier, int] = {
    QualityTier.LOW: 5,
    QualityTier.MEDIUM: 2,
    QualityTier.HIGH: 1,
}

JPEG_FORMATS = frozenset({"jpg", "jpeg"})


def build_scale_args(width: int | None, height: int | None) -> list[str]:
    """Build ``-s WxH`` when both dimensions are given."""
    if width and height:
        return ["-s", f"{width}x{height}"]
    return []


def build_video_args(
    target_format: str,
    tier: QualityTier,
    encoder: HardwareEncoder | None,
    width: int | None = None,
    height: int | None = None,
    bitrate: int | None = None,
) -> list[str]:
    """Build quality and codec arguments for a video target.

    Args:
        target_format: Lower-cased container extension (mp4, avi, mov, mkv).
        tier: Requested quality tier.
        encoder: Hardware encoder to use, or None for software encoding.
        width: Optional output width in pixels.
        height: Optional output height in pixels.
        bitrate: Optional video bitrate in kbit/s.

    Returns:
        List of FFmpeg arguments.
    """
    audio_codec = CONTAINER_AUDIO_CODECS.get(target_format, "aac")
    args: list[str] = []

    if encoder is None:
        args.extend(SOFTWARE_QUALITY[tier].args())
        args.extend(["-c:v", SOFTWARE_VIDEO_ENCODER])
    else:
        args.extend(["-c:v", encoder.value])
        args.extend(HARDWARE_QUALITY[encoder][tier].args())
    args.extend(["-c:a", audio_codec])

    args.extend(build_scale_args(width, height))
    if bitrate:
        args.extend(["-b:v", f"{bitrate}k"])
    return args


def build_audio_args(target_format: str, bitrate: int | None = None) -> list[str]:
    """Build codec arguments for an audio-only target."""
    args: list[str] = []
    codec = AUDIO_CODECS.get(target_format)
    if codec:
        args.extend(["-c:a", codec])
    if bitrate:
        args.extend(["-b:a", f"{bitrate}k"])
    return args


def build_image_args(
    target_format: str,
    tier: QualityTier,
    width: int | None = None,
    height: int | None = None,
) -> list[str]:
    """Build scale and quality arguments for an image target."""
    args = build_scale_args(width, height)
    if target_format in JPEG_FORMATS:
        args.extend(["-q:v", str(JPEG_QUALITY[tier])])
    return args


def build_command(
    job: ConversionJob,
    *,
    ffmpeg_path: str | Path = "ffmpeg",
    encoder: HardwareEncoder | None = None,
) -> list[str]:
    """Build the complete ffmpeg command for a job.

    The result depends only on the arguments: the same job and encoder
    always produce the same list.

    Args:
        job: Job to convert.
        ffmpeg_path: Path or command name of the ffmpeg executable.
        encoder: Hardware encoder to use for video targets, or None for
            the software encoder.

    Returns:
        Argument list starting with the executable and ending with the
        output path.
    """
    target = job.target_format.casefold()
    tier = QualityTier.parse(job.quality)
    category = classify(target)

    cmd: list[str] = [str(ffmpeg_path), "-i", str(job.original_file_path)]

    if category is MediaCategory.VIDEO:
        cmd.extend(
            build_video_args(
                target, tier, encoder, job.width, job.height, job.bitrate
            )
        )
    elif category is MediaCategory.AUDIO:
        cmd.extend(build_audio_args(target, job.bitrate))
    elif category is MediaCategory.IMAGE:
        cmd.extend(build_image_args(target, tier, job.width, job.height))
    else:
        logger.warning(
            "No codec mapping for target format %r (job %s)",
            job.target_format,
            job.job_id,
        )

    cmd.extend(["-y", str(job.converted_file_path)])
    return cmd
