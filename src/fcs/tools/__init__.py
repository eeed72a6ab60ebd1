"""External tool detection: ffmpeg availability and hardware encoders."""

from fcs.tools.detection import ffmpeg_version, is_ffmpeg_available, probe_encoder
from fcs.tools.hwaccel import AccelerationDetector

__all__ = [
    "AccelerationDetector",
    "ffmpeg_version",
    "is_ffmpeg_available",
    "probe_encoder",
]
