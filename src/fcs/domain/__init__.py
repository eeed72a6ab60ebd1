"""Domain models and enums for the conversion service.

Usage:
    from fcs.domain import ConversionJob, JobStatus, QualityTier
"""

from .enums import HardwareEncoder, JobStatus, MediaCategory, QualityTier
from .models import ConversionJob, EncoderChoice, TranscodeResult

__all__ = [
    # Models
    "ConversionJob",
    "EncoderChoice",
    "TranscodeResult",
    # Enums
    "HardwareEncoder",
    "JobStatus",
    "MediaCategory",
    "QualityTier",
]
