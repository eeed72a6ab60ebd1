"""Pydantic models for conversion requests.

These validate the user-supplied conversion parameters (from multipart form
fields or CLI options) before any file is written.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fcs.domain.enums import QualityTier
from fcs.formats import is_supported

VALID_QUALITIES = tuple(tier.value for tier in QualityTier)


class ConversionRequest(BaseModel):
    """Parameters for one conversion."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    target_format: str = Field(alias="targetFormat", min_length=1)
    quality: str = "medium"
    width: int | None = Field(default=None, gt=0, le=16384)
    height: int | None = Field(default=None, gt=0, le=16384)
    bitrate: int | None = Field(default=None, gt=0)
    """Target bitrate in kbit/s (video or audio, depending on the format)."""

    @field_validator("target_format")
    @classmethod
    def validate_target_format(cls, v: str) -> str:
        """Normalize and validate the target format."""
        normalized = v.strip().lstrip(".").casefold()
        if not is_supported(normalized):
            raise ValueError(
                f"Invalid target format '{v}'. Must be a supported video, "
                "audio or image format."
            )
        return normalized

    @field_validator("quality")
    @classmethod
    def validate_quality(cls, v: str) -> str:
        """Validate quality tier (case-insensitive)."""
        normalized = v.strip().casefold()
        if normalized not in VALID_QUALITIES:
            raise ValueError(
                f"Invalid quality '{v}'. Must be one of: {', '.join(VALID_QUALITIES)}"
            )
        return normalized
