"""Unit tests for the ConversionRequest model."""

import pytest
from pydantic import ValidationError

from fcs.jobs.requests import ConversionRequest


class TestConversionRequest:
    """Tests for ConversionRequest validation."""

    def test_defaults(self):
        """Only the target format is required."""
        request = ConversionRequest(target_format="mp4")

        assert request.quality == "medium"
        assert request.width is None
        assert request.height is None
        assert request.bitrate is None

    def test_accepts_form_aliases(self):
        """The camelCase form field name is accepted."""
        request = ConversionRequest.model_validate(
            {"targetFormat": "MP3", "quality": "HIGH", "bitrate": "192"}
        )

        assert request.target_format == "mp3"
        assert request.quality == "high"
        assert request.bitrate == 192

    def test_normalizes_leading_dot(self):
        """A leading dot on the format is ignored."""
        assert ConversionRequest(target_format=".PNG").target_format == "png"

    def test_rejects_unsupported_format(self):
        """Formats outside the supported set are rejected."""
        with pytest.raises(ValidationError, match="Invalid target format"):
            ConversionRequest(target_format="webm")

    def test_rejects_missing_format(self):
        """The target format is required."""
        with pytest.raises(ValidationError):
            ConversionRequest.model_validate({})

    def test_rejects_unknown_quality(self):
        """Quality must be low, medium or high."""
        with pytest.raises(ValidationError, match="quality"):
            ConversionRequest(target_format="mp4", quality="ultra")

    @pytest.mark.parametrize("field", ["width", "height", "bitrate"])
    def test_rejects_non_positive_numbers(self, field):
        """Dimensions and bitrate must be positive."""
        with pytest.raises(ValidationError):
            ConversionRequest(target_format="mp4", **{field: 0})

    def test_rejects_unknown_fields(self):
        """Unexpected parameters are rejected."""
        with pytest.raises(ValidationError):
            ConversionRequest.model_validate({"targetFormat": "mp4", "codec": "x"})

    def test_is_frozen(self):
        """Requests are immutable once validated."""
        request = ConversionRequest(target_format="mp4")

        with pytest.raises(ValidationError):
            request.quality = "high"
