"""Unit tests for server/api/errors.py."""

from __future__ import annotations

import json

import pytest

from fcs.domain.enums import JobStatus
from fcs.jobs.exceptions import (
    DispatcherClosedError,
    FileTooLargeError,
    InvalidJobTransitionError,
    UnsupportedFormatError,
    UploadValidationError,
)
from fcs.server.api.errors import ErrorCode, api_error, error_for


class TestApiError:
    """Tests for the api_error helper function."""

    def test_body_has_error_and_code(self):
        """Response body contains the message and the code value."""
        resp = api_error("Bad input", ErrorCode.INVALID_REQUEST)

        assert json.loads(resp.body) == {
            "error": "Bad input",
            "code": "INVALID_REQUEST",
        }
        assert resp.status == 400
        assert resp.content_type == "application/json"

    @pytest.mark.parametrize(
        "code,status",
        [
            (ErrorCode.VALIDATION_ERROR, 400),
            (ErrorCode.INVALID_ID_FORMAT, 400),
            (ErrorCode.UNSUPPORTED_FORMAT, 400),
            (ErrorCode.FILE_TOO_LARGE, 413),
            (ErrorCode.NOT_FOUND, 404),
            (ErrorCode.UPLOAD_ERROR, 500),
            (ErrorCode.SHUTTING_DOWN, 503),
        ],
    )
    def test_status_follows_code(self, code, status):
        """Each code answers with its own HTTP status."""
        assert api_error("x", code).status == status

    def test_details_included_when_provided(self):
        """Details may carry per-field validation errors."""
        details = [{"field": "quality", "message": "bad"}]
        resp = api_error("Invalid", ErrorCode.VALIDATION_ERROR, details=details)

        assert json.loads(resp.body)["details"] == details

    def test_details_omitted_by_default(self):
        """No details key appears unless details are given."""
        resp = api_error("Job not found", ErrorCode.NOT_FOUND)

        assert "details" not in json.loads(resp.body)


class TestErrorFor:
    """Tests for mapping conversion exceptions to responses."""

    def test_file_too_large_wins_over_upload_validation(self):
        """The size error maps to 413 even though it is an upload error."""
        resp = error_for(FileTooLargeError("100MB"))

        body = json.loads(resp.body)
        assert resp.status == 413
        assert body["code"] == "FILE_TOO_LARGE"
        assert body["error"] == "File size exceeds maximum allowed size: 100MB"

    def test_upload_validation(self):
        """Rejected uploads are validation errors carrying the message."""
        resp = error_for(UploadValidationError("File is empty"))

        assert json.loads(resp.body) == {
            "error": "File is empty",
            "code": "VALIDATION_ERROR",
        }

    def test_unsupported_format(self):
        """Unsupported targets map to UNSUPPORTED_FORMAT."""
        resp = error_for(UnsupportedFormatError("xyz"))

        assert json.loads(resp.body)["code"] == "UNSUPPORTED_FORMAT"

    def test_closed_dispatcher_is_shutting_down(self):
        """A closed dispatcher reads as the service shutting down."""
        resp = error_for(DispatcherClosedError("closed"))

        assert resp.status == 503
        assert json.loads(resp.body)["error"] == "Service is shutting down"

    def test_unmapped_exception_raises(self):
        """Exceptions without an API form are not silently turned into 400s."""
        exc = InvalidJobTransitionError("id", JobStatus.COMPLETED, JobStatus.PENDING)

        with pytest.raises(TypeError):
            error_for(exc)
