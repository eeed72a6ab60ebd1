"""JSON error responses for the conversion API.

Error bodies look like ``{"error": "File is empty", "code": "VALIDATION_ERROR"}``
with an optional ``details`` value. Each ErrorCode knows its HTTP status, and
conversion exceptions map to a code through error_for(), so handlers rarely
spell out a status themselves.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from aiohttp import web

from fcs.jobs.exceptions import (
    ConversionError,
    DispatcherClosedError,
    FileTooLargeError,
    UnsupportedFormatError,
    UploadValidationError,
)


class ErrorCode(str, Enum):
    """Machine-readable error codes returned in the ``code`` field."""

    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_ID_FORMAT = "INVALID_ID_FORMAT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    NOT_FOUND = "NOT_FOUND"
    UPLOAD_ERROR = "UPLOAD_ERROR"
    SHUTTING_DOWN = "SHUTTING_DOWN"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS.get(self, 400)


_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.FILE_TOO_LARGE: 413,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.UPLOAD_ERROR: 500,
    ErrorCode.SHUTTING_DOWN: 503,
}

# Most specific class first; FileTooLargeError is an UploadValidationError
_EXCEPTION_CODES: tuple[tuple[type[ConversionError], ErrorCode], ...] = (
    (FileTooLargeError, ErrorCode.FILE_TOO_LARGE),
    (UploadValidationError, ErrorCode.VALIDATION_ERROR),
    (UnsupportedFormatError, ErrorCode.UNSUPPORTED_FORMAT),
    (DispatcherClosedError, ErrorCode.SHUTTING_DOWN),
)

SHUTTING_DOWN_MESSAGE = "Service is shutting down"


def api_error(
    message: str, code: ErrorCode, *, details: Any = None
) -> web.Response:
    """Build the JSON error response for a code.

    Args:
        message: Human-readable error description.
        code: Error code; also decides the HTTP status.
        details: Optional extra context (string, list or dict).
    """
    body: dict[str, Any] = {"error": message, "code": code.value}
    if details is not None:
        body["details"] = details
    return web.json_response(body, status=code.http_status)


def error_for(exc: ConversionError) -> web.Response:
    """Translate a conversion exception into its API error response.

    Raises:
        TypeError: If the exception has no API representation.
    """
    for exc_type, code in _EXCEPTION_CODES:
        if isinstance(exc, exc_type):
            if code is ErrorCode.SHUTTING_DOWN:
                return api_error(SHUTTING_DOWN_MESSAGE, code)
            return api_error(str(exc), code)
    raise TypeError(f"No API error for {type(exc).__name__}") from exc
