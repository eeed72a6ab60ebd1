"""Conversion API handlers.

Endpoints:
    POST /api/convert                 - Upload a file and start a conversion
    GET  /api/status/{job_id}         - Get the status of a conversion job
    GET  /api/files/download/{job_id} - Download a converted file
    GET  /api/formats                 - List supported target formats
"""

from __future__ import annotations

import asyncio
import logging
import re
import tempfile
from typing import Any

from aiohttp import BodyPartReader, web
from pydantic import ValidationError

from fcs.formats import supported_formats
from fcs.jobs.exceptions import (
    ConversionError,
    ConvertedFileUnavailableError,
    FileTooLargeError,
    JobNotFoundError,
    UnsupportedFormatError,
)
from fcs.jobs.requests import ConversionRequest
from fcs.jobs.services.conversion import ConversionResponse, ConversionService
from fcs.server.api.errors import ErrorCode, api_error, error_for
from fcs.server.middleware import shutdown_check_middleware

logger = logging.getLogger(__name__)

# Uploads larger than this spill from memory to a temporary file
SPOOL_MAX_MEMORY = 8 * 1024 * 1024

FILE_FIELD = "file"

FORM_FIELDS = ("targetFormat", "quality", "width", "height", "bitrate")

# Hyphenated UUID in either case; anything else never reaches the store
JOB_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def _get_service(request: web.Request) -> ConversionService:
    return request.app["service"]


def _job_id(request: web.Request) -> str | None:
    """Return the job id from the URL, or None if it is not a job id."""
    job_id = request.match_info["job_id"]
    return job_id if JOB_ID_PATTERN.match(job_id) else None


def _invalid_job_id() -> web.Response:
    return api_error("Invalid job ID format", ErrorCode.INVALID_ID_FORMAT)


def _job_not_found() -> web.Response:
    return api_error("Job not found", ErrorCode.NOT_FOUND)


def _validation_details(error: ValidationError) -> list[dict[str, str]]:
    """Reduce pydantic errors to JSON-safe field/message pairs."""
    details = []
    for err in error.errors():
        field = ".".join(str(part) for part in err["loc"]) or "request"
        details.append({"field": field, "message": err["msg"]})
    return details


@shutdown_check_middleware
async def api_convert_handler(request: web.Request) -> web.Response:
    """Handle POST /api/convert - upload a file and start a conversion.

    Multipart form fields:
        file: The file to convert (required).
        targetFormat: Target format extension (required).
        quality: low, medium or high (default medium).
        width, height: Output dimensions in pixels (optional).
        bitrate: Bitrate in kbit/s (optional).

    Returns:
        JSON job view in its PENDING state, with the acceptance message.
    """
    if not request.content_type.startswith("multipart/"):
        return api_error(
            "Request must be multipart/form-data", ErrorCode.INVALID_REQUEST
        )

    service = _get_service(request)
    limit = service.max_file_size_bytes
    fields: dict[str, Any] = {}
    filename: str | None = None
    spool = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_MEMORY)

    try:
        try:
            reader = await request.multipart()
            while True:
                part = await reader.next()
                if part is None:
                    break
                if not isinstance(part, BodyPartReader):
                    continue
                if part.name == FILE_FIELD:
                    filename = part.filename
                    size = 0
                    while chunk := await part.read_chunk():
                        size += len(chunk)
                        if size > limit:
                            raise FileTooLargeError(
                                service.config.storage.max_file_size
                            )
                        spool.write(chunk)
                elif part.name in FORM_FIELDS:
                    value = (await part.text()).strip()
                    if value:
                        fields[part.name] = value
        except FileTooLargeError as e:
            logger.warning("Rejected upload %s: %s", filename, e)
            return error_for(e)
        except ValueError as e:
            return api_error(
                "Malformed multipart request",
                ErrorCode.INVALID_REQUEST,
                details=str(e),
            )

        if "targetFormat" in fields:
            try:
                ConversionService.validate_target_format(fields["targetFormat"])
            except UnsupportedFormatError as e:
                return error_for(e)

        try:
            conversion_request = ConversionRequest.model_validate(fields)
        except ValidationError as e:
            return api_error(
                "Invalid conversion parameters",
                ErrorCode.VALIDATION_ERROR,
                details=_validation_details(e),
            )

        spool.seek(0)
        try:
            job = await asyncio.to_thread(
                service.start_conversion, spool, filename, conversion_request
            )
        except ConversionError as e:
            return error_for(e)
        except OSError as e:
            logger.error("Failed to store upload %s: %s", filename, e)
            return api_error(f"Failed to upload file: {e}", ErrorCode.UPLOAD_ERROR)
    finally:
        spool.close()

    return web.json_response(ConversionResponse.accepted(job).to_dict())


async def api_status_handler(request: web.Request) -> web.Response:
    """Handle GET /api/status/{job_id} - get conversion job status.

    Returns:
        JSON response with the job fields and downloadUrl.
    """
    job_id = _job_id(request)
    if job_id is None:
        return _invalid_job_id()

    response = _get_service(request).get_status(job_id)
    if response is None:
        return _job_not_found()
    return web.json_response(response.to_dict())


async def api_download_handler(request: web.Request) -> web.StreamResponse:
    """Handle GET /api/files/download/{job_id} - download a converted file.

    Returns:
        The converted file as an attachment, or 404 if it is not available.
    """
    job_id = _job_id(request)
    if job_id is None:
        return _invalid_job_id()

    service = _get_service(request)
    try:
        path = await asyncio.to_thread(service.get_converted_file, job_id)
    except JobNotFoundError:
        return _job_not_found()
    except ConvertedFileUnavailableError as e:
        return api_error(
            "Converted file not available", ErrorCode.NOT_FOUND, details=e.reason
        )

    job = service.get_job(job_id)
    download_name = (job.converted_file_name if job else path.name).replace('"', "")
    return web.FileResponse(
        path,
        headers={"Content-Disposition": f'attachment; filename="{download_name}"'},
    )


async def api_formats_handler(request: web.Request) -> web.Response:
    """Handle GET /api/formats - list supported target formats by category."""
    return web.json_response(supported_formats())


def setup_conversion_routes(app: web.Application) -> None:
    """Register conversion API routes with the application.

    Args:
        app: aiohttp Application to configure.
    """
    app.router.add_post("/api/convert", api_convert_handler)
    app.router.add_get("/api/status/{job_id}", api_status_handler)
    app.router.add_get("/api/files/download/{job_id}", api_download_handler)
    app.router.add_get("/api/formats", api_formats_handler)
