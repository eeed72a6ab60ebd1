"""Conversion job storage, dispatch and services."""

from fcs.jobs.dispatcher import ConversionDispatcher
from fcs.jobs.exceptions import (
    ConversionError,
    ConvertedFileUnavailableError,
    DispatcherClosedError,
    FileTooLargeError,
    InvalidJobTransitionError,
    JobNotFoundError,
    UnsupportedFormatError,
    UploadValidationError,
)
from fcs.jobs.requests import ConversionRequest
from fcs.jobs.store import JobStore

__all__ = [
    "ConversionDispatcher",
    "ConversionError",
    "ConversionRequest",
    "ConvertedFileUnavailableError",
    "DispatcherClosedError",
    "FileTooLargeError",
    "InvalidJobTransitionError",
    "JobNotFoundError",
    "JobStore",
    "UnsupportedFormatError",
    "UploadValidationError",
]
