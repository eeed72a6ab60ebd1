"""Structured logging module for the conversion service.

Provides configurable logging with JSON format support and file rotation.
Includes job context support so worker-thread log lines carry the job id.
"""

from fcs.logging.config import configure_logging
from fcs.logging.context import (
    JobContextFilter,
    clear_job_context,
    get_job_context,
    job_context,
    set_job_context,
)
from fcs.logging.handlers import JSONFormatter

__all__ = [
    "JSONFormatter",
    "JobContextFilter",
    "clear_job_context",
    "configure_logging",
    "get_job_context",
    "job_context",
    "set_job_context",
]
