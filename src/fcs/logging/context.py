"""Job context for structured logging.

Provides context propagation for worker threads using contextvars, enabling
automatic injection of job_id and source_file into log records.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

# Number of job id characters shown in the compact text tag
_TAG_LENGTH = 8

_job_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_id", default=None
)
_source_file: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "source_file", default=None
)


def set_job_context(job_id: str, source_file: Path | str | None = None) -> None:
    """Set the current job context.

    Args:
        job_id: Identifier of the job being processed.
        source_file: Path of the job's source file, or None.
    """
    _job_id.set(job_id)
    _source_file.set(str(source_file) if source_file is not None else None)


def clear_job_context() -> None:
    """Clear the current job context."""
    _job_id.set(None)
    _source_file.set(None)


@contextmanager
def job_context(
    job_id: str, source_file: Path | str | None = None
) -> Generator[None, None, None]:
    """Context manager for job processing context.

    Sets job context on entry and restores the previous context on exit.

    Example:
        with job_context(job.job_id, job.original_file_path):
            logger.info("Converting")  # Automatically includes context
    """
    old_job_id = _job_id.get()
    old_source_file = _source_file.get()
    try:
        set_job_context(job_id, source_file)
        yield
    finally:
        _job_id.set(old_job_id)
        _source_file.set(old_source_file)


def get_job_context() -> tuple[str | None, str | None]:
    """Get current job context.

    Returns:
        Tuple of (job_id, source_file), either may be None.
    """
    return _job_id.get(), _source_file.get()


class JobContextFilter(logging.Filter):
    """Logging filter that injects job context into log records.

    Adds job_id and source_file attributes to every LogRecord. For text
    format, also adds a compact job_tag like ``[job:1b4e28ba] ``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Inject job context into the log record. Never filters records out."""
        job_id, source_file = get_job_context()

        record.job_id = job_id
        record.source_file = source_file
        record.job_tag = f"[job:{job_id[:_TAG_LENGTH]}] " if job_id else ""

        return True
