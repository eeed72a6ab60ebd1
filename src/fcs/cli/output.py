"""Printing conversion outcomes for humans and for --json.

JSON documents share one shape::

    {"status": "completed" | "failed",
     "message": "...",                            # completed only
     "error": {"code": "CONVERSION_FAILED", ...}, # failed only
     "job": {...}, "convertedFilePath": "..."}    # when a job exists
"""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING, Any, NoReturn

import click

from fcs.cli.exit_codes import ExitCode
from fcs.core.formatting import format_file_size

if TYPE_CHECKING:
    from fcs.domain.models import ConversionJob


def _job_fields(job: ConversionJob | None) -> dict[str, Any]:
    if job is None:
        return {}
    return {"job": job.to_dict(), "convertedFilePath": str(job.converted_file_path)}


def _dump(document: dict[str, Any]) -> str:
    return json.dumps(document, indent=2)


def error_exit(
    message: str,
    code: ExitCode,
    json_output: bool = False,
    job: ConversionJob | None = None,
) -> NoReturn:
    """Print an error to stderr and exit with ``code``.

    Args:
        message: What went wrong.
        code: Process exit code; its name is the JSON error code.
        json_output: Print a JSON document instead of ``Error: message``.
        job: The failed job, included in JSON output when given.
    """
    if json_output:
        document = {
            "status": "failed",
            "error": {"code": code.name, "message": message},
            **_job_fields(job),
        }
        click.echo(_dump(document), err=True)
    else:
        click.echo(f"Error: {message}", err=True)
    sys.exit(int(code))


def report_conversion(job: ConversionJob, json_output: bool = False) -> None:
    """Print a completed conversion."""
    size = job.converted_file_size
    size_display = format_file_size(size) if size is not None else "unknown size"
    message = (
        f"Converted {job.original_file_path} -> {job.converted_file_path} "
        f"({size_display})"
    )
    if json_output:
        document = {"status": "completed", "message": message, **_job_fields(job)}
        click.echo(_dump(document))
    else:
        click.echo(message)
