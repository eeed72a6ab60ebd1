"""Install the service's log handlers on the root logger.

configure_logging() may run more than once (the CLI group and ``fcs serve``
both call it). Each call replaces the handlers installed by the previous
call and leaves handlers that other code attached to the root logger alone.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING

from fcs.logging.context import JobContextFilter
from fcs.logging.handlers import JSONFormatter

if TYPE_CHECKING:
    from fcs.config.models import LoggingConfig

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(job_tag)s%(name)s: %(message)s"
TEXT_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"

# Marks handlers owned by configure_logging()
_OWNED = "_fcs_owned"


def build_formatter(log_format: str) -> logging.Formatter:
    """Return the formatter for "json" or "text" output."""
    if log_format.casefold() == "json":
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT)


def _file_handler(config: LoggingConfig) -> logging.Handler | None:
    if config.file is None:
        return None
    path = config.file.expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"Warning: cannot write log file {path}: {e}\n")
        return None


def configure_logging(config: LoggingConfig) -> list[logging.Handler]:
    """Route root logging to stderr and/or a rotating file.

    The file handler is used when ``config.file`` is set and can be opened.
    Stderr is used when requested or when there is no usable file.

    Args:
        config: Logging configuration.

    Returns:
        The handlers that were installed.
    """
    level = logging.getLevelName(config.level.upper())
    formatter = build_formatter(config.format)
    job_filter = JobContextFilter()

    handlers: list[logging.Handler] = []
    file_handler = _file_handler(config)
    if file_handler is not None:
        handlers.append(file_handler)
    if config.include_stderr or file_handler is None:
        handlers.append(logging.StreamHandler(sys.stderr))

    root = logging.getLogger()
    for old in [h for h in root.handlers if getattr(h, _OWNED, False)]:
        root.removeHandler(old)
        old.close()

    for handler in handlers:
        setattr(handler, _OWNED, True)
        handler.setFormatter(formatter)
        handler.addFilter(job_filter)
        root.addHandler(handler)
    root.setLevel(level)
    return handlers
