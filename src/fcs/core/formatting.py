"""Size parsing and formatting utilities.

Pure functions shared by configuration, upload validation and CLI output.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_SIZE = 100 * 1024 * 1024

_SIZE_UNITS: dict[str, int] = {
    "": 1,
    "B": 1,
    "KB": 1024,
    "MB": 1024**2,
    "GB": 1024**3,
}

_SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*([KMG]?B)?\s*$", re.IGNORECASE)


def parse_file_size(value: str | int | None) -> int:
    """Parse a size such as "100MB", "512kb" or "2GB" into bytes.

    Units are binary (1KB = 1024 bytes). A bare number is bytes. Invalid
    input logs a warning and yields the 100MB default.

    Args:
        value: Size string or integer byte count.

    Returns:
        Size in bytes.
    """
    if isinstance(value, int):
        return value if value > 0 else DEFAULT_MAX_FILE_SIZE
    match = _SIZE_PATTERN.match(value or "")
    if not match:
        logger.warning("Invalid file size %r, using default of 100MB", value)
        return DEFAULT_MAX_FILE_SIZE
    number, unit = match.groups()
    size = int(number) * _SIZE_UNITS[(unit or "").upper()]
    if size <= 0:
        logger.warning("Invalid file size %r, using default of 100MB", value)
        return DEFAULT_MAX_FILE_SIZE
    return size


def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: File size in bytes.

    Returns:
        Formatted string (e.g., "4.2 GB", "128.0 MB", "1.5 KB").
    """
    if size_bytes >= 1024**3:
        return f"{size_bytes / (1024**3):.1f} GB"
    elif size_bytes >= 1024**2:
        return f"{size_bytes / (1024**2):.1f} MB"
    elif size_bytes >= 1024:
        return f"{size_bytes / 1024:.1f} KB"
    else:
        return f"{size_bytes} B"
