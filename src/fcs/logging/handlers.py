"""JSON log lines for journald and log shippers.

A line looks like::

    {"ts": "2026-01-02T03:04:05.678+00:00", "level": "INFO",
     "logger": "fcs.jobs.dispatcher", "msg": "Job finished",
     "job": {"id": "1b4e28ba-...", "source": "/var/fcs/uploads/..."},
     "extra": {"returncode": 0}}

``job`` appears when the record was logged inside a job context, ``extra``
when the call passed ``extra=...``, and ``exc`` when it carried exc_info.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord has, plus the ones formatting and the job
# context filter add; anything else came from extra=...
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName", "job_id", "source_file", "job_tag"}


def _timestamp(record: logging.LogRecord) -> str:
    moment = datetime.fromtimestamp(record.created, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds")


class JSONFormatter(logging.Formatter):
    """Render each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": _timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        job_id = getattr(record, "job_id", None)
        if job_id:
            source = getattr(record, "source_file", None)
            entry["job"] = {"id": job_id, "source": source}

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if extra:
            entry["extra"] = extra

        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        elif record.stack_info:
            entry["exc"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str)
