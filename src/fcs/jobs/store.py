"""In-memory job store.

JobStore owns every ConversionJob record for the lifetime of the process
(or until purged). All operations take a single lock, so the store can be
shared between HTTP handlers and worker threads.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from datetime import datetime

from fcs.domain.enums import JobStatus
from fcs.domain.models import ConversionJob

logger = logging.getLogger(__name__)


class JobStore:
    """Thread-safe mapping of job id to ConversionJob."""

    def __init__(self) -> None:
        self._jobs: dict[str, ConversionJob] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        with self._lock:
            return job_id in self._jobs

    def put(self, job: ConversionJob) -> None:
        """Store a job under its job_id, replacing any existing record."""
        with self._lock:
            self._jobs[job.job_id] = job

    def get(self, job_id: str) -> ConversionJob | None:
        """Return the job with the given id, or None if unknown."""
        with self._lock:
            return self._jobs.get(job_id)

    def remove(self, job_id: str) -> ConversionJob | None:
        """Remove and return a job, or None if unknown."""
        with self._lock:
            return self._jobs.pop(job_id, None)

    def list_jobs(self, status: JobStatus | None = None) -> list[ConversionJob]:
        """Return jobs ordered by creation time, optionally filtered by status."""
        with self._lock:
            jobs = list(self._jobs.values())
        if status is not None:
            jobs = [job for job in jobs if job.status is status]
        return sorted(jobs, key=lambda job: job.created_at)

    def count_by_status(self) -> dict[JobStatus, int]:
        """Return the number of jobs in each status (zero counts included)."""
        with self._lock:
            counts = Counter(job.status for job in self._jobs.values())
        return {status: counts.get(status, 0) for status in JobStatus}

    def purge_finished(self, older_than: datetime) -> list[ConversionJob]:
        """Remove terminal jobs that finished before a cutoff.

        Args:
            older_than: Jobs whose completed_at is earlier than this are removed.

        Returns:
            The removed jobs.
        """
        with self._lock:
            expired = [
                job
                for job in self._jobs.values()
                if job.is_terminal
                and job.completed_at is not None
                and job.completed_at < older_than
            ]
            for job in expired:
                del self._jobs[job.job_id]
        if expired:
            logger.info("Purged %d finished job(s) from the job store", len(expired))
        return expired
