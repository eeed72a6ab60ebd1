"""Background dispatch of conversion jobs.

ConversionDispatcher stores submitted jobs and runs them on a bounded
thread pool. It is the only component that changes job state.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor

from fcs.domain.models import ConversionJob
from fcs.executor.runner import TranscodeRunner
from fcs.jobs.exceptions import DispatcherClosedError
from fcs.jobs.store import JobStore
from fcs.logging.context import job_context

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 2

SHUTDOWN_MESSAGE = "Conversion cancelled: service shutting down"


class ConversionDispatcher:
    """Schedules conversion jobs on a bounded worker pool.

    At most ``max_workers`` transcodes run at once; further submissions wait
    in FIFO order as PENDING jobs.

    Example:
        dispatcher = ConversionDispatcher(store, runner, max_workers=2)
        dispatcher.submit(job)
        ...
        dispatcher.fetch(job.job_id).status
    """

    def __init__(
        self,
        store: JobStore,
        runner: TranscodeRunner,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            store: Job store that owns the job records.
            runner: Runner used to execute transcodes.
            max_workers: Maximum number of concurrent transcodes.

        Raises:
            ValueError: If max_workers is less than 1.
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.store = store
        self.runner = runner
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="fcs-worker"
        )
        self._futures: dict[str, Future[ConversionJob]] = {}
        self._lock = threading.Lock()
        self._active = 0
        self._closed = False

    @property
    def is_closed(self) -> bool:
        """Returns True once shutdown() has been called."""
        return self._closed

    def submit(self, job: ConversionJob) -> ConversionJob:
        """Store a PENDING job and schedule it for background execution.

        The job is in the store before this method returns.

        Args:
            job: Job to run.

        Returns:
            The submitted job.

        Raises:
            DispatcherClosedError: If the dispatcher has been shut down.
        """
        with self._lock:
            if self._closed:
                raise DispatcherClosedError("Dispatcher is shut down")
            self.store.put(job)
            future = self._executor.submit(self.execute, job)
            self._futures[job.job_id] = future
        future.add_done_callback(lambda _f, job_id=job.job_id: self._forget(job_id))
        logger.info(
            "Queued conversion job %s: %s -> %s",
            job.job_id,
            job.original_file_name,
            job.target_format,
        )
        return job

    def run_inline(self, job: ConversionJob) -> ConversionJob:
        """Store a PENDING job and run it to completion in the calling thread."""
        if self._closed:
            raise DispatcherClosedError("Dispatcher is shut down")
        self.store.put(job)
        return self.execute(job)

    def fetch(self, job_id: str) -> ConversionJob | None:
        """Return the job with the given id, or None if unknown."""
        return self.store.get(job_id)

    def active_count(self) -> int:
        """Number of jobs currently executing."""
        with self._lock:
            return self._active

    def execute(self, job: ConversionJob) -> ConversionJob:
        """Run a job to a terminal state in the calling thread.

        Never raises for conversion failures; they are recorded on the job.

        Args:
            job: PENDING job to run.

        Returns:
            The same job, now COMPLETED or FAILED.
        """
        with job_context(job.job_id, job.original_file_path):
            with self._lock:
                self._active += 1
            try:
                logger.info("Starting conversion for job %s", job.job_id)
                job.mark_processing()
                try:
                    result = self.runner.run(job)
                except Exception as e:
                    logger.exception("Error processing conversion job %s", job.job_id)
                    job.mark_failed(f"Processing error: {e}")
                    return job

                if result.success:
                    job.mark_completed(result.output_size)
                    logger.info("Conversion completed for job %s", job.job_id)
                else:
                    job.mark_failed(result.error_message or "Conversion failed")
                    logger.error(
                        "Conversion failed for job %s: %s",
                        job.job_id,
                        job.error_message,
                    )
                return job
            finally:
                with self._lock:
                    self._active -= 1

    def shutdown(self, *, wait: bool = True, cancel_pending: bool = True) -> None:
        """Stop accepting jobs and release the worker pool.

        Args:
            wait: Block until running transcodes finish.
            cancel_pending: Mark jobs that have not started as FAILED instead
                of running them.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            pending = list(self._futures.items())

        cancelled = 0
        if cancel_pending:
            for job_id, future in pending:
                if future.cancel():
                    job = self.store.get(job_id)
                    if job is not None and not job.is_terminal:
                        job.mark_failed(SHUTDOWN_MESSAGE)
                    cancelled += 1
        if cancelled:
            logger.info("Cancelled %d queued conversion job(s)", cancelled)

        self._executor.shutdown(wait=wait)
        logger.debug("Conversion dispatcher shut down")

    def _forget(self, job_id: str) -> None:
        with self._lock:
            self._futures.pop(job_id, None)
