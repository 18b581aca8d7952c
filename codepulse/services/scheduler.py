"""
Job Scheduler for CodePulse

Accepts analysis requests, deduplicates them per (repository, requester),
runs them on a bounded worker pool with retry and exponential backoff, and
answers status polls from the jobs table.

Job lifecycle:
    queued -> active -> completed
                     -> queued (backoff) -> active ...
                     -> failed
"""

import logging
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.orm import sessionmaker

from ..errors import FetchError
from ..models import AnalysisJob
from ..schemas import JobState, JobStatus
from .analyzer import AnalysisPipeline
from .github import normalize_repo_url
from .report_store import SqlReportStore

logger = logging.getLogger(__name__)


# =============================================================================
# PROGRESS MILESTONES
# =============================================================================

PROGRESS_STARTED = 10
PROGRESS_PERSISTED = 100


@dataclass(frozen=True)
class SubmitOutcome:
    job_id: str
    result_ref: str
    redirect: bool = False


@dataclass(frozen=True)
class _JobSnapshot:
    id: str
    repo_ref: str
    requester_id: str
    result_ref: str
    state: str
    attempts: int


class JobScheduler:
    """
    Durable job queue on top of the jobs table.

    The table is the queue: submit() inserts a queued row, start() re-enqueues
    whatever a previous process left unfinished.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        store: SqlReportStore,
        pipeline: AnalysisPipeline,
        *,
        workers: int = 2,
        max_attempts: int = 3,
        backoff_base: float = 5.0,
        dedup_window: timedelta = timedelta(hours=24),
        sleep: Callable[[float], object] | None = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.session_factory = session_factory
        self.store = store
        self.pipeline = pipeline
        self.workers = max(1, workers)
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.dedup_window = dedup_window
        self._stop = threading.Event()
        # Default backoff wait returns early once shutdown() sets the stop event
        self.sleep = sleep or self._stop.wait

        self._executor: ThreadPoolExecutor | None = None
        self._futures: dict[str, Future] = {}
        self._lock = threading.Lock()
        self._accepting = False

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> None:
        """Start the worker pool and recover unfinished jobs."""
        with self._lock:
            if self._executor is not None:
                return
            self._executor = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="job-worker")
            self._accepting = True
            self._stop.clear()

        with self.session_factory() as session:
            pending = (
                session.query(AnalysisJob)
                .filter(AnalysisJob.state.in_((JobState.QUEUED.value, JobState.ACTIVE.value)))
                .order_by(AnalysisJob.created_at)
                .all()
            )
            job_ids = [job.id for job in pending]
            for job in pending:
                # An active row here was interrupted mid-attempt
                job.state = JobState.QUEUED.value
            session.commit()

        if job_ids:
            logger.info(f"Recovering {len(job_ids)} unfinished job(s)")
        for job_id in job_ids:
            self._enqueue(job_id)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work. Jobs not yet picked up stay queued for the next start()."""
        with self._lock:
            self._accepting = False
            self._stop.set()
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait, cancel_futures=True)

    def wait(self, job_id: str, timeout: float | None = None) -> JobStatus:
        """Block until the in-process run of `job_id` finishes, then return its status."""
        with self._lock:
            future = self._futures.get(job_id)
        if future is not None:
            future.result(timeout=timeout)
        return self.status(job_id)

    # =========================================================================
    # SUBMISSION & STATUS
    # =========================================================================

    def submit(self, repo_ref: str, requester_id: str) -> SubmitOutcome:
        """
        Submit an analysis request.

        Raises:
            InvalidRepoRef: repo_ref is not a GitHub repository URL
            ValueError: requester_id is empty
        """
        repo_ref = normalize_repo_url(repo_ref)
        if not requester_id:
            raise ValueError("requester_id is required")

        job_id = str(uuid.uuid4())
        result_ref = str(uuid.uuid4())
        now = datetime.utcnow()

        with self.session_factory() as session:
            blocking = self.store.claim(
                session,
                repo_ref,
                requester_id,
                result_ref=result_ref,
                job_id=job_id,
                window=self.dedup_window,
                now=now,
            )
            if blocking is not None:
                logger.info(
                    f"Redirecting {requester_id} to recent analysis {blocking.result_ref} of {repo_ref}",
                    extra={"job_id": blocking.job_id},
                )
                return SubmitOutcome(job_id=blocking.job_id, result_ref=blocking.result_ref, redirect=True)

            session.add(AnalysisJob(
                id=job_id,
                repo_ref=repo_ref,
                requester_id=requester_id,
                state=JobState.QUEUED.value,
                progress=0,
                attempts=0,
                created_at=now,
                result_ref=result_ref,
            ))
            session.commit()

        logger.info(f"Submitted analysis of {repo_ref}", extra={"job_id": job_id})
        self._enqueue(job_id)
        return SubmitOutcome(job_id=job_id, result_ref=result_ref)

    def status(self, job_id: str) -> JobStatus:
        with self.session_factory() as session:
            job = session.get(AnalysisJob, job_id)
            if job is None:
                return JobStatus(job_id=job_id, state=JobState.NOT_FOUND)
            return JobStatus(
                job_id=job.id,
                state=JobState(job.state),
                progress=job.progress,
                failure_reason=job.failure_reason,
                report_id=job.result_ref if job.state == JobState.COMPLETED.value else None,
                created_at=job.created_at,
                finished_at=job.finished_at,
            )

    # =========================================================================
    # EXECUTION
    # =========================================================================

    def _enqueue(self, job_id: str) -> None:
        with self._lock:
            if not self._accepting or self._executor is None:
                logger.info("Scheduler not running, job stays queued", extra={"job_id": job_id})
                return
            running = self._futures.get(job_id)
            if running is not None and not running.done():
                return
            self._futures[job_id] = self._executor.submit(self._run_job, job_id)

    def _snapshot(self, job_id: str) -> _JobSnapshot | None:
        with self.session_factory() as session:
            job = session.get(AnalysisJob, job_id)
            if job is None:
                return None
            return _JobSnapshot(
                id=job.id,
                repo_ref=job.repo_ref,
                requester_id=job.requester_id,
                result_ref=job.result_ref,
                state=job.state,
                attempts=job.attempts,
            )

    def _update(self, job_id: str, **values) -> None:
        with self.session_factory() as session:
            session.query(AnalysisJob).filter(AnalysisJob.id == job_id).update(values, synchronize_session=False)
            session.commit()

    def _report_progress(self, job_id: str, value: int) -> None:
        """Store max(current, value) in one statement."""
        with self.session_factory() as session:
            session.query(AnalysisJob).filter(
                AnalysisJob.id == job_id,
                AnalysisJob.progress < value,
            ).update({"progress": value}, synchronize_session=False)
            session.commit()

    def _run_job(self, job_id: str) -> None:
        try:
            self._execute(job_id)
        except Exception as e:
            # Row is left for start-up recovery
            logger.exception(f"Job worker crashed: {e}", extra={"job_id": job_id})
            raise

    def _execute(self, job_id: str) -> None:
        job = self._snapshot(job_id)
        if job is None or job.state in (JobState.COMPLETED.value, JobState.FAILED.value):
            return

        attempt = job.attempts
        last_error: BaseException | None = None

        while attempt < self.max_attempts:
            attempt += 1
            try:
                self._update(job_id, state=JobState.ACTIVE.value, attempts=attempt, started_at=datetime.utcnow())
                self._report_progress(job_id, PROGRESS_STARTED)
                logger.info(f"Attempt {attempt}/{self.max_attempts} started for {job.repo_ref}", extra={"job_id": job_id})

                output = self.pipeline.run(job.repo_ref, lambda value: self._report_progress(job_id, value))
                self.store.put(
                    job.result_ref,
                    output.result,
                    repo_ref=job.repo_ref,
                    requester_id=job.requester_id,
                    variant=output.variant,
                    repo_name=output.repo_name,
                )
            except Exception as e:
                last_error = e
                retryable = getattr(e, "retryable", True)
                if retryable:
                    logger.warning(f"Attempt {attempt} failed: {e}", extra={"job_id": job_id})
                elif isinstance(e, FetchError):
                    logger.warning(f"Attempt {attempt} failed permanently: {e}", extra={"job_id": job_id})
                    break
                else:
                    logger.exception(f"Attempt {attempt} failed permanently: {e}", extra={"job_id": job_id})
                    break
                if attempt >= self.max_attempts:
                    break

                delay = self.backoff_base * 2 ** (attempt - 1)
                self._update(job_id, state=JobState.QUEUED.value)
                logger.info(f"Retrying in {delay:.1f}s", extra={"job_id": job_id})
                self.sleep(delay)
                if not self._accepting:
                    # Shutting down: leave the row queued for recovery
                    logger.info("Scheduler stopped during backoff, job left queued", extra={"job_id": job_id})
                    return
                continue

            try:
                # Progress 100 and the terminal state land in one commit
                self._update(
                    job_id,
                    state=JobState.COMPLETED.value,
                    progress=PROGRESS_PERSISTED,
                    variant=output.variant,
                    finished_at=datetime.utcnow(),
                    failure_reason=None,
                )
            except Exception as e:
                logger.exception(f"Could not record completion: {e}", extra={"job_id": job_id})
                self._fail(job, e)
                return

            logger.info(f"Completed analysis of {job.repo_ref} (score {output.result.score})", extra={"job_id": job_id})
            return

        self._fail(job, last_error)

    def _fail(self, job: _JobSnapshot, error: BaseException | None) -> None:
        if error is None:
            reason = f"Job interrupted after {self.max_attempts} attempts"
        else:
            reason = str(error) or type(error).__name__
        self._update(job.id, state=JobState.FAILED.value, failure_reason=reason, finished_at=datetime.utcnow())
        self.store.release(job.repo_ref, job.requester_id, job.result_ref)
        logger.error(f"Analysis of {job.repo_ref} failed: {reason}", extra={"job_id": job.id})
