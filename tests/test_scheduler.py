import threading
import time
from datetime import timedelta

import pytest

from conftest import FakeFetcher, FakePipeline
from codepulse.errors import AggregationError, FetchError, InvalidRepoRef
from codepulse.models import AnalysisJob
from codepulse.schemas import Category, JobState
from codepulse.services.analyzer import AnalysisPipeline
from codepulse.services.scheduler import JobScheduler

REPO = "https://github.com/acme/widgets"


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_scheduler(session_factory, store, sleeps):
    created = []

    def _make(pipeline, start=True, **kwargs):
        kwargs.setdefault("backoff_base", 5.0)
        kwargs.setdefault("sleep", sleeps.append)
        scheduler = JobScheduler(
            session_factory,
            store,
            pipeline,
            workers=2,
            **kwargs,
        )
        if start:
            scheduler.start()
        created.append(scheduler)
        return scheduler

    yield _make
    for scheduler in created:
        scheduler.shutdown(wait=True)


def count_jobs(session_factory) -> int:
    with session_factory() as session:
        return session.query(AnalysisJob).count()


# =============================================================================
# SUBMISSION & DEDUP
# =============================================================================

def test_submit_normalizes_and_queues(make_scheduler, session_factory):
    scheduler = make_scheduler(FakePipeline(), start=False)

    outcome = scheduler.submit(" https://github.com/acme/widgets.git/ ", "alice")

    assert not outcome.redirect
    status = scheduler.status(outcome.job_id)
    assert status.state == JobState.QUEUED
    assert status.progress == 0
    with session_factory() as session:
        assert session.get(AnalysisJob, outcome.job_id).repo_ref == REPO


def test_invalid_repo_is_rejected_synchronously(make_scheduler, session_factory):
    scheduler = make_scheduler(FakePipeline(), start=False)

    with pytest.raises(InvalidRepoRef):
        scheduler.submit("https://gitlab.com/acme/widgets", "alice")
    assert count_jobs(session_factory) == 0


def test_second_submit_within_window_redirects(make_scheduler, session_factory):
    scheduler = make_scheduler(FakePipeline(), start=False)

    first = scheduler.submit(REPO, "alice")
    second = scheduler.submit(REPO + ".git", "alice")

    assert second.redirect
    assert second.result_ref == first.result_ref
    assert second.job_id == first.job_id
    assert count_jobs(session_factory) == 1


def test_other_requesters_are_not_deduplicated(make_scheduler, session_factory):
    scheduler = make_scheduler(FakePipeline(), start=False)

    scheduler.submit(REPO, "alice")
    outcome = scheduler.submit(REPO, "bob")

    assert not outcome.redirect
    assert count_jobs(session_factory) == 2


def test_expired_window_allows_a_new_job(make_scheduler, session_factory):
    scheduler = make_scheduler(FakePipeline(), start=False, dedup_window=timedelta(0))

    first = scheduler.submit(REPO, "alice")
    second = scheduler.submit(REPO, "alice")

    assert not second.redirect
    assert second.result_ref != first.result_ref
    assert count_jobs(session_factory) == 2


def test_unknown_job_is_not_found(make_scheduler):
    status = make_scheduler(FakePipeline(), start=False).status("no-such-job")

    assert status.state == JobState.NOT_FOUND
    assert status.job_id == "no-such-job"


# =============================================================================
# EXECUTION
# =============================================================================

def test_job_completes_and_persists_report(make_scheduler, store):
    scheduler = make_scheduler(AnalysisPipeline(FakeFetcher({"app.js": "eval(x)\n"})))

    outcome = scheduler.submit(REPO, "alice")
    status = scheduler.wait(outcome.job_id, timeout=30)

    assert status.state == JobState.COMPLETED
    assert status.progress == 100
    assert status.report_id == outcome.result_ref
    assert status.finished_at is not None
    result = store.get(outcome.result_ref)
    assert "Use of eval or exec style dynamic code execution" in result.per_category[Category.SECURITY].issues
    assert store.get_report(outcome.result_ref).variant == "unknown"


def test_two_transient_failures_then_success(make_scheduler, sleeps, network_error):
    fetcher = FakeFetcher(failures=[network_error, FetchError(FetchError.NETWORK, "timeout")])
    scheduler = make_scheduler(AnalysisPipeline(fetcher))

    outcome = scheduler.submit(REPO, "alice")
    status = scheduler.wait(outcome.job_id, timeout=30)

    assert status.state == JobState.COMPLETED
    assert fetcher.calls == 3
    assert sleeps == [5.0, 10.0]


def test_three_failures_fail_the_job(make_scheduler, sleeps, store):
    pipeline = FakePipeline(errors=[OSError("disk full")] * 3)
    scheduler = make_scheduler(pipeline)

    outcome = scheduler.submit(REPO, "alice")
    status = scheduler.wait(outcome.job_id, timeout=30)

    assert status.state == JobState.FAILED
    assert status.failure_reason == "disk full"
    assert status.report_id is None
    assert pipeline.calls == 3
    assert sleeps == [5.0, 10.0]
    assert store.get(outcome.result_ref) is None


def test_failed_job_releases_its_claim(make_scheduler):
    scheduler = make_scheduler(FakePipeline(errors=[RuntimeError("boom")] * 3))

    first = scheduler.submit(REPO, "alice")
    scheduler.wait(first.job_id, timeout=30)
    again = scheduler.submit(REPO, "alice")

    assert not again.redirect
    assert again.job_id != first.job_id


@pytest.mark.parametrize("error", [
    FetchError(FetchError.NOT_FOUND, "Repository acme/widgets not found"),
    FetchError(FetchError.AUTH, "Not authorized"),
    AggregationError("bad category"),
])
def test_non_retryable_errors_fail_immediately(make_scheduler, sleeps, error):
    pipeline = FakePipeline(errors=[error])
    scheduler = make_scheduler(pipeline)

    outcome = scheduler.submit(REPO, "alice")
    status = scheduler.wait(outcome.job_id, timeout=30)

    assert status.state == JobState.FAILED
    assert status.failure_reason == str(error)
    assert pipeline.calls == 1
    assert sleeps == []


def test_progress_never_decreases_across_retries(make_scheduler, network_error):
    pipeline = FakePipeline(errors=[network_error])
    scheduler = make_scheduler(pipeline, start=False)
    outcome = scheduler.submit(REPO, "alice")
    pipeline.on_progress = lambda: scheduler.status(outcome.job_id).progress
    scheduler.start()

    scheduler.wait(outcome.job_id, timeout=30)

    assert pipeline.observed == sorted(pipeline.observed)
    assert pipeline.observed[-1] == 90


def test_start_recovers_unfinished_jobs(make_scheduler, session_factory):
    idle = make_scheduler(FakePipeline(), start=False)
    outcome = idle.submit(REPO, "alice")
    with session_factory() as session:
        session.get(AnalysisJob, outcome.job_id).state = JobState.ACTIVE.value
        session.commit()

    worker = make_scheduler(FakePipeline())
    status = worker.wait(outcome.job_id, timeout=30)

    assert status.state == JobState.COMPLETED


def test_concurrent_submits_create_a_single_job(make_scheduler, session_factory):
    scheduler = make_scheduler(FakePipeline(), start=False)
    threads_count = 8
    barrier = threading.Barrier(threads_count)
    outcomes, errors = [], []

    def submit():
        barrier.wait()
        try:
            outcomes.append(scheduler.submit(REPO, "alice"))
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=submit) for _ in range(threads_count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert errors == []
    assert count_jobs(session_factory) == 1
    owners = [outcome for outcome in outcomes if not outcome.redirect]
    redirects = [outcome for outcome in outcomes if outcome.redirect]
    assert len(owners) == 1
    assert len(redirects) == threads_count - 1
    assert {outcome.result_ref for outcome in redirects} == {owners[0].result_ref}
    assert {outcome.job_id for outcome in redirects} == {owners[0].job_id}


# =============================================================================
# WORKER ERROR PATHS
# =============================================================================

def flaky_update(monkeypatch, scheduler, state: str, calls: list):
    """Make the first job-row write that sets `state` fail."""
    original = scheduler._update
    failed = []

    def update(job_id, **values):
        calls.append(values)
        if values.get("state") == state and not failed:
            failed.append(job_id)
            raise RuntimeError("database is locked")
        return original(job_id, **values)

    monkeypatch.setattr(scheduler, "_update", update)


def test_completion_write_failure_fails_the_job(make_scheduler, monkeypatch):
    scheduler = make_scheduler(FakePipeline(), start=False)
    flaky_update(monkeypatch, scheduler, JobState.COMPLETED.value, [])
    outcome = scheduler.submit(REPO, "alice")
    scheduler.start()

    status = scheduler.wait(outcome.job_id, timeout=30)

    assert status.state == JobState.FAILED
    assert status.failure_reason == "database is locked"
    assert status.finished_at is not None
    assert not scheduler.submit(REPO, "alice").redirect


def test_start_of_attempt_write_failure_is_retried(make_scheduler, monkeypatch, sleeps):
    pipeline = FakePipeline()
    scheduler = make_scheduler(pipeline, start=False)
    flaky_update(monkeypatch, scheduler, JobState.ACTIVE.value, [])
    outcome = scheduler.submit(REPO, "alice")
    scheduler.start()

    status = scheduler.wait(outcome.job_id, timeout=30)

    assert status.state == JobState.COMPLETED
    assert pipeline.calls == 1
    assert sleeps == [5.0]


def test_completion_sets_progress_and_state_together(make_scheduler, monkeypatch):
    scheduler = make_scheduler(FakePipeline(), start=False)
    calls = []
    flaky_update(monkeypatch, scheduler, "never", calls)
    outcome = scheduler.submit(REPO, "alice")
    scheduler.start()

    scheduler.wait(outcome.job_id, timeout=30)

    completions = [values for values in calls if values.get("state") == JobState.COMPLETED.value]
    assert len(completions) == 1
    assert completions[0]["progress"] == 100
    assert completions[0]["finished_at"] is not None


def test_shutdown_interrupts_backoff(make_scheduler, network_error):
    pipeline = FakePipeline(errors=[network_error])
    scheduler = make_scheduler(pipeline, start=False, backoff_base=60.0, sleep=None)
    outcome = scheduler.submit(REPO, "alice")
    scheduler.start()

    deadline = time.monotonic() + 30
    while not (pipeline.calls == 1 and scheduler.status(outcome.job_id).state == JobState.QUEUED):
        assert time.monotonic() < deadline
        time.sleep(0.01)

    started = time.monotonic()
    scheduler.shutdown(wait=True)

    assert time.monotonic() - started < 30
    assert pipeline.calls == 1
    assert scheduler.status(outcome.job_id).state == JobState.QUEUED
