from pathlib import Path

import pytest

from codepulse.database import init_db, make_engine, make_session_factory
from codepulse.engine import aggregate
from codepulse.errors import FetchError
from codepulse.schemas import Category, Finding
from codepulse.services.analyzer import PipelineOutput
from codepulse.services.report_store import SqlReportStore


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Create `files` (relative path -> content) under root."""
    for rel_path, content in files.items():
        target = root / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def make_repo(tmp_path):
    counter = {"n": 0}

    def _make(files: dict[str, str]) -> Path:
        counter["n"] += 1
        root = tmp_path / f"repo{counter['n']}"
        root.mkdir()
        return write_tree(root, files)

    return _make


@pytest.fixture
def db_engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'codepulse-test.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return make_session_factory(db_engine)


@pytest.fixture
def store(session_factory):
    return SqlReportStore(session_factory)


class FakeFetcher:
    """Writes a fixed file tree instead of cloning. Fails the first `failures` calls."""

    def __init__(self, files: dict[str, str] | None = None, failures: list[Exception] | None = None):
        self.files = files if files is not None else {"app.js": "eval(x)\n"}
        self.failures = list(failures or [])
        self.calls = 0

    def fetch(self, repo_ref, dest):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return write_tree(Path(dest), self.files)


class FakePipeline:
    """Scripted pipeline: raises queued errors first, then succeeds."""

    def __init__(self, errors: list[Exception] | None = None, progress_steps=(20, 40, 80, 90)):
        self.errors = list(errors or [])
        self.progress_steps = progress_steps
        self.calls = 0
        self.observed: list[int] = []
        self.on_progress = None

    def run(self, repo_ref, progress):
        self.calls += 1
        for step in self.progress_steps:
            progress(step)
            if self.on_progress is not None:
                self.observed.append(self.on_progress())
        if self.errors:
            raise self.errors.pop(0)
        result = aggregate([
            Finding(rule_id="t.strength", category=Category.STRENGTH, message="Tests", triggered=True, occurrence_count=1),
        ])
        return PipelineOutput(result=result, variant="unknown", repo_name=repo_ref.rsplit("/", 1)[-1], file_count=1)


@pytest.fixture
def network_error():
    return FetchError(FetchError.NETWORK, "connection reset")
