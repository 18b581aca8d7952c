"""
Analysis pipeline for one job attempt

fetch -> classify -> load corpus -> dispatch rules -> aggregate

The checkout lives in a temporary directory that is removed when the attempt
ends, successful or not.
"""

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol

from ..engine import aggregate, analyze, classify, get_table, load
from ..schemas import AnalysisResult

logger = logging.getLogger(__name__)


class SourceFetcher(Protocol):
    def fetch(self, repo_ref: str, dest: str | Path) -> Path: ...


ProgressCallback = Callable[[int], None]


def _no_progress(value: int) -> None:
    pass


@dataclass(frozen=True)
class PipelineOutput:
    result: AnalysisResult
    variant: str
    repo_name: str
    file_count: int


class AnalysisPipeline:
    """Runs one analysis attempt end to end."""

    def __init__(self, fetcher: SourceFetcher, rule_workers: int = 4):
        self.fetcher = fetcher
        self.rule_workers = rule_workers

    def run(self, repo_ref: str, progress: ProgressCallback = _no_progress) -> PipelineOutput:
        """
        Analyze `repo_ref` and report progress milestones (20, 40, 80, 90).

        Errors propagate unchanged; the scheduler decides whether to retry.
        """
        repo_name = repo_ref.rstrip("/").split("/")[-1]

        with tempfile.TemporaryDirectory(prefix="codepulse-") as temp_dir:
            checkout = self.fetcher.fetch(repo_ref, temp_dir)
            progress(20)

            variant = classify(checkout)
            table = get_table(variant)
            corpus = load(checkout, table.load_extensions, table.load_names)
            logger.info(f"{repo_name}: variant={variant}, {len(corpus)} files loaded")
            progress(40)

            findings = analyze(corpus, variant, self.rule_workers)
        progress(80)

        result = aggregate(findings)
        progress(90)

        return PipelineOutput(result=result, variant=variant, repo_name=repo_name, file_count=len(corpus))
