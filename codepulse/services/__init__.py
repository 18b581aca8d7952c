from .analyzer import AnalysisPipeline, PipelineOutput
from .github import GitHubSourceFetcher, normalize_repo_url, parse_repo_url
from .report_store import SqlReportStore
from .scheduler import JobScheduler, SubmitOutcome

__all__ = [
    "AnalysisPipeline",
    "GitHubSourceFetcher",
    "JobScheduler",
    "PipelineOutput",
    "SqlReportStore",
    "SubmitOutcome",
    "normalize_repo_url",
    "parse_repo_url",
]
