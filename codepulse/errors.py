"""
Error taxonomy for CodePulse.

- InvalidRepoRef: bad input, surfaced synchronously to the submitter
- AnalysisError and subclasses: raised while a job executes. The scheduler
  reads `retryable` to decide between another attempt and a terminal failure.
"""


class InvalidRepoRef(ValueError):
    """Repository reference is not a usable GitHub URL."""


class AnalysisError(Exception):
    """Base class for errors raised inside the analysis pipeline."""

    retryable = True


class FetchError(AnalysisError):
    """Source fetcher could not produce a checkout."""

    NOT_FOUND = "not_found"
    NETWORK = "network"
    AUTH = "auth"

    KINDS = (NOT_FOUND, NETWORK, AUTH)

    def __init__(self, kind: str, message: str):
        if kind not in self.KINDS:
            raise ValueError(f"Unknown fetch error kind: {kind}")
        super().__init__(message)
        self.kind = kind

    @property
    def retryable(self) -> bool:
        # Only network trouble is worth another attempt
        return self.kind == self.NETWORK


class RuleConfigError(AnalysisError):
    """A rule or variant table is malformed."""

    retryable = False


class AggregationError(AnalysisError):
    """Findings violated the aggregator's contract (programming error)."""

    retryable = False
