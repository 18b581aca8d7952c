"""
CodePulse Schema Definitions

Pydantic models shared by the analysis engine, the job scheduler and the API.
These models are the source of truth for what the backend stores and returns.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS
# =============================================================================

class Category(str, Enum):
    """What a rule measures"""
    STRENGTH = "strength"
    WEAKNESS = "weakness"
    PERFORMANCE = "performance"
    MEMORY = "memory"
    BATTERY = "battery"
    SECURITY = "security"


# Categories that get their own score block in a report
ISSUE_CATEGORIES = (Category.PERFORMANCE, Category.MEMORY, Category.BATTERY, Category.SECURITY)


class JobState(str, Enum):
    """Externally visible job lifecycle states"""
    QUEUED = "queued"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    NOT_FOUND = "not_found"


TERMINAL_STATES = (JobState.COMPLETED, JobState.FAILED)


# =============================================================================
# ENGINE OUTPUT
# =============================================================================

class Finding(BaseModel):
    """Outcome of evaluating one rule against one corpus"""
    model_config = ConfigDict(frozen=True)

    rule_id: str = Field(..., description="Rule that produced this finding")
    category: Category = Field(..., description="Rule category")
    message: str = Field(..., description="Rendered rule message")
    triggered: bool = Field(..., description="Whether the rule was satisfied")
    occurrence_count: int = Field(..., ge=0, description="Matches (or probe count) across the corpus")
    weight: int = Field(1, ge=1, description="How many issues/strengths this finding counts as")


class CategoryReport(BaseModel):
    """Score and issue list for one issue category"""
    model_config = ConfigDict(frozen=True)

    score: int = Field(..., ge=0, le=100, description="Category score (higher = better)")
    issues: list[str] = Field(default_factory=list, description="Triggered issue messages")


class AnalysisResult(BaseModel):
    """
    Aggregated analysis of one repository.
    Persisted verbatim to the report store.
    """
    model_config = ConfigDict(frozen=True)

    score: int = Field(..., ge=0, le=100, description="Composite quality score (higher = better)")
    strengths: list[str] = Field(default_factory=list, description="Positive signals found")
    weaknesses: list[str] = Field(default_factory=list, description="Code-level weaknesses found")
    per_category: dict[Category, CategoryReport] = Field(
        default_factory=dict, description="performance/memory/battery/security breakdown"
    )
    recommendations: list[str] = Field(default_factory=list, description="Top 10 recommendations, most urgent first")


# =============================================================================
# REQUEST MODELS
# =============================================================================

class AnalyzeRequest(BaseModel):
    """Request body for POST /analyze endpoint"""
    repo_url: str = Field(..., description="Full GitHub URL to analyze (e.g., https://github.com/user/repo)")
    requester_id: str = Field(..., min_length=1, description="Opaque id of the requesting user")


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class SubmitResponse(BaseModel):
    """Response for POST /analyze: either a new job or a redirect to a recent report"""
    redirect: bool = Field(False, description="True when a recent analysis already exists")
    job_id: str | None = Field(None, description="Job to poll (the owning job on redirect)")
    report_id: str | None = Field(None, description="Existing report id on redirect")
    status: JobState | None = Field(None, description="Initial job state for new jobs")
    message: str = Field(..., description="Human-readable outcome")


class JobStatus(BaseModel):
    """Pollable job status"""
    job_id: str = Field(..., description="Job id")
    state: JobState = Field(..., description="queued, active, completed, failed or not_found")
    progress: int = Field(0, ge=0, le=100, description="Progress percentage, never decreases")
    failure_reason: str | None = Field(None, description="Last error message when failed")
    report_id: str | None = Field(None, description="Report id once completed")
    created_at: datetime | None = Field(None, description="When the job was submitted")
    finished_at: datetime | None = Field(None, description="When the job reached a terminal state")


class ReportSummary(BaseModel):
    """One line of the requester's report list"""
    report_id: str = Field(..., description="Report id")
    repo_url: str = Field(..., description="Analyzed repository")
    repo_name: str = Field(..., description="Repository name")
    variant: str = Field(..., description="Detected technology variant")
    score: int = Field(..., ge=0, le=100, description="Composite score")
    analyzed_at: datetime = Field(..., description="When the analysis finished")


class ReportDetail(ReportSummary):
    """Full report"""
    result: AnalysisResult = Field(..., description="Aggregated analysis")
