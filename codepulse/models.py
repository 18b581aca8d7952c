"""
SQLAlchemy models for the CodePulse analysis service
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, UniqueConstraint, Index
from sqlalchemy.orm import declarative_base
from datetime import datetime

Base = declarative_base()


class AnalysisJob(Base):
    """One scheduled analysis of a repository (owned by its worker once queued)"""
    __tablename__ = "analysis_jobs"
    __table_args__ = (
        Index("idx_jobs_state_created", "state", "created_at"),
    )

    id = Column(String(36), primary_key=True)
    repo_ref = Column(String, nullable=False)
    requester_id = Column(String, nullable=False)

    state = Column(String(16), nullable=False, default="queued")  # queued|active|completed|failed
    progress = Column(Integer, nullable=False, default=0)  # 0-100, never decreases
    attempts = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    started_at = Column(DateTime)
    finished_at = Column(DateTime)

    failure_reason = Column(Text)  # Nullable
    result_ref = Column(String(36), nullable=False)  # Report key, allocated on submit
    variant = Column(String)  # Set once classified

    def __repr__(self):
        return f"<AnalysisJob(id={self.id}, state='{self.state}', progress={self.progress})>"


class AnalysisClaim(Base):
    """Dedup index: one live claim per (repository, requester)"""
    __tablename__ = "analysis_claims"
    __table_args__ = (
        UniqueConstraint("repo_ref", "requester_id", name="uq_claim_repo_requester"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    repo_ref = Column(String, nullable=False)
    requester_id = Column(String, nullable=False)
    result_ref = Column(String(36), nullable=False)
    job_id = Column(String(36), nullable=False)
    claimed_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<AnalysisClaim(repo_ref='{self.repo_ref}', requester='{self.requester_id}', result_ref={self.result_ref})>"


class Report(Base):
    """Persisted analysis result"""
    __tablename__ = "reports"
    __table_args__ = (
        Index("idx_reports_requester_analyzed", "requester_id", "analyzed_at"),
    )

    result_ref = Column(String(36), primary_key=True)
    repo_ref = Column(String, nullable=False)
    repo_name = Column(String, nullable=False)
    requester_id = Column(String, nullable=False)
    variant = Column(String, nullable=False)
    score = Column(Integer, nullable=False)  # 0-100
    result_json = Column(Text, nullable=False)  # JSON: Full AnalysisResult object
    analyzed_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Report(result_ref={self.result_ref}, repo='{self.repo_name}', score={self.score})>"
