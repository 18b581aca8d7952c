"""
SQL-backed report store and dedup index for CodePulse

Reports are keyed by result_ref and hold the AnalysisResult verbatim as JSON.
Claims (analysis_claims) are the dedup index: one row per
(repo_ref, requester_id), live for a trailing window.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from ..models import AnalysisClaim, Report
from ..schemas import AnalysisResult, ReportDetail, ReportSummary

logger = logging.getLogger(__name__)


def _summary(report: Report) -> ReportSummary:
    return ReportSummary(
        report_id=report.result_ref,
        repo_url=report.repo_ref,
        repo_name=report.repo_name,
        variant=report.variant,
        score=report.score,
        analyzed_at=report.analyzed_at,
    )


class SqlReportStore:
    """Report store over the SQLAlchemy session factory."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    # =========================================================================
    # REPORTS
    # =========================================================================

    def put(
        self,
        result_ref: str,
        result: AnalysisResult,
        *,
        repo_ref: str,
        requester_id: str,
        variant: str,
        repo_name: str | None = None,
    ) -> None:
        """Persist a result. Writing the same result_ref again overwrites it."""
        with self.session_factory() as session:
            report = session.get(Report, result_ref)
            if report is None:
                report = Report(result_ref=result_ref)
                session.add(report)
            report.repo_ref = repo_ref
            report.repo_name = repo_name or repo_ref.rstrip("/").split("/")[-1]
            report.requester_id = requester_id
            report.variant = variant
            report.score = result.score
            report.result_json = result.model_dump_json()
            report.analyzed_at = datetime.utcnow()
            session.commit()

    def get(self, result_ref: str) -> AnalysisResult | None:
        with self.session_factory() as session:
            report = session.get(Report, result_ref)
            if report is None:
                return None
            return AnalysisResult.model_validate_json(report.result_json)

    def get_report(self, result_ref: str, requester_id: str | None = None) -> ReportDetail | None:
        """Full report, optionally restricted to its requester."""
        with self.session_factory() as session:
            report = session.get(Report, result_ref)
            if report is None or (requester_id is not None and report.requester_id != requester_id):
                return None
            return ReportDetail(
                **_summary(report).model_dump(),
                result=AnalysisResult.model_validate_json(report.result_json),
            )

    def list_reports(self, requester_id: str) -> list[ReportSummary]:
        """A requester's reports, newest first."""
        with self.session_factory() as session:
            reports = (
                session.query(Report)
                .filter(Report.requester_id == requester_id)
                .order_by(Report.analyzed_at.desc())
                .all()
            )
            return [_summary(report) for report in reports]

    def delete(self, result_ref: str, requester_id: str) -> bool:
        """Delete a report and its dedup claim (allows re-analysis)."""
        with self.session_factory() as session:
            report = session.get(Report, result_ref)
            if report is None or report.requester_id != requester_id:
                return False
            session.delete(report)
            session.query(AnalysisClaim).filter(AnalysisClaim.result_ref == result_ref).delete(
                synchronize_session=False
            )
            session.commit()
            logger.info(f"Deleted report {result_ref}")
            return True

    # =========================================================================
    # DEDUP INDEX
    # =========================================================================

    def find_recent(self, repo_ref: str, requester_id: str, window: timedelta) -> str | None:
        """result_ref of a live claim for this repository and requester, if any."""
        cutoff = datetime.utcnow() - window
        with self.session_factory() as session:
            claim = self._find_claim(session, repo_ref, requester_id)
            if claim is not None and claim.claimed_at >= cutoff:
                return claim.result_ref
            return None

    @staticmethod
    def _find_claim(session: Session, repo_ref: str, requester_id: str) -> AnalysisClaim | None:
        return (
            session.query(AnalysisClaim)
            .filter(AnalysisClaim.repo_ref == repo_ref, AnalysisClaim.requester_id == requester_id)
            .first()
        )

    def claim(
        self,
        session: Session,
        repo_ref: str,
        requester_id: str,
        *,
        result_ref: str,
        job_id: str,
        window: timedelta,
        now: datetime | None = None,
    ) -> AnalysisClaim | None:
        """
        Atomically claim (repo_ref, requester_id) inside the caller's transaction.

        Must be the first write in `session`: a lost insert race rolls the
        session back.

        Returns:
            None when the caller now owns the claim, otherwise the live claim
            that blocks this submission (redirect to its result_ref)
        """
        now = now or datetime.utcnow()
        cutoff = now - window

        existing = self._find_claim(session, repo_ref, requester_id)
        if existing is not None:
            if existing.claimed_at >= cutoff:
                return existing

            # Stale claim: take it over only if nobody else has meanwhile
            swapped = (
                session.query(AnalysisClaim)
                .filter(AnalysisClaim.id == existing.id, AnalysisClaim.result_ref == existing.result_ref)
                .update(
                    {"result_ref": result_ref, "job_id": job_id, "claimed_at": now},
                    synchronize_session=False,
                )
            )
            if swapped == 1:
                return None
            session.expire_all()
            return self._find_claim(session, repo_ref, requester_id)

        try:
            session.add(AnalysisClaim(
                repo_ref=repo_ref,
                requester_id=requester_id,
                result_ref=result_ref,
                job_id=job_id,
                claimed_at=now,
            ))
            session.flush()
        except IntegrityError:
            # Another concurrent submission claimed it - rollback and query again
            session.rollback()
            winner = self._find_claim(session, repo_ref, requester_id)
            if winner is None:
                raise  # Re-raise if still not found (shouldn't happen)
            return winner
        return None

    def release(self, repo_ref: str, requester_id: str, result_ref: str) -> None:
        """Drop a claim, but only the one that points at result_ref."""
        with self.session_factory() as session:
            session.query(AnalysisClaim).filter(
                AnalysisClaim.repo_ref == repo_ref,
                AnalysisClaim.requester_id == requester_id,
                AnalysisClaim.result_ref == result_ref,
            ).delete(synchronize_session=False)
            session.commit()
