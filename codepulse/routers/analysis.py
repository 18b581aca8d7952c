from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..errors import InvalidRepoRef
from ..schemas import (
    AnalyzeRequest,
    JobState,
    JobStatus,
    ReportDetail,
    ReportSummary,
    SubmitResponse,
)
from ..services import JobScheduler, SqlReportStore

router = APIRouter(tags=["analysis"])

# Rate limiting (registered on app.state by create_app)
limiter = Limiter(key_func=get_remote_address)


def get_scheduler(request: Request) -> JobScheduler:
    return request.app.state.scheduler


def get_store(request: Request) -> SqlReportStore:
    return request.app.state.store


@router.post("/analyze", response_model=SubmitResponse, status_code=202)
@limiter.limit("10/minute")
def analyze_repo(request: Request, body: AnalyzeRequest):
    """
    Queue an analysis of a GitHub repository.

    Returns 202 with the job to poll, or 200 with a redirect when the same
    requester analyzed the same repository within the dedup window.
    """
    try:
        outcome = get_scheduler(request).submit(body.repo_url, body.requester_id)
    except InvalidRepoRef as e:
        raise HTTPException(status_code=400, detail=str(e))

    if outcome.redirect:
        response = SubmitResponse(
            redirect=True,
            job_id=outcome.job_id,
            report_id=outcome.result_ref,
            message="This repository was analyzed recently",
        )
        return JSONResponse(status_code=200, content=response.model_dump(mode="json"))

    return SubmitResponse(
        job_id=outcome.job_id,
        status=JobState.QUEUED,
        message="Analysis queued",
    )


@router.get("/analyze/status/{job_id}", response_model=JobStatus)
@limiter.limit("120/minute")
def get_job_status(request: Request, job_id: str):
    """Poll a job. Unknown ids report state not_found."""
    return get_scheduler(request).status(job_id)


@router.get("/reports", response_model=list[ReportSummary])
@limiter.limit("30/minute")
def list_reports(request: Request, requester_id: str = Query(..., min_length=1)):
    """List a requester's reports, newest first."""
    return get_store(request).list_reports(requester_id)


@router.get("/reports/{report_id}", response_model=ReportDetail)
@limiter.limit("30/minute")
def get_report(request: Request, report_id: str, requester_id: str = Query(..., min_length=1)):
    report = get_store(request).get_report(report_id, requester_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Report not found")
    return report


@router.delete("/reports/{report_id}")
@limiter.limit("5/minute")
def delete_report(request: Request, report_id: str, requester_id: str = Query(..., min_length=1)):
    """Delete a report and its dedup claim (allows re-analysis)."""
    if not get_store(request).delete(report_id, requester_id):
        raise HTTPException(status_code=404, detail="Report not found")
    return {"status": "deleted", "report_id": report_id}
