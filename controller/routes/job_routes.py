"""Distribution job API routes."""

from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile, status

from common.types import Job
from controller.schemas.jobs import (
    SubmitJobResponse,
    JobResponse,
    ListJobsResponse,
    JobStatusResponse,
    JobControlRequest,
    JobControlResponse
)
from controller.services.ingestion_service import IngestionService
from controller.services.job_control_service import CONTROL_ACTIONS, JobControlService

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def _iso(value):
    return value.isoformat() if value is not None else None


def job_to_response(job: Job) -> JobResponse:
    return JobResponse(
        job_id=job.job_id,
        owner_id=job.owner_id,
        master_file_name=job.master_file_name,
        status=job.status,
        created_at=job.created_at.isoformat(),
        started_at=_iso(job.started_at),
        finished_at=_iso(job.finished_at),
        error_message=job.error_message,
        retry_count=job.retry_count,
        master_file_uuid=job.master_file_uuid,
        chunks_total=job.chunks_total,
        chunks_done=job.chunks_done,
        size_bytes=job.size_bytes,
    )


@router.post("", response_model=SubmitJobResponse, status_code=status.HTTP_202_ACCEPTED)
def submit_job(
    file: UploadFile = File(...),
    owner_id: str = Form(...)
):
    """
    Stage an uploaded file and queue it for distribution.

    Parameters:
        - file: File to distribute (multipart/form-data)
        - owner_id: Identifier of the submitting user

    Returns:
        - job_id: ID of the queued job (status PENDING)

    Raises:
        - 400: Missing owner_id or file name
        - 500: Staging failed
    """
    if not owner_id.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="owner_id is required")
    if not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File name is required")

    job = IngestionService().stage_and_submit(owner_id.strip(), file.filename, file.file)

    return SubmitJobResponse(
        job_id=job.job_id,
        master_file_name=job.master_file_name,
        status=job.status,
        size_bytes=job.size_bytes,
    )


@router.get("", response_model=ListJobsResponse)
def list_jobs(
    scope: str = Query("active", pattern="^(active|all)$", description="active or all")
):
    """
    List jobs.

    Parameters:
        - scope: "active" for PENDING/PROCESSING/FAILED (oldest first),
                 "all" for the full history (newest first)
    """
    jobs = IngestionService().list_jobs(scope)
    return ListJobsResponse(jobs=[job_to_response(job) for job in jobs])


@router.get("/{job_id}", response_model=JobStatusResponse)
def get_job_status(job_id: int):
    """
    Job status with elapsed time and progress percentage.

    Raises:
        - 404: Job not found
    """
    job_status = IngestionService().get_status(job_id)
    return JobStatusResponse(
        job=job_to_response(job_status.job),
        elapsed_seconds=job_status.elapsed_seconds,
        progress_percent=job_status.progress_percent,
    )


@router.post("/{job_id}/control", response_model=JobControlResponse)
def control_job(job_id: int, request: JobControlRequest):
    """
    Admin job control.

    Parameters:
        - action: retry | cancel | delete_history

    Returns:
        - success: False when the job is not in an eligible state (no-op)

    Raises:
        - 400: Unknown action
        - 404: Job not found
    """
    if request.action not in CONTROL_ACTIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown action '{request.action}'. Use one of: {', '.join(CONTROL_ACTIONS)}"
        )

    result = JobControlService().dispatch(request.action, job_id)
    return JobControlResponse(
        job_id=job_id,
        action=request.action,
        success=result.success,
        message=result.message,
    )
