"""Pydantic schemas for job queue endpoints."""

from typing import List, Optional
from pydantic import BaseModel


class SubmitJobResponse(BaseModel):
    """Response model for job submission."""
    job_id: int
    master_file_name: str
    status: str
    size_bytes: int


class JobResponse(BaseModel):
    """Response model for a job row."""
    job_id: int
    owner_id: str
    master_file_name: str
    status: str
    created_at: str
    started_at: Optional[str] = None
    finished_at: Optional[str] = None
    error_message: Optional[str] = None
    retry_count: int
    master_file_uuid: Optional[str] = None
    chunks_total: int
    chunks_done: int
    size_bytes: int


class ListJobsResponse(BaseModel):
    """Response model for job listing."""
    jobs: List[JobResponse]


class JobStatusResponse(BaseModel):
    """Response model for job status polling."""
    job: JobResponse
    elapsed_seconds: int
    progress_percent: int


class JobControlRequest(BaseModel):
    """Request model for admin job control."""
    action: str


class JobControlResponse(BaseModel):
    """Response model for admin job control."""
    job_id: int
    action: str
    success: bool
    message: str
