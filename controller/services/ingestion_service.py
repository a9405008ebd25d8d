"""Ingestion service: job submission, staging of uploads and job queries."""

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, List, Optional

from common.constants import (
    JOB_STATUS_PENDING,
    JOB_STATUS_PROCESSING,
)
from common.logging_config import get_logger
from common.types import Job
from controller.config import UPLOAD_DIR
from controller.exceptions import NotFound
from controller.job_notifier import JobNotifier, get_job_notifier
from controller.repositories.job_repository import JobRepository
from controller.utils import generate_uuid, safe_file_name, utcnow

logger = get_logger(__name__)


@dataclass(frozen=True)
class JobStatus:
    job: Job
    elapsed_seconds: int
    progress_percent: int


def compute_progress(job: Job) -> int:
    """
    PENDING reports 0, a running job its uploaded share, any terminal job 100.
    """
    if job.status == JOB_STATUS_PENDING:
        return 0
    if job.status == JOB_STATUS_PROCESSING:
        if job.chunks_total <= 0:
            return 0
        return min(int(job.chunks_done * 100 / job.chunks_total), 99)
    return 100


class IngestionService:
    def __init__(self, notifier: Optional[JobNotifier] = None, upload_dir: Optional[str] = None):
        self.job_repo = JobRepository()
        self.notifier = notifier or get_job_notifier()
        self.upload_dir = Path(upload_dir or UPLOAD_DIR)

    def submit(self, owner_id: str, file_name: str, local_path: str) -> Job:
        """
        Queue a local file for distribution.

        The source is only checked by the worker at claim time, so a path that
        disappears in between fails the job instead of the submission.
        """
        if not owner_id:
            raise ValueError("owner_id is required")
        if not file_name:
            raise ValueError("file_name is required")

        size_bytes = os.path.getsize(local_path) if os.path.isfile(local_path) else 0
        job = self.job_repo.create_job(owner_id, file_name, str(local_path), size_bytes)
        self.notifier.notify()
        return job

    def stage_and_submit(self, owner_id: str, file_name: str, source: BinaryIO) -> Job:
        """
        Copy an uploaded stream into the staging directory, then submit it.
        """
        name = safe_file_name(file_name)
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        staged_path = self.upload_dir / f"{generate_uuid()}_{name}"

        try:
            with open(staged_path, "wb") as out:
                shutil.copyfileobj(source, out)
        except OSError:
            staged_path.unlink(missing_ok=True)
            raise

        logger.info(f"Staged upload '{name}' at {staged_path} for owner={owner_id}")
        return self.submit(owner_id, name, str(staged_path))

    def list_jobs(self, scope: str = "active") -> List[Job]:
        """
        scope "active" lists PENDING, PROCESSING and FAILED jobs oldest first;
        "all" lists every job newest first.
        """
        if scope == "all":
            return self.job_repo.list_all()
        if scope == "active":
            return self.job_repo.list_pending_and_failed()
        raise ValueError(f"Unknown job scope '{scope}'")

    def get_status(self, job_id: int) -> JobStatus:
        job = self.job_repo.get_by_id(job_id)
        if job is None:
            raise NotFound(f"Job {job_id} not found")

        elapsed = int((utcnow() - job.created_at).total_seconds())
        return JobStatus(job=job, elapsed_seconds=max(elapsed, 0), progress_percent=compute_progress(job))
