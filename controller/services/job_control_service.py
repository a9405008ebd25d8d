"""Admin job control: retry, cancel and history purge."""

from dataclasses import dataclass
from typing import Optional

from common.logging_config import get_logger
from controller.exceptions import NotFound
from controller.repositories.job_repository import JobRepository

logger = get_logger(__name__)

ACTION_RETRY = "retry"
ACTION_CANCEL = "cancel"
ACTION_DELETE_HISTORY = "delete_history"

CONTROL_ACTIONS = (ACTION_RETRY, ACTION_CANCEL, ACTION_DELETE_HISTORY)


@dataclass(frozen=True)
class ControlResult:
    success: bool
    message: str
    job_id: Optional[int] = None
    action: Optional[str] = None


class JobControlService:
    """
    Every operation reports success only when the job was in an eligible
    state and a row actually changed; otherwise it is an explicit no-op.
    """

    def __init__(self):
        self.job_repo = JobRepository()

    def retry(self, job_id: int) -> ControlResult:
        if self.job_repo.retry(job_id):
            logger.info(f"Job re-queued by admin [job_id={job_id}]")
            return ControlResult(True, f"Job {job_id} re-queued for distribution", job_id, ACTION_RETRY)
        return ControlResult(False, f"Job {job_id} is not FAILED; nothing to retry", job_id, ACTION_RETRY)

    def cancel(self, job_id: int) -> ControlResult:
        if self.job_repo.cancel(job_id):
            logger.info(f"Job cancelled by admin [job_id={job_id}]")
            return ControlResult(True, f"Job {job_id} cancelled", job_id, ACTION_CANCEL)
        return ControlResult(False, f"Job {job_id} is not PENDING or PROCESSING; nothing to cancel", job_id, ACTION_CANCEL)

    def purge_history(self, job_id: int) -> ControlResult:
        if self.job_repo.purge(job_id):
            logger.info(f"Job history purged [job_id={job_id}]")
            return ControlResult(True, f"Job {job_id} removed from history", job_id, ACTION_DELETE_HISTORY)
        return ControlResult(
            False, f"Job {job_id} is still active; only finished jobs can be purged", job_id, ACTION_DELETE_HISTORY
        )

    def dispatch(self, action: str, job_id: int) -> ControlResult:
        """
        Run a control action by name.

        Raises:
            NotFound: If the job does not exist
        """
        handlers = {
            ACTION_RETRY: self.retry,
            ACTION_CANCEL: self.cancel,
            ACTION_DELETE_HISTORY: self.purge_history,
        }
        handler = handlers.get(action)
        if handler is None:
            return ControlResult(False, f"Unknown action '{action}'", job_id, action)

        if self.job_repo.get_by_id(job_id) is None:
            raise NotFound(f"Job {job_id} not found")

        return handler(job_id)
