"""Master file listing and deletion."""

from dataclasses import dataclass
from typing import List, Optional

from common.logging_config import get_logger
from common.types import ChunkRecord, MasterFileSummary
from controller.account_pool import AccountPool
from controller.exceptions import NotFound
from controller.repositories.chunk_repository import ChunkRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class DeletionResult:
    master_file_uuid: str
    objects_deleted: int
    objects_failed: int
    records_deleted: int
    job_id: Optional[int]

    @property
    def job_marked_deleted(self) -> bool:
        return self.job_id is not None


class FileService:
    def __init__(self, account_pool: AccountPool):
        self.chunk_repo = ChunkRepository()
        self.account_pool = account_pool

    def list_master_files(self) -> List[MasterFileSummary]:
        return self.chunk_repo.list_distinct_masters()

    def list_chunks(self, master_file_uuid: str) -> List[ChunkRecord]:
        records = self.chunk_repo.list_by_master(master_file_uuid)
        if not records:
            raise NotFound(f"Master file {master_file_uuid} not found")
        return records

    def delete_master_file(self, master_file_uuid: str) -> DeletionResult:
        """
        Delete every backend object of a master file, then its registry records.

        Backend deletes are best effort: a failure is logged and counted, and
        the registry is cleaned regardless so the file stops being listed.

        Raises:
            NotFound: If the master file has no chunk records
        """
        records = self.list_chunks(master_file_uuid)

        deleted = 0
        failed = 0
        for record in records:
            try:
                session = self.account_pool.session_for(record.holder_account_id)
                self.account_pool.backend.delete(session, record.backend_object_id)
                deleted += 1
            except Exception as e:
                failed += 1
                logger.warning(
                    f"Could not delete chunk {record.sequence_number} of {master_file_uuid} "
                    f"from account {record.holder_account_id}: {e}"
                )

        outcome = self.chunk_repo.delete_by_master(master_file_uuid)
        logger.info(
            f"Deleted master file [master_uuid={master_file_uuid}] objects={deleted} "
            f"failed={failed} records={outcome['chunks_deleted']}"
        )
        return DeletionResult(
            master_file_uuid=master_file_uuid,
            objects_deleted=deleted,
            objects_failed=failed,
            records_deleted=outcome["chunks_deleted"],
            job_id=outcome["job_id"],
        )
