"""Shared data type definitions (Job, ChunkRecord, StorageAccount, etc.)."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Job:
    """
    A distribution job in the ingestion queue.
    """
    job_id: int
    owner_id: str
    master_file_name: str
    local_path: str
    status: str
    created_at: datetime
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    error_message: Optional[str] = None
    retry_count: int = 0
    master_file_uuid: Optional[str] = None
    worker_id: Optional[str] = None
    lease_expires_at: Optional[datetime] = None
    chunks_total: int = 0
    chunks_done: int = 0
    size_bytes: int = 0


@dataclass(frozen=True)
class ChunkRecord:
    """
    Placement and decryption metadata for one stored chunk.
    """
    chunk_id: str
    master_file_uuid: str
    master_file_name: str
    sequence_number: int
    holder_account_id: str
    backend_object_id: str
    size_bytes: int
    encryption_key: str
    encryption_iv: str
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class MasterFileSummary:
    """
    A retrievable master file, aggregated from its chunk records.
    """
    master_file_uuid: str
    master_file_name: str
    chunk_count: int
    total_size: int


@dataclass(frozen=True)
class StorageAccount:
    """
    An externally authenticated storage account and its last quota snapshot.
    """
    account_id: str
    credential_ref: str
    label: str = ""
    quota_used: int = 0
    quota_limit: int = 0
    enabled: bool = True
    quota_checked_at: Optional[datetime] = None

    @property
    def quota_remaining(self) -> Optional[int]:
        """Remaining bytes, or None when the backend reports no limit."""
        if self.quota_limit <= 0:
            return None
        return max(self.quota_limit - self.quota_used, 0)


@dataclass(frozen=True)
class Quota:
    used: int
    limit: int
