"""Distribution worker: claims queued jobs, encrypts chunks and spreads them over accounts."""

import dataclasses
import os
import socket
import threading
from pathlib import Path
from typing import Iterator, Optional, Tuple

from common.logging_config import get_logger
from common.types import ChunkRecord, Job
from controller.account_pool import AccountPool
from controller.chunk_cipher import encrypt_chunk
from controller.chunk_placement import QuotaAwarePlacement, get_placement_strategy
from controller.config import (
    CHUNK_SIZE,
    DELETE_SOURCE_AFTER_DISTRIBUTION,
    DISTRIBUTION_STRATEGY,
    JOB_LEASE,
    POLL_INTERVAL,
)
from controller.exceptions import JobCancelledError, SourceNotFound
from controller.job_notifier import JobNotifier, get_job_notifier
from controller.repositories.chunk_repository import ChunkRepository
from controller.repositories.job_repository import JobRepository
from controller.utils import generate_uuid

logger = get_logger(__name__)


def default_worker_id() -> str:
    return f"{socket.gethostname()}-{os.getpid()}-{threading.get_ident()}"


def iter_chunks(path: Path, chunk_size: int) -> Iterator[Tuple[int, bytes]]:
    """
    Yield (sequence_number, bytes) windows of a file, 1-indexed.

    An empty file yields a single empty chunk so it stays retrievable.
    """
    with open(path, "rb") as f:
        sequence = 0
        while True:
            data = f.read(chunk_size)
            if not data:
                break
            sequence += 1
            yield sequence, data
    if sequence == 0:
        yield 1, b""


def count_chunks(size_bytes: int, chunk_size: int) -> int:
    if size_bytes <= 0:
        return 1
    return (size_bytes + chunk_size - 1) // chunk_size


class DistributionWorker:
    """
    Blocking poll loop: reap stale leases, claim one job, process it, repeat.

    Every exception raised while processing a job is recorded on the job as
    FAILED; nothing a single job does stops the loop.
    """

    def __init__(
        self,
        account_pool: AccountPool,
        worker_id: Optional[str] = None,
        chunk_size: int = CHUNK_SIZE,
        poll_interval: float = POLL_INTERVAL,
        lease_seconds: int = JOB_LEASE,
        strategy: str = DISTRIBUTION_STRATEGY,
        notifier: Optional[JobNotifier] = None,
        delete_source: bool = DELETE_SOURCE_AFTER_DISTRIBUTION,
    ):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.account_pool = account_pool
        self.worker_id = worker_id or default_worker_id()
        self.chunk_size = chunk_size
        self.poll_interval = poll_interval
        self.lease_seconds = lease_seconds
        self.placement = get_placement_strategy(strategy)
        self.notifier = notifier or get_job_notifier()
        self.delete_source = delete_source
        self.job_repo = JobRepository()
        self.chunk_repo = ChunkRepository()
        self._stop_event = threading.Event()

    def stop(self) -> None:
        self._stop_event.set()
        self.notifier.notify()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def run_forever(self) -> None:
        logger.info(f"Worker {self.worker_id} started (poll={self.poll_interval}s, chunk={self.chunk_size} bytes)")
        while not self.stopped:
            try:
                processed = self.run_once()
            except Exception as e:
                logger.error(f"Worker loop error: {e}", exc_info=True)
                processed = False

            if not processed and not self.stopped:
                self.notifier.wait(self.poll_interval)

        logger.info(f"Worker {self.worker_id} stopped")

    def run_once(self) -> bool:
        """
        One poll iteration.

        Returns:
            True if a job was claimed (whatever its outcome), False if the queue was empty
        """
        self.job_repo.requeue_stale()

        job = self.job_repo.claim_next(self.worker_id, self.lease_seconds)
        if job is None:
            return False

        self.process_job(job)
        return True

    def process_job(self, job: Job) -> bool:
        """
        Distribute one claimed job and record its outcome.

        Returns:
            True if the job completed
        """
        logger.info(f"Processing job [job_id={job.job_id}] file={job.master_file_name}")
        try:
            chunk_count = self._distribute(job)
        except JobCancelledError as e:
            logger.warning(f"Job stopped [job_id={job.job_id}]: {e}")
            return False
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error(f"Job failed [job_id={job.job_id}]: {message}", exc_info=True)
            self.job_repo.mark_failed(job.job_id, self.worker_id, message)
            return False

        if not self.job_repo.mark_complete(job.job_id, self.worker_id):
            logger.warning(f"Job [job_id={job.job_id}] was taken from this worker before completion")
            return False

        logger.info(f"Job complete [job_id={job.job_id}] {chunk_count} chunks [master_uuid={job.master_file_uuid}]")
        if self.delete_source:
            self._remove_source(job)
        return True

    def _distribute(self, job: Job) -> int:
        path = Path(job.local_path)
        if not path.is_file():
            raise SourceNotFound(f"Uploaded file not found at {job.local_path}")

        if isinstance(self.placement, QuotaAwarePlacement):
            self.account_pool.refresh_quotas()

        pool = self.account_pool.refreshed_accounts()
        accounts = [account for account, _ in pool]
        sessions = {account.account_id: session for account, session in pool}

        chunks_total = count_chunks(path.stat().st_size, self.chunk_size)
        self.job_repo.set_chunks_total(job.job_id, self.worker_id, chunks_total)

        uploaded = 0
        for sequence_number, plaintext in iter_chunks(path, self.chunk_size):
            ciphertext, key_hex, iv_hex = encrypt_chunk(plaintext)
            account = self.placement.select_account(sequence_number, accounts, len(ciphertext))
            object_id = self.account_pool.backend.put(
                sessions[account.account_id],
                f"{job.master_file_uuid}_{sequence_number}.enc",
                ciphertext,
            )

            self.chunk_repo.register(ChunkRecord(
                chunk_id=generate_uuid(),
                master_file_uuid=job.master_file_uuid,
                master_file_name=job.master_file_name,
                sequence_number=sequence_number,
                holder_account_id=account.account_id,
                backend_object_id=object_id,
                size_bytes=len(plaintext),
                encryption_key=key_hex,
                encryption_iv=iv_hex,
            ))
            uploaded += 1

            accounts = [
                dataclasses.replace(a, quota_used=a.quota_used + len(ciphertext))
                if a.account_id == account.account_id else a
                for a in accounts
            ]

            if not self.job_repo.renew_lease(job.job_id, self.worker_id, self.lease_seconds, uploaded):
                raise JobCancelledError(f"Job {job.job_id} is no longer owned by {self.worker_id}")

            logger.debug(f"Chunk {sequence_number}/{chunks_total} -> {account.account_id} [job_id={job.job_id}]")

        return uploaded

    def _remove_source(self, job: Job) -> None:
        try:
            os.remove(job.local_path)
        except OSError as e:
            logger.warning(f"Could not remove source file {job.local_path}: {e}")


def start_worker_thread(worker: DistributionWorker) -> threading.Thread:
    """Run a worker's poll loop in a daemon thread."""
    thread = threading.Thread(target=worker.run_forever, name=f"worker-{worker.worker_id}", daemon=True)
    thread.start()
    return thread
