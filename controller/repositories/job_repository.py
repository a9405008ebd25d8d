"""Distribution queue repository: atomic claim and guarded state transitions."""

import sqlite3
from datetime import datetime, timedelta
from typing import List, Optional

from common.constants import (
    JOB_STATUS_PENDING,
    JOB_STATUS_PROCESSING,
    JOB_STATUS_COMPLETE,
    JOB_STATUS_FAILED,
    JOB_STATUS_FILE_DELETED,
    CANCELLED_MESSAGE,
    LEASE_EXPIRED_MESSAGE,
    FILE_DELETED_MESSAGE,
)
from common.logging_config import get_logger
from common.types import Job
from controller.database import get_db_connection, from_timestamp, to_timestamp
from controller.utils import generate_uuid, utcnow

logger = get_logger(__name__)

_JOB_COLUMNS = """
    job_id, owner_id, master_file_name, local_file_path, status, created_at,
    started_at, finished_at, error_message, retry_count, master_file_uuid,
    worker_id, lease_expires_at, chunks_total, chunks_done, size_bytes
"""


def _row_to_job(row: sqlite3.Row) -> Job:
    return Job(
        job_id=row["job_id"],
        owner_id=row["owner_id"],
        master_file_name=row["master_file_name"],
        local_path=row["local_file_path"],
        status=row["status"],
        created_at=from_timestamp(row["created_at"]),
        started_at=from_timestamp(row["started_at"]),
        finished_at=from_timestamp(row["finished_at"]),
        error_message=row["error_message"],
        retry_count=row["retry_count"],
        master_file_uuid=row["master_file_uuid"],
        worker_id=row["worker_id"],
        lease_expires_at=from_timestamp(row["lease_expires_at"]),
        chunks_total=row["chunks_total"],
        chunks_done=row["chunks_done"],
        size_bytes=row["size_bytes"],
    )


class JobRepository:
    """
    Every mutation is a conditional statement on the expected pre-state and
    reports whether a row actually changed.
    """

    @staticmethod
    def create_job(
        owner_id: str,
        master_file_name: str,
        local_path: str,
        size_bytes: int = 0,
        created_at: Optional[datetime] = None,
    ) -> Job:
        created_at = created_at or utcnow()
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO distribution_queue
                (owner_id, master_file_name, local_file_path, status, created_at, size_bytes)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (owner_id, master_file_name, local_path, JOB_STATUS_PENDING,
                 to_timestamp(created_at), size_bytes)
            )
            job_id = cursor.lastrowid
            conn.commit()

        logger.info(f"Created distribution job [job_id={job_id}] file={master_file_name} owner={owner_id}")
        return Job(
            job_id=job_id,
            owner_id=owner_id,
            master_file_name=master_file_name,
            local_path=local_path,
            status=JOB_STATUS_PENDING,
            created_at=created_at,
            size_bytes=size_bytes,
        )

    @staticmethod
    def get_by_id(job_id: int) -> Optional[Job]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_JOB_COLUMNS} FROM distribution_queue WHERE job_id = ?",
                (job_id,)
            )
            row = cursor.fetchone()
            return _row_to_job(row) if row else None

    @staticmethod
    def list_pending_and_failed() -> List[Job]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_JOB_COLUMNS} FROM distribution_queue
                WHERE status IN (?, ?, ?)
                ORDER BY created_at ASC, job_id ASC
                """,
                (JOB_STATUS_PENDING, JOB_STATUS_PROCESSING, JOB_STATUS_FAILED)
            )
            return [_row_to_job(row) for row in cursor.fetchall()]

    @staticmethod
    def list_all() -> List[Job]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_JOB_COLUMNS} FROM distribution_queue ORDER BY created_at DESC, job_id DESC"
            )
            return [_row_to_job(row) for row in cursor.fetchall()]

    @staticmethod
    def claim_next(worker_id: str, lease_seconds: int, now: Optional[datetime] = None) -> Optional[Job]:
        """
        Claim the oldest PENDING job for this worker.

        The select and the conditional update run inside one write-locked
        transaction (BEGIN IMMEDIATE), so two workers can never both move the
        same row to PROCESSING.

        Args:
            worker_id: Identifier recorded as the lease holder
            lease_seconds: Lease length; the worker must renew before expiry
            now: Current time (injectable for tests)

        Returns:
            The claimed job, or None when the queue holds no PENDING job
        """
        now = now or utcnow()
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("BEGIN IMMEDIATE")
            try:
                cursor.execute(
                    """
                    SELECT job_id FROM distribution_queue
                    WHERE status = ?
                    ORDER BY created_at ASC, job_id ASC
                    LIMIT 1
                    """,
                    (JOB_STATUS_PENDING,)
                )
                row = cursor.fetchone()
                if row is None:
                    conn.rollback()
                    return None

                job_id = row["job_id"]
                claimed = JobRepository._transition_to_processing(cursor, job_id, worker_id, lease_seconds, now)
                if not claimed:
                    conn.rollback()
                    return None

                cursor.execute(
                    f"SELECT {_JOB_COLUMNS} FROM distribution_queue WHERE job_id = ?",
                    (job_id,)
                )
                job = _row_to_job(cursor.fetchone())
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        logger.info(f"Claimed job [job_id={job.job_id}] worker={worker_id} master_uuid={job.master_file_uuid}")
        return job

    @staticmethod
    def try_claim(job_id: int, worker_id: str, lease_seconds: int, now: Optional[datetime] = None) -> bool:
        """
        Claim one specific job; False when it is no longer PENDING.
        """
        now = now or utcnow()
        with get_db_connection() as conn:
            cursor = conn.cursor()
            claimed = JobRepository._transition_to_processing(cursor, job_id, worker_id, lease_seconds, now)
            conn.commit()
        return claimed

    @staticmethod
    def _transition_to_processing(
        cursor: sqlite3.Cursor,
        job_id: int,
        worker_id: str,
        lease_seconds: int,
        now: datetime,
    ) -> bool:
        cursor.execute(
            """
            UPDATE distribution_queue
            SET status = ?, started_at = ?, finished_at = NULL, error_message = NULL,
                worker_id = ?, lease_expires_at = ?, master_file_uuid = ?,
                chunks_total = 0, chunks_done = 0
            WHERE job_id = ? AND status = ?
            """,
            (JOB_STATUS_PROCESSING, to_timestamp(now), worker_id,
             to_timestamp(now + timedelta(seconds=lease_seconds)), generate_uuid(),
             job_id, JOB_STATUS_PENDING)
        )
        return cursor.rowcount == 1

    @staticmethod
    def set_chunks_total(job_id: int, worker_id: str, chunks_total: int) -> bool:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE distribution_queue SET chunks_total = ?
                WHERE job_id = ? AND status = ? AND worker_id = ?
                """,
                (chunks_total, job_id, JOB_STATUS_PROCESSING, worker_id)
            )
            conn.commit()
            return cursor.rowcount == 1

    @staticmethod
    def renew_lease(
        job_id: int,
        worker_id: str,
        lease_seconds: int,
        chunks_done: int,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Extend the lease and record progress.

        Returns:
            False when the job was cancelled, reaped or claimed by another worker
        """
        now = now or utcnow()
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE distribution_queue SET lease_expires_at = ?, chunks_done = ?
                WHERE job_id = ? AND status = ? AND worker_id = ?
                """,
                (to_timestamp(now + timedelta(seconds=lease_seconds)), chunks_done,
                 job_id, JOB_STATUS_PROCESSING, worker_id)
            )
            conn.commit()
            return cursor.rowcount == 1

    @staticmethod
    def mark_complete(job_id: int, worker_id: str, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE distribution_queue
                SET status = ?, finished_at = ?, lease_expires_at = NULL, chunks_done = chunks_total
                WHERE job_id = ? AND status = ? AND worker_id = ?
                """,
                (JOB_STATUS_COMPLETE, to_timestamp(now), job_id, JOB_STATUS_PROCESSING, worker_id)
            )
            conn.commit()
            return cursor.rowcount == 1

    @staticmethod
    def mark_failed(job_id: int, worker_id: str, error_message: str, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE distribution_queue
                SET status = ?, finished_at = ?, error_message = ?, lease_expires_at = NULL
                WHERE job_id = ? AND status = ? AND worker_id = ?
                """,
                (JOB_STATUS_FAILED, to_timestamp(now), error_message, job_id,
                 JOB_STATUS_PROCESSING, worker_id)
            )
            conn.commit()
            return cursor.rowcount == 1

    @staticmethod
    def retry(job_id: int) -> bool:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE distribution_queue
                SET status = ?, error_message = NULL, started_at = NULL, finished_at = NULL,
                    worker_id = NULL, lease_expires_at = NULL, master_file_uuid = NULL,
                    chunks_total = 0, chunks_done = 0, retry_count = retry_count + 1
                WHERE job_id = ? AND status = ?
                """,
                (JOB_STATUS_PENDING, job_id, JOB_STATUS_FAILED)
            )
            conn.commit()
            return cursor.rowcount == 1

    @staticmethod
    def cancel(job_id: int, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE distribution_queue
                SET status = ?, finished_at = ?, error_message = ?, lease_expires_at = NULL
                WHERE job_id = ? AND status IN (?, ?)
                """,
                (JOB_STATUS_FAILED, to_timestamp(now), CANCELLED_MESSAGE, job_id,
                 JOB_STATUS_PENDING, JOB_STATUS_PROCESSING)
            )
            conn.commit()
            return cursor.rowcount == 1

    @staticmethod
    def purge(job_id: int) -> bool:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                DELETE FROM distribution_queue
                WHERE job_id = ? AND status IN (?, ?, ?)
                """,
                (job_id, JOB_STATUS_COMPLETE, JOB_STATUS_FAILED, JOB_STATUS_FILE_DELETED)
            )
            conn.commit()
            return cursor.rowcount == 1

    @staticmethod
    def requeue_stale(now: Optional[datetime] = None) -> List[int]:
        """
        Move PROCESSING jobs whose lease expired back to PENDING.

        Returns:
            IDs of the requeued jobs
        """
        now = now or utcnow()
        now_ts = to_timestamp(now)
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("BEGIN IMMEDIATE")
            try:
                cursor.execute(
                    """
                    SELECT job_id FROM distribution_queue
                    WHERE status = ? AND lease_expires_at IS NOT NULL AND lease_expires_at < ?
                    """,
                    (JOB_STATUS_PROCESSING, now_ts)
                )
                stale_ids = [row["job_id"] for row in cursor.fetchall()]

                for job_id in stale_ids:
                    cursor.execute(
                        """
                        UPDATE distribution_queue
                        SET status = ?, started_at = NULL, worker_id = NULL, lease_expires_at = NULL,
                            master_file_uuid = NULL, chunks_total = 0, chunks_done = 0,
                            error_message = ?, retry_count = retry_count + 1
                        WHERE job_id = ? AND status = ?
                        """,
                        (JOB_STATUS_PENDING, LEASE_EXPIRED_MESSAGE, job_id, JOB_STATUS_PROCESSING)
                    )
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        if stale_ids:
            logger.warning(f"Requeued {len(stale_ids)} job(s) with expired leases: {stale_ids}")
        return stale_ids

    @staticmethod
    def mark_deleted_for_master(
        master_file_uuid: str,
        master_file_name: str,
        conn: sqlite3.Connection,
        now: Optional[datetime] = None,
    ) -> Optional[int]:
        """
        Mark the job behind a deleted master file as FILE_DELETED.

        The job whose current attempt produced master_file_uuid is marked
        first. Otherwise the most recent terminal job for the file name is
        marked, unless its own attempt still has registered chunks. Runs on
        the caller's connection, after the chunk rows are deleted, so it
        commits or rolls back together with them.

        Returns:
            The job id that was marked, or None when no job matches
        """
        now = now or utcnow()
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT job_id FROM distribution_queue
            WHERE master_file_uuid = ? AND status IN (?, ?)
            ORDER BY job_id DESC
            LIMIT 1
            """,
            (master_file_uuid, JOB_STATUS_COMPLETE, JOB_STATUS_FAILED)
        )
        row = cursor.fetchone()

        if row is None:
            cursor.execute(
                """
                SELECT job_id, status, master_file_uuid FROM distribution_queue
                WHERE master_file_name = ? AND status IN (?, ?, ?)
                ORDER BY created_at DESC, job_id DESC
                LIMIT 1
                """,
                (master_file_name, JOB_STATUS_COMPLETE, JOB_STATUS_FAILED, JOB_STATUS_FILE_DELETED)
            )
            row = cursor.fetchone()
            if row is None or row["status"] == JOB_STATUS_FILE_DELETED:
                return None

            if row["master_file_uuid"] is not None:
                cursor.execute(
                    "SELECT 1 FROM chunk_registry WHERE master_file_uuid = ? LIMIT 1",
                    (row["master_file_uuid"],)
                )
                if cursor.fetchone() is not None:
                    logger.info(
                        f"Job {row['job_id']} still holds master file {row['master_file_uuid']}; "
                        f"deleting {master_file_uuid} leaves it unchanged"
                    )
                    return None

        cursor.execute(
            """
            UPDATE distribution_queue
            SET status = ?, finished_at = ?, error_message = ?
            WHERE job_id = ? AND status != ?
            """,
            (JOB_STATUS_FILE_DELETED, to_timestamp(now), FILE_DELETED_MESSAGE,
             row["job_id"], JOB_STATUS_FILE_DELETED)
        )
        return row["job_id"] if cursor.rowcount == 1 else None
