"""Chunk registry repository for database operations."""

import dataclasses
import sqlite3
from datetime import datetime
from typing import Dict, List, Optional

from common.logging_config import get_logger
from common.types import ChunkRecord, MasterFileSummary
from controller.database import get_db_connection, from_timestamp, to_timestamp
from controller.exceptions import RegistryIntegrityError
from controller.repositories.job_repository import JobRepository
from controller.utils import utcnow

logger = get_logger(__name__)

_CHUNK_COLUMNS = """
    chunk_id, master_file_uuid, master_file_name, sequence_number, holder_account_id,
    backend_object_id, size_bytes, encryption_key, encryption_iv, created_at
"""


def _row_to_chunk(row: sqlite3.Row) -> ChunkRecord:
    return ChunkRecord(
        chunk_id=row["chunk_id"],
        master_file_uuid=row["master_file_uuid"],
        master_file_name=row["master_file_name"],
        sequence_number=row["sequence_number"],
        holder_account_id=row["holder_account_id"],
        backend_object_id=row["backend_object_id"],
        size_bytes=row["size_bytes"],
        encryption_key=row["encryption_key"],
        encryption_iv=row["encryption_iv"],
        created_at=from_timestamp(row["created_at"]),
    )


class ChunkRepository:
    @staticmethod
    def register(chunk: ChunkRecord, conn=None) -> ChunkRecord:
        """
        Insert one chunk record; each record is durable on its own.

        When a connection is passed the insert joins the caller's transaction
        and the caller commits.

        Raises:
            RegistryIntegrityError: If (master_file_uuid, sequence_number) already exists
        """
        created_at = chunk.created_at or utcnow()
        if conn is not None:
            ChunkRepository._insert(conn, chunk, created_at)
        else:
            with get_db_connection() as conn:
                ChunkRepository._insert(conn, chunk, created_at)
                conn.commit()

        logger.debug(
            f"Registered chunk [master_uuid={chunk.master_file_uuid}, seq={chunk.sequence_number}] "
            f"account={chunk.holder_account_id}"
        )
        return dataclasses.replace(chunk, created_at=created_at)

    @staticmethod
    def _insert(conn: sqlite3.Connection, chunk: ChunkRecord, created_at: datetime) -> None:
        try:
            conn.execute(
                f"""
                INSERT INTO chunk_registry ({_CHUNK_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (chunk.chunk_id, chunk.master_file_uuid, chunk.master_file_name,
                 chunk.sequence_number, chunk.holder_account_id, chunk.backend_object_id,
                 chunk.size_bytes, chunk.encryption_key, chunk.encryption_iv,
                 to_timestamp(created_at))
            )
        except sqlite3.IntegrityError as e:
            raise RegistryIntegrityError(
                f"Chunk {chunk.sequence_number} of {chunk.master_file_uuid} already registered"
            ) from e

    @staticmethod
    def list_by_master(master_file_uuid: str) -> List[ChunkRecord]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_CHUNK_COLUMNS} FROM chunk_registry
                WHERE master_file_uuid = ?
                ORDER BY sequence_number ASC
                """,
                (master_file_uuid,)
            )
            return [_row_to_chunk(row) for row in cursor.fetchall()]

    @staticmethod
    def list_distinct_masters() -> List[MasterFileSummary]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT master_file_uuid, MIN(master_file_name) AS master_file_name,
                       COUNT(*) AS chunk_count, SUM(size_bytes) AS total_size,
                       MIN(created_at) AS first_created
                FROM chunk_registry
                GROUP BY master_file_uuid
                ORDER BY first_created DESC
                """
            )
            return [
                MasterFileSummary(
                    master_file_uuid=row["master_file_uuid"],
                    master_file_name=row["master_file_name"],
                    chunk_count=row["chunk_count"],
                    total_size=row["total_size"] or 0,
                )
                for row in cursor.fetchall()
            ]

    @staticmethod
    def delete_by_master(master_file_uuid: str, now: Optional[datetime] = None) -> Dict[str, Optional[int]]:
        """
        Delete every chunk record of a master file and mark its job FILE_DELETED.

        Both changes commit in a single transaction.

        Returns:
            {"chunks_deleted": n, "job_id": marked job id or None}
        """
        with get_db_connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute(
                    "SELECT MIN(master_file_name) AS name FROM chunk_registry WHERE master_file_uuid = ?",
                    (master_file_uuid,)
                )
                row = cursor.fetchone()
                master_file_name = row["name"] if row else None

                cursor.execute(
                    "DELETE FROM chunk_registry WHERE master_file_uuid = ?",
                    (master_file_uuid,)
                )
                chunks_deleted = cursor.rowcount

                job_id = None
                if master_file_name is not None:
                    job_id = JobRepository.mark_deleted_for_master(
                        master_file_uuid, master_file_name, conn, now
                    )

                conn.commit()
            except Exception as e:
                conn.rollback()
                logger.error(f"Failed to delete master file [master_uuid={master_file_uuid}]: {e}", exc_info=True)
                raise

        logger.info(f"Deleted {chunks_deleted} chunk records [master_uuid={master_file_uuid}] job={job_id}")
        return {"chunks_deleted": chunks_deleted, "job_id": job_id}

    @staticmethod
    def verify_sequence(records: List[ChunkRecord]) -> None:
        """
        Check that records ordered by sequence number cover exactly 1..N.

        Raises:
            RegistryIntegrityError: On a gap or a duplicate sequence number
        """
        for expected, record in enumerate(records, start=1):
            if record.sequence_number != expected:
                raise RegistryIntegrityError(
                    f"Chunk sequence broken for {record.master_file_uuid}: "
                    f"expected {expected}, found {record.sequence_number}"
                )
