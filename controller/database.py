"""Database schema and connection management for SQLite."""

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Generator, Optional

from controller.config import DATABASE_PATH, DB_BUSY_TIMEOUT_SECONDS


_QUEUE_COLUMNS_ADDED_LATER = {
    "master_file_uuid": "TEXT",
    "worker_id": "TEXT",
    "lease_expires_at": "TEXT",
    "chunks_total": "INTEGER NOT NULL DEFAULT 0",
    "chunks_done": "INTEGER NOT NULL DEFAULT 0",
    "size_bytes": "INTEGER NOT NULL DEFAULT 0",
}


def _migrate_distribution_queue(cursor: sqlite3.Cursor) -> None:
    """
    Add lease and progress columns to a distribution_queue created before they existed.
    """
    cursor.execute("PRAGMA table_info(distribution_queue)")
    existing = {row["name"] for row in cursor.fetchall()}

    for column, ddl in _QUEUE_COLUMNS_ADDED_LATER.items():
        if column not in existing:
            cursor.execute(f"ALTER TABLE distribution_queue ADD COLUMN {column} {ddl}")


def init_database() -> None:
    """
    Initialize database and create tables if they don't exist.
    """
    db_path = Path(DATABASE_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection() as conn:
        cursor = conn.cursor()

        cursor.execute("PRAGMA journal_mode=WAL")

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS distribution_queue (
                job_id INTEGER PRIMARY KEY AUTOINCREMENT,
                owner_id TEXT NOT NULL,
                master_file_name TEXT NOT NULL,
                local_file_path TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'PENDING',
                created_at TEXT NOT NULL,
                started_at TEXT,
                finished_at TEXT,
                error_message TEXT,
                retry_count INTEGER NOT NULL DEFAULT 0
            )
        """)

        _migrate_distribution_queue(cursor)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS chunk_registry (
                chunk_id TEXT PRIMARY KEY,
                master_file_uuid TEXT NOT NULL,
                master_file_name TEXT NOT NULL,
                sequence_number INTEGER NOT NULL,
                holder_account_id TEXT NOT NULL,
                backend_object_id TEXT NOT NULL,
                size_bytes INTEGER NOT NULL,
                encryption_key TEXT NOT NULL,
                encryption_iv TEXT NOT NULL,
                created_at TEXT NOT NULL,
                UNIQUE(master_file_uuid, sequence_number)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS storage_accounts (
                account_id TEXT PRIMARY KEY,
                credential_ref TEXT,
                label TEXT NOT NULL DEFAULT '',
                enabled INTEGER NOT NULL DEFAULT 1,
                quota_used INTEGER NOT NULL DEFAULT 0,
                quota_limit INTEGER NOT NULL DEFAULT 0,
                quota_checked_at TEXT,
                position INTEGER NOT NULL DEFAULT 0
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_queue_status_created ON distribution_queue(status, created_at)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_queue_master_name ON distribution_queue(master_file_name)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_chunks_master ON chunk_registry(master_file_uuid)
        """)

        conn.commit()


@contextmanager
def get_db_connection() -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.
    """
    conn = sqlite3.connect(DATABASE_PATH, timeout=DB_BUSY_TIMEOUT_SECONDS)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def to_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime for storage."""
    return value.isoformat(timespec="microseconds") if value is not None else None


def from_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO timestamp."""
    return datetime.fromisoformat(value) if value else None
