"""Storage account repository for database operations."""

import sqlite3
from datetime import datetime
from typing import List, Optional

from common.logging_config import get_logger
from common.types import StorageAccount
from controller.database import get_db_connection, from_timestamp, to_timestamp
from controller.utils import utcnow

logger = get_logger(__name__)

_ACCOUNT_COLUMNS = """
    account_id, credential_ref, label, enabled, quota_used, quota_limit, quota_checked_at
"""


def _row_to_account(row: sqlite3.Row) -> StorageAccount:
    return StorageAccount(
        account_id=row["account_id"],
        credential_ref=row["credential_ref"] or "",
        label=row["label"] or "",
        quota_used=row["quota_used"],
        quota_limit=row["quota_limit"],
        enabled=bool(row["enabled"]),
        quota_checked_at=from_timestamp(row["quota_checked_at"]),
    )


class AccountRepository:
    @staticmethod
    def upsert(
        account_id: str,
        credential_ref: str,
        label: str = "",
        enabled: bool = True,
        quota_limit: int = 0,
        position: Optional[int] = None,
    ) -> StorageAccount:
        """
        Insert an account or update its credential, label and enabled flag.

        Position fixes the round-robin order; a new account without an
        explicit position goes last.
        """
        with get_db_connection() as conn:
            cursor = conn.cursor()
            if position is None:
                cursor.execute("SELECT position FROM storage_accounts WHERE account_id = ?", (account_id,))
                row = cursor.fetchone()
                if row is not None:
                    position = row["position"]
                else:
                    cursor.execute("SELECT COALESCE(MAX(position), -1) + 1 AS next_position FROM storage_accounts")
                    position = cursor.fetchone()["next_position"]

            cursor.execute(
                """
                INSERT INTO storage_accounts (account_id, credential_ref, label, enabled, quota_limit, position)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(account_id) DO UPDATE SET
                    credential_ref = excluded.credential_ref,
                    label = excluded.label,
                    enabled = excluded.enabled,
                    quota_limit = excluded.quota_limit,
                    position = excluded.position
                """,
                (account_id, credential_ref, label, 1 if enabled else 0, quota_limit, position)
            )
            conn.commit()

        logger.info(f"Registered storage account [account_id={account_id}] enabled={enabled}")
        return AccountRepository.get(account_id)

    @staticmethod
    def get(account_id: str) -> Optional[StorageAccount]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_ACCOUNT_COLUMNS} FROM storage_accounts WHERE account_id = ?",
                (account_id,)
            )
            row = cursor.fetchone()
            return _row_to_account(row) if row else None

    @staticmethod
    def list_all() -> List[StorageAccount]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_ACCOUNT_COLUMNS} FROM storage_accounts ORDER BY position ASC, account_id ASC"
            )
            return [_row_to_account(row) for row in cursor.fetchall()]

    @staticmethod
    def list_eligible() -> List[StorageAccount]:
        """
        Enabled accounts holding a credential, in stable round-robin order.
        """
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_ACCOUNT_COLUMNS} FROM storage_accounts
                WHERE enabled = 1 AND credential_ref IS NOT NULL AND credential_ref != ''
                ORDER BY position ASC, account_id ASC
                """
            )
            return [_row_to_account(row) for row in cursor.fetchall()]

    @staticmethod
    def set_enabled(account_id: str, enabled: bool) -> bool:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE storage_accounts SET enabled = ? WHERE account_id = ?",
                (1 if enabled else 0, account_id)
            )
            conn.commit()
            return cursor.rowcount == 1

    @staticmethod
    def update_quota(account_id: str, used: int, limit: int, checked_at: Optional[datetime] = None) -> bool:
        checked_at = checked_at or utcnow()
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE storage_accounts SET quota_used = ?, quota_limit = ?, quota_checked_at = ?
                WHERE account_id = ?
                """,
                (used, limit, to_timestamp(checked_at), account_id)
            )
            conn.commit()
            return cursor.rowcount == 1
