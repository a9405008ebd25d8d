"""Pydantic schemas for storage account endpoints."""

from typing import List, Optional
from pydantic import BaseModel


class StorageAccountResponse(BaseModel):
    """Response model for a storage account and its quota snapshot."""
    account_id: str
    label: str
    enabled: bool
    has_credential: bool
    quota_used: int
    quota_limit: int
    quota_remaining: Optional[int] = None
    quota_checked_at: Optional[str] = None


class ListAccountsResponse(BaseModel):
    """Response model for account listing."""
    accounts: List[StorageAccountResponse]
