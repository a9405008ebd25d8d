"""Storage account API routes."""

from fastapi import APIRouter, Query

from controller.repositories.account_repository import AccountRepository
from controller.schemas.accounts import StorageAccountResponse, ListAccountsResponse
from controller.service_locator import get_account_pool

router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.get("", response_model=ListAccountsResponse)
def list_accounts(refresh: bool = Query(False, description="Refresh quota snapshots first")):
    """
    List storage accounts with their last quota snapshot.
    """
    if refresh:
        get_account_pool().refresh_quotas()

    accounts = AccountRepository.list_all()
    return ListAccountsResponse(accounts=[
        StorageAccountResponse(
            account_id=a.account_id,
            label=a.label,
            enabled=a.enabled,
            has_credential=bool(a.credential_ref),
            quota_used=a.quota_used,
            quota_limit=a.quota_limit,
            quota_remaining=a.quota_remaining,
            quota_checked_at=a.quota_checked_at.isoformat() if a.quota_checked_at else None,
        )
        for a in accounts
    ])
