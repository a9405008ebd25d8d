"""Storage account pool: eligible accounts, their sessions and quota snapshots."""

from typing import Any, Dict, List, Tuple

from common.logging_config import get_logger
from common.types import StorageAccount
from controller.exceptions import BackendAuthError, ConfigurationError, NotFound
from controller.repositories.account_repository import AccountRepository
from controller.storage_backend import StorageBackend

logger = get_logger(__name__)


class AccountPool:
    """
    Ordered set of storage accounts backed by the storage_accounts table.

    Sessions are cached per account for the lifetime of the pool; a worker
    builds a fresh pool view for each job via refreshed_accounts().
    """

    def __init__(self, backend: StorageBackend):
        self.backend = backend
        self.account_repo = AccountRepository()
        self._sessions: Dict[str, Any] = {}

    def refreshed_accounts(self) -> List[Tuple[StorageAccount, Any]]:
        """
        Authenticate every eligible account, dropping those that fail.

        Returns:
            (account, session) pairs in stable round-robin order

        Raises:
            ConfigurationError: If no account is configured or none authenticates
        """
        eligible = self.account_repo.list_eligible()
        if not eligible:
            raise ConfigurationError("No storage accounts with credentials are configured")

        usable = []
        for account in eligible:
            try:
                session = self.backend.authenticate(account.credential_ref)
            except BackendAuthError as e:
                logger.warning(f"Skipping account {account.account_id}: authentication failed: {e}")
                self._sessions.pop(account.account_id, None)
                continue
            self._sessions[account.account_id] = session
            usable.append((account, session))

        if not usable:
            raise ConfigurationError("No storage account could be authenticated")

        logger.debug(f"Account pool refreshed: {[a.account_id for a, _ in usable]}")
        return usable

    def session_for(self, account_id: str) -> Any:
        """
        Session for one account, authenticating on first use.

        Raises:
            NotFound: If the account is not registered
            BackendAuthError: If its credential is missing or rejected
        """
        if account_id in self._sessions:
            return self._sessions[account_id]

        account = self.account_repo.get(account_id)
        if account is None:
            raise NotFound(f"Storage account '{account_id}' is not registered")
        if not account.credential_ref:
            raise BackendAuthError(f"Account '{account_id}' has no credential", account_id=account_id)

        try:
            session = self.backend.authenticate(account.credential_ref)
        except BackendAuthError as e:
            e.account_id = account_id
            raise

        self._sessions[account_id] = session
        return session

    def invalidate(self, account_id: str) -> None:
        self._sessions.pop(account_id, None)

    def refresh_quotas(self) -> List[StorageAccount]:
        """
        Store a fresh (used, limit) snapshot for every eligible account.

        Accounts that fail to authenticate or report keep their old snapshot.
        """
        refreshed = []
        for account in self.account_repo.list_eligible():
            try:
                session = self.session_for(account.account_id)
                quota = self.backend.get_quota(session)
            except BackendAuthError as e:
                logger.warning(f"Quota refresh skipped for {account.account_id}: {e}")
                continue
            except Exception as e:
                logger.warning(f"Quota refresh failed for {account.account_id}: {e}")
                continue

            self.account_repo.update_quota(account.account_id, quota.used, quota.limit)
            refreshed.append(self.account_repo.get(account.account_id))

        return refreshed


def parse_account_list(raw: str) -> List[Tuple[str, str]]:
    """
    Parse "id=credential,id2=credential2" into (account_id, credential_ref) pairs.

    An entry without "=" uses the account id as its credential reference.
    """
    pairs = []
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        account_id, sep, credential_ref = entry.partition("=")
        account_id = account_id.strip()
        credential_ref = credential_ref.strip() if sep else account_id
        if account_id:
            pairs.append((account_id, credential_ref))
    return pairs


def register_configured_accounts(raw: str) -> List[StorageAccount]:
    """Upsert the accounts listed in configuration, keeping their listed order."""
    registered = []
    for position, (account_id, credential_ref) in enumerate(parse_account_list(raw)):
        registered.append(
            AccountRepository.upsert(account_id, credential_ref, label=account_id, position=position)
        )
    if registered:
        logger.info(f"Registered {len(registered)} storage account(s) from configuration")
    return registered
