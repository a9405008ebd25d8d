"""Single-object media uploads served back through the cache proxy."""

from common.logging_config import get_logger
from controller.account_pool import AccountPool
from controller.exceptions import BackendAuthError
from controller.utils import safe_file_name

logger = get_logger(__name__)


class MediaService:
    """
    Stores a media file as one plain backend object in the uploader's own
    account. No chunking and no encryption, so /media/{object_id} can serve
    the bytes as they were uploaded.
    """

    def __init__(self, account_pool: AccountPool):
        self.account_pool = account_pool

    def upload(self, account_id: str, name: str, data: bytes) -> str:
        """
        Put one object through the account's session.

        Args:
            account_id: Account that will hold the object
            name: Original file name (any directory part is dropped)
            data: Object bytes

        Returns:
            Backend object id

        Raises:
            NotFound: If the account is not registered
            BackendAuthError: If the account cannot authenticate
            BackendIOError: If the backend rejects the write
        """
        name = safe_file_name(name)
        session = self.account_pool.session_for(account_id)
        try:
            object_id = self.account_pool.backend.put(session, name, data)
        except BackendAuthError as e:
            self.account_pool.invalidate(account_id)
            e.account_id = account_id
            raise

        logger.info(f"Stored media object [object_id={object_id}] account={account_id} name={name} size={len(data)}")
        return object_id
