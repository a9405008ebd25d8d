"""Interface every storage account backend implements."""

from abc import ABC, abstractmethod
from typing import Any

from common.types import Quota


class StorageBackend(ABC):
    """
    One backend serves many accounts; each account authenticates into its own
    session and every object operation goes through that session.

    Implementations raise BackendAuthError when a credential cannot be used,
    QuotaExceededError when a write does not fit and BackendIOError for any
    other put/get/delete failure.
    """

    @abstractmethod
    def authenticate(self, credential_ref: str) -> Any:
        """Exchange a credential reference for a session."""

    @abstractmethod
    def put(self, session: Any, name: str, data: bytes) -> str:
        """Store an object and return its backend object id."""

    @abstractmethod
    def get(self, session: Any, object_id: str) -> bytes:
        """Fetch an object's bytes."""

    @abstractmethod
    def delete(self, session: Any, object_id: str) -> None:
        """Remove an object."""

    @abstractmethod
    def get_quota(self, session: Any) -> Quota:
        """Report used and total bytes for the session's account (limit 0 = unlimited)."""
