"""Filesystem-backed storage accounts: one directory per credential reference."""

import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from common.logging_config import get_logger
from common.types import Quota
from controller.exceptions import BackendAuthError, BackendIOError, QuotaExceededError
from controller.storage_backend import StorageBackend

logger = get_logger(__name__)

OBJECT_SUFFIX = ".chk"

_SAFE_REF = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


@dataclass(frozen=True)
class LocalSession:
    credential_ref: str
    root: Path
    quota_limit: int = 0


class LocalDirectoryBackend(StorageBackend):
    """
    Each credential reference maps to a directory under root; objects are
    files named <object_id>.chk inside it.

    Args:
        root: Base directory holding one subdirectory per account
        credentials: Optional map of accepted credential refs to quota limits
            in bytes (0 = unlimited). When given, any other ref fails to
            authenticate.
        default_quota: Quota limit for refs not listed in credentials
    """

    def __init__(self, root, credentials: Optional[Dict[str, int]] = None, default_quota: int = 0):
        self.root = Path(root)
        self.credentials = dict(credentials) if credentials is not None else None
        self.default_quota = default_quota

    def authenticate(self, credential_ref: str) -> LocalSession:
        if not credential_ref or not _SAFE_REF.match(credential_ref):
            raise BackendAuthError("Credential reference is empty or malformed")

        if self.credentials is not None and credential_ref not in self.credentials:
            raise BackendAuthError("Credential reference is not recognised")

        quota_limit = self.default_quota
        if self.credentials is not None:
            quota_limit = self.credentials[credential_ref]

        account_root = self.root / credential_ref
        try:
            account_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BackendAuthError(f"Account directory unavailable: {e}") from e

        return LocalSession(credential_ref=credential_ref, root=account_root, quota_limit=quota_limit)

    def _object_path(self, session: LocalSession, object_id: str) -> Path:
        if not _SAFE_REF.match(object_id or ""):
            raise BackendIOError(f"Invalid object id '{object_id}'", object_id=object_id)
        return session.root / f"{object_id}{OBJECT_SUFFIX}"

    def _used_bytes(self, session: LocalSession) -> int:
        return sum(path.stat().st_size for path in session.root.glob(f"*{OBJECT_SUFFIX}"))

    def put(self, session: LocalSession, name: str, data: bytes) -> str:
        if session.quota_limit > 0 and self._used_bytes(session) + len(data) > session.quota_limit:
            raise QuotaExceededError(f"Quota exceeded storing '{name}' ({len(data)} bytes)")

        object_id = uuid.uuid4().hex
        path = self._object_path(session, object_id)
        try:
            path.write_bytes(data)
        except OSError as e:
            raise BackendIOError(f"Write failed for '{name}': {e}", object_id=object_id) from e

        logger.debug(f"Stored object {object_id} ({len(data)} bytes) as '{name}'")
        return object_id

    def get(self, session: LocalSession, object_id: str) -> bytes:
        path = self._object_path(session, object_id)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise BackendIOError(f"Object {object_id} not found", object_id=object_id) from e
        except OSError as e:
            raise BackendIOError(f"Read failed for object {object_id}: {e}", object_id=object_id) from e

    def delete(self, session: LocalSession, object_id: str) -> None:
        path = self._object_path(session, object_id)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise BackendIOError(f"Object {object_id} not found", object_id=object_id) from e
        except OSError as e:
            raise BackendIOError(f"Delete failed for object {object_id}: {e}", object_id=object_id) from e

    def get_quota(self, session: LocalSession) -> Quota:
        return Quota(used=self._used_bytes(session), limit=session.quota_limit)
