"""Read-through disk cache in front of backend objects."""

import hashlib
import json
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from common.constants import DEFAULT_CONTENT_TYPE
from common.logging_config import get_logger
from controller.account_pool import AccountPool

logger = get_logger(__name__)

_MAGIC_NUMBERS = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"%PDF-", "application/pdf"),
)


def sniff_content_type(data: bytes) -> str:
    """Content type from leading magic bytes."""
    for magic, content_type in _MAGIC_NUMBERS:
        if data.startswith(magic):
            return content_type
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return DEFAULT_CONTENT_TYPE


@dataclass(frozen=True)
class CachedObject:
    data: bytes
    content_type: str
    from_cache: bool


class CacheProxy:
    """
    Serves backend objects through a TTL'd file cache.

    Entries are named by the SHA-256 of the object id and expire by file
    mtime; the content type lives in a JSON sidecar. Any cache read or write
    failure is logged and the object is served straight from the backend.
    """

    def __init__(
        self,
        account_pool: AccountPool,
        cache_dir,
        ttl_seconds: int,
        clock: Callable[[], float] = time.time,
    ):
        self.account_pool = account_pool
        self.cache_dir = Path(cache_dir)
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def _entry_path(self, object_id: str) -> Path:
        return self.cache_dir / hashlib.sha256(object_id.encode("utf-8")).hexdigest()

    @staticmethod
    def _sidecar_path(entry: Path) -> Path:
        return entry.with_name(entry.name + ".json")

    def fetch(self, object_id: str, account_id: str) -> CachedObject:
        """
        Return an object, fetching with the requesting account's credential on a miss.

        Raises:
            NotFound: If the requesting account is not registered
            BackendAuthError: If the account cannot authenticate
            BackendIOError: If the backend cannot serve the object
        """
        entry = self._entry_path(object_id)

        cached = self._read_entry(entry)
        if cached is not None:
            return cached

        session = self.account_pool.session_for(account_id)
        data = self.account_pool.backend.get(session, object_id)
        content_type = sniff_content_type(data)

        self._write_entry(entry, data, content_type)
        return CachedObject(data=data, content_type=content_type, from_cache=False)

    def _read_entry(self, entry: Path) -> Optional[CachedObject]:
        try:
            if not entry.is_file():
                return None
            if self.clock() - entry.stat().st_mtime >= self.ttl_seconds:
                return None
            data = entry.read_bytes()
        except OSError as e:
            logger.warning(f"Cache read failed for {entry.name}: {e}")
            return None

        content_type = None
        try:
            sidecar = json.loads(self._sidecar_path(entry).read_text())
            content_type = sidecar.get("content_type")
        except (OSError, ValueError) as e:
            logger.debug(f"Cache sidecar unreadable for {entry.name}: {e}")

        return CachedObject(data=data, content_type=content_type or sniff_content_type(data), from_cache=True)

    def _write_entry(self, entry: Path, data: bytes, content_type: str) -> None:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self._replace_file(entry, data)
            self._replace_file(
                self._sidecar_path(entry),
                json.dumps({"content_type": content_type}).encode("utf-8")
            )
        except OSError as e:
            logger.warning(f"Cache write failed for {entry.name}: {e}")

    def _replace_file(self, target: Path, data: bytes) -> None:
        """Write to a temp file in the cache directory, then rename over target."""
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(dir=self.cache_dir, delete=False, suffix=".tmp") as tmp:
                tmp_name = tmp.name
                tmp.write(data)
            os.replace(tmp_name, target)
            tmp_name = None
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError as e:
                    logger.debug(f"Could not remove cache temp file {tmp_name}: {e}")

    def purge_expired(self) -> int:
        """Remove expired entries and their sidecars; returns entries removed."""
        if not self.cache_dir.is_dir():
            return 0

        removed = 0
        now = self.clock()
        for entry in self.cache_dir.iterdir():
            if entry.suffix in (".json", ".tmp") or not entry.is_file():
                continue
            try:
                if now - entry.stat().st_mtime >= self.ttl_seconds:
                    entry.unlink()
                    self._sidecar_path(entry).unlink(missing_ok=True)
                    removed += 1
            except OSError as e:
                logger.warning(f"Cache purge failed for {entry.name}: {e}")

        if removed:
            logger.info(f"Purged {removed} expired cache entries")
        return removed
