"""Shared pytest fixtures for all tests."""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from cli.config import Config
from common.types import Quota
from controller.account_pool import AccountPool
from controller.database import init_database
from controller.exceptions import BackendAuthError, BackendIOError, QuotaExceededError
from controller.repositories.account_repository import AccountRepository
from controller.storage_backend import StorageBackend


class FakeBackend(StorageBackend):
    """
    In-memory storage backend. The session is the credential reference.

    Attributes:
        fail_put_at: 1-indexed put call that raises BackendIOError
        on_put: Optional callback run before each put with the call number
    """

    def __init__(self, rejected_credentials=()):
        self.objects = {}
        self.names = {}
        self.rejected = set(rejected_credentials)
        self.quota_limits = {}
        self.put_calls = 0
        self.get_calls = 0
        self.delete_calls = 0
        self.fail_put_at = None
        self.fail_deletes = False
        self.on_put = None

    def authenticate(self, credential_ref):
        if not credential_ref or credential_ref in self.rejected:
            raise BackendAuthError(f"rejected credential {credential_ref!r}")
        return credential_ref

    def put(self, session, name, data):
        self.put_calls += 1
        if self.on_put is not None:
            self.on_put(self.put_calls)
        if self.fail_put_at == self.put_calls:
            raise BackendIOError(f"simulated upload failure for {name}")
        limit = self.quota_limits.get(session, 0)
        if limit and self._used(session) + len(data) > limit:
            raise QuotaExceededError(f"quota exceeded on {session}")
        object_id = f"obj-{self.put_calls}"
        self.objects[(session, object_id)] = bytes(data)
        self.names[object_id] = name
        return object_id

    def get(self, session, object_id):
        self.get_calls += 1
        try:
            return self.objects[(session, object_id)]
        except KeyError:
            raise BackendIOError(f"object {object_id} not found", object_id=object_id)

    def delete(self, session, object_id):
        self.delete_calls += 1
        if self.fail_deletes:
            raise BackendIOError("simulated delete failure", object_id=object_id)
        try:
            del self.objects[(session, object_id)]
        except KeyError:
            raise BackendIOError(f"object {object_id} not found", object_id=object_id)

    def get_quota(self, session):
        return Quota(used=self._used(session), limit=self.quota_limits.get(session, 0))

    def _used(self, session):
        return sum(len(data) for (owner, _), data in self.objects.items() if owner == session)

    def holder_of(self, object_id):
        for owner, oid in self.objects:
            if oid == object_id:
                return owner
        return None


@pytest.fixture
def test_db(monkeypatch) -> Generator[Path, None, None]:
    """
    Create a temporary test database for each test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        monkeypatch.setattr("controller.database.DATABASE_PATH", str(db_path))
        monkeypatch.setattr("controller.config.DATABASE_PATH", str(db_path))
        init_database()
        yield db_path


@pytest.fixture
def make_backend():
    """Factory for extra backends, e.g. one rejecting some credentials."""
    return FakeBackend


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def accounts(test_db):
    """
    Register three storage accounts A, B and C in round-robin order.
    """
    return [
        AccountRepository.upsert("A", "cred-a", label="Account A", position=0),
        AccountRepository.upsert("B", "cred-b", label="Account B", position=1),
        AccountRepository.upsert("C", "cred-c", label="Account C", position=2),
    ]


@pytest.fixture
def account_pool(accounts, fake_backend):
    return AccountPool(fake_backend)


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .shardvault directory
    """
    config_dir = tmp_path / '.shardvault'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Args:
        temp_config_dir: Temporary config directory fixture

    Returns:
        Config instance with temp config file
    """
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing file uploads.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to sample text file
    """
    file_path = tmp_path / 'test.txt'
    file_path.write_text('Sample content for testing')
    return file_path
