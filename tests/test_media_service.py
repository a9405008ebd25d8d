"""Tests for single-object media uploads."""

import pytest

from controller.exceptions import BackendAuthError, NotFound, QuotaExceededError
from controller.services.cache_proxy import CacheProxy
from controller.services.media_service import MediaService

PNG = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 4


@pytest.fixture
def media_service(account_pool):
    return MediaService(account_pool)


def test_upload_stores_plain_bytes_in_own_account(media_service, fake_backend):
    object_id = media_service.upload("B", "avatar.png", PNG)

    assert fake_backend.objects[("cred-b", object_id)] == PNG
    assert fake_backend.names[object_id] == "avatar.png"
    assert fake_backend.put_calls == 1


def test_uploaded_media_served_through_cache(media_service, account_pool, tmp_path):
    object_id = media_service.upload("A", "pic.png", PNG)
    proxy = CacheProxy(account_pool, tmp_path / "cache", ttl_seconds=3600)

    served = proxy.fetch(object_id, "A")

    assert served.data == PNG
    assert served.content_type == "image/png"
    assert served.from_cache is False
    assert proxy.fetch(object_id, "A").from_cache is True


def test_upload_strips_directories(media_service, fake_backend):
    object_id = media_service.upload("A", "..\\photos/../me.png", PNG)
    assert fake_backend.names[object_id] == "me.png"


def test_upload_unknown_account(media_service, fake_backend):
    with pytest.raises(NotFound):
        media_service.upload("nobody", "pic.png", PNG)
    assert fake_backend.put_calls == 0


def test_upload_quota_exceeded(media_service, fake_backend):
    fake_backend.quota_limits["cred-a"] = 100

    with pytest.raises(QuotaExceededError):
        media_service.upload("A", "pic.png", PNG)


def test_auth_failure_drops_cached_session(media_service, account_pool, fake_backend):
    account_pool.session_for("A")

    def reject(call_number):
        raise BackendAuthError("token revoked")

    fake_backend.on_put = reject

    with pytest.raises(BackendAuthError) as excinfo:
        media_service.upload("A", "pic.png", PNG)

    assert excinfo.value.account_id == "A"
    assert "A" not in account_pool._sessions
