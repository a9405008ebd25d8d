"""Service locator for the process-wide storage backend, account pool and cache proxy."""

from typing import Optional, TYPE_CHECKING

from controller.account_pool import AccountPool
from controller.config import CACHE_DIR, CACHE_TTL, LOCAL_STORAGE_ROOT, LOCAL_STORAGE_QUOTA
from controller.storage_backend import StorageBackend

if TYPE_CHECKING:
    from controller.services.cache_proxy import CacheProxy

_storage_backend: Optional[StorageBackend] = None
_account_pool: Optional[AccountPool] = None
_cache_proxy: Optional['CacheProxy'] = None


def set_storage_backend(backend: Optional[StorageBackend]):
    """Set global storage backend instance (drops the pool and proxy bound to the old one)"""
    global _storage_backend, _account_pool, _cache_proxy
    _storage_backend = backend
    _account_pool = None
    _cache_proxy = None


def get_storage_backend() -> StorageBackend:
    """Get global storage backend, defaulting to the local directory backend"""
    global _storage_backend
    if _storage_backend is None:
        from storage.local_backend import LocalDirectoryBackend
        _storage_backend = LocalDirectoryBackend(LOCAL_STORAGE_ROOT, default_quota=LOCAL_STORAGE_QUOTA)
    return _storage_backend


def get_account_pool() -> AccountPool:
    """Get global account pool bound to the current storage backend"""
    global _account_pool
    if _account_pool is None:
        _account_pool = AccountPool(get_storage_backend())
    return _account_pool


def set_cache_proxy(proxy: Optional['CacheProxy']):
    """Set global cache proxy instance"""
    global _cache_proxy
    _cache_proxy = proxy


def get_cache_proxy() -> 'CacheProxy':
    """Get global cache proxy, built from configuration on first use"""
    global _cache_proxy
    if _cache_proxy is None:
        from controller.services.cache_proxy import CacheProxy
        _cache_proxy = CacheProxy(get_account_pool(), CACHE_DIR, CACHE_TTL)
    return _cache_proxy
