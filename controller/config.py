"""Configuration settings for the Controller server and the distribution worker."""

import os
from common.constants import (
    CHUNK_SIZE_BYTES,
    POLL_INTERVAL_SECONDS,
    JOB_LEASE_SECONDS,
    CACHE_TTL_SECONDS,
    MEDIA_MAX_BYTES,
)


DATABASE_PATH = os.environ.get("DFS_DATABASE_PATH", "/app/data/metadata.db")

CONTROLLER_HOST = os.environ.get("DFS_CONTROLLER_HOST", "0.0.0.0")

CONTROLLER_PORT = int(os.environ.get("DFS_CONTROLLER_PORT", "8000"))

UPLOAD_DIR = os.environ.get("DFS_UPLOAD_DIR", "/app/data/temp_uploads")

CACHE_DIR = os.environ.get("DFS_CACHE_DIR", "/app/data/cache/objects")

CACHE_TTL = int(os.environ.get("DFS_CACHE_TTL_SECONDS", str(CACHE_TTL_SECONDS)))

CHUNK_SIZE = int(os.environ.get("DFS_CHUNK_SIZE_BYTES", str(CHUNK_SIZE_BYTES)))

MEDIA_MAX_SIZE = int(os.environ.get("DFS_MEDIA_MAX_BYTES", str(MEDIA_MAX_BYTES)))

POLL_INTERVAL = float(os.environ.get("DFS_POLL_INTERVAL_SECONDS", str(POLL_INTERVAL_SECONDS)))

JOB_LEASE = int(os.environ.get("DFS_JOB_LEASE_SECONDS", str(JOB_LEASE_SECONDS)))

DISTRIBUTION_STRATEGY = os.environ.get("DFS_DISTRIBUTION_STRATEGY", "round_robin")

LOCAL_STORAGE_ROOT = os.environ.get("DFS_LOCAL_STORAGE_ROOT", "/app/data/accounts")

DELETE_SOURCE_AFTER_DISTRIBUTION = os.environ.get(
    "DFS_DELETE_SOURCE_AFTER_DISTRIBUTION", "true"
).lower() in ("1", "true", "yes")

DB_BUSY_TIMEOUT_SECONDS = float(os.environ.get("DFS_DB_BUSY_TIMEOUT_SECONDS", "30"))

# Comma-separated "account_id=credential_ref" pairs registered at startup
STORAGE_ACCOUNTS = os.environ.get("DFS_STORAGE_ACCOUNTS", "")

# Per-account quota for the local directory backend, 0 = unlimited
LOCAL_STORAGE_QUOTA = int(os.environ.get("DFS_LOCAL_STORAGE_QUOTA_BYTES", "0"))

# Run a distribution worker thread inside the controller process
EMBEDDED_WORKER = os.environ.get("DFS_EMBEDDED_WORKER", "false").lower() in ("1", "true", "yes")
