"""Project-wide constants (chunk size, poll interval, cache TTL, job states)."""

CHUNK_SIZE_BYTES: int = 3 * 1024 * 1024  # 3 MiB default chunk size

POLL_INTERVAL_SECONDS: float = 5.0

JOB_LEASE_SECONDS: int = 300

CACHE_TTL_SECONDS: int = 7 * 24 * 3600

STREAM_PIECE_SIZE_BYTES: int = 64 * 1024

MEDIA_MAX_BYTES: int = 10 * 1024 * 1024  # single-object media uploads

ENCRYPTION_KEY_BYTES: int = 32
ENCRYPTION_IV_BYTES: int = 12

JOB_STATUS_PENDING = "PENDING"
JOB_STATUS_PROCESSING = "PROCESSING"
JOB_STATUS_COMPLETE = "COMPLETE"
JOB_STATUS_FAILED = "FAILED"
JOB_STATUS_FILE_DELETED = "FILE_DELETED"

ACTIVE_JOB_STATUSES = (JOB_STATUS_PENDING, JOB_STATUS_PROCESSING)
TERMINAL_JOB_STATUSES = (JOB_STATUS_COMPLETE, JOB_STATUS_FAILED, JOB_STATUS_FILE_DELETED)

CANCELLED_MESSAGE = "Cancelled"
LEASE_EXPIRED_MESSAGE = "Lease expired"
FILE_DELETED_MESSAGE = "File deleted by admin"

DEFAULT_CONTENT_TYPE = "application/octet-stream"
