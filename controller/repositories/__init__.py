"""Repository layer for data access."""

from controller.repositories.job_repository import JobRepository
from controller.repositories.chunk_repository import ChunkRepository
from controller.repositories.account_repository import AccountRepository

__all__ = [
    "JobRepository",
    "ChunkRepository",
    "AccountRepository",
]
