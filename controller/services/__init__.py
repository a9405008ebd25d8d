"""Service layer for business logic."""

from controller.services.ingestion_service import IngestionService
from controller.services.job_control_service import JobControlService
from controller.services.retrieval_service import RetrievalService
from controller.services.file_service import FileService
from controller.services.cache_proxy import CacheProxy
from controller.services.media_service import MediaService

__all__ = [
    "IngestionService",
    "JobControlService",
    "RetrievalService",
    "FileService",
    "CacheProxy",
    "MediaService",
]
