"""Pydantic schemas for API requests and responses."""

from controller.schemas.jobs import (
    SubmitJobResponse,
    JobResponse,
    ListJobsResponse,
    JobStatusResponse,
    JobControlRequest,
    JobControlResponse
)
from controller.schemas.files import (
    MasterFileResponse,
    ListMasterFilesResponse,
    ChunkPlacementResponse,
    ListChunksResponse,
    DeleteMasterFileResponse
)
from controller.schemas.accounts import (
    StorageAccountResponse,
    ListAccountsResponse
)
from controller.schemas.media import UploadMediaResponse
from controller.schemas.common import ErrorResponse

__all__ = [
    "SubmitJobResponse",
    "JobResponse",
    "ListJobsResponse",
    "JobStatusResponse",
    "JobControlRequest",
    "JobControlResponse",
    "MasterFileResponse",
    "ListMasterFilesResponse",
    "ChunkPlacementResponse",
    "ListChunksResponse",
    "DeleteMasterFileResponse",
    "StorageAccountResponse",
    "ListAccountsResponse",
    "UploadMediaResponse",
    "ErrorResponse"
]
