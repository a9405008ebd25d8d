"""Pydantic schemas for master file endpoints."""

from typing import List, Optional
from pydantic import BaseModel


class MasterFileResponse(BaseModel):
    """Response model for a retrievable master file."""
    master_file_uuid: str
    master_file_name: str
    chunk_count: int
    total_size: int


class ListMasterFilesResponse(BaseModel):
    """Response model for master file listing."""
    files: List[MasterFileResponse]


class ChunkPlacementResponse(BaseModel):
    """Response model for one chunk's placement (no key material)."""
    sequence_number: int
    holder_account_id: str
    backend_object_id: str
    size_bytes: int
    created_at: Optional[str] = None


class ListChunksResponse(BaseModel):
    """Response model for a master file's chunk map."""
    master_file_uuid: str
    master_file_name: str
    chunks: List[ChunkPlacementResponse]


class DeleteMasterFileResponse(BaseModel):
    """Response model for master file deletion."""
    master_file_uuid: str
    objects_deleted: int
    objects_failed: int
    records_deleted: int
    job_marked_deleted: bool
    job_id: Optional[int] = None
