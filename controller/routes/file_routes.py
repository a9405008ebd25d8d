"""Master file API routes: listing, chunk maps, download and deletion."""

from urllib.parse import quote

from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse

from controller.schemas.common import ErrorResponse
from controller.schemas.files import (
    MasterFileResponse,
    ListMasterFilesResponse,
    ChunkPlacementResponse,
    ListChunksResponse,
    DeleteMasterFileResponse
)
from controller.service_locator import get_account_pool
from controller.services.file_service import FileService
from controller.services.retrieval_service import RetrievalService

router = APIRouter(prefix="/files", tags=["Files"])


def content_disposition(disposition: str, file_name: str) -> str:
    fallback = file_name.encode("ascii", "replace").decode("ascii").replace('"', "")
    return f"{disposition}; filename=\"{fallback}\"; filename*=UTF-8''{quote(file_name)}"


@router.get("", response_model=ListMasterFilesResponse)
def list_master_files():
    """
    List every retrievable master file.
    """
    files = FileService(get_account_pool()).list_master_files()
    return ListMasterFilesResponse(files=[
        MasterFileResponse(
            master_file_uuid=f.master_file_uuid,
            master_file_name=f.master_file_name,
            chunk_count=f.chunk_count,
            total_size=f.total_size,
        )
        for f in files
    ])


@router.get("/{master_file_uuid}/chunks", response_model=ListChunksResponse)
def list_chunks(master_file_uuid: str):
    """
    Chunk placement map of a master file, without key material.

    Raises:
        - 404: Master file not found
    """
    records = FileService(get_account_pool()).list_chunks(master_file_uuid)
    return ListChunksResponse(
        master_file_uuid=master_file_uuid,
        master_file_name=records[0].master_file_name,
        chunks=[
            ChunkPlacementResponse(
                sequence_number=r.sequence_number,
                holder_account_id=r.holder_account_id,
                backend_object_id=r.backend_object_id,
                size_bytes=r.size_bytes,
                created_at=r.created_at.isoformat() if r.created_at else None,
            )
            for r in records
        ],
    )


@router.get(
    "/{master_file_uuid}/download",
    responses={404: {"model": ErrorResponse}, 502: {"model": ErrorResponse}}
)
def download_master_file(
    master_file_uuid: str,
    disposition: str = Query("attachment", pattern="^(attachment|inline)$")
):
    """
    Reassemble and stream a master file.

    Parameters:
        - disposition: attachment (download) or inline (display)

    Returns:
        - StreamingResponse with the decrypted file

    Raises:
        - 404: Master file not found
        - 502: One or more chunks could not be fetched or decrypted
    """
    retrieved = RetrievalService(get_account_pool()).retrieve(master_file_uuid)

    return StreamingResponse(
        retrieved.iter_content(),
        media_type=retrieved.content_type,
        headers={
            "Content-Disposition": content_disposition(disposition, retrieved.file_name),
            "Content-Length": str(retrieved.size),
        }
    )


@router.delete("/{master_file_uuid}", response_model=DeleteMasterFileResponse)
def delete_master_file(master_file_uuid: str):
    """
    Delete a master file's backend objects and registry records.

    Raises:
        - 404: Master file not found
    """
    result = FileService(get_account_pool()).delete_master_file(master_file_uuid)
    return DeleteMasterFileResponse(
        master_file_uuid=result.master_file_uuid,
        objects_deleted=result.objects_deleted,
        objects_failed=result.objects_failed,
        records_deleted=result.records_deleted,
        job_marked_deleted=result.job_marked_deleted,
        job_id=result.job_id,
    )
