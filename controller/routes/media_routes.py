"""Media upload and cached media proxy routes."""

from fastapi import APIRouter, File, Header, HTTPException, Response, UploadFile, status

from controller.config import MEDIA_MAX_SIZE
from controller.schemas.common import ErrorResponse
from controller.schemas.media import UploadMediaResponse
from controller.service_locator import get_account_pool, get_cache_proxy
from controller.services.cache_proxy import sniff_content_type
from controller.services.media_service import MediaService
from controller.utils import safe_file_name

router = APIRouter(prefix="/media", tags=["Media"])


@router.post(
    "",
    response_model=UploadMediaResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 502: {"model": ErrorResponse}, 507: {"model": ErrorResponse}}
)
def upload_media(
    file: UploadFile = File(...),
    x_account_id: str = Header(..., alias="X-Account-ID")
):
    """
    Store a media file as one unencrypted object in the caller's account.

    Parameters:
        - file: Media file (multipart/form-data)
        - X-Account-ID header: account that stores the object

    Returns:
        - object_id and the /media URL that serves it

    Raises:
        - 400: Empty file or missing file name
        - 404: Account not registered
        - 413: File larger than DFS_MEDIA_MAX_BYTES
        - 502: Backend authentication or write failed
        - 507: Account quota exhausted
    """
    if not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File name is required")

    data = file.file.read(MEDIA_MAX_SIZE + 1)
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File is empty")
    if len(data) > MEDIA_MAX_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Media files are limited to {MEDIA_MAX_SIZE} bytes"
        )

    object_id = MediaService(get_account_pool()).upload(x_account_id, file.filename, data)

    return UploadMediaResponse(
        object_id=object_id,
        account_id=x_account_id,
        name=safe_file_name(file.filename),
        size_bytes=len(data),
        content_type=sniff_content_type(data),
        url=f"/media/{object_id}",
    )


@router.get("/{object_id}", responses={404: {"model": ErrorResponse}, 502: {"model": ErrorResponse}})
def get_media(
    object_id: str,
    x_account_id: str = Header(..., alias="X-Account-ID")
):
    """
    Serve a backend object through the read-through cache.

    Parameters:
        - object_id: Backend object id
        - X-Account-ID header: account whose credential fetches the object on a miss

    Raises:
        - 404: Account not registered
        - 502: Backend authentication or fetch failed
    """
    cached = get_cache_proxy().fetch(object_id, x_account_id)
    return Response(
        content=cached.data,
        media_type=cached.content_type,
        headers={"X-Cache": "HIT" if cached.from_cache else "MISS"}
    )
