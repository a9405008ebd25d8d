"""Pydantic schemas for media endpoints."""

from pydantic import BaseModel


class UploadMediaResponse(BaseModel):
    """Response model for a stored media object."""
    object_id: str
    account_id: str
    name: str
    size_bytes: int
    content_type: str
    url: str
