"""Utility helper functions for the Controller."""

import mimetypes
import uuid
from datetime import datetime, timezone
from pathlib import PurePath

from common.constants import DEFAULT_CONTENT_TYPE


def generate_uuid() -> str:
    """
    Generate a new UUID4 string.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """
    Current time as a timezone-aware UTC datetime.
    """
    return datetime.now(timezone.utc)


def guess_content_type(file_name: str) -> str:
    """
    Best-effort MIME type from a file name's extension.

    Args:
        file_name: Original master file name

    Returns:
        MIME type, application/octet-stream when unknown
    """
    content_type, _ = mimetypes.guess_type(file_name)
    return content_type or DEFAULT_CONTENT_TYPE


def safe_file_name(file_name: str) -> str:
    """
    Strip any directory components from a client-supplied file name.
    """
    name = PurePath(file_name.replace("\\", "/")).name
    return name or "upload.bin"
