"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class SubmitCommand:
    """Upload a local file and queue it for distribution."""

    path: str
    owner_id: str | None = None
    command: Literal["submit"] = "submit"


@dataclass(frozen=True)
class JobsCommand:
    """List jobs."""

    scope: str = "active"
    command: Literal["jobs"] = "jobs"


@dataclass(frozen=True)
class StatusCommand:
    """Show one job's status and progress."""

    job_id: int
    command: Literal["status"] = "status"


@dataclass(frozen=True)
class ControlCommand:
    """Admin job control (retry, cancel, delete_history)."""

    action: str
    job_id: int
    command: Literal["control"] = "control"


@dataclass(frozen=True)
class FilesCommand:
    """List retrievable master files."""

    command: Literal["files"] = "files"


@dataclass(frozen=True)
class ChunksCommand:
    """Show a master file's chunk placement."""

    master_file_uuid: str
    command: Literal["chunks"] = "chunks"


@dataclass(frozen=True)
class DownloadCommand:
    """Download a master file by uuid."""

    master_file_uuid: str
    output_path: str | None = None
    command: Literal["download"] = "download"


@dataclass(frozen=True)
class DeleteCommand:
    """Delete a master file."""

    master_file_uuid: str
    command: Literal["delete"] = "delete"


@dataclass(frozen=True)
class AccountsCommand:
    """List storage accounts."""

    refresh: bool = False
    command: Literal["accounts"] = "accounts"


@dataclass(frozen=True)
class MediaCommand:
    """Store a single unencrypted media file in one account."""

    account_id: str
    path: str
    command: Literal["media"] = "media"

CommandRequest = (
    SubmitCommand
    | JobsCommand
    | StatusCommand
    | ControlCommand
    | FilesCommand
    | ChunksCommand
    | DownloadCommand
    | DeleteCommand
    | AccountsCommand
    | MediaCommand
)
