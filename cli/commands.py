"""Command handler functions for CLI operations."""

from pathlib import Path
from typing import Optional

from common.logging_config import get_logger
from cli.models import (
    AccountsCommand,
    ChunksCommand,
    ControlCommand,
    DeleteCommand,
    DownloadCommand,
    FilesCommand,
    JobsCommand,
    MediaCommand,
    StatusCommand,
    SubmitCommand,
)
from cli.config import Config
from cli.controller_client import ControllerClient

logger = get_logger(__name__)


_client: Optional[ControllerClient] = None


def get_client() -> ControllerClient:
    """
    Get or create global ControllerClient instance.

    Returns:
        ControllerClient instance
    """
    global _client
    if _client is None:
        logger.debug("Creating new ControllerClient instance")
        config = Config(Path.home() / '.shardvault' / 'config.json')
        _client = ControllerClient(config)
    return _client


def handle_submit(cmd: SubmitCommand, client: Optional[ControllerClient] = None) -> str:
    """
    Handle 'submit' command.

    Args:
        cmd: SubmitCommand with path and optional owner
        client: Optional ControllerClient for dependency injection (testing)

    Returns:
        Result message with the queued job id
    """
    logger.info(f"Executing submit command: path={cmd.path}")
    if client is None:
        client = get_client()
    return client.submit(cmd.path, cmd.owner_id)


def handle_jobs(cmd: JobsCommand, client: Optional[ControllerClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.list_jobs(cmd.scope)


def handle_status(cmd: StatusCommand, client: Optional[ControllerClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.job_status(cmd.job_id)


def handle_control(cmd: ControlCommand, client: Optional[ControllerClient] = None) -> str:
    """
    Handle 'retry', 'cancel' and 'purge' commands.

    Args:
        cmd: ControlCommand with server action name and job id
        client: Optional ControllerClient for dependency injection (testing)

    Returns:
        Server's status message
    """
    logger.info(f"Executing control command: action={cmd.action} job_id={cmd.job_id}")
    if client is None:
        client = get_client()
    return client.control(cmd.action, cmd.job_id)


def handle_files(cmd: FilesCommand, client: Optional[ControllerClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.list_files()


def handle_chunks(cmd: ChunksCommand, client: Optional[ControllerClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.list_chunks(cmd.master_file_uuid)


def handle_download(cmd: DownloadCommand, client: Optional[ControllerClient] = None) -> str:
    """
    Handle 'download' command.

    Args:
        cmd: DownloadCommand with file uuid and optional output_path
        client: Optional ControllerClient for dependency injection (testing)

    Returns:
        Success or error message with download results
    """
    logger.info(f"Executing download command: uuid={cmd.master_file_uuid} output_path={cmd.output_path}")
    if client is None:
        client = get_client()
    result = client.download(cmd.master_file_uuid, cmd.output_path)
    logger.debug("Download command completed")
    return result


def handle_delete(cmd: DeleteCommand, client: Optional[ControllerClient] = None) -> str:
    logger.info(f"Executing delete command: uuid={cmd.master_file_uuid}")
    if client is None:
        client = get_client()
    return client.delete_file(cmd.master_file_uuid)


def handle_accounts(cmd: AccountsCommand, client: Optional[ControllerClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.list_accounts(cmd.refresh)


def handle_media(cmd: MediaCommand, client: Optional[ControllerClient] = None) -> str:
    logger.info(f"Executing media command: account={cmd.account_id} path={cmd.path}")
    if client is None:
        client = get_client()
    return client.upload_media(cmd.account_id, cmd.path)
