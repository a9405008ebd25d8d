"""Tests for CLI command handlers."""

from unittest.mock import Mock

from cli.commands import (
    handle_accounts,
    handle_chunks,
    handle_control,
    handle_delete,
    handle_download,
    handle_files,
    handle_jobs,
    handle_media,
    handle_status,
    handle_submit,
)
from cli.controller_client import ControllerClient
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
from cli.repl import dispatch_command


def test_handle_submit():
    """Test submit command handler with mocked client."""
    mock_client = Mock(spec=ControllerClient)
    mock_client.submit.return_value = "Queued: a.txt (Job ID: 1, Size: 5 B)"

    result = handle_submit(SubmitCommand(path='a.txt', owner_id='alice'), client=mock_client)

    assert 'Queued' in result
    mock_client.submit.assert_called_once_with('a.txt', 'alice')


def test_handle_jobs():
    mock_client = Mock(spec=ControllerClient)
    mock_client.list_jobs.return_value = "No jobs recorded."

    result = handle_jobs(JobsCommand(scope='all'), client=mock_client)

    assert result == "No jobs recorded."
    mock_client.list_jobs.assert_called_once_with('all')


def test_handle_status():
    mock_client = Mock(spec=ControllerClient)
    mock_client.job_status.return_value = "Job 4: a.txt"

    handle_status(StatusCommand(job_id=4), client=mock_client)

    mock_client.job_status.assert_called_once_with(4)


def test_handle_control():
    mock_client = Mock(spec=ControllerClient)
    mock_client.control.return_value = "OK: Job 2 cancelled"

    result = handle_control(ControlCommand(action='cancel', job_id=2), client=mock_client)

    assert result == "OK: Job 2 cancelled"
    mock_client.control.assert_called_once_with('cancel', 2)


def test_handle_files():
    mock_client = Mock(spec=ControllerClient)
    mock_client.list_files.return_value = "No files stored."

    assert handle_files(FilesCommand(), client=mock_client) == "No files stored."
    mock_client.list_files.assert_called_once_with()


def test_handle_chunks():
    mock_client = Mock(spec=ControllerClient)
    mock_client.list_chunks.return_value = "a.txt (1 chunk(s)):"

    handle_chunks(ChunksCommand(master_file_uuid='u1'), client=mock_client)

    mock_client.list_chunks.assert_called_once_with('u1')


def test_handle_download():
    mock_client = Mock(spec=ControllerClient)
    mock_client.download.return_value = "Downloaded: a.txt (5 B)"

    result = handle_download(DownloadCommand(master_file_uuid='u1', output_path='out'), client=mock_client)

    assert 'Downloaded' in result
    mock_client.download.assert_called_once_with('u1', 'out')


def test_handle_delete():
    mock_client = Mock(spec=ControllerClient)
    mock_client.delete_file.return_value = "Deleted 3 chunk record(s)"

    handle_delete(DeleteCommand(master_file_uuid='u1'), client=mock_client)

    mock_client.delete_file.assert_called_once_with('u1')


def test_handle_accounts():
    mock_client = Mock(spec=ControllerClient)
    mock_client.list_accounts.return_value = "3 account(s):"

    handle_accounts(AccountsCommand(refresh=True), client=mock_client)

    mock_client.list_accounts.assert_called_once_with(True)


def test_handle_media():
    mock_client = Mock(spec=ControllerClient)
    mock_client.upload_media.return_value = "Stored: me.png (2.00 KiB, image/png) in account A"

    result = handle_media(MediaCommand(account_id='A', path='me.png'), client=mock_client)

    assert result.startswith("Stored: me.png")
    mock_client.upload_media.assert_called_once_with('A', 'me.png')


def test_dispatch_media(monkeypatch):
    mock_client = Mock(spec=ControllerClient)
    mock_client.upload_media.return_value = "Stored"
    monkeypatch.setattr('cli.commands.get_client', lambda: mock_client)

    assert dispatch_command(MediaCommand(account_id='B', path='x.gif')) == "Stored"


def test_dispatch_routes_to_handler(monkeypatch):
    mock_client = Mock(spec=ControllerClient)
    mock_client.list_files.return_value = "No files stored."
    monkeypatch.setattr('cli.commands.get_client', lambda: mock_client)

    assert dispatch_command(FilesCommand()) == "No files stored."


def test_dispatch_unknown_command():
    assert dispatch_command(object()).startswith("Unknown command type")
