"""Command parser for CLI input."""

import shlex

from cli.constants import JOB_SCOPES
from cli.models import (
    AccountsCommand,
    ChunksCommand,
    CommandRequest,
    ControlCommand,
    DeleteCommand,
    DownloadCommand,
    FilesCommand,
    JobsCommand,
    MediaCommand,
    StatusCommand,
    SubmitCommand,
)

CONTROL_COMMANDS = {
    "retry": "retry",
    "cancel": "cancel",
    "purge": "delete_history",
}


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]
    args = tokens[1:]

    if command_name == "submit":
        return _parse_submit(args)
    elif command_name == "jobs":
        return _parse_jobs(args)
    elif command_name == "status":
        return StatusCommand(job_id=_parse_job_id("status", args))
    elif command_name in CONTROL_COMMANDS:
        return ControlCommand(action=CONTROL_COMMANDS[command_name], job_id=_parse_job_id(command_name, args))
    elif command_name == "files":
        if args:
            raise ParseError("files takes no arguments")
        return FilesCommand()
    elif command_name == "chunks":
        return ChunksCommand(master_file_uuid=_parse_uuid("chunks", args))
    elif command_name == "download":
        return _parse_download(args)
    elif command_name == "delete":
        return DeleteCommand(master_file_uuid=_parse_uuid("delete", args))
    elif command_name == "accounts":
        return _parse_accounts(args)
    elif command_name == "media":
        if len(args) != 2:
            raise ParseError("media requires exactly 2 arguments: <account_id> <path>")
        return MediaCommand(account_id=args[0], path=args[1])
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_submit(args: list[str]) -> SubmitCommand:
    """Parse 'submit <path> [--owner <id>]' command."""
    owner_id = None
    if "--owner" in args:
        index = args.index("--owner")
        if index + 1 >= len(args):
            raise ParseError("--owner requires a value")
        owner_id = args[index + 1]
        args = args[:index] + args[index + 2:]

    if len(args) != 1:
        raise ParseError("submit requires exactly one file path")

    return SubmitCommand(path=args[0], owner_id=owner_id)


def _parse_jobs(args: list[str]) -> JobsCommand:
    """Parse 'jobs [active|all]' command."""
    if not args:
        return JobsCommand()
    if len(args) > 1 or args[0] not in JOB_SCOPES:
        raise ParseError(f"jobs accepts one optional scope: {' or '.join(JOB_SCOPES)}")
    return JobsCommand(scope=args[0])


def _parse_job_id(command_name: str, args: list[str]) -> int:
    if len(args) != 1:
        raise ParseError(f"{command_name} requires exactly 1 argument: <job_id>")
    try:
        job_id = int(args[0])
    except ValueError:
        raise ParseError(f"Invalid job id: {args[0]}")
    if job_id <= 0:
        raise ParseError(f"Invalid job id: {args[0]}")
    return job_id


def _parse_uuid(command_name: str, args: list[str]) -> str:
    if len(args) != 1:
        raise ParseError(f"{command_name} requires exactly 1 argument: <file_uuid>")
    return args[0]


def _parse_download(args: list[str]) -> DownloadCommand:
    """Parse 'download <file_uuid> [output_path]' command."""
    if len(args) < 1 or len(args) > 2:
        raise ParseError("download requires 1 or 2 arguments: <file_uuid> [output_path]")

    master_file_uuid = args[0]
    output_path = args[1] if len(args) > 1 else None

    return DownloadCommand(master_file_uuid=master_file_uuid, output_path=output_path)


def _parse_accounts(args: list[str]) -> AccountsCommand:
    """Parse 'accounts [refresh]' command."""
    if not args:
        return AccountsCommand()
    if args == ["refresh"]:
        return AccountsCommand(refresh=True)
    raise ParseError("accounts accepts only the optional word 'refresh'")
