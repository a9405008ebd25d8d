"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = [
    "submit", "jobs", "status", "retry", "cancel", "purge",
    "files", "chunks", "download", "delete", "accounts", "media",
    "clear", "exit", "help",
]

STYLE = Style.from_dict(
    {
        "prompt": "#2BA84A bold",
        "command": "#0088ff bold",
    }
)

TEAL = "\033[38;2;43;168;138m"
GREEN = "\033[32m"
RESET = "\033[0m"

LOGO = f"""{TEAL}
 ███████╗██╗  ██╗ █████╗ ██████╗ ██████╗ ██╗   ██╗ █████╗ ██╗   ██╗██╗  ████████╗
 ██╔════╝██║  ██║██╔══██╗██╔══██╗██╔══██╗██║   ██║██╔══██╗██║   ██║██║  ╚══██╔══╝
 ███████╗███████║███████║██████╔╝██║  ██║██║   ██║███████║██║   ██║██║     ██║
 ╚════██║██╔══██║██╔══██║██╔══██╗██║  ██║╚██╗ ██╔╝██╔══██║██║   ██║██║     ██║
 ███████║██║  ██║██║  ██║██║  ██║██████╔╝ ╚████╔╝ ██║  ██║╚██████╔╝███████╗██║
 ╚══════╝╚═╝  ╚═╝╚═╝  ╚═╝╚═╝  ╚═╝╚═════╝   ╚═══╝  ╚═╝  ╚═╝ ╚═════╝ ╚══════╝╚═╝
{RESET}"""

WELCOME_TITLE = "ShardVault CLI - Encrypted Chunk Distribution"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "shardvault> "

HELP_TEXT = """Available commands:
  submit <path> [--owner <id>]        Upload a file and queue it for distribution
  jobs [all]                          List active jobs (or the full history with 'all')
  status <job_id>                     Show status and progress of a job
  retry <job_id>                      Re-queue a FAILED job
  cancel <job_id>                     Cancel a PENDING or PROCESSING job
  purge <job_id>                      Remove a finished job from history
  files                               List retrievable master files
  chunks <file_uuid>                  Show where each chunk of a file is stored
  download <file_uuid> [output_path]  Reassemble and download a file
  delete <file_uuid>                  Delete a file's chunks from every account
  accounts [refresh]                  List storage accounts and quota
  media <account_id> <path>           Store an image or document unencrypted in one account
  clear                               Clear screen and redisplay welcome message
  help                                Show this help
  exit                                Exit REPL

Examples:
  submit reports/q3.pdf
  submit backup.tar --owner alice
  jobs all
  status 12
  retry 12
  download 3f2c9a4e-0d1b-4a8e-9f55-2b7c1e6a0d93 downloads/q3.pdf
  media A avatars/me.png"""

JOB_SCOPES = ("active", "all")
