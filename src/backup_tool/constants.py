"""Global constants and file layout definitions for the backup tool.

This module defines the on-disk layout the tool uses inside a project (the
tool directory, its JSON config and log file), application identifiers, and
the default ignore rules written during installation.
"""

import datetime

# --- Identity ---
APP_NAME = "backup-tool"
"""str: The human-readable application name (also the logger name)."""

TOOL_VERSION = "3.0-python"
"""str: The version string stamped into newly created config files."""

# --- Project Layout ---
TOOL_DIR = "backupTool"
"""str: The directory (relative to the project root) holding the tool and its config."""

PACKAGE_DIR = "backup_tool"
"""str: The name of the package directory copied into a project on install."""

CONFIG_FILE_NAME = "backup-config.json"
"""str: The JSON configuration file name inside the tool directory."""

LOG_FILE_NAME = "backup-tool.log"
"""str: The log file name inside the tool directory."""

MAX_LOG_SIZE = 1024 * 1024
"""int: Max bytes for the log file before rotation."""

# --- Git / GitHub ---
REMOTE_NAME = "origin"
DEFAULT_BACKUP_BRANCH = "main"
DEFAULT_MAX_BACKUP_ATTEMPTS = 5
TEMP_CLEAN_BRANCH = "temp-clean-branch"
FALLBACK_REPO_NAME = "new-backup-repository"
GH_REQUIRED_SCOPES = "repo,workflow,delete_repo"
GH_DOWNLOAD_URL = "https://cli.github.com/"

DEFAULT_IGNORES = [
    ".env*",
    "*.log",
    "*.tmp",
    "node_modules/",
    ".wrangler/",
    "dist/",
    "build/",
    "__pycache__/",
    ".vscode/settings.json",
    "Thumbs.db",
    ".DS_Store",
    f"/{TOOL_DIR}/",
]
"""list[str]: Default patterns stored in a new config's autoIgnoreFiles."""

GITIGNORE_MARKER = f"# {TOOL_DIR}"
"""str: Comment line guarding the tool's block in a project's .gitignore."""

GITIGNORE_RULES = [
    f"/{TOOL_DIR}/",
    ".env*",
    "*.key",
    "*.pem",
    "config.local.*",
]
"""list[str]: Rules the installer adds to a project's .gitignore."""

PLACEHOLDER_NAMES = ["GitHub Backup User", "backup user", "test user", "dummy user"]
PLACEHOLDER_EMAILS = [
    "backup@example.com",
    "test@example.com",
    "user@example.com",
    "dummy@example.com",
]

# Timestamps in commit messages and config are reported in UTC+7.
TIMESTAMP_TZ = datetime.timezone(datetime.timedelta(hours=7))
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def formatted_timestamp(now: datetime.datetime | None = None) -> str:
    """Returns the current time as 'YYYY-MM-DD HH:MM:SS' in UTC+7."""
    now = now or datetime.datetime.now(datetime.timezone.utc)
    return now.astimezone(TIMESTAMP_TZ).strftime(TIMESTAMP_FORMAT)
