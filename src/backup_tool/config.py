import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from .constants import (
    APP_NAME,
    DEFAULT_BACKUP_BRANCH,
    DEFAULT_IGNORES,
    DEFAULT_MAX_BACKUP_ATTEMPTS,
    TOOL_VERSION,
    formatted_timestamp,
)

logger = logging.getLogger(APP_NAME)

# Python attribute -> JSON key.
_JSON_KEYS = {
    "project_name": "projectName",
    "github_username": "githubUsername",
    "backup_branch": "backupBranch",
    "auto_ignore_files": "autoIgnoreFiles",
    "max_backup_attempts": "maxBackupAttempts",
    "created_at": "createdAt",
    "version": "version",
}


class ConfigError(Exception):
    """Raised when the configuration file exists but cannot be used."""


@dataclass
class Config:
    """Per-project backup settings persisted as JSON in the tool directory.

    Attributes:
        project_name (str): Name of the project, kept in sync with the root folder.
        github_username (str): GitHub login owning the backup repository.
        backup_branch (str): The branch backups are expected on.
        auto_ignore_files (list[str]): Ignore patterns recorded at install time.
        max_backup_attempts (int): Retained for compatibility; never read as a retry count.
        created_at (str): Creation timestamp (UTC+7).
        version (str): Version of the tool that created the file.
    """

    project_name: str = ""
    github_username: str = ""
    backup_branch: str = DEFAULT_BACKUP_BRANCH
    auto_ignore_files: list[str] = field(default_factory=lambda: list(DEFAULT_IGNORES))
    max_backup_attempts: int = DEFAULT_MAX_BACKUP_ATTEMPTS
    created_at: str = ""
    version: str = TOOL_VERSION

    @classmethod
    def default(cls, project_root: Path) -> "Config":
        """Builds the default configuration for a project directory."""
        return cls(project_name=project_root.name, created_at=formatted_timestamp())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Builds a Config from its JSON representation.

        Unknown keys are logged and ignored; missing keys keep their defaults.
        """
        by_json_key = {v: k for k, v in _JSON_KEYS.items()}
        unknown = set(data) - set(by_json_key)
        if unknown:
            logger.warning(
                f"Unknown config keys: {', '.join(sorted(unknown))}. Ignoring."
            )
        values = {by_json_key[k]: v for k, v in data.items() if k in by_json_key}
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Returns the JSON representation with camelCase keys."""
        return {_JSON_KEYS[k]: v for k, v in asdict(self).items()}

    @classmethod
    def load(cls, path: Path) -> "Config | None":
        """Reads the configuration file.

        Args:
            path (Path): Location of the JSON config file.

        Returns:
            Config | None: The parsed config, or None if the file does not exist.

        Raises:
            ConfigError: If the file cannot be read or is not a JSON object.
        """
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Error reading config {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config {path} must contain a JSON object")
        try:
            return cls.from_dict(data)
        except TypeError as e:
            raise ConfigError(f"Invalid config {path}: {e}") from e

    def save(self, path: Path) -> None:
        """Writes the configuration, creating the tool directory if needed.

        Raises:
            ConfigError: If the file cannot be written.
        """
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Error writing config {path}: {e}") from e
        logger.info(f"Configuration updated: {path}")
