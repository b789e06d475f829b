import logging
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console
from rich.panel import Panel

from .config import Config, ConfigError
from .constants import APP_NAME, CONFIG_FILE_NAME, LOG_FILE_NAME, TOOL_DIR
from .gh_wrapper import GitHubCLI
from .git_wrapper import GitRepo
from .prompts import ConsolePrompter, Prompter

console = Console()
logger = logging.getLogger(APP_NAME)


def resolve_project_root(explicit: Path | None = None) -> Path:
    """Determines which project the tool operates on.

    Resolution order:
    1. An explicitly requested path.
    2. The parent of the tool directory, when this package is an installed copy
       living at `<project>/backupTool/backup_tool/`.
    3. The current working directory.

    Returns:
        Path: The absolute project root.
    """
    if explicit is not None:
        return explicit.resolve()
    package_parent = Path(__file__).resolve().parent.parent
    if package_parent.name == TOOL_DIR:
        return package_parent.parent
    return Path.cwd().resolve()


def print_header(title: str, operation: str) -> None:
    """Prints the banner shown at the start of every operation."""
    console.print(
        Panel(
            f"[bold]Operation:[/bold] {operation}",
            title=f"{TOOL_DIR} - {title}",
            expand=False,
        )
    )


@dataclass
class ToolContext:
    """Everything an operation needs: where the project is and how to talk to it.

    Attributes:
        project_root (Path): The project the tool operates on.
        prompter (Prompter): Source of operator answers.
        repo (GitRepo): Git wrapper bound to the project root.
        gh (GitHubCLI): GitHub CLI wrapper bound to the project root.
    """

    project_root: Path
    prompter: Prompter = field(default_factory=ConsolePrompter)
    repo: GitRepo = None  # type: ignore[assignment]
    gh: GitHubCLI = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.repo is None:
            self.repo = GitRepo(self.project_root)
        if self.gh is None:
            self.gh = GitHubCLI(self.project_root)

    @property
    def tool_dir(self) -> Path:
        return self.project_root / TOOL_DIR

    @property
    def config_path(self) -> Path:
        return self.tool_dir / CONFIG_FILE_NAME

    @property
    def log_path(self) -> Path:
        return self.tool_dir / LOG_FILE_NAME

    def load_config(self) -> Config | None:
        """Loads the project config, treating an unreadable file as missing.

        Returns:
            Config | None: The config, or None if it is absent or invalid.
        """
        try:
            return Config.load(self.config_path)
        except ConfigError as e:
            logger.error(str(e))
            console.print(f"[bold red]ERROR:[/bold red] {e}")
            return None

    def save_config(self, config: Config) -> bool:
        """Persists the project config, returning False if the write failed."""
        try:
            config.save(self.config_path)
            return True
        except ConfigError as e:
            logger.error(str(e))
            console.print(f"[bold red]ERROR:[/bold red] {e}")
            return False
