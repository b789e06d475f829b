import logging
import os
import shutil
import subprocess
import sys
from pathlib import Path

from rich.console import Console
from rich.panel import Panel

from .config import Config, ConfigError
from .constants import (
    APP_NAME,
    CONFIG_FILE_NAME,
    GITIGNORE_MARKER,
    GITIGNORE_RULES,
    PACKAGE_DIR,
    TOOL_DIR,
)
from .prompts import Prompter

console = Console()
logger = logging.getLogger(APP_NAME)


def _has_rule(lines: set[str], rule: str) -> bool:
    return rule in lines or rule.rstrip("/") in lines


def render_gitignore(content: str | None) -> str:
    """Returns .gitignore content with the tool's rules added.

    A missing file gets a fresh header and block. An existing file that already
    carries the marker comment is returned unchanged; otherwise the rules it
    lacks are appended under the marker.

    Args:
        content (str | None): Current file content, or None if there is no file.

    Returns:
        str: The new content (identical to `content` when nothing is needed).
    """
    block = "\n".join([GITIGNORE_MARKER, *GITIGNORE_RULES]) + "\n"
    if content is None:
        return f"# Generated by {TOOL_DIR}\n\n{block}"
    if GITIGNORE_MARKER in content.splitlines():
        return content

    existing = {line.strip() for line in content.splitlines()}
    missing = [r for r in GITIGNORE_RULES if not _has_rule(existing, r)]
    if not missing:
        return content

    prefix = ""
    if content and not content.endswith("\n"):
        prefix = "\n"
    if content:
        prefix += "\n"
    return content + prefix + "\n".join([GITIGNORE_MARKER, *missing]) + "\n"


def update_gitignore(project_root: Path) -> bool:
    """Adds the tool's ignore rules to the project's .gitignore.

    Returns:
        bool: True if the file was created or modified.
    """
    gitignore = project_root / ".gitignore"
    current = gitignore.read_text(encoding="utf-8") if gitignore.exists() else None
    updated = render_gitignore(current)
    if updated == current:
        console.print(f"[dim].gitignore already contains the {TOOL_DIR} rules.[/dim]")
        return False
    gitignore.write_text(updated, encoding="utf-8")
    action = "Created" if current is None else "Updated"
    console.print(f"[dim]{action} {gitignore}.[/dim]")
    logger.info(f"{action} {gitignore}")
    return True


def create_project_config(project_root: Path) -> bool:
    """Writes a default config into the project's tool directory if absent.

    Returns:
        bool: True if a config exists afterwards.
    """
    config_path = project_root / TOOL_DIR / CONFIG_FILE_NAME
    if config_path.exists():
        console.print(
            f"[bold yellow]WARNING:[/bold yellow] {config_path} already exists. "
            "Skipping creation."
        )
        return True
    try:
        Config.default(project_root).save(config_path)
    except ConfigError as e:
        logger.error(str(e))
        console.print(f"[bold red]ERROR:[/bold red] {e}")
        return False
    console.print(f"Created configuration file: {config_path}")
    return True


def _copy_package(dest: Path) -> None:
    source = Path(__file__).resolve().parent
    shutil.copytree(
        source, dest, ignore=shutil.ignore_patterns("__pycache__", "*.pyc")
    )


def run_initial_setup(target: Path) -> None:
    """Runs `--init` from the copy installed in the target project."""
    env = os.environ.copy()
    tool_dir = str(target / TOOL_DIR)
    env["PYTHONPATH"] = os.pathsep.join(
        p for p in (tool_dir, env.get("PYTHONPATH", "")) if p
    )
    subprocess.run(
        [sys.executable, "-m", PACKAGE_DIR, "--project-root", str(target), "--init"],
        cwd=target,
        env=env,
        check=True,
    )


def install(target_str: str, prompter: Prompter) -> bool:
    """Installs the tool into a project directory.

    Copies this package to `<target>/backupTool/backup_tool/`, writes a default
    config, adds the ignore rules and optionally runs the initial setup.

    Args:
        target_str (str): The project path; asked for when empty.
        prompter (Prompter): Source of operator answers.

    Returns:
        bool: True if the installation finished.
    """
    console.print(
        Panel(
            f"This process copies {TOOL_DIR} and its configuration to your project.",
            title=f"{TOOL_DIR} Installer",
            expand=False,
        )
    )
    if not target_str:
        target_str = prompter.ask("Please enter the path to your project folder")
    target_str = target_str.replace('"', "").replace("'", "")
    if not target_str:
        console.print(
            "[bold red]ERROR:[/bold red] No target directory specified. "
            "Installation aborted."
        )
        return False

    target = Path(target_str).expanduser().resolve()
    if not target.is_dir():
        console.print(
            f"[bold red]ERROR:[/bold red] {target} does not exist or is not a directory."
        )
        return False
    console.print(f"Target project directory: [cyan]{target}[/cyan]")

    tool_dir = target / TOOL_DIR
    if tool_dir.exists():
        console.print(
            f"[bold yellow]WARNING:[/bold yellow] {tool_dir} already exists."
        )
        if not prompter.confirm("Do you want to overwrite it?"):
            console.print("Installation cancelled by user.")
            return False
        try:
            shutil.rmtree(tool_dir)
        except OSError as e:
            logger.error(f"Failed to remove {tool_dir}: {e}")
            console.print(f"[bold red]ERROR:[/bold red] Error removing directory: {e}")
            return False

    try:
        tool_dir.mkdir(parents=True)
        _copy_package(tool_dir / PACKAGE_DIR)
    except OSError as e:
        logger.error(f"Failed to copy tool into {tool_dir}: {e}")
        console.print(f"[bold red]ERROR:[/bold red] Failed to copy tool: {e}")
        return False

    if not create_project_config(target):
        return False
    update_gitignore(target)

    console.print(
        f"\n[bold green]SUCCESS:[/bold green] {TOOL_DIR} installed to {target}\n"
    )
    console.print("Next steps:")
    console.print(f'   1. cd "{target}"')
    console.print(f"   2. PYTHONPATH={TOOL_DIR} python -m {PACKAGE_DIR} --init")

    if prompter.confirm(f"Would you like to run the initial setup for {target} now?"):
        try:
            run_initial_setup(target)
        except (OSError, subprocess.CalledProcessError) as e:
            logger.error(f"Initial setup failed: {e}")
            console.print(f"[bold red]ERROR:[/bold red] Error running initial setup: {e}")
    return True
