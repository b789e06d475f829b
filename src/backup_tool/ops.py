import logging

from rich.console import Console

from . import identity, remote
from .config import Config
from .constants import APP_NAME, REMOTE_NAME, TOOL_DIR, formatted_timestamp
from .context import ToolContext, print_header
from .git_wrapper import CommandError
from .sync import SyncState, SyncStatus, get_sync_status

console = Console()
logger = logging.getLogger(APP_NAME)


def require_config(ctx: ToolContext, key: str = "project_name") -> Config | None:
    """Loads the config and checks that a required field is filled in.

    Args:
        ctx (ToolContext): The operation context.
        key (str, optional): The Config attribute that must be non-empty.
                             Defaults to 'project_name'.

    Returns:
        Config | None: The config, or None (after reporting) if it is unusable.
    """
    config = ctx.load_config()
    if config is None or not getattr(config, key):
        console.print(
            "[bold red]ERROR:[/bold red] Project configuration is missing or "
            "incomplete. Please run --init first."
        )
        return None
    return config


def get_current_branch(ctx: ToolContext) -> str | None:
    """Returns the checked-out branch, reporting and returning None on failure."""
    try:
        branch = ctx.repo.current_branch()
    except CommandError as e:
        logger.error(f"Error getting current branch: {e}")
        console.print(f"[bold red]ERROR:[/bold red] {e}")
        return None
    logger.info(f"Current branch: {branch}")
    return branch


def display_sync_status(
    ctx: ToolContext, status: SyncStatus, branch: str, operation: str
) -> None:
    """Reports the sync state and pushes when the local branch is ahead or new.

    Args:
        ctx (ToolContext): The operation context.
        status (SyncStatus): The computed status.
        branch (str): The branch that was compared.
        operation (str): Label of the calling operation, for the log.
    """
    remote_branch = f"{REMOTE_NAME}/{branch}"
    logger.info(f"{operation}: sync status for '{branch}' is {status.sync.value}")

    if status.sync == SyncState.UPTODATE:
        console.print(
            f"[bold green]OK:[/bold green] Branch '{branch}' is up-to-date "
            f"with {remote_branch}."
        )
    elif status.sync == SyncState.BEHIND:
        console.print(
            f"[bold yellow]WARNING:[/bold yellow] Local branch '{branch}' is behind "
            f"{remote_branch}. Consider pulling changes."
        )
    elif status.sync == SyncState.AHEAD:
        console.print(
            f"Local branch '{branch}' is ahead of {remote_branch}. "
            "Pushing existing commits..."
        )
        try:
            ctx.repo.push(branch)
            console.print(
                f"[bold green]SUCCESS:[/bold green] Pushed '{branch}' to {remote_branch}."
            )
        except CommandError as e:
            logger.error(f"Push of {branch} failed: {e}")
            console.print(
                f"[bold red]ERROR:[/bold red] Error pushing '{branch}'. "
                "Check Git output for details."
            )
    elif status.sync == SyncState.DIVERGED:
        console.print(
            f"[bold yellow]WARNING:[/bold yellow] Local branch '{branch}' has diverged "
            f"from {remote_branch}. A merge or rebase is required."
        )
    elif status.sync == SyncState.NO_REMOTE:
        console.print(
            f"Remote branch {remote_branch} not found. "
            f"Pushing '{branch}' as a new remote branch..."
        )
        try:
            ctx.repo.push(branch, set_upstream=True)
            console.print(
                f"[bold green]SUCCESS:[/bold green] Pushed '{branch}' to new remote "
                f"branch {remote_branch}."
            )
        except CommandError as e:
            logger.error(f"Push of new branch {branch} failed: {e}")
            console.print(
                f"[bold red]ERROR:[/bold red] Error pushing new branch '{branch}'. "
                "Check Git output for details."
            )
    else:
        console.print(
            f"Could not reliably determine the sync status for '{branch}' "
            f"with {remote_branch}."
        )


def commit_and_push(
    ctx: ToolContext,
    message: str,
    branch: str,
    project_name: str | None = None,
    allow_empty: bool = False,
) -> bool:
    """Stages everything, commits with the message and pushes the branch.

    Returns:
        bool: True if all three steps succeeded.
    """
    logger.info(f"Committing '{message}' and pushing to {REMOTE_NAME}/{branch}")
    step = "stage"
    try:
        ctx.repo.add_all()
        step = "commit"
        ctx.repo.commit(message, allow_empty=allow_empty)
        step = "push"
        ctx.repo.push(branch)
    except CommandError as e:
        logger.error(f"Commit and push failed at {step}: {e}")
        console.print(
            "[bold red]ERROR:[/bold red] Commit and push operation failed. "
            "Check Git output for details."
        )
        if step == "push":
            console.print(
                "   Hint: If this is the first push for this branch, you might need: "
                f"git push --set-upstream {REMOTE_NAME} {branch}"
            )
        return False

    console.print(
        f"\n[bold green]SUCCESS:[/bold green] Changes committed and pushed to "
        f"{REMOTE_NAME}/{branch}."
    )
    if project_name:
        console.print(f"Project '{project_name}' has been backed up.")
    return True


def init_backup(ctx: ToolContext) -> bool:
    """Runs the full first-time setup for the project.

    Creates or repairs the config, initializes the repository, configures the
    git identity and GitHub CLI, records the GitHub username and links an
    origin repository on GitHub.

    Returns:
        bool: True if setup completed with a working remote.
    """
    print_header("Initial Setup", "--init")

    config = ctx.load_config()
    if config is None:
        console.print(
            f"Configuration file ({ctx.config_path}) not found. "
            "A default one will be created."
        )
        config = Config.default(ctx.project_root)
        if not ctx.save_config(config):
            console.print("[bold red]ERROR:[/bold red] Setup cannot continue.")
            return False

    dir_name = ctx.project_root.name
    if config.project_name != dir_name:
        console.print(
            f"Project name in configuration ('{config.project_name}') differs from the "
            f"directory name ('{dir_name}'). Updating configuration."
        )
        config.project_name = dir_name
        if not ctx.save_config(config):
            return False

    if not identity.setup_git_repo(ctx):
        return False
    if not identity.setup_git_identity(ctx):
        return False
    if not identity.setup_gh_cli(ctx):
        return False
    if not identity.record_github_username(ctx, config):
        return False

    remote_url = remote.setup_remote_repo(ctx, config)
    if not remote_url:
        console.print(
            "\n[bold yellow]WARNING:[/bold yellow] Setup is incomplete due to issues "
            "with the GitHub remote repository setup."
        )
        console.print(
            "   Please review the messages above and complete the setup manually."
        )
        return False

    console.print("\n[bold green]SUCCESS:[/bold green] Initial setup complete!")
    console.print(f"   {TOOL_DIR} is now ready for project: {config.project_name}")
    console.print(f"   Linked GitHub repository: {remote_url.removesuffix('.git')}")
    return True


def quick_backup(ctx: ToolContext) -> bool:
    """Commits all changes with a timestamped message and pushes them."""
    print_header("Quick Backup", "--qbackup")
    config = require_config(ctx)
    if config is None:
        return False
    branch = get_current_branch(ctx)
    if branch is None:
        return False

    status = get_sync_status(ctx.repo, branch)
    if not status.is_repo:
        return False
    if not status.has_changes:
        console.print(f"No local changes detected on branch '{branch}'.")
        display_sync_status(ctx, status, branch, "QuickBackup")
        return True

    console.print(f"Local changes found on branch '{branch}'. Proceeding with backup...")
    message = f"Quick backup: {formatted_timestamp()}"
    return commit_and_push(ctx, message, branch, config.project_name)


def commit_with_message(ctx: ToolContext, message: str = "") -> bool:
    """Commits all changes with an operator-supplied message and pushes them.

    An empty message is asked for interactively. Without local changes the
    operator chooses whether to record an empty commit.
    """
    print_header("Commit with Custom Message", "--commit")
    config = require_config(ctx)
    if config is None:
        return False
    branch = get_current_branch(ctx)
    if branch is None:
        return False

    message = message.strip()
    if not message:
        message = ctx.prompter.ask("Please enter your commit message")
        if not message:
            console.print("No commit message provided. Aborting commit operation.")
            return True

    status = get_sync_status(ctx.repo, branch)
    if not status.is_repo:
        return False

    allow_empty = False
    if not status.has_changes:
        if not ctx.prompter.confirm(
            f"No local changes detected on branch '{branch}'. "
            "Do you want to create an empty commit anyway?"
        ):
            console.print(
                "Commit aborted: no local changes and no empty commit requested."
            )
            display_sync_status(ctx, status, branch, "CommitWithMessage")
            return True
        console.print("Proceeding with an empty commit as requested.")
        allow_empty = True

    console.print(f"Committing changes on branch '{branch}'...")
    return commit_and_push(
        ctx, message, branch, config.project_name, allow_empty=allow_empty
    )


def backup_to_new_branch(ctx: ToolContext) -> bool:
    """Creates a new branch, commits all changes on it and pushes it.

    If the commit or push fails, the previous branch is checked out again and
    the new branch is deleted.
    """
    print_header("Backup to New Branch", "Backup to a new branch")
    config = require_config(ctx)
    if config is None:
        return False
    previous = get_current_branch(ctx)
    if previous is None:
        console.print(
            "[bold red]ERROR:[/bold red] Could not determine the current branch "
            "to switch back to later. Aborting."
        )
        return False

    new_branch = ctx.prompter.ask("Enter the name for the new backup branch")
    if not new_branch:
        console.print("No branch name provided. Aborting operation.")
        return True
    new_branch = "-".join(new_branch.split())

    try:
        console.print(f"Creating and switching to new branch: {new_branch}...")
        ctx.repo.create_branch(new_branch)
    except CommandError as e:
        logger.error(f"Failed to create branch {new_branch}: {e}")
        console.print(f"[bold red]ERROR:[/bold red] Could not create branch: {e}")
        try:
            ctx.repo.checkout(previous)
        except CommandError as checkout_error:
            logger.critical(f"Failed to return to {previous}: {checkout_error}")
            console.print(
                f"[bold red]CRITICAL:[/bold red] Failed to switch back to branch "
                f"'{previous}'. Please check `git status`."
            )
        return False

    message = (
        ctx.prompter.ask(f"Enter commit message for the new branch '{new_branch}'")
        or f"Initial commit for new branch {new_branch}"
    )
    if commit_and_push(ctx, message, new_branch, config.project_name):
        console.print(f"   You are currently on branch: {new_branch}")
        console.print(f"   To switch back, use: git checkout {previous}")
        return True

    console.print(
        "[bold yellow]WARNING:[/bold yellow] Failed to back up to the new branch. "
        "Switching back and cleaning up."
    )
    try:
        ctx.repo.checkout(previous)
        ctx.repo.delete_branch(new_branch)
        console.print(
            f"   Switched back to '{previous}' and deleted branch '{new_branch}'."
        )
    except CommandError as e:
        logger.critical(f"Cleanup after failed branch backup failed: {e}")
        console.print(
            f"[bold red]CRITICAL:[/bold red] Cleanup failed: {e}. "
            "Please check `git status`."
        )
    return False


def check_remote_sync(ctx: ToolContext) -> bool:
    """Reports how the current branch relates to its remote counterpart."""
    print_header("Check Remote Sync Status", "Check remote synchronization status")
    branch = get_current_branch(ctx)
    if branch is None:
        return False
    status = get_sync_status(ctx.repo, branch)
    if not status.is_repo:
        return False
    display_sync_status(ctx, status, branch, "CheckRemoteSync")
    return status.sync != SyncState.ERROR


def pull_changes(ctx: ToolContext) -> bool:
    """Pulls the current branch from origin."""
    print_header("Pull Latest Changes", "Pull latest changes from remote")
    branch = get_current_branch(ctx)
    if branch is None:
        return False
    try:
        ctx.repo.pull(branch)
    except CommandError as e:
        logger.error(f"Pull of {branch} failed: {e}")
        console.print(
            f"[bold red]ERROR:[/bold red] Error pulling changes for branch '{branch}'. "
            "Check Git output for details."
        )
        return False
    console.print(
        f"[bold green]SUCCESS:[/bold green] Pulled latest changes for '{branch}'."
    )
    return True
