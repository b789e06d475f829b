"""History rewriting: dropping other authors' commits or collapsing everything.

Both operations are destructive. They rewrite the local branch and optionally
force-push it, replacing the history on GitHub.
"""

import logging
from dataclasses import dataclass

from rich.console import Console
from rich.table import Table

from .constants import APP_NAME, REMOTE_NAME, TEMP_CLEAN_BRANCH
from .context import ToolContext, print_header
from .git_wrapper import CommandError
from .ops import get_current_branch, require_config

console = Console()
logger = logging.getLogger(APP_NAME)

LOG_FORMAT = "%H|%an|%ae|%s"


@dataclass(frozen=True)
class CommitRecord:
    hash: str
    author_name: str
    author_email: str
    subject: str


def parse_commit_log(output: str) -> list[CommitRecord]:
    """Parses `git log --pretty=format:%H|%an|%ae|%s` output.

    Lines with fewer than four fields are skipped. Subjects may themselves
    contain '|', so only the first three separators split fields.

    Args:
        output (str): Raw log output, newest commit first.

    Returns:
        list[CommitRecord]: Parsed commits in log order.
    """
    commits = []
    for line in output.splitlines():
        if not line.strip():
            continue
        parts = line.split("|", 3)
        if len(parts) < 4:
            logger.warning(f"Skipping malformed log line: {line!r}")
            continue
        commits.append(CommitRecord(*parts))
    return commits


def noreply_email(username: str) -> str:
    return f"{username}@users.noreply.github.com"


def github_author(username: str) -> str:
    """The `Name <email>` author string for commits made on the user's behalf."""
    return f"{username} <{noreply_email(username)}>"


def is_user_commit(commit: CommitRecord, username: str) -> bool:
    """Whether a commit was authored by the given GitHub user."""
    return (
        commit.author_name == username
        or username in commit.author_email
        or commit.author_email == noreply_email(username)
    )


def partition_commits(
    commits: list[CommitRecord], username: str
) -> tuple[list[CommitRecord], list[CommitRecord]]:
    """Splits commits into (current user's, other users') preserving order."""
    mine: list[CommitRecord] = []
    others: list[CommitRecord] = []
    for commit in commits:
        (mine if is_user_commit(commit, username) else others).append(commit)
    return mine, others


def _recover_branch(ctx: ToolContext, branch: str, deleted: bool) -> None:
    """Puts `branch` back after a failed rewrite, warning if that fails too."""
    console.print(f"Attempting to recover branch '{branch}'...")
    try:
        if deleted:
            ctx.repo.rename_current_branch(branch)
        else:
            ctx.repo.checkout(branch)
            if ctx.repo.rev_parse(TEMP_CLEAN_BRANCH) is not None:
                ctx.repo.delete_branch(TEMP_CLEAN_BRANCH)
    except CommandError as e:
        logger.critical(f"Recovery of {branch} failed: {e}")
        console.print(
            f"[bold red]CRITICAL:[/bold red] Could not restore branch '{branch}'. "
            "Please check `git status` manually."
        )
        return
    console.print(f"Recovered branch '{branch}'.")


def _replace_with_orphan(ctx: ToolContext, branch: str, username: str) -> bool:
    """Replaces `branch` with a single commit of the working tree, authored by the user.

    On failure the original branch is restored on a best-effort basis.

    Returns:
        bool: True if the branch now holds exactly one fresh commit.
    """
    deleted = False
    try:
        ctx.repo.checkout_orphan(TEMP_CLEAN_BRANCH)
        ctx.repo.add_all()
        ctx.repo.commit(
            f"Clean repository - Initial commit by {username}",
            author=github_author(username),
        )
        ctx.repo.delete_branch(branch)
        deleted = True
        ctx.repo.rename_current_branch(branch)
    except CommandError as e:
        logger.error(f"Error rewriting history of {branch}: {e}")
        console.print(f"[bold red]ERROR:[/bold red] Error cleaning history: {e}")
        _recover_branch(ctx, branch, deleted)
        return False
    return True


def _offer_force_push(ctx: ToolContext, branch: str) -> None:
    if not ctx.prompter.confirm("Force push the cleaned history to remote?"):
        return
    try:
        console.print("Force pushing cleaned history to remote...")
        ctx.repo.push(branch, force=True)
        console.print("[bold green]SUCCESS:[/bold green] Pushed cleaned history.")
    except CommandError as e:
        logger.error(f"Force push of {branch} failed: {e}")
        console.print(f"[bold red]ERROR:[/bold red] Error force pushing to remote: {e}")
        console.print(
            f"   You may need to push manually: git push --force {REMOTE_NAME} {branch}"
        )


def _show_commits(commits: list[CommitRecord]) -> None:
    table = Table(show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Subject")
    table.add_column("Author", style="cyan")
    table.add_column("Email", style="dim")
    for i, c in enumerate(commits, start=1):
        table.add_row(str(i), c.subject, c.author_name, c.author_email)
    console.print(table)


def clean_old_user_commits(ctx: ToolContext) -> bool:
    """Removes commits by other authors, keeping only the configured user's history.

    If the user has commits, the branch is hard-reset to the user's earliest
    commit, which discards every later commit (from anyone). If the user has no
    commits at all, the branch is replaced by a single fresh commit of the
    current files.
    """
    print_header("Clean Old User Commits", "--clean-history")
    config = require_config(ctx, "github_username")
    if config is None:
        return False
    branch = get_current_branch(ctx)
    if branch is None:
        return False
    username = config.github_username

    console.print(f"Analyzing commit history on branch '{branch}'...")
    try:
        commits = parse_commit_log(ctx.repo.log(LOG_FORMAT))
    except CommandError as e:
        logger.error(f"Error analyzing commit history: {e}")
        console.print(f"[bold red]ERROR:[/bold red] Error analyzing commit history: {e}")
        return False

    if not commits:
        console.print("No commits found in repository.")
        return True

    mine, others = partition_commits(commits, username)
    if not others:
        console.print(
            f"No commits from other users found. All commits belong to {username}."
        )
        return True

    console.print(f"\nFound {len(others)} commits from other users:")
    _show_commits(others)
    console.print(f"Found {len(mine)} commits from current user ({username}).")
    if not ctx.prompter.confirm(
        "This will remove ALL commits from other users and keep only your commits. "
        "Continue?"
    ):
        console.print("Operation cancelled by user.")
        return True

    if not mine:
        console.print("Creating a fresh history with the current files...")
        if not _replace_with_orphan(ctx, branch, username):
            return False
    else:
        earliest = mine[-1]
        console.print(f"Resetting to first commit by {username}: '{earliest.subject}'")
        try:
            ctx.repo.reset_hard(earliest.hash)
        except CommandError as e:
            logger.error(f"Error cleaning history on {branch}: {e}")
            console.print(f"[bold red]ERROR:[/bold red] Error cleaning repository: {e}")
            return False

    console.print(
        f"[bold green]SUCCESS:[/bold green] Branch '{branch}' now holds only "
        f"commits from {username}."
    )
    _offer_force_push(ctx, branch)
    return True


def clean_all_commits(ctx: ToolContext) -> bool:
    """Replaces the branch's entire history with one commit of the current files."""
    print_header("Clean All Commit History", "--clean-all")
    config = require_config(ctx, "github_username")
    if config is None:
        return False
    branch = get_current_branch(ctx)
    if branch is None:
        return False

    console.print(
        f"This will remove ALL commit history on '{branch}' and create a fresh "
        "history with the current files."
    )
    if not ctx.prompter.confirm("Continue with cleaning all commit history?"):
        console.print("Operation cancelled by user.")
        return True

    if not _replace_with_orphan(ctx, branch, config.github_username):
        return False

    console.print(
        f"[bold green]SUCCESS:[/bold green] Branch '{branch}' now contains a single "
        "commit with all current files."
    )
    _offer_force_push(ctx, branch)
    return True
