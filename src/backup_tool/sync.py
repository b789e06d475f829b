"""Classification of a local branch against its counterpart on origin."""

import logging
from dataclasses import dataclass
from enum import Enum

from rich.console import Console

from .constants import APP_NAME, REMOTE_NAME
from .git_wrapper import CommandError, GitRepo

console = Console()
logger = logging.getLogger(APP_NAME)


class SyncState(str, Enum):
    UNKNOWN = "unknown"
    UPTODATE = "uptodate"
    BEHIND = "behind"
    AHEAD = "ahead"
    DIVERGED = "diverged"
    NO_REMOTE = "no_remote"
    ERROR = "error"


@dataclass
class SyncStatus:
    """Snapshot of a branch's local changes and its relation to origin.

    Attributes:
        has_changes (bool): Whether the working tree has uncommitted changes.
        is_repo (bool): Whether the project is a git repository at all.
        sync (SyncState): The classification result.
        local_hash (str): HEAD commit.
        remote_hash (str): Tip of origin/<branch>, empty if it does not exist.
        base_hash (str): Merge-base of the two, empty if not computed.
    """

    has_changes: bool = False
    is_repo: bool = False
    sync: SyncState = SyncState.UNKNOWN
    local_hash: str = ""
    remote_hash: str = ""
    base_hash: str = ""


def classify_sync(
    local_hash: str, remote_hash: str | None, base_hash: str | None
) -> SyncState:
    """Classifies the relation between a local and a remote branch tip.

    Args:
        local_hash (str): The local HEAD commit.
        remote_hash (str | None): The remote branch tip, or None if the remote
                                  branch does not exist.
        base_hash (str | None): The merge-base of local and remote.

    Returns:
        SyncState: One of NO_REMOTE, UPTODATE, BEHIND, AHEAD or DIVERGED.
    """
    if remote_hash is None:
        return SyncState.NO_REMOTE
    if local_hash == remote_hash:
        return SyncState.UPTODATE
    if local_hash == base_hash:
        return SyncState.BEHIND
    if remote_hash == base_hash:
        return SyncState.AHEAD
    return SyncState.DIVERGED


def get_sync_status(repo: GitRepo, branch: str, remote: str = REMOTE_NAME) -> SyncStatus:
    """Collects local change state and classifies the branch against the remote.

    Any git failure while comparing yields `SyncState.ERROR`.

    Args:
        repo (GitRepo): The project repository.
        branch (str): The branch to compare.
        remote (str, optional): The remote name. Defaults to 'origin'.

    Returns:
        SyncStatus: The collected status.
    """
    status = SyncStatus(is_repo=repo.is_repo)
    if not status.is_repo:
        console.print(
            "[bold red]ERROR:[/bold red] This is not a Git repository. "
            "Please run --init to set up."
        )
        return status

    remote_branch = f"{remote}/{branch}"
    try:
        status.has_changes = bool(repo.status_porcelain())
        logger.info(
            "Local changes detected." if status.has_changes else "No local changes."
        )

        repo.remote_update()
        status.local_hash = repo.resolve("HEAD")
        if not repo.remote_branch_exists(branch, remote):
            logger.info(f"Remote branch {remote_branch} not found.")
            status.sync = classify_sync(status.local_hash, None, None)
            return status

        status.remote_hash = repo.resolve(remote_branch)
        status.base_hash = repo.merge_base("HEAD", remote_branch)
        status.sync = classify_sync(
            status.local_hash, status.remote_hash, status.base_hash
        )
        logger.info(f"Sync status with {remote_branch}: {status.sync.value}")
    except CommandError as e:
        logger.error(f"Error getting Git status for {branch}: {e}")
        status.sync = SyncState.ERROR
        if "unknown revision" in str(e) or "ambiguous argument" in str(e):
            console.print(
                f"[bold yellow]WARNING:[/bold yellow] Remote branch {remote_branch} "
                "may not be tracked or a remote error occurred."
            )
    return status
