import logging
import subprocess
from pathlib import Path

from .constants import APP_NAME, REMOTE_NAME

logger = logging.getLogger(APP_NAME)


class CommandError(RuntimeError):
    """Raised when an external command (git or gh) exits with a non-zero status.

    Attributes:
        command (list[str]): The full argument list that was executed.
        stderr (str): The captured standard error, empty if stdio was inherited.
    """

    def __init__(self, message: str, command: list[str], stderr: str = ""):
        super().__init__(message)
        self.command = command
        self.stderr = stderr


def run_command(
    tool: str, args: list[str], cwd: Path, capture: bool = True
) -> subprocess.CompletedProcess:
    """Executes an external command, either capturing or inheriting stdio.

    Args:
        tool (str): The executable to run (e.g. 'git' or 'gh').
        args (list[str]): Arguments passed to the executable.
        cwd (Path): The working directory for the command.
        capture (bool, optional): Whether to capture stdout/stderr. When False the
                                  command writes straight to the terminal.
                                  Defaults to True.

    Returns:
        subprocess.CompletedProcess: The finished process.

    Raises:
        CommandError: If the command is missing or returns a non-zero exit code.
    """
    cmd = [tool, *args]
    logger.debug(f"Executing: {' '.join(cmd)} (cwd={cwd})")
    try:
        return subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=capture,
            text=True,
            check=True,
        )
    except FileNotFoundError as e:
        raise CommandError(f"{tool} is not installed or not on PATH", cmd) from e
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip()
        logger.debug(f"Command failed ({e.returncode}): {' '.join(cmd)}: {stderr}")
        raise CommandError(f"{tool} error: {stderr or e}", cmd, stderr) from e


class GitRepo:
    """A wrapper around the Git command-line interface for a project directory.

    Every command runs with the project root as its working directory, so the
    wrapper never depends on the process's current directory.

    Attributes:
        path (Path): The file system path to the project root.
    """

    def __init__(self, path: Path):
        self.path = path

    @property
    def is_repo(self) -> bool:
        """Whether the project root contains a .git directory."""
        return (self.path / ".git").exists()

    def _run(self, args: list[str], capture: bool = True) -> str:
        """Executes a Git command within the project context.

        Args:
            args (list[str]): A list of arguments to pass to the git command.
            capture (bool, optional):   Whether to capture and return stdout.
                                        Defaults to True.

        Returns:
            str:    The stripped stdout of the command if capture is True,
                    otherwise an empty string.

        Raises:
            CommandError: If the git command returns a non-zero exit code.
        """
        res = run_command("git", args, self.path, capture=capture)
        return res.stdout.strip() if capture else ""

    def init(self) -> None:
        """Initializes a new repository in the project root."""
        self._run(["init"], capture=False)

    def current_branch(self) -> str:
        """Retrieves the name of the currently checked-out branch.

        Falls back to `git branch --show-current` for repositories without
        commits, where `rev-parse --abbrev-ref HEAD` fails.

        Raises:
            CommandError: If no branch can be determined (e.g. detached HEAD).
        """
        try:
            branch = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        except CommandError:
            branch = ""
        if not branch or branch == "HEAD":
            branch = self._run(["branch", "--show-current"])
        if not branch:
            raise CommandError(
                "Could not determine current branch or in detached HEAD state.",
                ["git", "branch", "--show-current"],
            )
        return branch

    def status_porcelain(self) -> list[str]:
        """Returns the lines of `git status --porcelain`."""
        output = self._run(["status", "--porcelain"])
        return output.splitlines() if output else []

    def remote_update(self) -> None:
        """Fetches updates for all remotes."""
        self._run(["remote", "update"])

    def rev_parse(self, rev: str) -> str | None:
        """Resolves a revision to a full SHA-1 hash.

        Returns:
            Optional[str]:  The full SHA-1 hash,
                            or None if the revision could not be resolved.
        """
        try:
            return self._run(["rev-parse", "--verify", "--quiet", rev])
        except CommandError as e:
            logger.debug(f"rev-parse failed for '{rev}': {e}")
            return None

    def resolve(self, rev: str) -> str:
        """Resolves a revision to a full SHA-1 hash, raising on failure."""
        return self._run(["rev-parse", rev])

    def merge_base(self, a: str, b: str) -> str:
        """Returns the best common ancestor of two revisions."""
        return self._run(["merge-base", a, b])

    def has_commits(self) -> bool:
        """Whether HEAD points at a commit."""
        return self.rev_parse("HEAD^{commit}") is not None

    def remote_branch_exists(self, branch: str, remote: str = REMOTE_NAME) -> bool:
        """Checks whether a branch exists on the remote using `ls-remote`."""
        return bool(self._run(["ls-remote", "--heads", remote, branch]))

    def add_all(self) -> None:
        """Stages all changes (modified, deleted, and untracked files)."""
        self._run(["add", "-A"], capture=False)

    def commit(
        self, message: str, allow_empty: bool = False, author: str | None = None
    ) -> None:
        """Creates a new commit with the provided message.

        Args:
            message (str): The commit message.
            allow_empty (bool, optional): Record the commit even without changes.
                                          Defaults to False.
            author (str | None, optional): 'Name <email>' to author the commit as,
                                           instead of the configured identity.
        """
        cmd = ["commit", "-m", message]
        if allow_empty:
            cmd.append("--allow-empty")
        if author:
            cmd.append(f"--author={author}")
        self._run(cmd, capture=False)

    def push(
        self,
        branch: str,
        remote: str = REMOTE_NAME,
        set_upstream: bool = False,
        force: bool = False,
    ) -> None:
        """Pushes a branch to the remote.

        Args:
            branch (str): The branch to push.
            remote (str, optional): The remote name. Defaults to 'origin'.
            set_upstream (bool, optional): Adds `-u` to track the remote branch.
            force (bool, optional): Adds `--force`, overwriting remote history.
        """
        cmd = ["push"]
        if set_upstream:
            cmd.append("-u")
        if force:
            cmd.append("--force")
        cmd.extend([remote, branch])
        self._run(cmd, capture=False)

    def pull(self, branch: str, remote: str = REMOTE_NAME) -> None:
        self._run(["pull", remote, branch], capture=False)

    def checkout(self, branch: str) -> None:
        self._run(["checkout", branch], capture=False)

    def create_branch(self, branch: str) -> None:
        """Creates a branch and switches to it (`checkout -b`)."""
        self._run(["checkout", "-b", branch], capture=False)

    def checkout_orphan(self, branch: str) -> None:
        """Creates and switches to a branch with no history."""
        self._run(["checkout", "--orphan", branch], capture=False)

    def delete_branch(self, branch: str) -> None:
        """Force-deletes a local branch."""
        self._run(["branch", "-D", branch], capture=False)

    def rename_current_branch(self, new_name: str) -> None:
        self._run(["branch", "-m", new_name], capture=False)

    def reset_hard(self, target: str) -> None:
        """Resets HEAD, index and working tree to the target commit."""
        self._run(["reset", "--hard", target], capture=False)

    def log(self, pretty: str, all_refs: bool = True) -> str:
        """Returns raw `git log` output using the given pretty format."""
        cmd = ["log", f"--pretty=format:{pretty}"]
        if all_refs:
            cmd.append("--all")
        return self._run(cmd)

    def get_remote_url(self, remote: str = REMOTE_NAME) -> str | None:
        """Returns the URL of a remote, or None if it is not configured."""
        try:
            return self._run(["remote", "get-url", remote]) or None
        except CommandError:
            return None

    def remove_remote(self, remote: str = REMOTE_NAME) -> None:
        self._run(["remote", "remove", remote], capture=False)

    def config_get(self, key: str, global_scope: bool = True) -> str | None:
        """Reads a git config value, returning None when unset."""
        cmd = ["config"]
        if global_scope:
            cmd.append("--global")
        cmd.append(key)
        try:
            return self._run(cmd) or None
        except CommandError:
            return None

    def config_set(self, key: str, value: str, global_scope: bool = True) -> None:
        cmd = ["config"]
        if global_scope:
            cmd.append("--global")
        cmd.extend([key, value])
        self._run(cmd)
