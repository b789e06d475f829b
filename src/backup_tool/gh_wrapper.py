import json
import logging
import re
import shutil
from dataclasses import dataclass
from pathlib import Path

from .constants import APP_NAME, GH_REQUIRED_SCOPES
from .git_wrapper import CommandError, run_command

logger = logging.getLogger(APP_NAME)

_GITHUB_REMOTE_RE = re.compile(r"github\.com[/:]([^/]+)/([^/]+?)(?:\.git)?/?$")


@dataclass(frozen=True)
class RemoteRef:
    """A GitHub repository identified by owner and name."""

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


def parse_github_remote(url: str) -> RemoteRef | None:
    """Extracts the owner and repository name from a GitHub remote URL.

    Supports both SSH (git@github.com:owner/repo.git) and HTTPS
    (https://github.com/owner/repo.git) formats.

    Args:
        url (str): The remote URL.

    Returns:
        RemoteRef | None: The parsed repository, or None if the URL does not
        point at a GitHub repository.
    """
    match = _GITHUB_REMOTE_RE.search(url.strip())
    if not match:
        return None
    owner, name = match.group(1), match.group(2)
    if not owner or not name:
        return None
    return RemoteRef(owner, name)


class GitHubCLI:
    """A wrapper around the GitHub CLI (`gh`).

    Attributes:
        path (Path): The working directory for gh invocations (the project root).
    """

    def __init__(self, path: Path):
        self.path = path

    @staticmethod
    def is_installed() -> bool:
        """Whether the `gh` executable is available on PATH."""
        return shutil.which("gh") is not None

    def _run(self, args: list[str], capture: bool = True) -> str:
        res = run_command("gh", args, self.path, capture=capture)
        return res.stdout.strip() if capture else ""

    def auth_status(self) -> str:
        """Returns the combined output of `gh auth status`.

        Older gh releases report on stderr, newer ones on stdout, so both are
        returned together.

        Raises:
            CommandError: If gh is not authenticated.
        """
        res = run_command("gh", ["auth", "status"], self.path)
        return f"{res.stdout}\n{res.stderr}".strip()

    def is_authenticated(self) -> bool:
        try:
            self.auth_status()
            return True
        except CommandError:
            return False

    def login(self, scopes: str = GH_REQUIRED_SCOPES) -> None:
        """Runs the interactive `gh auth login` flow."""
        self._run(["auth", "login", "--scopes", scopes], capture=False)

    def refresh_scopes(self, scopes: str, hostname: str = "github.com") -> None:
        """Runs `gh auth refresh` to add scopes to the current token."""
        self._run(["auth", "refresh", "-h", hostname, "-s", scopes], capture=False)

    def current_login(self) -> str:
        """Returns the login name of the authenticated user."""
        return self._run(["api", "user", "--jq", ".login"])

    def user_profile(self) -> dict:
        """Returns the authenticated user's profile from `gh api user`."""
        return json.loads(self._run(["api", "user"]))

    def user_emails(self) -> list[dict]:
        """Returns the authenticated user's email records.

        Requires the `user` scope; raises CommandError without it.
        """
        return json.loads(self._run(["api", "user/emails"]))

    def repo_exists(self, full_name: str) -> bool:
        """Whether `gh repo view` can see the repository."""
        try:
            self._run(["repo", "view", full_name])
            return True
        except CommandError as e:
            logger.debug(f"gh repo view {full_name} failed: {e}")
            return False

    def repo_create(self, full_name: str, private: bool, description: str) -> None:
        """Creates a repository from the current directory and pushes to it.

        The new repository is linked as remote 'origin'.
        """
        visibility = "--private" if private else "--public"
        self._run(
            [
                "repo",
                "create",
                full_name,
                visibility,
                "--source=.",
                "--remote=origin",
                "--push",
                "-d",
                description,
            ],
            capture=False,
        )

    def repo_delete(self, full_name: str) -> None:
        self._run(["repo", "delete", full_name, "--yes"])
