import logging
import re

from rich.console import Console

from .config import Config
from .constants import (
    APP_NAME,
    FALLBACK_REPO_NAME,
    GH_REQUIRED_SCOPES,
    REMOTE_NAME,
    TOOL_DIR,
)
from .context import ToolContext, print_header
from .gh_wrapper import GitHubCLI, parse_github_remote
from .git_wrapper import CommandError

console = Console()
logger = logging.getLogger(APP_NAME)


def sanitize_repo_name(project_name: str) -> str:
    """Turns a project name into a valid GitHub repository name.

    Whitespace runs become '-', characters outside [A-Za-z0-9_.-] are dropped
    and leading/trailing '-', '.', '_' are stripped.
    """
    name = re.sub(r"\s+", "-", project_name.strip())
    name = re.sub(r"[^a-zA-Z0-9_.-]", "", name)
    name = name.strip("-._")
    return name or FALLBACK_REPO_NAME


def find_available_repo_name(gh: GitHubCLI, owner: str, base_name: str) -> str:
    """Appends -1, -2, ... to base_name until no repository of that name exists."""
    name = base_name
    counter = 0
    while gh.repo_exists(f"{owner}/{name}"):
        counter += 1
        console.print(
            f"Repository {owner}/{name} already exists on GitHub. "
            f"Trying alternative: {base_name}-{counter}"
        )
        name = f"{base_name}-{counter}"
    return name


def _remove_origin(ctx: ToolContext) -> None:
    try:
        ctx.repo.remove_remote(REMOTE_NAME)
        console.print(f"Removed local remote '{REMOTE_NAME}'.")
    except CommandError as e:
        logger.error(f"Failed to remove remote {REMOTE_NAME}: {e}")
        console.print(
            f"[bold red]ERROR:[/bold red] Failed to remove remote '{REMOTE_NAME}': {e}"
        )


def _check_existing_remote(ctx: ToolContext, config: Config, url: str) -> bool:
    """Decides whether an existing origin should be kept.

    Returns:
        bool: True to keep the existing remote, False to create a new repository.
    """
    ref = parse_github_remote(url)
    if ref is None:
        console.print(
            f"[bold yellow]WARNING:[/bold yellow] Could not parse a GitHub repository "
            f"from {url}. It will be replaced."
        )
        _remove_origin(ctx)
        return False

    if ref.owner != config.github_username:
        console.print(
            f"Remote repository belongs to a different user: {ref.owner} "
            f"(current user: {config.github_username})."
        )
        if ctx.prompter.confirm(
            f"Do you want to create a new repository under your account "
            f"({config.github_username}) instead?"
        ):
            _remove_origin(ctx)
            return False
        if ctx.gh.repo_exists(ref.full_name):
            console.print(
                f"[bold green]OK:[/bold green] Keeping existing remote '{REMOTE_NAME}' "
                f"({url}), verified accessible."
            )
            return True
        console.print(
            f"[bold yellow]WARNING:[/bold yellow] Cannot access repository "
            f"{ref.full_name}. You may not have permissions."
        )
        if ctx.prompter.confirm("Create a new repository under your account instead?"):
            _remove_origin(ctx)
            return False
        console.print("Keeping existing remote configuration as requested.")
        return True

    if ctx.gh.repo_exists(ref.full_name):
        console.print(
            f"[bold green]OK:[/bold green] Remote '{REMOTE_NAME}' ({url}) is valid "
            "and accessible on GitHub."
        )
        return True
    console.print(
        f"[bold yellow]WARNING:[/bold yellow] Remote '{REMOTE_NAME}' ({url}) does not "
        "exist on GitHub or is inaccessible. It will be replaced."
    )
    _remove_origin(ctx)
    return False


def setup_remote_repo(ctx: ToolContext, config: Config) -> str | None:
    """Makes sure the project has a usable GitHub 'origin', creating one if needed.

    Args:
        ctx (ToolContext): The operation context.
        config (Config): The project config (with github_username filled in).

    Returns:
        str | None: The remote URL, or None if no repository could be linked.
    """
    console.print("\n[bold]GitHub Remote Repository Setup[/bold]")
    console.print(
        f"   Project: {config.project_name}, GitHub user: {config.github_username}"
    )

    url = ctx.repo.get_remote_url(REMOTE_NAME)
    if url:
        console.print(f"Existing remote '{REMOTE_NAME}' found: {url}. Verifying...")
        if _check_existing_remote(ctx, config, url):
            return url
    else:
        console.print(f"No existing remote '{REMOTE_NAME}' found for this project.")

    owner = config.github_username
    repo_name = find_available_repo_name(
        ctx.gh, owner, sanitize_repo_name(config.project_name)
    )
    full_name = f"{owner}/{repo_name}"
    console.print(f"The new repository will be named: [bold]{full_name}[/bold]")
    private = ctx.prompter.confirm("Should this new GitHub repository be private?")

    try:
        if not ctx.repo.has_commits():
            console.print("No commits found. Creating an initial empty commit...")
            ctx.repo.add_all()
            ctx.repo.commit(f"Initial commit by {TOOL_DIR}", allow_empty=True)
        ctx.gh.repo_create(
            full_name,
            private=private,
            description=f"Repository for {config.project_name}, managed by {TOOL_DIR}",
        )
    except CommandError as e:
        logger.error(f"Failed to create GitHub repository {full_name}: {e}")
        console.print(
            f"[bold red]ERROR:[/bold red] Failed to create GitHub repository "
            f"'{repo_name}'. Please perform these steps manually:"
        )
        console.print(f"   1. Create a repository named '{repo_name}' on GitHub.")
        console.print(
            f"   2. git remote add {REMOTE_NAME} https://github.com/{full_name}.git"
        )
        console.print(f"   3. git push -u {REMOTE_NAME} <your-branch>")
        return None

    url = f"https://github.com/{full_name}.git"
    console.print(
        f"[bold green]SUCCESS:[/bold green] Created {url.removesuffix('.git')} "
        f"and set it as '{REMOTE_NAME}'."
    )
    return url


def _ensure_delete_scope(ctx: ToolContext) -> bool:
    """Checks gh auth for the delete_repo scope, offering a refresh if it is missing."""
    try:
        status = ctx.gh.auth_status()
    except CommandError as e:
        logger.error(f"gh auth status failed: {e}")
        console.print(
            "[bold red]ERROR:[/bold red] GitHub CLI is not authenticated. Please run "
            f'`gh auth login --scopes "{GH_REQUIRED_SCOPES}"`.'
        )
        return False

    if "delete_repo" in status:
        console.print("GitHub CLI has required permissions for repository deletion.")
        return True

    console.print('Missing the "delete_repo" scope required for repository deletion.')
    if not ctx.prompter.confirm('Grant "delete_repo" permission to GitHub CLI?'):
        console.print('Repository deletion requires "delete_repo" scope. Cancelled.')
        return False
    try:
        ctx.gh.refresh_scopes("delete_repo")
        status = ctx.gh.auth_status()
    except CommandError as e:
        logger.error(f"gh auth refresh failed: {e}")
        status = ""
    if "delete_repo" not in status:
        console.print(
            "[bold red]ERROR:[/bold red] Failed to obtain the delete_repo scope. Please "
            f'run `gh auth login --scopes "{GH_REQUIRED_SCOPES}"`.'
        )
        return False
    console.print("[bold green]SUCCESS:[/bold green] GitHub CLI permissions updated.")
    return True


def delete_remote_repo(ctx: ToolContext) -> bool:
    """Permanently deletes a GitHub repository after the operator retypes its name.

    If the local 'origin' points at the deleted repository it is removed too.
    """
    print_header("Delete GitHub Repository", "--delete-repo")
    if not ctx.gh.is_installed():
        console.print(
            "[bold red]ERROR:[/bold red] GitHub CLI (gh) is not installed. "
            "Install it from https://cli.github.com/ to use this feature."
        )
        return False
    if not _ensure_delete_scope(ctx):
        return False

    full_name = ctx.prompter.ask(
        "Enter the full GitHub repository name to delete (e.g. username/repository-name)"
    )
    if not full_name or "/" not in full_name:
        console.print(
            "[bold red]ERROR:[/bold red] Invalid repository name. It must be in "
            "'username/repository-name' format. Deletion cancelled."
        )
        return False

    if not ctx.gh.repo_exists(full_name):
        console.print(
            f"[bold red]ERROR:[/bold red] Repository '{full_name}' was not found on "
            "GitHub or you do not have access to it. Deletion cancelled."
        )
        return False

    console.print(
        f"[bold red]WARNING:[/bold red] This will PERMANENTLY DELETE '{full_name}' "
        "from GitHub. This action CANNOT be undone."
    )
    confirmation = ctx.prompter.ask(
        f"To confirm, type the full repository name ('{full_name}') again"
    )
    if confirmation != full_name:
        console.print("Repository name mismatch. Deletion cancelled.")
        return True

    try:
        ctx.gh.repo_delete(full_name)
    except CommandError as e:
        detail = e.stderr or str(e)
        logger.error(f"Failed to delete {full_name}: {detail}")
        console.print(
            f"[bold red]ERROR:[/bold red] Failed to delete {full_name}: {detail}"
        )
        if "delete_repo" in detail:
            console.print(
                '   The GitHub token is missing the "delete_repo" scope. Please run '
                f'`gh auth login --scopes "{GH_REQUIRED_SCOPES}"`.'
            )
        elif "403" in detail or "admin rights" in detail:
            console.print(
                "   You do not have admin rights to this repository. Only owners "
                "or admins can delete repositories."
            )
        return False
    console.print(f"[bold green]SUCCESS:[/bold green] Deleted GitHub repository {full_name}.")

    url = ctx.repo.get_remote_url(REMOTE_NAME) if ctx.repo.is_repo else None
    ref = parse_github_remote(url) if url else None
    if ref is not None and ref.full_name.lower() == full_name.lower():
        console.print(f"Removing local remote '{REMOTE_NAME}' that pointed to it.")
        _remove_origin(ctx)
    return True
