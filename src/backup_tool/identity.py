"""First-time setup steps: local repository, git identity and GitHub CLI auth."""

import logging
import webbrowser

from rich.console import Console

from .config import Config
from .constants import (
    APP_NAME,
    GH_DOWNLOAD_URL,
    GH_REQUIRED_SCOPES,
    PLACEHOLDER_EMAILS,
    PLACEHOLDER_NAMES,
    TOOL_DIR,
)
from .context import ToolContext
from .git_wrapper import CommandError

console = Console()
logger = logging.getLogger(APP_NAME)


def is_placeholder_identity(name: str, email: str) -> bool:
    """Whether a git identity looks like leftover placeholder data."""
    name, email = name.lower(), email.lower()
    return any(p.lower() in name for p in PLACEHOLDER_NAMES) or any(
        p.lower() in email for p in PLACEHOLDER_EMAILS
    )


def setup_git_repo(ctx: ToolContext) -> bool:
    """Initializes the repository with an initial commit if it does not exist."""
    if ctx.repo.is_repo:
        console.print("[bold green]OK:[/bold green] Git repository already exists.")
        return True

    console.print("Initializing a new Git repository...")
    try:
        ctx.repo.init()
        ctx.repo.add_all()
        ctx.repo.commit(f"Initial commit - {TOOL_DIR} setup", allow_empty=True)
    except CommandError as e:
        logger.error(f"Git initialization failed: {e}")
        console.print(
            "[bold red]ERROR:[/bold red] Git initialization failed. Setup cannot continue."
        )
        return False
    console.print("[bold green]SUCCESS:[/bold green] Git repository initialized.")
    return True


def _identity_from_github(ctx: ToolContext) -> tuple[str, str] | None:
    """Reads a name and email for commits from the authenticated GitHub account."""
    if not ctx.gh.is_installed() or not ctx.gh.is_authenticated():
        return None
    try:
        profile = ctx.gh.user_profile()
    except (CommandError, ValueError) as e:
        logger.warning(f"Could not read GitHub profile: {e}")
        return None

    login = profile.get("login") or ""
    name = profile.get("name") or login
    email = profile.get("email") or ""
    if not email:
        try:
            emails = ctx.gh.user_emails()
            primary = next((e for e in emails if e.get("primary")), None)
            email = (primary or (emails[0] if emails else {})).get("email", "")
        except (CommandError, ValueError) as e:
            logger.info(f"Email API unavailable ({e}); using noreply address.")
            console.print(
                "Cannot access the email API (missing user scope). "
                "Using the GitHub noreply address."
            )
            email = f"{login}@users.noreply.github.com"
    if not name or not email:
        return None
    return name, email


def _apply_identity(ctx: ToolContext, name: str, email: str) -> bool:
    try:
        ctx.repo.config_set("user.name", name)
        ctx.repo.config_set("user.email", email)
    except CommandError as e:
        logger.error(f"Failed to set git identity: {e}")
        console.print(
            "[bold red]ERROR:[/bold red] Failed to set global Git identity. "
            "Setup cannot continue."
        )
        return False
    console.print(
        f"[bold green]SUCCESS:[/bold green] Global Git identity set to: {name} <{email}>"
    )
    return True


def setup_git_identity(ctx: ToolContext) -> bool:
    """Ensures a usable global git user.name / user.email.

    Resolution order: keep the existing identity if the operator confirms and it
    is not a placeholder; otherwise offer the GitHub account's identity; otherwise
    ask for name and email.
    """
    console.print("\n[bold]Git User Identity Setup[/bold]")
    name = ctx.repo.config_get("user.name") or ""
    email = ctx.repo.config_get("user.email") or ""

    if name and email:
        if is_placeholder_identity(name, email):
            console.print(
                f"Detected placeholder Git identity: {name} <{email}>. "
                "Getting current user info from GitHub..."
            )
        else:
            console.print(f"Current global Git identity: {name} <{email}>")
            if ctx.prompter.confirm("Do you want to use this current global identity?"):
                return True

    gh_identity = _identity_from_github(ctx)
    if gh_identity:
        gh_name, gh_email = gh_identity
        console.print(f"Retrieved from GitHub: {gh_name} <{gh_email}>")
        if ctx.prompter.confirm("Use this GitHub account information for Git commits?"):
            return _apply_identity(ctx, gh_name, gh_email)
    else:
        console.print("Could not retrieve information from GitHub CLI.")

    console.print("Please enter your Git identity manually:")
    name = ctx.prompter.ask("Enter your full name for Git commits")
    email = ctx.prompter.ask("Enter your email for Git commits")
    if not name or not email:
        console.print(
            "[bold red]ERROR:[/bold red] User name and email cannot be empty. "
            "Git identity setup failed."
        )
        return False
    return _apply_identity(ctx, name, email)


def setup_gh_cli(ctx: ToolContext) -> bool:
    """Checks that the GitHub CLI is installed and authenticated, logging in if not."""
    console.print("\n[bold]GitHub CLI (gh) Setup[/bold]")
    if not ctx.gh.is_installed():
        console.print(
            f"[bold red]ERROR:[/bold red] GitHub CLI (gh) is not installed. "
            f"Please install it from: {GH_DOWNLOAD_URL}"
        )
        if ctx.prompter.confirm("Do you want to open the download page in your browser?"):
            webbrowser.open(GH_DOWNLOAD_URL)
        return False

    try:
        ctx.gh.auth_status()
        login = ctx.gh.current_login()
        console.print(f"[bold green]OK:[/bold green] GitHub CLI is authenticated as: {login}")
        return True
    except CommandError as e:
        logger.info(f"gh not authenticated: {e}")

    console.print(
        f"GitHub CLI is not authenticated. Logging in (scopes: {GH_REQUIRED_SCOPES})..."
    )
    try:
        ctx.gh.login()
    except CommandError as e:
        logger.error(f"gh auth login failed: {e}")
        console.print(
            "[bold red]ERROR:[/bold red] GitHub CLI authentication failed. "
            "Setup cannot continue."
        )
        return False
    console.print("[bold green]SUCCESS:[/bold green] GitHub CLI authenticated.")
    return True


def record_github_username(ctx: ToolContext, config: Config) -> bool:
    """Fills in the config's GitHub username from gh when missing and saves it."""
    if not config.github_username:
        try:
            config.github_username = ctx.gh.current_login()
        except CommandError as e:
            logger.error(f"Could not retrieve GitHub username: {e}")
            console.print(
                "[bold red]ERROR:[/bold red] Could not retrieve GitHub username. "
                "Ensure GitHub CLI is authenticated (`gh auth status`)."
            )
            return False
    if not ctx.save_config(config):
        return False
    console.print(
        f"Configuration: project '{config.project_name}', "
        f"GitHub user '{config.github_username}'."
    )
    return True
