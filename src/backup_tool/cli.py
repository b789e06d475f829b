import argparse
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.table import Table

from . import history, installer, ops, remote
from .constants import APP_NAME, MAX_LOG_SIZE, PACKAGE_DIR, TOOL_DIR
from .context import ToolContext, resolve_project_root
from .prompts import ConsolePrompter

logger = logging.getLogger(APP_NAME)
console = Console()

MENU_OPTIONS = [
    ("1", "Backup with custom message (current branch)"),
    ("2", "Create a new branch and backup to it"),
    ("3", "Check remote sync status (current branch)"),
    ("4", "Pull latest changes from remote (current branch)"),
    ("5", "Clean old user commits from history"),
    ("6", "Clean ALL commit history (keep current files only)"),
    ("0", "Cancel and exit menu"),
]


def setup_logging(log_file: Path | None, verbose: bool) -> None:
    """Configures the logging subsystem.

    Args:
        log_file (Path | None): Rotating log file, skipped when None.
        verbose (bool): If True, also mirror debug output to stderr.
    """
    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)s: %(message)s", "%Y-%m-%d %H:%M:%S"
    )
    logger.setLevel(logging.DEBUG)

    if verbose:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = RotatingFileHandler(
            log_file, maxBytes=MAX_LOG_SIZE, backupCount=3, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())


def show_backup_menu(ctx: ToolContext) -> bool:
    """Shows the advanced options menu and runs the chosen operation."""
    table = Table(title=f"{TOOL_DIR} - Advanced Backup Options", show_header=False)
    table.add_column("Key", style="cyan", justify="right")
    table.add_column("Action")
    for key, label in MENU_OPTIONS:
        table.add_row(key, label)

    actions = {
        "1": lambda: ops.commit_with_message(ctx, ""),
        "2": lambda: ops.backup_to_new_branch(ctx),
        "3": lambda: ops.check_remote_sync(ctx),
        "4": lambda: ops.pull_changes(ctx),
        "5": lambda: history.clean_old_user_commits(ctx),
        "6": lambda: history.clean_all_commits(ctx),
    }

    while True:
        console.print(table)
        choice = ctx.prompter.ask("Please choose an option (0-6)")
        if choice == "0":
            console.print("Operation cancelled by user.")
            return True
        if choice in actions:
            return actions[choice]()
        console.print("[bold red]Invalid option selected. Please try again.[/bold red]")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Git/GitHub backup workflows for a project.",
        epilog=(
            "Run without an operation to show this help. An installed copy runs as "
            f"`PYTHONPATH={TOOL_DIR} python -m {PACKAGE_DIR} <operation>`."
        ),
    )
    ops_group = parser.add_mutually_exclusive_group()
    ops_group.add_argument(
        "--init",
        action="store_true",
        help="Initialize or re-configure the backup tool for the current project",
    )
    ops_group.add_argument(
        "--qbackup",
        action="store_true",
        help="Quick backup with an automated commit message",
    )
    ops_group.add_argument(
        "--commit",
        nargs="*",
        metavar="MESSAGE",
        help="Backup with a custom commit message (asked for if omitted)",
    )
    ops_group.add_argument(
        "--menu",
        action="store_true",
        help="Advanced options: new branch, sync check, pull, history cleanup",
    )
    ops_group.add_argument(
        "--clean-history",
        action="store_true",
        help="Remove commits from other users, keep only current user commits",
    )
    ops_group.add_argument(
        "--clean-all",
        action="store_true",
        help="Remove ALL commit history, keep current files as one commit",
    )
    ops_group.add_argument(
        "--delete-repo",
        "--delrepo",
        dest="delete_repo",
        action="store_true",
        help="Delete a GitHub repository (interactive)",
    )
    ops_group.add_argument(
        "--install",
        nargs="?",
        const="",
        metavar="TARGET",
        help=f"Install {TOOL_DIR} into a project directory",
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=None,
        help="Project to operate on (default: detected)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Mirror debug logs to stderr"
    )
    return parser


def run(args: argparse.Namespace, ctx: ToolContext) -> bool:
    """Dispatches the parsed arguments to the matching operation."""
    if args.init:
        return ops.init_backup(ctx)
    if args.qbackup:
        return ops.quick_backup(ctx)
    if args.commit is not None:
        return ops.commit_with_message(ctx, " ".join(args.commit))
    if args.menu:
        return show_backup_menu(ctx)
    if args.clean_history:
        return history.clean_old_user_commits(ctx)
    if args.clean_all:
        return history.clean_all_commits(ctx)
    if args.delete_repo:
        return remote.delete_remote_repo(ctx)
    raise ValueError("no operation selected")


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the backup tool CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    prompter = ConsolePrompter(console)

    if args.install is not None:
        setup_logging(None, args.verbose)
        return 0 if installer.install(args.install, prompter) else 1

    selected = (
        args.init,
        args.qbackup,
        args.commit is not None,
        args.menu,
        args.clean_history,
        args.clean_all,
        args.delete_repo,
    )
    if not any(selected):
        parser.print_help()
        return 0

    ctx = ToolContext(resolve_project_root(args.project_root), prompter=prompter)
    setup_logging(ctx.log_path if ctx.tool_dir.is_dir() else None, args.verbose)
    logger.info(f"Project root: {ctx.project_root}, arguments: {argv or sys.argv[1:]}")

    try:
        ok = run(args, ctx)
    except KeyboardInterrupt:
        console.print("\n[bold red]ABORTED.[/bold red]")
        return 130
    except Exception as e:
        logger.exception("Unhandled error")
        console.print(f"[bold red]ERROR:[/bold red] An unexpected error occurred: {e}")
        return 1
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
