"""backup-tool: opinionated Git/GitHub backup workflows for a project.

This package provides the command-line interface, the git and GitHub CLI
wrappers, and the backup, sync-check and history-rewrite operations built on
top of them.
"""

from . import (
    cli,
    config,
    constants,
    context,
    gh_wrapper,
    git_wrapper,
    history,
    identity,
    installer,
    ops,
    prompts,
    remote,
    sync,
)

__all__ = [
    "cli",
    "config",
    "constants",
    "context",
    "gh_wrapper",
    "git_wrapper",
    "history",
    "identity",
    "installer",
    "ops",
    "prompts",
    "remote",
    "sync",
]
