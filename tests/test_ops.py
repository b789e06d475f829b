"""Tests for the backup operation handlers."""

from unittest.mock import MagicMock, call

import pytest

from backup_tool import ops
from backup_tool.config import Config
from backup_tool.context import ToolContext
from backup_tool.git_wrapper import CommandError
from backup_tool.sync import SyncState, SyncStatus

from conftest import ScriptedPrompter


@pytest.fixture(autouse=True)
def quiet_console(mocker: MagicMock) -> MagicMock:
    return mocker.patch("backup_tool.ops.console")


def _status(sync: SyncState, has_changes: bool = False) -> SyncStatus:
    return SyncStatus(has_changes=has_changes, is_repo=True, sync=sync)


def test_quick_backup_requires_config(ctx: ToolContext) -> None:
    """Verifies that a missing config aborts with guidance and touches nothing."""
    assert ops.quick_backup(ctx) is False
    ctx.repo.add_all.assert_not_called()


def test_quick_backup_without_changes_reports_status(
    ctx: ToolContext, configured: Config, mocker: MagicMock
) -> None:
    """Verifies that a clean tree reports sync state (pushing when ahead)."""
    ctx.repo.current_branch.return_value = "main"
    mocker.patch(
        "backup_tool.ops.get_sync_status", return_value=_status(SyncState.AHEAD)
    )

    assert ops.quick_backup(ctx) is True

    ctx.repo.commit.assert_not_called()
    ctx.repo.push.assert_called_once_with("main")


def test_quick_backup_commits_with_timestamp(
    ctx: ToolContext, configured: Config, mocker: MagicMock
) -> None:
    """Verifies the stage, commit, push sequence with a generated message."""
    ctx.repo.current_branch.return_value = "main"
    mocker.patch(
        "backup_tool.ops.get_sync_status",
        return_value=_status(SyncState.UPTODATE, has_changes=True),
    )
    mocker.patch(
        "backup_tool.ops.formatted_timestamp", return_value="2024-05-01 10:00:00"
    )

    assert ops.quick_backup(ctx) is True

    ctx.repo.add_all.assert_called_once()
    ctx.repo.commit.assert_called_once_with(
        "Quick backup: 2024-05-01 10:00:00", allow_empty=False
    )
    ctx.repo.push.assert_called_once_with("main")


def test_commit_empty_message_no_changes_declined(
    ctx: ToolContext,
    configured: Config,
    prompter: ScriptedPrompter,
    mocker: MagicMock,
) -> None:
    """Scenario: empty message, no changes, empty commit declined: nothing committed."""
    ctx.repo.current_branch.return_value = "main"
    mocker.patch(
        "backup_tool.ops.get_sync_status", return_value=_status(SyncState.UPTODATE)
    )
    display = mocker.patch("backup_tool.ops.display_sync_status")
    prompter.answers = ["Refactor things", False]

    assert ops.commit_with_message(ctx, "") is True

    ctx.repo.commit.assert_not_called()
    ctx.repo.push.assert_not_called()
    display.assert_called_once()
    assert "empty commit" in prompter.questions[1]


def test_commit_blank_prompt_aborts(
    ctx: ToolContext, configured: Config, prompter: ScriptedPrompter
) -> None:
    """Verifies that declining to provide a message stops before any git work."""
    ctx.repo.current_branch.return_value = "main"
    prompter.answers = [""]

    assert ops.commit_with_message(ctx, "   ") is True
    ctx.repo.status_porcelain.assert_not_called()
    ctx.repo.commit.assert_not_called()


def test_commit_accepts_empty_commit(
    ctx: ToolContext,
    configured: Config,
    prompter: ScriptedPrompter,
    mocker: MagicMock,
) -> None:
    """Verifies that an accepted empty commit is recorded with --allow-empty."""
    ctx.repo.current_branch.return_value = "dev"
    mocker.patch(
        "backup_tool.ops.get_sync_status", return_value=_status(SyncState.UPTODATE)
    )
    prompter.answers = [True]

    assert ops.commit_with_message(ctx, "Checkpoint") is True

    ctx.repo.commit.assert_called_once_with("Checkpoint", allow_empty=True)
    ctx.repo.push.assert_called_once_with("dev")


def test_commit_and_push_failure_returns_false(ctx: ToolContext) -> None:
    """Verifies that a failed push aborts and reports failure."""
    ctx.repo.push.side_effect = CommandError("rejected", ["git", "push"])

    assert ops.commit_and_push(ctx, "msg", "main") is False
    ctx.repo.commit.assert_called_once()


def test_backup_to_new_branch_rolls_back_on_failure(
    ctx: ToolContext,
    configured: Config,
    prompter: ScriptedPrompter,
    mocker: MagicMock,
) -> None:
    """Verifies that a failed push switches back and deletes the new branch."""
    ctx.repo.current_branch.return_value = "main"
    mocker.patch("backup_tool.ops.commit_and_push", return_value=False)
    prompter.answers = ["my experiment", ""]

    assert ops.backup_to_new_branch(ctx) is False

    ctx.repo.create_branch.assert_called_once_with("my-experiment")
    assert ctx.repo.method_calls[-2:] == [
        call.checkout("main"),
        call.delete_branch("my-experiment"),
    ]


def test_backup_to_new_branch_default_message(
    ctx: ToolContext,
    configured: Config,
    prompter: ScriptedPrompter,
    mocker: MagicMock,
) -> None:
    """Verifies the default commit message for a new branch."""
    ctx.repo.current_branch.return_value = "main"
    commit = mocker.patch("backup_tool.ops.commit_and_push", return_value=True)
    prompter.answers = ["feature", ""]

    assert ops.backup_to_new_branch(ctx) is True

    commit.assert_called_once_with(
        ctx, "Initial commit for new branch feature", "feature", configured.project_name
    )
    ctx.repo.delete_branch.assert_not_called()


def test_display_sync_status_no_remote_sets_upstream(ctx: ToolContext) -> None:
    """Verifies that a branch missing on the remote is pushed with upstream tracking."""
    ops.display_sync_status(ctx, _status(SyncState.NO_REMOTE), "feature", "Test")
    ctx.repo.push.assert_called_once_with("feature", set_upstream=True)


@pytest.mark.parametrize(
    "state",
    [SyncState.UPTODATE, SyncState.BEHIND, SyncState.DIVERGED, SyncState.ERROR],
)
def test_display_sync_status_does_not_push(ctx: ToolContext, state: SyncState) -> None:
    """Verifies that only ahead and new branches are pushed automatically."""
    ops.display_sync_status(ctx, _status(state), "main", "Test")
    ctx.repo.push.assert_not_called()


def test_pull_changes(ctx: ToolContext) -> None:
    """Verifies that the current branch is pulled from origin."""
    ctx.repo.current_branch.return_value = "main"

    assert ops.pull_changes(ctx) is True
    ctx.repo.pull.assert_called_once_with("main")


def test_init_creates_default_config(ctx: ToolContext, mocker: MagicMock) -> None:
    """Scenario: no config + init creates one named after the project directory."""
    mocker.patch("backup_tool.ops.identity.setup_git_repo", return_value=True)
    mocker.patch("backup_tool.ops.identity.setup_git_identity", return_value=True)
    mocker.patch("backup_tool.ops.identity.setup_gh_cli", return_value=True)
    ctx.gh.current_login.return_value = "octocat"
    mocker.patch(
        "backup_tool.ops.remote.setup_remote_repo",
        return_value="https://github.com/octocat/my-project.git",
    )

    assert ops.init_backup(ctx) is True

    conf = Config.load(ctx.config_path)
    assert conf is not None
    assert conf.project_name == "my-project"
    assert conf.github_username == "octocat"


def test_init_syncs_project_name(ctx: ToolContext, mocker: MagicMock) -> None:
    """Verifies that a stale project name is replaced by the directory name."""
    Config(project_name="old-name", github_username="octocat").save(ctx.config_path)
    mocker.patch("backup_tool.ops.identity.setup_git_repo", return_value=False)

    assert ops.init_backup(ctx) is False

    conf = Config.load(ctx.config_path)
    assert conf is not None
    assert conf.project_name == "my-project"


def test_init_reports_incomplete_remote(ctx: ToolContext, mocker: MagicMock) -> None:
    """Verifies that setup fails when no remote repository could be linked."""
    mocker.patch("backup_tool.ops.identity.setup_git_repo", return_value=True)
    mocker.patch("backup_tool.ops.identity.setup_git_identity", return_value=True)
    mocker.patch("backup_tool.ops.identity.setup_gh_cli", return_value=True)
    mocker.patch("backup_tool.ops.identity.record_github_username", return_value=True)
    mocker.patch("backup_tool.ops.remote.setup_remote_repo", return_value=None)

    assert ops.init_backup(ctx) is False
