"""Tests for installing the tool into a project."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from hypothesis import given
from hypothesis import strategies as st

from backup_tool import installer
from backup_tool.constants import GITIGNORE_MARKER, GITIGNORE_RULES

from conftest import ScriptedPrompter

gitignore_text = st.lists(
    st.sampled_from(["node_modules/", "*.log", ".env*", "/backupTool", "dist", ""])
    | st.text(alphabet="abcdefghij*./_-", max_size=12),
    max_size=8,
).map("\n".join)


@pytest.fixture(autouse=True)
def quiet_console(mocker: MagicMock) -> None:
    mocker.patch("backup_tool.installer.console")


def test_render_gitignore_new_file() -> None:
    """Verifies the header and rule block of a freshly created .gitignore."""
    rendered = installer.render_gitignore(None)

    assert rendered.startswith("# Generated by backupTool\n\n")
    assert rendered.splitlines()[2:] == [GITIGNORE_MARKER, *GITIGNORE_RULES]


def test_render_gitignore_appends_only_missing_rules() -> None:
    """Verifies that rules already listed (with or without a slash) are not repeated."""
    rendered = installer.render_gitignore("node_modules\n/backupTool\n*.pem")

    assert rendered == (
        "node_modules\n/backupTool\n*.pem\n\n"
        f"{GITIGNORE_MARKER}\n.env*\n*.key\nconfig.local.*\n"
    )


def test_render_gitignore_marker_is_respected() -> None:
    """Verifies that a file already carrying the marker is not touched."""
    content = f"{GITIGNORE_MARKER}\n/backupTool/\n"
    assert installer.render_gitignore(content) == content


@given(gitignore_text)
def test_render_gitignore_is_idempotent(content: str) -> None:
    """Property: applying the ignore rules twice changes nothing the second time."""
    once = installer.render_gitignore(content)
    assert installer.render_gitignore(once) == once


@given(gitignore_text)
def test_render_gitignore_covers_every_rule(content: str) -> None:
    """Property: the result ignores every rule the tool needs."""
    lines = {line.strip() for line in installer.render_gitignore(content).splitlines()}
    for rule in GITIGNORE_RULES:
        assert rule in lines or rule.rstrip("/") in lines


def test_update_gitignore_reports_change(tmp_path: Path) -> None:
    """Verifies that only the first update reports a change."""
    assert installer.update_gitignore(tmp_path) is True
    assert installer.update_gitignore(tmp_path) is False
    assert GITIGNORE_MARKER in (tmp_path / ".gitignore").read_text()


def test_install_copies_package_and_config(
    tmp_path: Path, prompter: ScriptedPrompter, mocker: MagicMock
) -> None:
    """Verifies the installed layout, default config and ignore rules."""
    setup = mocker.patch("backup_tool.installer.run_initial_setup")
    project = tmp_path / "site"
    project.mkdir()
    prompter.answers = [False]

    assert installer.install(f'"{project}"', prompter) is True

    tool_dir = project / "backupTool"
    assert (tool_dir / "backup_tool" / "cli.py").is_file()
    assert not (tool_dir / "backup_tool" / "__pycache__").exists()
    data = json.loads((tool_dir / "backup-config.json").read_text())
    assert data["projectName"] == "site"
    assert "/backupTool/" in (project / ".gitignore").read_text()
    setup.assert_not_called()


def test_install_overwrite_declined(
    tmp_path: Path, prompter: ScriptedPrompter
) -> None:
    """Verifies that declining the overwrite keeps the existing tool directory."""
    (tmp_path / "backupTool").mkdir()
    (tmp_path / "backupTool" / "keep.txt").write_text("x")
    prompter.answers = [False]

    assert installer.install(str(tmp_path), prompter) is False
    assert (tmp_path / "backupTool" / "keep.txt").exists()


def test_install_overwrite_runs_setup(
    tmp_path: Path, prompter: ScriptedPrompter, mocker: MagicMock
) -> None:
    """Verifies that an accepted overwrite replaces the tool directory and runs setup."""
    setup = mocker.patch("backup_tool.installer.run_initial_setup")
    (tmp_path / "backupTool").mkdir()
    (tmp_path / "backupTool" / "stale.txt").write_text("x")
    prompter.answers = [True, True]

    assert installer.install(str(tmp_path), prompter) is True
    assert not (tmp_path / "backupTool" / "stale.txt").exists()
    setup.assert_called_once_with(tmp_path.resolve())


def test_install_rejects_missing_directory(
    tmp_path: Path, prompter: ScriptedPrompter
) -> None:
    """Verifies that a non-existent target aborts the installation."""
    assert installer.install(str(tmp_path / "nope"), prompter) is False


def test_install_asks_for_target(prompter: ScriptedPrompter) -> None:
    """Verifies that an empty target is asked for and an empty answer aborts."""
    prompter.answers = [""]

    assert installer.install("", prompter) is False
    assert prompter.questions == ["Please enter the path to your project folder"]
