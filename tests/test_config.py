"""Tests for the JSON configuration store."""

import json
import logging
from pathlib import Path

import pytest
from hypothesis import given
from hypothesis import strategies as st

from backup_tool.config import Config, ConfigError
from backup_tool.constants import DEFAULT_IGNORES, TOOL_VERSION


def test_config_defaults(tmp_path: Path) -> None:
    """Verifies that the default config mirrors the project directory."""
    project = tmp_path / "awesome-app"
    project.mkdir()

    conf = Config.default(project)

    assert conf.project_name == "awesome-app"
    assert conf.github_username == ""
    assert conf.backup_branch == "main"
    assert conf.max_backup_attempts == 5
    assert conf.auto_ignore_files == DEFAULT_IGNORES
    assert conf.version == TOOL_VERSION
    assert len(conf.created_at) == len("2024-01-01 00:00:00")


def test_default_ignore_list_is_not_shared() -> None:
    """Verifies that mutating one config's ignore list leaves the defaults alone."""
    a, b = Config(), Config()
    a.auto_ignore_files.append("*.bak")
    assert "*.bak" not in b.auto_ignore_files
    assert "*.bak" not in DEFAULT_IGNORES


def test_save_writes_camel_case_json(tmp_path: Path) -> None:
    """Verifies the on-disk key names and indentation."""
    path = tmp_path / "backupTool" / "backup-config.json"
    Config(project_name="demo", github_username="octocat").save(path)

    raw = path.read_text()
    data = json.loads(raw)
    assert set(data) == {
        "projectName",
        "githubUsername",
        "backupBranch",
        "autoIgnoreFiles",
        "maxBackupAttempts",
        "createdAt",
        "version",
    }
    assert data["githubUsername"] == "octocat"
    assert '\n  "projectName": "demo"' in raw


def test_load_missing_returns_none(tmp_path: Path) -> None:
    """Verifies that a missing config file is reported as None."""
    assert Config.load(tmp_path / "nope.json") is None


@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]", '{"projectName": '])
def test_load_invalid_raises(tmp_path: Path, content: str) -> None:
    """Verifies that unusable files raise ConfigError rather than passing silently."""
    path = tmp_path / "backup-config.json"
    path.write_text(content)

    with pytest.raises(ConfigError):
        Config.load(path)


def test_load_ignores_unknown_keys(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """Verifies that unknown keys are warned about and missing keys take defaults."""
    caplog.set_level(logging.WARNING)
    path = tmp_path / "backup-config.json"
    path.write_text(json.dumps({"projectName": "demo", "colour": "blue"}))

    conf = Config.load(path)

    assert conf is not None
    assert conf.project_name == "demo"
    assert conf.backup_branch == "main"
    assert "Unknown config keys: colour" in caplog.text


text = st.text(max_size=30)


@given(
    project_name=text,
    github_username=text,
    backup_branch=text,
    auto_ignore_files=st.lists(text, max_size=5),
    max_backup_attempts=st.integers(min_value=0, max_value=1000),
    created_at=text,
    version=text,
)
def test_config_round_trip(
    tmp_path_factory: pytest.TempPathFactory,
    project_name: str,
    github_username: str,
    backup_branch: str,
    auto_ignore_files: list[str],
    max_backup_attempts: int,
    created_at: str,
    version: str,
) -> None:
    """Property: writing a config and reading it back yields an identical record."""
    path = tmp_path_factory.mktemp("conf") / "backup-config.json"
    original = Config(
        project_name=project_name,
        github_username=github_username,
        backup_branch=backup_branch,
        auto_ignore_files=auto_ignore_files,
        max_backup_attempts=max_backup_attempts,
        created_at=created_at,
        version=version,
    )

    original.save(path)
    loaded = Config.load(path)

    assert loaded == original
    assert json.loads(path.read_text()) == original.to_dict()
