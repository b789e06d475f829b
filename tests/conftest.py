"""Shared fixtures for the backup tool test suite."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from backup_tool.config import Config
from backup_tool.context import ToolContext


class ScriptedPrompter:
    """A Prompter that replays canned answers and records the questions asked."""

    def __init__(self, answers: list[str | bool] | None = None):
        self.answers = list(answers or [])
        self.questions: list[str] = []

    def _next(self, question: str) -> str | bool:
        self.questions.append(question)
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {question}")
        return self.answers.pop(0)

    def ask(self, question: str) -> str:
        return str(self._next(question))

    def confirm(self, question: str) -> bool:
        return bool(self._next(question))


@pytest.fixture
def prompter() -> ScriptedPrompter:
    return ScriptedPrompter()


@pytest.fixture
def ctx(tmp_path: Path, prompter: ScriptedPrompter) -> ToolContext:
    """A context rooted in a temporary project with mocked git and gh wrappers."""
    project = tmp_path / "my-project"
    project.mkdir()
    repo = MagicMock()
    repo.is_repo = True
    repo.path = project
    gh = MagicMock()
    return ToolContext(project, prompter=prompter, repo=repo, gh=gh)


@pytest.fixture
def configured(ctx: ToolContext) -> Config:
    """Writes a complete config for the context's project and returns it."""
    conf = Config.default(ctx.project_root)
    conf.github_username = "octocat"
    conf.save(ctx.config_path)
    return conf
