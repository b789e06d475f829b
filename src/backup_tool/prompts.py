"""Interactive prompting, kept apart from the operations that ask questions.

Operations talk to a `Prompter`; the CLI supplies `ConsolePrompter`, tests
supply canned answers.
"""

from typing import Protocol

from rich.console import Console
from rich.prompt import Confirm, Prompt


class Prompter(Protocol):
    """The questions an operation may put to the operator."""

    def ask(self, question: str) -> str:
        """Returns the operator's stripped free-text answer (may be empty)."""
        ...

    def confirm(self, question: str) -> bool:
        """Returns True if the operator answered yes."""
        ...


class ConsolePrompter:
    """Prompts on the terminal using rich."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def ask(self, question: str) -> str:
        answer = Prompt.ask(question, console=self.console, default="", show_default=False)
        return answer.strip()

    def confirm(self, question: str) -> bool:
        return Confirm.ask(question, console=self.console, default=False)
