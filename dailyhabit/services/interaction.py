"""
User interaction capability.

Tracker actions that need the user (naming a new habit, confirming a
delete) ask through this interface instead of a concrete UI.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional


class UserInteraction(ABC):

    @abstractmethod
    def prompt_text(self, message: str) -> Optional[str]:
        """Ask for a line of text; None when the user cancels"""

    @abstractmethod
    def confirm(self, message: str) -> bool:
        """Yes/no question"""


class ConsoleInteraction(UserInteraction):
    """Terminal prompts for the CLI"""

    def __init__(self, input_fn: Optional[Callable[[str], str]] = None):
        self._input = input_fn or input

    def prompt_text(self, message: str) -> Optional[str]:
        try:
            return self._input(f"{message} ")
        except EOFError:
            return None

    def confirm(self, message: str) -> bool:
        answer = self.prompt_text(f"{message} [y/N]")
        return (answer or "").strip().lower() in ("y", "yes")


class PresetInteraction(UserInteraction):
    """Answers fixed up front, e.g. from an HTTP request body"""

    def __init__(self, text: Optional[str] = None, confirmed: bool = False):
        self.text = text
        self.confirmed = confirmed
        self.prompts = []

    def prompt_text(self, message: str) -> Optional[str]:
        self.prompts.append(message)
        return self.text

    def confirm(self, message: str) -> bool:
        self.prompts.append(message)
        return self.confirmed
