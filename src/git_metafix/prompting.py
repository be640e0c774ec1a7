"""Terminal prompting adapters.

The workflow never talks to the terminal directly; it asks a ``Prompter``.
The CLI supplies ``ClickPrompter`` (or ``NonInteractivePrompter`` for
``--no-input``), tests supply scripted answers.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

import click

from .errors import InvalidInputError


class Prompter(ABC):
    """Source of answers for the interactive parts of the workflow."""

    interactive = True

    def __init__(self, assume_yes: bool = False):
        self.assume_yes = assume_yes

    @abstractmethod
    def ask(self, message: str, default: Optional[str] = None) -> str:
        """Read one line; empty input yields ``default`` (or "")."""

    @abstractmethod
    def confirm(self, message: str) -> bool:
        """Yes/no question, defaulting to no."""

    @abstractmethod
    def choose(self, message: str, options: List[str]) -> str:
        """Show numbered ``options`` and return the raw answer."""

    def confirm_risky(self, message: str) -> bool:
        """Confirmation that ``--yes`` answers automatically."""
        if self.assume_yes:
            return True
        return self.confirm(message)


class ClickPrompter(Prompter):
    """Prompts on the terminal through click."""

    def ask(self, message: str, default: Optional[str] = None) -> str:
        value = click.prompt(
            message,
            default=default if default is not None else "",
            show_default=bool(default),
        )
        return str(value).strip()

    def confirm(self, message: str) -> bool:
        return click.confirm(message, default=False)

    def choose(self, message: str, options: List[str]) -> str:
        click.echo(message)
        for index, option in enumerate(options, start=1):
            click.echo(f"{index}) {option}")
        keys = "/".join(str(i) for i in range(1, len(options) + 1))
        return self.ask(f"Enter your choice ({keys})")


class NonInteractivePrompter(Prompter):
    """Never reads the terminal: questions fail, confirmations decline."""

    interactive = False

    def ask(self, message: str, default: Optional[str] = None) -> str:
        if default is not None:
            return default
        raise InvalidInputError(f"Input required but prompting is disabled: {message}")

    def confirm(self, message: str) -> bool:
        return False

    def choose(self, message: str, options: List[str]) -> str:
        raise InvalidInputError(
            "No identity values given and prompting is disabled "
            "(use --old-email/--new-email and/or --old-name/--new-name)"
        )
