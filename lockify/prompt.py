"""Interactive prompts backed by ``click``."""
import click

from .exceptions import PromptError, ValidationError
from .vault.ports import Prompt


class ClickPrompt(Prompt):
    """Reads passphrases and entries from the terminal (prompts on stderr)."""

    def passphrase(self, message: str, confirm: bool = False) -> str:
        try:
            value = click.prompt(
                message.rstrip(": "),
                hide_input=True,
                confirmation_prompt=confirm,
                err=True,
            )
        except (click.Abort, EOFError) as err:
            raise PromptError("failed to get passphrase input") from err
        if not value:
            raise ValidationError("passphrase cannot be empty", field="passphrase")
        return value

    def key(self) -> str:
        try:
            return click.prompt("Enter key", err=True)
        except (click.Abort, EOFError) as err:
            raise PromptError("failed to get key input") from err

    def value(self, secret: bool = False) -> str:
        label = "Enter secret" if secret else "Enter value"
        try:
            return click.prompt(label, hide_input=secret, err=True)
        except (click.Abort, EOFError) as err:
            raise PromptError("failed to get value input") from err
