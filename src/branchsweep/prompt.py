"""Operator confirmation before mutating commands."""

from typing import Callable, Optional

from rich.console import Console
from rich.markup import escape

from branchsweep.git import CommandExecutionError, CommandRunner
from branchsweep.log import get_logger

logger = get_logger(__name__)

AskFn = Callable[[str], str]


class ConfirmationGate:
    """Asks the operator one question at a time and runs confirmed commands."""

    def __init__(
        self,
        runner: CommandRunner,
        console: Console,
        yes_token: str = "y",
        ask: Optional[AskFn] = None,
    ) -> None:
        """Initialize gate.

        Args:
            runner: Runner for confirmed commands
            console: Console that shows prompts and outcomes
            yes_token: Answers starting with this token are affirmative
            ask: Replacement for reading answers from the console
        """
        self.runner = runner
        self.console = console
        self.yes_token = yes_token.lower()
        self._ask = ask

    def ask(self, prompt: str) -> str:
        """Show ``prompt`` and block until the operator answers."""
        if self._ask is not None:
            return self._ask(prompt)
        try:
            return self.console.input(escape(prompt))
        except EOFError:
            # Closed stdin behaves like an empty answer
            logger.debug("No answer for %r, input closed", prompt)
            return ""

    def is_affirmative(self, answer: str) -> bool:
        return answer.lower().startswith(self.yes_token)

    def ask_yes_no(self, message: str) -> bool:
        return self.is_affirmative(self.ask(f"{message} ({self.yes_token}/N) "))

    def confirm_and_run(self, message: str, command: str) -> bool:
        """Ask for confirmation, then run ``command``.

        Returns:
            True only if the operator confirmed and the command succeeded
        """
        if not self.ask_yes_no(message):
            self.console.print("Operation cancelled by user.", style="warning")
            return False

        try:
            self.runner.run(command)
        except CommandExecutionError as err:
            logger.info("Command failed: %s", err.command)
            self.console.print(f"Error running command: {escape(err.message)}", style="error")
            return False
        return True
