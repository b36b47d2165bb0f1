"""Interactive prompting for the capture workflow."""

import typer

from dotctl.core.capture import PromptError
from dotctl.utils.formatting import print_warning


class TerminalPrompter:
    """Asks single-character questions on the terminal.

    Re-asks until the answer is one of the offered characters. End of
    input or Ctrl-C raises PromptError.
    """

    def prompt(self, message: str, choices: str) -> str:
        while True:
            try:
                answer = typer.prompt(
                    f"{message} [{choices}]",
                    default="",
                    show_default=False,
                )
            except typer.Abort as e:
                raise PromptError("prompt aborted") from e
            answer = answer.strip().lower()
            if len(answer) == 1 and answer in choices:
                return answer
            print_warning(f"Please answer one of: {', '.join(choices)}")
