"""Shell execution utilities.

Two ways to run external programs: captured (for tools such as gpg whose
output dotctl reads) and interactive (for user scripts that talk to the
terminal).
"""

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a captured command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0


def _environment(extra: dict[str, str] | None) -> dict[str, str] | None:
    return {**os.environ, **extra} if extra else None


def run_command(
    args: list[str],
    *,
    timeout: float | None = 60.0,
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Run a command with its output captured.

    A non-zero exit status is reported through the result, not raised.

    Args:
        args: Command and arguments to execute.
        timeout: Maximum time in seconds to wait for the command.
        cwd: Working directory, defaults to the current directory.
        env: Variables added to the current environment.

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        subprocess.TimeoutExpired: If the command exceeds timeout.
        FileNotFoundError: If the executable is not found.
    """
    logger.debug("Running %s", args[0])
    result = subprocess.run(
        args,
        capture_output=True,
        text=True,
        check=False,
        timeout=timeout,
        cwd=cwd,
        env=_environment(env),
    )
    return CommandResult(
        stdout=result.stdout,
        stderr=result.stderr,
        returncode=result.returncode,
    )


def command_exists(name: str) -> bool:
    """Check if a command exists in the system PATH."""
    return shutil.which(name) is not None


def run_interactive(
    args: list[str],
    *,
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
) -> int:
    """Run a command attached to the user's terminal.

    Args:
        args: Command and arguments to execute.
        cwd: Working directory, defaults to the current directory.
        env: Variables added to the current environment.

    Returns:
        Exit code of the command.

    Raises:
        OSError: If the command cannot be executed.
    """
    logger.debug("Running %s interactively", args[0])
    return subprocess.run(args, check=False, cwd=cwd, env=_environment(env)).returncode
