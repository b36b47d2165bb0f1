"""Filesystem mutators.

A Mutator is the only component allowed to change the destination or
source filesystem. Entries and the capture workflow receive one as a
parameter so that dry-run and verbose variants can be substituted without
changing their logic.
"""

import logging
import os
import shlex
import shutil
import stat
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console

from dotctl.utils.shell import run_interactive

logger = logging.getLogger(__name__)


class ScriptError(OSError):
    """Raised when a script run by a mutator exits with a non-zero status."""


@dataclass(frozen=True, slots=True)
class MutatorOperation:
    """A single side effect requested from a mutator.

    Attributes:
        action: Mutator method name (e.g. "write_symlink").
        path: Path the operation applies to.
        command: Equivalent shell command, for display.
    """

    action: str
    path: str
    command: str


class Mutator(ABC):
    """Abstract base class for all mutators.

    Every method raises an ``OSError`` subclass on failure.
    """

    @abstractmethod
    def write_symlink(self, target: str, path: Path) -> None:
        """Make path a symlink to target, replacing whatever is there."""

    @abstractmethod
    def write_file(self, path: Path, contents: bytes, perm: int) -> None:
        """Make path a regular file with contents and permission bits perm."""

    @abstractmethod
    def mkdir(self, path: Path, perm: int) -> None:
        """Create directory path with permission bits perm."""

    @abstractmethod
    def chmod(self, path: Path, perm: int) -> None:
        """Set the permission bits of path."""

    @abstractmethod
    def remove_all(self, path: Path) -> None:
        """Remove path and, for directories, everything below it."""

    @abstractmethod
    def rename(self, old: Path, new: Path) -> None:
        """Rename old to new."""

    @abstractmethod
    def run_script(self, name: str, contents: bytes, cwd: Path) -> None:
        """Execute contents as a script named name in directory cwd."""


def describe(action: str, *args: object) -> MutatorOperation:
    """Build the MutatorOperation describing a mutator call.

    Args:
        action: Mutator method name.
        *args: Positional arguments of the call.

    Returns:
        MutatorOperation with a shell-equivalent command.
    """
    q = shlex.quote
    if action == "write_symlink":
        target, path = args
        command = f"ln -sf {q(str(target))} {q(str(path))}"
    elif action == "write_file":
        path, contents, perm = args
        command = f"install -m {perm:o} /dev/null {q(str(path))}  # {len(contents)} bytes"  # type: ignore[arg-type]
    elif action == "mkdir":
        path, perm = args
        command = f"mkdir -m {perm:o} {q(str(path))}"
    elif action == "chmod":
        path, perm = args
        command = f"chmod {perm:o} {q(str(path))}"
    elif action == "remove_all":
        (path,) = args
        command = f"rm -rf {q(str(path))}"
    elif action == "rename":
        old, path = args
        command = f"mv {q(str(old))} {q(str(path))}"
    elif action == "run_script":
        path, _contents, cwd = args
        command = f"cd {q(str(cwd))} && ./{q(str(path))}"
    else:
        msg = f"Unknown mutator action: {action}"
        raise ValueError(msg)
    return MutatorOperation(action=action, path=str(path), command=command)


class FsMutator(Mutator):
    """Mutator that performs operations on the real filesystem."""

    def write_symlink(self, target: str, path: Path) -> None:
        self._clear(path)
        os.symlink(target, path)

    def write_file(self, path: Path, contents: bytes, perm: int) -> None:
        """Write the file atomically via a temporary file and os.replace()."""
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)

        tmp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="wb",
                dir=path.parent,
                delete=False,
                prefix=f".{path.name}.",
                suffix=".tmp",
            ) as f:
                tmp_path = Path(f.name)
                f.write(contents)
            os.chmod(tmp_path, perm)
            os.replace(tmp_path, path)
        except OSError:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise

    def mkdir(self, path: Path, perm: int) -> None:
        if os.path.lexists(path) and not (path.is_dir() and not path.is_symlink()):
            path.unlink()
        os.mkdir(path, perm)
        # os.mkdir() applies the process umask; set the exact bits requested
        os.chmod(path, perm)

    def chmod(self, path: Path, perm: int) -> None:
        os.chmod(path, perm)

    def remove_all(self, path: Path) -> None:
        self._clear(path)

    def rename(self, old: Path, new: Path) -> None:
        os.rename(old, new)

    def run_script(self, name: str, contents: bytes, cwd: Path) -> None:
        with tempfile.TemporaryDirectory(prefix="dotctl-script-") as tmpdir:
            script_path = Path(tmpdir) / Path(name).name
            script_path.write_bytes(contents)
            os.chmod(script_path, stat.S_IRWXU)
            workdir = cwd if cwd.is_dir() else None
            logger.debug("Running script %s in %s", name, workdir)
            returncode = run_interactive([str(script_path)], cwd=workdir)
        if returncode != 0:
            msg = f"Script {name} exited with status {returncode}"
            raise ScriptError(msg)

    @staticmethod
    def _clear(path: Path) -> None:
        """Remove path if it exists, without following a final symlink."""
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        elif os.path.lexists(path):
            path.unlink()


class DryRunMutator(Mutator):
    """Mutator that records operations instead of performing them.

    Attributes:
        operations: Every operation requested so far, in order.
    """

    def __init__(self) -> None:
        self.operations: list[MutatorOperation] = []

    def _record(self, action: str, *args: object) -> None:
        operation = describe(action, *args)
        logger.info("Dry-run: would %s", operation.command)
        self.operations.append(operation)

    def write_symlink(self, target: str, path: Path) -> None:
        self._record("write_symlink", target, path)

    def write_file(self, path: Path, contents: bytes, perm: int) -> None:
        self._record("write_file", path, contents, perm)

    def mkdir(self, path: Path, perm: int) -> None:
        self._record("mkdir", path, perm)

    def chmod(self, path: Path, perm: int) -> None:
        self._record("chmod", path, perm)

    def remove_all(self, path: Path) -> None:
        self._record("remove_all", path)

    def rename(self, old: Path, new: Path) -> None:
        self._record("rename", old, new)

    def run_script(self, name: str, contents: bytes, cwd: Path) -> None:
        self._record("run_script", name, contents, cwd)


class VerboseMutator(Mutator):
    """Mutator that prints each operation before delegating it.

    Args:
        wrapped: Mutator that performs (or records) the operation.
        console: Rich console used for output.
    """

    def __init__(self, wrapped: Mutator, console: Console) -> None:
        self._wrapped = wrapped
        self._console = console

    @property
    def wrapped(self) -> Mutator:
        """Mutator that operations are forwarded to."""
        return self._wrapped

    def _show(self, action: str, *args: object) -> None:
        operation = describe(action, *args)
        self._console.print(operation.command, style="changed", markup=False, highlight=False)

    def write_symlink(self, target: str, path: Path) -> None:
        self._show("write_symlink", target, path)
        self._wrapped.write_symlink(target, path)

    def write_file(self, path: Path, contents: bytes, perm: int) -> None:
        self._show("write_file", path, contents, perm)
        self._wrapped.write_file(path, contents, perm)

    def mkdir(self, path: Path, perm: int) -> None:
        self._show("mkdir", path, perm)
        self._wrapped.mkdir(path, perm)

    def chmod(self, path: Path, perm: int) -> None:
        self._show("chmod", path, perm)
        self._wrapped.chmod(path, perm)

    def remove_all(self, path: Path) -> None:
        self._show("remove_all", path)
        self._wrapped.remove_all(path)

    def rename(self, old: Path, new: Path) -> None:
        self._show("rename", old, new)
        self._wrapped.rename(old, new)

    def run_script(self, name: str, contents: bytes, cwd: Path) -> None:
        self._show("run_script", name, contents, cwd)
        self._wrapped.run_script(name, contents, cwd)
