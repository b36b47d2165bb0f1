"""Capture workflow: adding destination objects to the source state.

For each input path (recursively, when requested) the workflow checks the
ignore patterns, optionally asks the user, and hands the path to the
source state's add primitive. Failures are isolated per input path.
"""

import logging
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol

from dotctl.entries import EntryError
from dotctl.source import (
    AddOptions,
    EncryptionError,
    SourceState,
    SourceStateError,
    TemplateError,
)
from dotctl.system.accessor import FileSystem, VisitResult
from dotctl.system.mutator import Mutator
from dotctl.utils.formatting import print_warning

logger = logging.getLogger(__name__)

PROMPT_CHOICES = "ynqa"


class Choice(str, Enum):
    """Answers to the per-path prompt."""

    YES = "y"
    NO = "n"
    QUIT = "q"
    ALL = "a"


class PromptError(Exception):
    """Raised by a prompter when no answer can be obtained."""


class Prompter(Protocol):
    """Asks the user to pick one of a set of single-character choices."""

    def prompt(self, message: str, choices: str) -> str:
        """Return one character of choices.

        Raises:
            PromptError: If the user cannot be asked.
        """
        ...


# Errors that fail a single input path without stopping the workflow
CAPTURE_ERRORS = (
    OSError,
    ValueError,
    EntryError,
    SourceStateError,
    EncryptionError,
    TemplateError,
    PromptError,
)


@dataclass(frozen=True, slots=True)
class CaptureFailure:
    """An input path whose capture failed.

    Attributes:
        path: Input path as given (made absolute).
        error: Human-readable error message.
    """

    path: Path
    error: str


@dataclass
class CaptureReport:
    """Outcome of one capture run.

    Attributes:
        added: Paths handed to the add primitive, in visit order.
        skipped: Paths the user declined or with nothing to capture.
        ignored: Paths matching an ignore pattern.
        failures: Input paths whose processing failed.
        cancelled: The user quit at a prompt.
    """

    added: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    ignored: list[Path] = field(default_factory=list)
    failures: list[CaptureFailure] = field(default_factory=list)
    cancelled: bool = False

    @property
    def success(self) -> bool:
        return not self.failures


class CaptureWorkflow:
    """Adds destination paths to a source state.

    Prompting state is shared by every input path of one run: answering
    ``a`` disables prompting for the rest of the run.

    Args:
        source_state: Receives added paths.
        fs: Read-only filesystem accessor.
        mutator: Performs every change to the source directory.
        options: How objects are captured.
        recursive: Walk directories and add everything below them.
        prompt: Ask before adding each path.
        follow: Capture what symlinks point to.
        prompter: Asks the questions; required when prompt is set.
        warn: Receives one message per ignored path.
    """

    def __init__(
        self,
        source_state: SourceState,
        fs: FileSystem,
        mutator: Mutator,
        *,
        options: AddOptions | None = None,
        recursive: bool = False,
        prompt: bool = False,
        follow: bool = False,
        prompter: Prompter | None = None,
        warn: Callable[[str], None] = print_warning,
    ) -> None:
        if prompt and prompter is None:
            msg = "a prompter is required when prompting"
            raise ValueError(msg)
        self._source_state = source_state
        self._fs = fs
        self._mutator = mutator
        self._options = options or AddOptions()
        self._recursive = recursive
        self._prompting = prompt
        self._follow = follow
        self._prompter = prompter
        self._warn = warn
        self._report = CaptureReport()

    def run(self, paths: Iterable[str | Path]) -> CaptureReport:
        """Capture every input path.

        A ``q`` answer ends the whole run for non-recursive captures and
        only the active walk for recursive ones.

        Args:
            paths: Paths to capture, relative to the working directory or absolute.

        Returns:
            CaptureReport for this run.
        """
        self._report = CaptureReport()

        for arg in paths:
            path = Path(os.path.abspath(arg))
            try:
                if self._recursive:
                    if not self._fs.walk(path, self._visit):
                        logger.debug("Walk of %s cancelled", path)
                        self._report.cancelled = True
                    continue

                if self._process(path, None) is VisitResult.ABORT:
                    self._report.cancelled = True
                    break
            except CAPTURE_ERRORS as e:
                logger.debug("Capture of %s failed", path, exc_info=True)
                self._report.failures.append(CaptureFailure(path=path, error=str(e)))

        return self._report

    def _visit(
        self, path: Path, info: os.stat_result | None, error: OSError | None
    ) -> VisitResult:
        if error is not None:
            raise error
        return self._process(path, info)

    def _process(self, path: Path, info: os.stat_result | None) -> VisitResult:
        if self._is_dest_root(path):
            # The destination directory itself is never captured
            return VisitResult.CONTINUE

        if self._is_ignored(path):
            self._warn(f"Skipping path ignored by .dotctlignore: {path}")
            self._report.ignored.append(path)
            return VisitResult.SKIP_SUBTREE

        if self._prompting:
            choice = self._ask(path)
            if choice is Choice.NO:
                self._report.skipped.append(path)
                # Children of a declined directory are still offered
                return VisitResult.CONTINUE
            if choice is Choice.QUIT:
                return VisitResult.ABORT
            if choice is Choice.ALL:
                self._prompting = False

        if self._source_state.add(
            self._fs, self._options, path, info, self._follow, self._mutator
        ):
            self._report.added.append(path)
        else:
            self._report.skipped.append(path)
        return VisitResult.CONTINUE

    def _ask(self, path: Path) -> Choice:
        if self._prompter is None:
            msg = "no prompter to ask with"
            raise PromptError(msg)
        answer = self._prompter.prompt(f"Add {path}", PROMPT_CHOICES)
        try:
            return Choice(answer)
        except ValueError:
            msg = f"invalid answer {answer!r}, expected one of {PROMPT_CHOICES}"
            raise PromptError(msg) from None

    def _is_dest_root(self, path: Path) -> bool:
        return path == self._source_state.dest_dir

    def _is_ignored(self, path: Path) -> bool:
        try:
            target_name = self._source_state.target_name_of(path)
        except ValueError:
            # Outside the destination; the add primitive reports it
            return False
        return bool(target_name) and self._source_state.ignore.match(target_name)

