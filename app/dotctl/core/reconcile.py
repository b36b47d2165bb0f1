"""Apply orchestration for a set of entries.

Entries are applied in target-name order, so a directory is always in
place before its children. Failures are isolated per entry.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from dotctl.entries import Directory, EntryError, TargetEntry
from dotctl.source import EncryptionError, SourceStateError, TemplateError
from dotctl.system.accessor import FileSystem
from dotctl.system.mutator import Mutator

logger = logging.getLogger(__name__)

# Errors that fail a single entry without stopping the run
APPLY_ERRORS = (OSError, EntryError, SourceStateError, TemplateError, EncryptionError)


class UnmanagedTargetError(Exception):
    """Raised when a requested target has no entry in the source state."""


@dataclass(frozen=True, slots=True)
class ApplyResult:
    """Result of applying (or evaluating) a single entry.

    Attributes:
        target_name: Target name of the entry.
        success: Whether the operation completed successfully.
        error: Error message if the operation failed, None otherwise.
    """

    target_name: str
    success: bool
    error: str | None = None


def select_entries(
    entries: Mapping[str, TargetEntry],
    target_names: Iterable[str],
    recursive: bool = True,
) -> list[TargetEntry]:
    """Pick the entries for the requested target names.

    Args:
        entries: All entries, keyed by target name.
        target_names: Requested names; empty selects everything.
        recursive: Also select entries below requested directories.

    Returns:
        Selected entries in target-name order, without duplicates.

    Raises:
        UnmanagedTargetError: If a requested name has no entry.
    """
    names = list(target_names)
    if not names:
        return [entries[name] for name in sorted(entries)]

    selected: set[str] = set()
    for name in names:
        if name not in entries:
            raise UnmanagedTargetError(f"{name}: not managed")
        selected.add(name)
        if recursive:
            prefix = name + "/"
            selected.update(other for other in entries if other.startswith(prefix))
    return [entries[name] for name in sorted(selected)]


def evaluate_entries(entries: Iterable[TargetEntry]) -> list[ApplyResult]:
    """Resolve every lazily computed attribute of entries.

    Returns:
        One ApplyResult per entry, in input order.
    """
    results: list[ApplyResult] = []
    for entry in entries:
        try:
            entry.evaluate()
        except APPLY_ERRORS as e:
            logger.debug("Evaluating %s failed", entry.target_name, exc_info=True)
            results.append(ApplyResult(entry.target_name, success=False, error=str(e)))
        else:
            results.append(ApplyResult(entry.target_name, success=True))
    return results


def apply_entries(
    entries: Iterable[TargetEntry],
    fs: FileSystem,
    mutator: Mutator,
    dest_dir: Path,
    umask: int,
    *,
    force: bool = False,
) -> list[ApplyResult]:
    """Apply entries in target-name order.

    Args:
        entries: Entries to apply.
        fs: Read-only filesystem accessor.
        mutator: Performs every change.
        dest_dir: Destination root directory.
        umask: Permission bits cleared from created objects.
        force: Replace destination objects of a different kind.

    Returns:
        One ApplyResult per entry, in the order applied.
    """
    results: list[ApplyResult] = []
    for entry in sorted(entries, key=lambda e: e.target_name):
        try:
            entry.apply(fs, mutator, dest_dir, umask, force=force)
        except APPLY_ERRORS as e:
            logger.debug("Applying %s failed", entry.target_name, exc_info=True)
            results.append(ApplyResult(entry.target_name, success=False, error=str(e)))
        else:
            results.append(ApplyResult(entry.target_name, success=True))
    return results


def remove_exact_extras(
    entries: Mapping[str, TargetEntry],
    fs: FileSystem,
    mutator: Mutator,
    dest_dir: Path,
    *,
    is_ignored: Callable[[str], bool] | None = None,
) -> list[ApplyResult]:
    """Remove unmanaged children of exact directories.

    Ignored children are never removed. A missing exact directory has no
    children to remove.

    Args:
        entries: All entries, keyed by target name.
        fs: Read-only filesystem accessor.
        mutator: Performs every removal.
        dest_dir: Destination root directory.
        is_ignored: Predicate over target names.

    Returns:
        One ApplyResult per removed (or failed) child.
    """
    results: list[ApplyResult] = []
    for name in sorted(entries):
        directory = entries[name]
        if not isinstance(directory, Directory) or not directory.exact:
            continue
        path = directory.target_path(dest_dir)
        try:
            names = fs.listdir(path)
        except FileNotFoundError:
            continue
        except OSError as e:
            results.append(ApplyResult(directory.target_name, success=False, error=str(e)))
            continue

        for child_name in names:
            child = str(PurePosixPath(directory.target_name) / child_name)
            if child in entries or (is_ignored is not None and is_ignored(child)):
                continue
            try:
                mutator.remove_all(path / child_name)
            except OSError as e:
                results.append(ApplyResult(child, success=False, error=str(e)))
            else:
                logger.debug("Removed unmanaged %s", child)
                results.append(ApplyResult(child, success=True))
    return results
