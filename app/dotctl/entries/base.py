"""Abstract base class for target-state entries.

This module defines the Entry interface that every entry kind (file,
directory, symlink, script) must implement, plus the errors entries raise.
"""

import os
import stat
import tarfile
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import ClassVar

from dotctl.entries.models import ConcreteValue, EntryType
from dotctl.system.accessor import FileSystem
from dotctl.system.mutator import Mutator


class EntryError(Exception):
    """Base exception for entry errors."""


class EntryConflictError(EntryError):
    """Raised when the destination holds an object of a different kind.

    Attributes:
        path: Destination path in conflict.
        wanted: Kind of entry that should occupy the path.
        found: Kind of object found there.
    """

    def __init__(self, path: Path, wanted: EntryType, found: str) -> None:
        self.path = path
        self.wanted = wanted
        self.found = found
        super().__init__(
            f"{path}: is a {found}, not a {wanted.value} (use --force to replace it)"
        )


def validate_name(name: str, label: str) -> str:
    """Check that name is a non-empty relative path that stays inside its root.

    Args:
        name: Relative slash-separated path.
        label: Name of the attribute, for error messages.

    Returns:
        The name unchanged.

    Raises:
        ValueError: If name is empty, absolute, or contains a ".." segment.
    """
    if not name:
        msg = f"{label} cannot be empty"
        raise ValueError(msg)
    path = PurePosixPath(name)
    if path.is_absolute() or ".." in path.parts or name in (".", "./"):
        msg = f"{label} must be a relative path inside its root, got {name!r}"
        raise ValueError(msg)
    return name


def lstat_if_exists(fs: FileSystem, path: Path) -> os.stat_result | None:
    """Lstat path, treating a missing path as a normal result.

    Returns:
        Metadata for path, or None if it does not exist.

    Raises:
        OSError: For any failure other than the path not existing.
    """
    try:
        return fs.lstat(path)
    except FileNotFoundError:
        return None


def kind_of(info: os.stat_result) -> str:
    """Human-readable kind of the object described by info."""
    mode = info.st_mode
    if stat.S_ISLNK(mode):
        return "symlink"
    if stat.S_ISDIR(mode):
        return "directory"
    if stat.S_ISREG(mode):
        return "file"
    return "special file"


class Entry(ABC):
    """Abstract base class for all target-state entries.

    An entry describes one desired object in the destination directory and
    knows where it lives in the source directory. Both names are fixed at
    construction; only lazily-evaluated attributes change afterwards.

    Attributes:
        entry_type: Kind of entry, set by each subclass.

    Example:
        >>> entry = Symlink("symlink_dot_vimrc", ".vimrc", link_name=".config/vim/vimrc")
        >>> entry.apply(FileSystem(), FsMutator(), Path.home(), 0o022)
    """

    entry_type: ClassVar[EntryType]

    def __init__(self, source_name: str, target_name: str) -> None:
        """Initialize the entry.

        Args:
            source_name: Path relative to the source directory.
            target_name: Path relative to the destination directory.

        Raises:
            ValueError: If either name is empty or escapes its root.
        """
        self._source_name = validate_name(source_name, "source name")
        self._target_name = validate_name(target_name, "target name")

    @property
    def source_name(self) -> str:
        """Path of this entry relative to the source directory."""
        return self._source_name

    @property
    def target_name(self) -> str:
        """Path of this entry relative to the destination directory."""
        return self._target_name

    def target_path(self, dest_dir: Path) -> Path:
        """Absolute destination path of this entry."""
        return dest_dir / self._target_name

    def source_path(self, source_dir: Path) -> Path:
        """Absolute source path of this entry."""
        return source_dir / self._source_name

    @abstractmethod
    def apply(
        self,
        fs: FileSystem,
        mutator: Mutator,
        dest_dir: Path,
        umask: int,
        *,
        force: bool = False,
    ) -> None:
        """Bring the destination object into conformance with this entry.

        Idempotent: when the destination already matches, no mutator
        method is called.

        Args:
            fs: Read-only filesystem accessor.
            mutator: Performs every change.
            dest_dir: Destination root directory.
            umask: Permission bits cleared from created objects.
            force: Replace a destination object of a different kind.

        Raises:
            EntryConflictError: If an object of another kind is in the way
                and force is not set.
            OSError: If a filesystem query or mutation fails.
            Exception: If a lazily-evaluated attribute fails to resolve.
        """

    @abstractmethod
    def evaluate(self) -> None:
        """Resolve every lazily-computed attribute without touching the destination.

        Raises:
            Exception: The first evaluation failure.
        """

    @abstractmethod
    def concrete_value(
        self,
        dest_dir: Path,
        source_dir: Path,
        recursive: bool = False,
    ) -> ConcreteValue:
        """Return a read-only snapshot of this entry's resolved state.

        Args:
            dest_dir: Destination root directory.
            source_dir: Source root directory.
            recursive: Include contained entries where a kind has any.

        Returns:
            Frozen ConcreteValue for this entry kind.
        """

    @abstractmethod
    def archive(
        self,
        writer: tarfile.TarFile,
        header_template: tarfile.TarInfo,
        umask: int,
    ) -> None:
        """Write this entry to a tar stream.

        Args:
            writer: Open tar file to write to.
            header_template: Header with owner and time fields to clone.
            umask: Permission bits cleared from archived modes.
        """

    def _check_conflict(self, path: Path, info: os.stat_result, force: bool) -> None:
        """Raise unless force allows replacing the object described by info."""
        if not force:
            raise EntryConflictError(path, self.entry_type, kind_of(info))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(source_name={self._source_name!r}, "
            f"target_name={self._target_name!r})"
        )
