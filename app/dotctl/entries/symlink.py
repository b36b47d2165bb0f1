"""Symlink entries."""

import copy
import stat
import tarfile
from collections.abc import Callable
from pathlib import Path

from dotctl.entries.base import Entry, lstat_if_exists
from dotctl.entries.lazy import Lazy
from dotctl.entries.models import EntryType, SymlinkConcreteValue
from dotctl.system.accessor import FileSystem
from dotctl.system.mutator import Mutator


class Symlink(Entry):
    """Target state of a symlink.

    The link target is either given directly or computed on first use by
    a callable (typically rendering a template). The callable runs at most
    once per instance; its value or its exception is cached.

    Attributes:
        template: Whether the link target comes from a template.
    """

    entry_type = EntryType.SYMLINK

    def __init__(
        self,
        source_name: str,
        target_name: str,
        *,
        link_name: str | Callable[[], str],
        template: bool = False,
    ) -> None:
        """Initialize the symlink entry.

        Args:
            source_name: Path relative to the source directory.
            target_name: Path relative to the destination directory.
            link_name: Link target, or a callable that computes it.
            template: Whether the link target comes from a template.
        """
        super().__init__(source_name, target_name)
        self.template = template
        self._link_name: Lazy[str] = (
            Lazy(link_name) if callable(link_name) else Lazy.of(link_name)
        )

    def link_name(self) -> str:
        """Return the link target, evaluating it on first call.

        Raises:
            Exception: Whatever the evaluation raised, on every call.
        """
        return self._link_name.get()

    def apply(
        self,
        fs: FileSystem,
        mutator: Mutator,
        dest_dir: Path,
        umask: int,
        *,
        force: bool = False,
    ) -> None:
        """Ensure the destination path is a symlink to link_name().

        An existing symlink with the right target is left alone. A symlink
        with another target is replaced. Any other kind of object is only
        replaced when force is set.
        """
        target = self.link_name()
        path = self.target_path(dest_dir)

        info = lstat_if_exists(fs, path)
        if info is not None:
            if stat.S_ISLNK(info.st_mode):
                if fs.readlink(path) == target:
                    return
            else:
                self._check_conflict(path, info, force)

        mutator.write_symlink(target, path)

    def evaluate(self) -> None:
        self.link_name()

    def concrete_value(
        self,
        dest_dir: Path,
        source_dir: Path,
        recursive: bool = False,
    ) -> SymlinkConcreteValue:
        link_name = self.link_name()
        return SymlinkConcreteValue(
            source_path=str(self.source_path(source_dir)),
            target_path=str(self.target_path(dest_dir)),
            template=self.template,
            link_name=link_name,
        )

    def archive(
        self,
        writer: tarfile.TarFile,
        header_template: tarfile.TarInfo,
        umask: int,
    ) -> None:
        link_name = self.link_name()
        header = copy.copy(header_template)
        header.name = self.target_name
        header.type = tarfile.SYMTYPE
        header.linkname = link_name
        writer.addfile(header)
