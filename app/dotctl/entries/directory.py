"""Directory entries."""

import copy
import stat
import tarfile
from pathlib import Path

from dotctl.entries.base import Entry, lstat_if_exists
from dotctl.entries.models import DirectoryConcreteValue, EntryType
from dotctl.system.accessor import FileSystem
from dotctl.system.mutator import Mutator


class Directory(Entry):
    """Target state of a directory.

    A directory does not own the entries below it. For ``exact``
    directories, removal of unmanaged children is done by the reconcile
    step, which knows the full set of target names.

    Attributes:
        perm: Permission bits before the umask is applied.
        exact: Remove destination children that have no entry.
    """

    entry_type = EntryType.DIRECTORY

    def __init__(
        self,
        source_name: str,
        target_name: str,
        *,
        perm: int = 0o777,
        exact: bool = False,
    ) -> None:
        super().__init__(source_name, target_name)
        self.perm = perm
        self.exact = exact

    def apply(
        self,
        fs: FileSystem,
        mutator: Mutator,
        dest_dir: Path,
        umask: int,
        *,
        force: bool = False,
    ) -> None:
        path = self.target_path(dest_dir)
        perm = self.perm & ~umask

        info = lstat_if_exists(fs, path)
        if info is None:
            mutator.mkdir(path, perm)
            return

        if stat.S_ISDIR(info.st_mode):
            if stat.S_IMODE(info.st_mode) != perm:
                mutator.chmod(path, perm)
            return

        self._check_conflict(path, info, force)
        mutator.mkdir(path, perm)

    def evaluate(self) -> None:
        # Nothing is computed lazily for directories
        return None

    def concrete_value(
        self,
        dest_dir: Path,
        source_dir: Path,
        recursive: bool = False,
    ) -> DirectoryConcreteValue:
        return DirectoryConcreteValue(
            source_path=str(self.source_path(source_dir)),
            target_path=str(self.target_path(dest_dir)),
            exact=self.exact,
            perm=self.perm,
        )

    def archive(
        self,
        writer: tarfile.TarFile,
        header_template: tarfile.TarInfo,
        umask: int,
    ) -> None:
        header = copy.copy(header_template)
        header.name = self.target_name
        header.type = tarfile.DIRTYPE
        header.mode = self.perm & ~umask
        header.size = 0
        writer.addfile(header)
