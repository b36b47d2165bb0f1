"""Regular file entries."""

import copy
import io
import stat
import tarfile
from collections.abc import Callable
from pathlib import Path

from dotctl.entries.base import Entry, lstat_if_exists
from dotctl.entries.lazy import Lazy
from dotctl.entries.models import EntryType, FileConcreteValue
from dotctl.system.accessor import FileSystem
from dotctl.system.mutator import Mutator


class File(Entry):
    """Target state of a regular file.

    A file whose contents are empty and that is not marked ``empty`` is
    absent from the target state: applying it removes an existing file.

    Attributes:
        perm: Permission bits before the umask is applied.
        empty: Keep the file even when its contents are empty.
        encrypted: Contents are stored encrypted in the source directory.
        template: Contents come from a template.
    """

    entry_type = EntryType.FILE

    def __init__(
        self,
        source_name: str,
        target_name: str,
        *,
        contents: bytes | Callable[[], bytes],
        perm: int = 0o666,
        empty: bool = False,
        encrypted: bool = False,
        template: bool = False,
    ) -> None:
        super().__init__(source_name, target_name)
        self.perm = perm
        self.empty = empty
        self.encrypted = encrypted
        self.template = template
        self._contents: Lazy[bytes] = (
            Lazy(contents) if callable(contents) else Lazy.of(contents)
        )

    def contents(self) -> bytes:
        """Return the file contents, evaluating them on first call."""
        return self._contents.get()

    @property
    def is_absent(self) -> bool:
        """Check if the resolved contents mean the file should not exist."""
        return not self.contents() and not self.empty

    def apply(
        self,
        fs: FileSystem,
        mutator: Mutator,
        dest_dir: Path,
        umask: int,
        *,
        force: bool = False,
    ) -> None:
        contents = self.contents()
        path = self.target_path(dest_dir)
        perm = self.perm & ~umask

        info = lstat_if_exists(fs, path)

        if self.is_absent:
            # Only a regular file is ours to remove
            if info is not None and stat.S_ISREG(info.st_mode):
                mutator.remove_all(path)
            return

        if info is None:
            mutator.write_file(path, contents, perm)
            return

        if not stat.S_ISREG(info.st_mode):
            self._check_conflict(path, info, force)
            mutator.write_file(path, contents, perm)
            return

        if info.st_size == len(contents) and fs.read_bytes(path) == contents:
            if stat.S_IMODE(info.st_mode) != perm:
                mutator.chmod(path, perm)
            return

        mutator.write_file(path, contents, perm)

    def evaluate(self) -> None:
        self.contents()

    def concrete_value(
        self,
        dest_dir: Path,
        source_dir: Path,
        recursive: bool = False,
    ) -> FileConcreteValue:
        contents = self.contents()
        return FileConcreteValue(
            source_path=str(self.source_path(source_dir)),
            target_path=str(self.target_path(dest_dir)),
            empty=self.empty,
            encrypted=self.encrypted,
            perm=self.perm,
            template=self.template,
            contents=contents.decode("utf-8", errors="replace"),
        )

    def archive(
        self,
        writer: tarfile.TarFile,
        header_template: tarfile.TarInfo,
        umask: int,
    ) -> None:
        contents = self.contents()
        if self.is_absent:
            return
        header = copy.copy(header_template)
        header.name = self.target_name
        header.type = tarfile.REGTYPE
        header.mode = self.perm & ~umask
        header.size = len(contents)
        writer.addfile(header, io.BytesIO(contents))
