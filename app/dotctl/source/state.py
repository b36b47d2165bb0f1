"""Source state: the entries described by the source directory.

The source directory mirrors the destination tree, with target attributes
encoded in each name (see ``dotctl.source.attributes``). Loading builds
one entry per target path with lazily bound contents; adding captures a
destination object by writing the matching source object through a
mutator.
"""

import logging
import os
import stat
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from dotctl.core.state import ScriptStateManager
from dotctl.entries import Directory, File, Script, Symlink, TargetEntry
from dotctl.source.attributes import DirAttributes, FileAttributes, SourceFileKind
from dotctl.source.encryption import Encryptor, NoEncryptor
from dotctl.source.ignore import IgnoreMatcher
from dotctl.source.templates import TemplateRenderer, auto_template
from dotctl.system.accessor import FileSystem, VisitResult
from dotctl.system.mutator import Mutator

logger = logging.getLogger(__name__)


class SourceStateError(Exception):
    """Raised when the source directory is inconsistent or cannot hold an entry."""


@dataclass(frozen=True, slots=True)
class AddOptions:
    """How destination objects are captured into the source state.

    Attributes:
        empty: Capture empty files (as ``empty_`` files).
        encrypt: Store file contents encrypted.
        exact: Mark captured directories as exact.
        template: Mark captured files and symlinks as templates.
        auto_template: Replace template data values with variables; implies template.
    """

    empty: bool = False
    encrypt: bool = False
    exact: bool = False
    template: bool = False
    auto_template: bool = False

    @property
    def is_template(self) -> bool:
        return self.template or self.auto_template


class SourceState:
    """Entries of a source directory, keyed by target name.

    Args:
        source_dir: Absolute source directory.
        dest_dir: Absolute destination directory.
        umask: Permission bits cleared from source objects written by add.
        ignore: Matcher for ignored target names.
        renderer: Renderer for ``.tmpl`` entries.
        encryptor: Backend for ``encrypted_`` files.
        script_state: Store of completed run-once scripts.
        data: User template data, replaced by variables when auto-templating.
    """

    def __init__(
        self,
        source_dir: Path,
        dest_dir: Path,
        *,
        umask: int = 0o022,
        ignore: IgnoreMatcher | None = None,
        renderer: TemplateRenderer | None = None,
        encryptor: Encryptor | None = None,
        script_state: ScriptStateManager | None = None,
        data: Mapping[str, object] | None = None,
    ) -> None:
        self._source_dir = source_dir
        self._dest_dir = dest_dir
        self._umask = umask
        self._ignore = ignore or IgnoreMatcher()
        self._renderer = renderer or TemplateRenderer({})
        self._encryptor = encryptor or NoEncryptor()
        self._script_state = script_state
        self._data = dict(data or {})
        self._entries: dict[str, TargetEntry] = {}

    @property
    def source_dir(self) -> Path:
        return self._source_dir

    @property
    def dest_dir(self) -> Path:
        return self._dest_dir

    @property
    def ignore(self) -> IgnoreMatcher:
        return self._ignore

    @property
    def renderer(self) -> TemplateRenderer:
        return self._renderer

    @property
    def entries(self) -> Mapping[str, TargetEntry]:
        """Read-only view of the entries, keyed by target name."""
        return self._entries

    def sorted_entries(self) -> list[TargetEntry]:
        """Entries in target-name order (parents before children)."""
        return [self._entries[name] for name in sorted(self._entries)]

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, fs: FileSystem) -> None:
        """Read the source directory into entries.

        Names starting with ``.`` are reserved for dotctl's own files and
        version control, and are skipped. Entries whose target name is
        ignored are dropped. File payloads are not read until needed.

        Raises:
            SourceStateError: If two source objects describe the same target.
            OSError: If the source directory cannot be walked.
        """
        self._entries.clear()
        if not self._source_dir.exists():
            logger.debug("Source directory %s does not exist", self._source_dir)
            return

        # Target name of each visited source directory
        dir_targets: dict[Path, str] = {self._source_dir: ""}

        def visit(
            path: Path, info: os.stat_result | None, error: OSError | None
        ) -> VisitResult:
            if error is not None:
                raise error
            if info is None:
                raise SourceStateError(f"{path}: no metadata")
            if path == self._source_dir:
                return VisitResult.CONTINUE
            if path.name.startswith("."):
                return VisitResult.SKIP_SUBTREE

            parent_target = dir_targets[path.parent]
            source_name = path.relative_to(self._source_dir).as_posix()

            if stat.S_ISDIR(info.st_mode):
                dir_attrs = DirAttributes.parse(path.name)
                target_name = _join(parent_target, dir_attrs.name)
                if self._ignore.match(target_name):
                    logger.debug("Ignoring %s", target_name)
                    return VisitResult.SKIP_SUBTREE
                dir_targets[path] = target_name
                self._put(
                    Directory(
                        source_name,
                        target_name,
                        perm=dir_attrs.perm,
                        exact=dir_attrs.exact,
                    )
                )
                return VisitResult.CONTINUE

            if not stat.S_ISREG(info.st_mode):
                logger.warning("Skipping unsupported source object %s", path)
                return VisitResult.CONTINUE

            file_attrs = FileAttributes.parse(path.name)
            target_name = _join(parent_target, file_attrs.name)
            if self._ignore.match(target_name):
                logger.debug("Ignoring %s", target_name)
                return VisitResult.CONTINUE
            self._put(self._entry_from_source(fs, source_name, target_name, file_attrs))
            return VisitResult.CONTINUE

        fs.walk(self._source_dir, visit)
        logger.debug("Loaded %d entries from %s", len(self._entries), self._source_dir)

    def _entry_from_source(
        self,
        fs: FileSystem,
        source_name: str,
        target_name: str,
        attrs: FileAttributes,
    ) -> TargetEntry:
        path = self._source_dir / source_name
        if attrs.kind is SourceFileKind.SYMLINK:
            return Symlink(
                source_name,
                target_name,
                link_name=self._link_loader(fs, path, attrs),
                template=attrs.template,
            )
        if attrs.kind is SourceFileKind.SCRIPT:
            return Script(
                source_name,
                target_name,
                contents=self._contents_loader(fs, path, attrs),
                once=attrs.once,
                template=attrs.template,
                state=self._script_state,
            )
        return File(
            source_name,
            target_name,
            contents=self._contents_loader(fs, path, attrs),
            perm=attrs.perm,
            empty=attrs.empty,
            encrypted=attrs.encrypted,
            template=attrs.template,
        )

    def _contents_loader(
        self, fs: FileSystem, path: Path, attrs: FileAttributes
    ) -> Callable[[], bytes]:
        def load() -> bytes:
            contents = fs.read_bytes(path)
            if attrs.encrypted:
                contents = self._encryptor.decrypt(contents)
            if attrs.template:
                contents = self._renderer.render_bytes(str(path), contents)
            return contents

        return load

    def _link_loader(
        self, fs: FileSystem, path: Path, attrs: FileAttributes
    ) -> Callable[[], str]:
        def load() -> str:
            try:
                link_name = fs.read_bytes(path).decode("utf-8")
            except UnicodeDecodeError:
                raise SourceStateError(f"{path}: symlink target is not valid UTF-8") from None
            # A single trailing newline is not part of the target
            link_name = link_name.removesuffix("\n")
            if attrs.template:
                link_name = self._renderer.render(str(path), link_name).removesuffix("\n")
            if not link_name:
                raise SourceStateError(f"{path}: empty symlink target")
            return link_name

        return load

    def _put(self, entry: TargetEntry) -> None:
        existing = self._entries.get(entry.target_name)
        if existing is not None and existing.source_name != entry.source_name:
            raise SourceStateError(
                f"{entry.target_name}: described by both {existing.source_name} "
                f"and {entry.source_name}"
            )
        self._entries[entry.target_name] = entry

    # ------------------------------------------------------------------
    # Adding
    # ------------------------------------------------------------------

    def target_name_of(self, dest_path: Path) -> str:
        """Return dest_path relative to the destination directory.

        Raises:
            ValueError: If dest_path is outside the destination directory.
        """
        try:
            relative = dest_path.relative_to(self._dest_dir)
        except ValueError:
            msg = f"{dest_path}: not in destination directory {self._dest_dir}"
            raise ValueError(msg) from None
        return relative.as_posix() if relative.parts else ""

    def add(
        self,
        fs: FileSystem,
        options: AddOptions,
        dest_path: Path,
        info: os.stat_result | None,
        follow: bool,
        mutator: Mutator,
    ) -> bool:
        """Capture the destination object at dest_path into the source state.

        Missing parent directories are captured first. Re-adding an object
        whose attributes changed renames its source object; re-adding an
        unchanged object writes nothing.

        Args:
            fs: Read-only filesystem accessor.
            options: Capture options.
            dest_path: Absolute path inside the destination directory.
            info: Metadata of dest_path if already known (from a walk).
            follow: Capture what a symlink points to instead of the link.
            mutator: Performs every change to the source directory.

        Returns:
            True if dest_path is now part of the source state, False if
            there was nothing to capture (the destination directory itself,
            or an empty file without options.empty).

        Raises:
            ValueError: If dest_path is outside the destination directory.
            SourceStateError: If the source state cannot hold the object.
            EncryptionError: If encryption was requested and fails.
            OSError: If reading the destination or writing the source fails.
        """
        target_name = self.target_name_of(dest_path)
        if not target_name:
            logger.debug("Not adding the destination directory itself")
            return False

        if info is None or (follow and stat.S_ISLNK(info.st_mode)):
            info = fs.stat(dest_path) if follow else fs.lstat(dest_path)

        parent_source = self._ensure_parent(fs, options, target_name, mutator)
        name = PurePosixPath(target_name).name
        mode = info.st_mode

        if stat.S_ISDIR(mode):
            self._add_dir(fs, target_name, parent_source, name, info, options, mutator)
        elif stat.S_ISREG(mode):
            return self._add_file(
                fs, target_name, parent_source, name, dest_path, info, options, mutator
            )
        elif stat.S_ISLNK(mode):
            self._add_symlink(fs, target_name, parent_source, name, dest_path, options, mutator)
        else:
            raise SourceStateError(f"{dest_path}: unsupported file type")
        return True

    def _ensure_parent(
        self,
        fs: FileSystem,
        options: AddOptions,
        target_name: str,
        mutator: Mutator,
    ) -> str:
        """Add the parent directory of target_name if needed; return its source name."""
        parent = PurePosixPath(target_name).parent
        if not parent.parts:
            return ""
        parent_name = parent.as_posix()
        entry = self._entries.get(parent_name)
        if entry is None:
            self.add(fs, options, self._dest_dir / parent_name, None, False, mutator)
            entry = self._entries[parent_name]
        if not isinstance(entry, Directory):
            raise SourceStateError(f"{parent_name}: already added and not a directory")
        return entry.source_name

    def _add_dir(
        self,
        fs: FileSystem,
        target_name: str,
        parent_source: str,
        name: str,
        info: os.stat_result,
        options: AddOptions,
        mutator: Mutator,
    ) -> None:
        existing = self._entries.get(target_name)
        if existing is not None and not isinstance(existing, Directory):
            raise SourceStateError(f"{target_name}: already added and not a directory")

        attrs = DirAttributes(
            name=name,
            exact=options.exact,
            private=stat.S_IMODE(info.st_mode) & 0o077 == 0,
        )
        source_name = _join(parent_source, attrs.source_name)
        path = self._source_dir / source_name

        if existing is None:
            mutator.mkdir(path, 0o777 & ~self._umask)
        elif existing.source_name != source_name:
            old_path = self._source_dir / existing.source_name
            logger.debug("Renaming %s to %s", old_path, path)
            mutator.rename(old_path, path)
            self._rebase(fs, existing.source_name, source_name)

        self._entries[target_name] = Directory(
            source_name, target_name, perm=attrs.perm, exact=attrs.exact
        )

    def _rebase(self, fs: FileSystem, old_prefix: str, new_prefix: str) -> None:
        """Point entries below a renamed source directory at their new source names."""
        for target_name, entry in list(self._entries.items()):
            if not entry.source_name.startswith(old_prefix + "/"):
                continue
            source_name = new_prefix + entry.source_name[len(old_prefix) :]
            if isinstance(entry, Directory):
                rebased: TargetEntry = Directory(
                    source_name, target_name, perm=entry.perm, exact=entry.exact
                )
            else:
                attrs = FileAttributes.parse(PurePosixPath(source_name).name)
                rebased = self._entry_from_source(fs, source_name, target_name, attrs)
            self._entries[target_name] = rebased

    def _source_equals(self, fs: FileSystem, source_name: str, stored: bytes) -> bool:
        try:
            return fs.read_bytes(self._source_dir / source_name) == stored
        except FileNotFoundError:
            # Not written yet, e.g. below a directory renamed in a dry run
            return False

    def _add_file(
        self,
        fs: FileSystem,
        target_name: str,
        parent_source: str,
        name: str,
        dest_path: Path,
        info: os.stat_result,
        options: AddOptions,
        mutator: Mutator,
    ) -> bool:
        contents = fs.read_bytes(dest_path)
        if not contents and not options.empty:
            logger.info("Skipping empty file %s", dest_path)
            return False

        perm = stat.S_IMODE(info.st_mode)
        attrs = FileAttributes(
            name=name,
            kind=SourceFileKind.FILE,
            empty=not contents,
            encrypted=options.encrypt,
            executable=perm & 0o111 != 0,
            private=perm & 0o077 == 0,
            template=options.is_template,
        )

        stored = contents
        if options.auto_template:
            text = contents.decode("utf-8")
            stored = auto_template(text, self._data).encode("utf-8")

        existing = self._entries.get(target_name)
        if existing is not None and not isinstance(existing, File):
            raise SourceStateError(f"{target_name}: already added and not a regular file")

        source_name = _join(parent_source, attrs.source_name)
        if (
            isinstance(existing, File)
            and existing.source_name == source_name
            and not attrs.encrypted
            and self._source_equals(fs, source_name, stored)
        ):
            return True

        if attrs.encrypted:
            stored = self._encryptor.encrypt(stored)

        self._write_source(existing, source_name, stored, mutator)
        self._entries[target_name] = File(
            source_name,
            target_name,
            contents=contents,
            perm=attrs.perm,
            empty=attrs.empty,
            encrypted=attrs.encrypted,
            template=attrs.template,
        )
        return True

    def _add_symlink(
        self,
        fs: FileSystem,
        target_name: str,
        parent_source: str,
        name: str,
        dest_path: Path,
        options: AddOptions,
        mutator: Mutator,
    ) -> None:
        link_name = fs.readlink(dest_path)
        attrs = FileAttributes(
            name=name,
            kind=SourceFileKind.SYMLINK,
            template=options.is_template,
        )
        stored = link_name
        if options.auto_template:
            stored = auto_template(link_name, self._data)

        existing = self._entries.get(target_name)
        if existing is not None and not isinstance(existing, Symlink):
            raise SourceStateError(f"{target_name}: already added and not a symlink")

        source_name = _join(parent_source, attrs.source_name)
        if (
            isinstance(existing, Symlink)
            and existing.source_name == source_name
            and self._source_equals(fs, source_name, stored.encode("utf-8"))
        ):
            return

        self._write_source(existing, source_name, stored.encode("utf-8"), mutator)
        self._entries[target_name] = Symlink(
            source_name, target_name, link_name=link_name, template=attrs.template
        )

    def _write_source(
        self,
        existing: TargetEntry | None,
        source_name: str,
        contents: bytes,
        mutator: Mutator,
    ) -> None:
        path = self._source_dir / source_name
        if existing is not None and existing.source_name != source_name:
            old_path = self._source_dir / existing.source_name
            logger.debug("Renaming %s to %s", old_path, path)
            mutator.rename(old_path, path)
        mutator.write_file(path, contents, 0o666 & ~self._umask)


def _join(parent: str, name: str) -> str:
    return f"{parent}/{name}" if parent else name
