"""Source name attributes.

Entries in the source directory encode their target state in their
names. A directory ``private_dot_ssh`` becomes ``~/.ssh`` with mode 0700;
a file ``executable_dot_profile.tmpl`` becomes an executable
``~/.profile`` rendered from a template.

Prefixes are recognised in this order:

- directories: ``exact_``, ``private_``, then ``dot_``
- scripts: ``run_``, ``once_``, then ``dot_``
- symlinks: ``symlink_``, then ``dot_``
- files: ``encrypted_``, ``private_``, ``empty_``, ``executable_``, then ``dot_``

and a ``.tmpl`` suffix marks a template for every kind except directories.
"""

from dataclasses import dataclass
from enum import Enum

DOT_PREFIX = "dot_"
EMPTY_PREFIX = "empty_"
ENCRYPTED_PREFIX = "encrypted_"
EXACT_PREFIX = "exact_"
EXECUTABLE_PREFIX = "executable_"
ONCE_PREFIX = "once_"
PRIVATE_PREFIX = "private_"
RUN_PREFIX = "run_"
SYMLINK_PREFIX = "symlink_"
TEMPLATE_SUFFIX = ".tmpl"


class SourceFileKind(str, Enum):
    """Kind of entry a source file describes."""

    FILE = "file"
    SYMLINK = "symlink"
    SCRIPT = "script"


def _strip_prefix(name: str, prefix: str) -> tuple[str, bool]:
    if name.startswith(prefix):
        return name[len(prefix) :], True
    return name, False


def decode_dot(name: str) -> str:
    """Turn a leading ``dot_`` into ``.``."""
    rest, found = _strip_prefix(name, DOT_PREFIX)
    return "." + rest if found else name


def encode_dot(name: str) -> str:
    """Turn a leading ``.`` into ``dot_``."""
    return DOT_PREFIX + name[1:] if name.startswith(".") else name


@dataclass(frozen=True, slots=True)
class DirAttributes:
    """Attributes of a source directory.

    Attributes:
        name: Target name component (e.g. ".ssh").
        exact: Remove unmanaged children of the target directory.
        private: Target directory is only accessible by its owner.
    """

    name: str
    exact: bool = False
    private: bool = False

    @property
    def perm(self) -> int:
        """Permission bits before the umask is applied."""
        return 0o700 if self.private else 0o777

    @property
    def source_name(self) -> str:
        """Source name component encoding these attributes."""
        prefix = ""
        if self.exact:
            prefix += EXACT_PREFIX
        if self.private:
            prefix += PRIVATE_PREFIX
        return prefix + encode_dot(self.name)

    @classmethod
    def parse(cls, source_name: str) -> "DirAttributes":
        """Parse a source directory name component."""
        name, exact = _strip_prefix(source_name, EXACT_PREFIX)
        name, private = _strip_prefix(name, PRIVATE_PREFIX)
        return cls(name=decode_dot(name), exact=exact, private=private)


@dataclass(frozen=True, slots=True)
class FileAttributes:
    """Attributes of a source file.

    Attributes:
        name: Target name component (e.g. ".bashrc").
        kind: Whether the file describes a file, symlink, or script.
        empty: Keep the target file even when empty.
        encrypted: Source contents are encrypted.
        executable: Target file is executable.
        once: Script runs once per distinct content.
        private: Target file is only accessible by its owner.
        template: Source contents are a template.
    """

    name: str
    kind: SourceFileKind = SourceFileKind.FILE
    empty: bool = False
    encrypted: bool = False
    executable: bool = False
    once: bool = False
    private: bool = False
    template: bool = False

    @property
    def perm(self) -> int:
        """Permission bits before the umask is applied."""
        perm = 0o777 if self.executable else 0o666
        if self.private:
            perm &= 0o700
        return perm

    @property
    def source_name(self) -> str:
        """Source name component encoding these attributes."""
        prefix = ""
        if self.kind is SourceFileKind.SCRIPT:
            prefix = RUN_PREFIX + (ONCE_PREFIX if self.once else "")
        elif self.kind is SourceFileKind.SYMLINK:
            prefix = SYMLINK_PREFIX
        else:
            if self.encrypted:
                prefix += ENCRYPTED_PREFIX
            if self.private:
                prefix += PRIVATE_PREFIX
            if self.empty:
                prefix += EMPTY_PREFIX
            if self.executable:
                prefix += EXECUTABLE_PREFIX
        suffix = TEMPLATE_SUFFIX if self.template else ""
        return prefix + encode_dot(self.name) + suffix

    @classmethod
    def parse(cls, source_name: str) -> "FileAttributes":
        """Parse a source file name component."""
        name = source_name
        kind = SourceFileKind.FILE
        empty = encrypted = executable = once = private = False

        name, is_script = _strip_prefix(name, RUN_PREFIX)
        if is_script:
            kind = SourceFileKind.SCRIPT
            name, once = _strip_prefix(name, ONCE_PREFIX)
        else:
            name, is_symlink = _strip_prefix(name, SYMLINK_PREFIX)
            if is_symlink:
                kind = SourceFileKind.SYMLINK
            else:
                name, encrypted = _strip_prefix(name, ENCRYPTED_PREFIX)
                name, private = _strip_prefix(name, PRIVATE_PREFIX)
                name, empty = _strip_prefix(name, EMPTY_PREFIX)
                name, executable = _strip_prefix(name, EXECUTABLE_PREFIX)

        template = name.endswith(TEMPLATE_SUFFIX)
        if template:
            name = name[: -len(TEMPLATE_SUFFIX)]

        return cls(
            name=decode_dot(name),
            kind=kind,
            empty=empty,
            encrypted=encrypted,
            executable=executable,
            once=once,
            private=private,
            template=template,
        )
