"""Read-only filesystem access.

Wraps the handful of queries the entries and the capture workflow need
(lstat, readlink, directory listing, pre-order walk) behind one class so
that tests and alternative roots can substitute their own implementation.
"""

import logging
import os
import stat
from collections.abc import Callable
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class VisitResult(Enum):
    """Decision returned by a walk visitor for each visited path.

    Attributes:
        CONTINUE: Keep walking, descending into the path if it is a directory.
        SKIP_SUBTREE: Do not descend into this directory; continue with siblings.
        ABORT: Stop the whole walk. Not an error.
    """

    CONTINUE = "continue"
    SKIP_SUBTREE = "skip_subtree"
    ABORT = "abort"


# visit(path, info, error): info is None when lstat failed, error is set
# when lstat or a directory listing failed.
Visitor = Callable[[Path, os.stat_result | None, OSError | None], VisitResult]


class FileSystem:
    """Read-only view of the local filesystem."""

    def lstat(self, path: Path) -> os.stat_result:
        """Return metadata for path without following a final symlink."""
        return os.lstat(path)

    def stat(self, path: Path) -> os.stat_result:
        """Return metadata for path, following symlinks."""
        return os.stat(path)

    def readlink(self, path: Path) -> str:
        """Return the value of the symlink at path."""
        return os.readlink(path)

    def read_bytes(self, path: Path) -> bytes:
        """Return the full contents of the file at path."""
        return Path(path).read_bytes()

    def listdir(self, path: Path) -> list[str]:
        """Return the names in directory path, sorted."""
        return sorted(os.listdir(path))

    def walk(self, root: Path, visit: Visitor) -> bool:
        """Walk the tree rooted at root in pre-order.

        Siblings are visited in sorted name order so that prompting and
        partial failures are deterministic. Symlinks are reported but never
        followed. Failures to lstat a path or list a directory are passed to
        the visitor, which may raise to fail the walk or return a result to
        recover. Exceptions raised by the visitor propagate unchanged.

        Args:
            root: Path to start from.
            visit: Callback invoked for each path.

        Returns:
            False if a visitor returned ``VisitResult.ABORT``, True otherwise.
        """
        try:
            info = self.lstat(root)
        except OSError as e:
            return visit(root, None, e) is not VisitResult.ABORT
        return self._walk(root, info, visit) is not VisitResult.ABORT

    def _walk(self, path: Path, info: os.stat_result, visit: Visitor) -> VisitResult:
        result = visit(path, info, None)
        if result is VisitResult.ABORT:
            return result
        if result is VisitResult.SKIP_SUBTREE or not stat.S_ISDIR(info.st_mode):
            return VisitResult.CONTINUE

        try:
            names = self.listdir(path)
        except OSError as e:
            logger.debug("Cannot list directory %s: %s", path, e)
            if visit(path, info, e) is VisitResult.ABORT:
                return VisitResult.ABORT
            return VisitResult.CONTINUE

        for name in names:
            child = path / name
            try:
                child_info = self.lstat(child)
            except OSError as e:
                if visit(child, None, e) is VisitResult.ABORT:
                    return VisitResult.ABORT
                continue
            if self._walk(child, child_info, visit) is VisitResult.ABORT:
                return VisitResult.ABORT

        return VisitResult.CONTINUE
