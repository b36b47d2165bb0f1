"""Ignore patterns for target paths.

Target paths matching a pattern in ``.dotctlignore`` (at the root of the
source directory) are neither applied nor captured.

Pattern syntax: one glob per line (fnmatch semantics, ``*`` also matches
``/``), ``#`` starts a comment, a leading ``!`` re-includes a path. Later
patterns win. A pattern matches a path when it matches the path itself or
any of its leading directories, so ignoring ``.cache`` covers
``.cache/foo`` as well.
"""

import fnmatch
import logging
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)


class IgnoreMatcher:
    """Matches relative target paths against ignore patterns.

    Args:
        patterns: Pattern lines, in file order.
    """

    def __init__(self, patterns: Iterable[str] = ()) -> None:
        self._rules: list[tuple[str, bool]] = []
        for raw in patterns:
            self.add(raw)

    def add(self, pattern: str) -> None:
        """Add one pattern line; blank lines and comments are ignored."""
        line = pattern.strip()
        if not line or line.startswith("#"):
            return
        include = line.startswith("!")
        if include:
            line = line[1:]
        line = line.strip("/")
        if line:
            self._rules.append((line, include))

    @classmethod
    def from_file(cls, path: Path) -> "IgnoreMatcher":
        """Load patterns from an ignore file; a missing file matches nothing.

        Raises:
            OSError: If the file exists but cannot be read.
        """
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return cls()
        matcher = cls(text.splitlines())
        logger.debug("Loaded %d ignore pattern(s) from %s", len(matcher), path)
        return matcher

    def __len__(self) -> int:
        return len(self._rules)

    def match(self, relative_path: str) -> bool:
        """Check if relative_path is ignored.

        Args:
            relative_path: Slash-separated path relative to the destination root.

        Returns:
            True if the last matching pattern is not a negation.
        """
        path = PurePosixPath(relative_path.strip("/"))
        if not path.parts:
            return False
        candidates = [str(path), *(str(parent) for parent in path.parents if parent.parts)]

        ignored = False
        for pattern, include in self._rules:
            if any(fnmatch.fnmatchcase(candidate, pattern) for candidate in candidates):
                ignored = not include
        return ignored
