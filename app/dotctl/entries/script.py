"""Script entries."""

import hashlib
import tarfile
from collections.abc import Callable
from pathlib import Path

from dotctl.core.state import ScriptStateManager
from dotctl.entries.base import Entry
from dotctl.entries.lazy import Lazy
from dotctl.entries.models import EntryType, ScriptConcreteValue
from dotctl.system.accessor import FileSystem
from dotctl.system.mutator import Mutator


class Script(Entry):
    """A script run on every apply, or once per content for ``once`` scripts.

    Attributes:
        once: Run only if this exact content has not completed before.
        template: Contents come from a template.
    """

    entry_type = EntryType.SCRIPT

    def __init__(
        self,
        source_name: str,
        target_name: str,
        *,
        contents: bytes | Callable[[], bytes],
        once: bool = False,
        template: bool = False,
        state: ScriptStateManager | None = None,
    ) -> None:
        """Initialize the script entry.

        Args:
            source_name: Path relative to the source directory.
            target_name: Name of the script relative to the destination.
            contents: Script contents, or a callable that computes them.
            once: Run only once per distinct content.
            template: Contents come from a template.
            state: Store of completed run-once scripts. Without one, once
                scripts run on every apply.
        """
        super().__init__(source_name, target_name)
        self.once = once
        self.template = template
        self._state = state
        self._contents: Lazy[bytes] = (
            Lazy(contents) if callable(contents) else Lazy.of(contents)
        )

    def contents(self) -> bytes:
        """Return the script contents, evaluating them on first call."""
        return self._contents.get()

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
        if not contents.strip():
            return

        digest = hashlib.sha256(contents).hexdigest()
        if self.once and self._state is not None and self._state.has_run(digest):
            return

        mutator.run_script(self.target_name, contents, dest_dir)

        if self.once and self._state is not None:
            self._state.record_run(self.target_name, digest)

    def evaluate(self) -> None:
        self.contents()

    def concrete_value(
        self,
        dest_dir: Path,
        source_dir: Path,
        recursive: bool = False,
    ) -> ScriptConcreteValue:
        contents = self.contents()
        return ScriptConcreteValue(
            source_path=str(self.source_path(source_dir)),
            target_path=str(self.target_path(dest_dir)),
            once=self.once,
            template=self.template,
            contents=contents.decode("utf-8", errors="replace"),
        )

    def archive(
        self,
        writer: tarfile.TarFile,
        header_template: tarfile.TarInfo,
        umask: int,
    ) -> None:
        # Scripts are executed, not installed
        return None
