"""Persistent state for run-once scripts.

This module provides the ScriptStateManager class, which records the
content digest of every ``run_once_`` script that completed so that it is
not run again, in a JSONL file.
"""

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from dotctl.core.paths import get_state_dir

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScriptRun:
    """Record of a completed run-once script.

    Attributes:
        name: Target name of the script.
        digest: SHA-256 hex digest of the script contents that ran.
        timestamp: When the script completed (ISO 8601 with timezone).
    """

    name: str
    digest: str
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {"name": self.name, "digest": self.digest, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScriptRun":
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
        """
        return cls(name=data["name"], digest=data["digest"], timestamp=data["timestamp"])

    def to_json_line(self) -> str:
        """Serialize to a single JSON line (no trailing newline)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json_line(cls, line: str) -> "ScriptRun":
        """Deserialize from a JSON line.

        Raises:
            json.JSONDecodeError: If line is not valid JSON.
            KeyError: If required fields are missing.
        """
        return cls.from_dict(json.loads(line.strip()))


class ScriptStateManager:
    """Manages run-once script state in a JSONL file.

    Storage location: ~/.local/state/dotctl/scripts.jsonl

    Attributes:
        state_dir: Directory containing the state file.
        dry_run: If True, never write to the state file.
    """

    STATE_FILENAME = "scripts.jsonl"

    def __init__(self, state_dir: Path | None = None, *, dry_run: bool = False) -> None:
        """Initialize ScriptStateManager.

        Args:
            state_dir: Optional override for state directory.
                      Default: ~/.local/state/dotctl
            dry_run: If True, record_run() only logs.
        """
        self._state_dir = state_dir if state_dir is not None else get_state_dir()
        self._dry_run = dry_run
        self._digests: set[str] | None = None

    @property
    def state_path(self) -> Path:
        """Path to the scripts.jsonl file."""
        return self._state_dir / self.STATE_FILENAME

    def has_run(self, digest: str) -> bool:
        """Check if a script with this content digest already completed."""
        return digest in self._load_digests()

    def record_run(self, name: str, digest: str) -> None:
        """Append a completed run to the state file.

        Args:
            name: Target name of the script.
            digest: SHA-256 hex digest of the contents that ran.

        Raises:
            OSError: If the file cannot be written.
        """
        if self._dry_run:
            logger.info("Dry-run: would record run of %s", name)
            return

        run = ScriptRun(name=name, digest=digest, timestamp=datetime.now(UTC).isoformat())
        self._state_dir.mkdir(parents=True, exist_ok=True)
        with self.state_path.open(mode="a", encoding="utf-8") as f:
            f.write(run.to_json_line() + "\n")
            f.flush()
        self._load_digests().add(digest)

    def get_runs(self) -> list[ScriptRun]:
        """Read all recorded runs, oldest first.

        Corrupt lines are logged and skipped.

        Returns:
            List of ScriptRun, empty if the file doesn't exist.
        """
        if not self.state_path.exists():
            return []

        runs: list[ScriptRun] = []
        with self.state_path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    runs.append(ScriptRun.from_json_line(line))
                except (json.JSONDecodeError, KeyError, TypeError) as e:
                    logger.warning("Skipping corrupt script state line %d: %s", line_num, e)
        return runs

    def _load_digests(self) -> set[str]:
        if self._digests is None:
            self._digests = {run.digest for run in self.get_runs()}
        return self._digests
