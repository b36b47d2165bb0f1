"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import logging
import os
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from dotctl.source import IgnoreMatcher, SourceState, TemplateRenderer
from dotctl.system import DryRunMutator, FileSystem, FsMutator


class ScriptedPrompter:
    """Prompter that replays a fixed list of answers.

    Attributes:
        messages: Every prompt message received, in order.
    """

    def __init__(self, answers: list[str]) -> None:
        self._answers = list(answers)
        self.messages: list[str] = []

    def prompt(self, message: str, choices: str) -> str:
        self.messages.append(message)
        if not self._answers:
            raise AssertionError(f"Unexpected prompt: {message}")
        return self._answers.pop(0)


@pytest.fixture
def fs() -> FileSystem:
    """Real filesystem accessor."""
    return FileSystem()


@pytest.fixture
def recorder() -> DryRunMutator:
    """Mutator that records operations without performing them."""
    return DryRunMutator()


@pytest.fixture
def fs_mutator() -> FsMutator:
    """Mutator that changes the real filesystem."""
    return FsMutator()


@pytest.fixture
def dest_dir(tmp_path: Path) -> Path:
    """Empty destination directory."""
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Empty source directory."""
    path = tmp_path / "source"
    path.mkdir()
    return path


@pytest.fixture
def make_state(source_dir: Path, dest_dir: Path):
    """Factory for SourceState instances over the tmp directories."""

    def _make(
        patterns: list[str] | None = None,
        data: dict[str, object] | None = None,
        **kwargs: object,
    ) -> SourceState:
        return SourceState(
            source_dir,
            dest_dir,
            ignore=IgnoreMatcher(patterns or []),
            renderer=TemplateRenderer(data or {}),
            data=data,
            **kwargs,  # type: ignore[arg-type]
        )

    return _make


@pytest.fixture
def isolated_xdg(tmp_path: Path) -> Iterator[Path]:
    """Point every XDG directory into tmp_path."""
    with patch.dict(
        os.environ,
        {
            "XDG_CONFIG_HOME": str(tmp_path / "xdg-config"),
            "XDG_STATE_HOME": str(tmp_path / "xdg-state"),
            "XDG_DATA_HOME": str(tmp_path / "xdg-data"),
        },
    ):
        yield tmp_path


@pytest.fixture
def cli_args(isolated_xdg: Path, source_dir: Path, dest_dir: Path) -> list[str]:
    """Global options pointing the CLI at the tmp source and destination."""
    return ["-S", str(source_dir), "-D", str(dest_dir)]


@pytest.fixture(autouse=True)
def reset_dotctl_logger() -> Iterator[None]:
    """Undo the logging setup done by CLI invocations."""
    yield
    logger = logging.getLogger("dotctl")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def scripted_prompter() -> type[ScriptedPrompter]:
    """The ScriptedPrompter class, for building prompters with answers."""
    return ScriptedPrompter
