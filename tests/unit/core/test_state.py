"""Unit tests for ScriptStateManager.

Tests for the ScriptStateManager class that records run-once scripts.
"""

import json
import logging
from pathlib import Path

import pytest
from dotctl.core.state import ScriptRun, ScriptStateManager


class TestScriptStateManagerInit:
    """Tests for ScriptStateManager initialization."""

    def test_init_with_default_state_dir(self, isolated_xdg: Path) -> None:
        """ScriptStateManager uses the XDG state directory when none provided."""
        manager = ScriptStateManager()
        assert manager.state_path == isolated_xdg / "xdg-state" / "dotctl" / "scripts.jsonl"

    def test_state_path_property(self, tmp_path: Path) -> None:
        """state_path returns correct path."""
        manager = ScriptStateManager(state_dir=tmp_path)
        assert manager.state_path == tmp_path / "scripts.jsonl"


class TestRecordRun:
    """Tests for ScriptStateManager.record_run method."""

    @pytest.fixture
    def manager(self, tmp_path: Path) -> ScriptStateManager:
        """Create a ScriptStateManager with a nested temporary directory."""
        return ScriptStateManager(state_dir=tmp_path / "deep" / "state")

    def test_creates_file_and_directories(self, manager: ScriptStateManager) -> None:
        """record_run creates the state file and its parents."""
        manager.record_run("setup.sh", "abc")

        assert manager.state_path.exists()

    def test_writes_valid_jsonl(self, manager: ScriptStateManager) -> None:
        """Each run is one JSON line."""
        manager.record_run("a.sh", "d1")
        manager.record_run("b.sh", "d2")

        lines = manager.state_path.read_text(encoding="utf-8").splitlines()
        assert [json.loads(line)["digest"] for line in lines] == ["d1", "d2"]
        assert json.loads(lines[0])["name"] == "a.sh"

    def test_has_run(self, manager: ScriptStateManager) -> None:
        """Recorded digests are reported as run, others are not."""
        assert not manager.has_run("d1")

        manager.record_run("a.sh", "d1")

        assert manager.has_run("d1")
        assert not manager.has_run("d2")

    def test_persists_across_instances(self, manager: ScriptStateManager) -> None:
        manager.record_run("a.sh", "d1")

        assert ScriptStateManager(state_dir=manager.state_path.parent).has_run("d1")

    def test_dry_run_writes_nothing(self, tmp_path: Path) -> None:
        """In dry-run mode nothing is recorded."""
        manager = ScriptStateManager(state_dir=tmp_path, dry_run=True)

        manager.record_run("a.sh", "d1")

        assert not manager.state_path.exists()
        assert not manager.has_run("d1")


class TestGetRuns:
    """Tests for ScriptStateManager.get_runs method."""

    def test_missing_file(self, tmp_path: Path) -> None:
        assert ScriptStateManager(state_dir=tmp_path).get_runs() == []

    def test_oldest_first(self, tmp_path: Path) -> None:
        manager = ScriptStateManager(state_dir=tmp_path)
        manager.record_run("a.sh", "d1")
        manager.record_run("b.sh", "d2")

        assert [run.name for run in manager.get_runs()] == ["a.sh", "b.sh"]

    def test_skips_corrupt_lines(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        """Corrupt and incomplete lines are logged and skipped."""
        good = ScriptRun(name="a.sh", digest="d1", timestamp="2024-01-01T00:00:00+00:00")
        (tmp_path / "scripts.jsonl").write_text(
            "not json\n\n" + '{"name": "b.sh"}\n' + good.to_json_line() + "\n",
            encoding="utf-8",
        )

        with caplog.at_level(logging.WARNING):
            runs = ScriptStateManager(state_dir=tmp_path).get_runs()

        assert runs == [good]
        assert "line 1" in caplog.text
        assert "line 3" in caplog.text


class TestScriptRun:
    """Tests for ScriptRun serialization."""

    def test_json_line_round_trip(self) -> None:
        run = ScriptRun(name="a.sh", digest="d1", timestamp="2024-01-01T00:00:00+00:00")
        assert ScriptRun.from_json_line(run.to_json_line()) == run

    def test_missing_field(self) -> None:
        with pytest.raises(KeyError):
            ScriptRun.from_dict({"name": "a.sh"})
