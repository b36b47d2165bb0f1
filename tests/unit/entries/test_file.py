"""Unit tests for File entries."""

import io
import stat
import tarfile
from pathlib import Path

import pytest
from dotctl.entries import EntryConflictError, File
from dotctl.system import DryRunMutator, FileSystem, FsMutator


def _mode(path: Path) -> int:
    return stat.S_IMODE(path.lstat().st_mode)


class TestFileApply:
    """Tests for File.apply."""

    def test_creates_missing_file(self, dest_dir: Path) -> None:
        """A missing file is written with perm minus umask."""
        entry = File("dot_bashrc", ".bashrc", contents=b"export A=1\n", perm=0o666)

        entry.apply(FileSystem(), FsMutator(), dest_dir, 0o022)

        assert (dest_dir / ".bashrc").read_bytes() == b"export A=1\n"
        assert _mode(dest_dir / ".bashrc") == 0o644

    def test_matching_file_is_left_alone(self, dest_dir: Path) -> None:
        """Equal contents and mode cause no mutation."""
        entry = File("dot_bashrc", ".bashrc", contents=b"x")
        entry.apply(FileSystem(), FsMutator(), dest_dir, 0o022)
        mutator = DryRunMutator()

        entry.apply(FileSystem(), mutator, dest_dir, 0o022)

        assert mutator.operations == []

    def test_only_mode_differs(self, dest_dir: Path) -> None:
        """Equal contents with a different mode is a chmod only."""
        target = dest_dir / ".bashrc"
        target.write_bytes(b"x")
        target.chmod(0o600)
        entry = File("dot_bashrc", ".bashrc", contents=b"x")
        mutator = DryRunMutator()

        entry.apply(FileSystem(), mutator, dest_dir, 0o022)

        assert [op.action for op in mutator.operations] == ["chmod"]

    def test_contents_differ(self, dest_dir: Path) -> None:
        """Different contents rewrite the file."""
        (dest_dir / ".bashrc").write_bytes(b"old")
        entry = File("dot_bashrc", ".bashrc", contents=b"new")

        entry.apply(FileSystem(), FsMutator(), dest_dir, 0o022)

        assert (dest_dir / ".bashrc").read_bytes() == b"new"

    def test_private_executable_mode(self, dest_dir: Path) -> None:
        """Permission bits come from the entry."""
        entry = File("private_executable_run", "run", contents=b"#!/bin/sh\n", perm=0o700)

        entry.apply(FileSystem(), FsMutator(), dest_dir, 0o022)

        assert _mode(dest_dir / "run") == 0o700

    def test_empty_contents_remove_existing_file(self, dest_dir: Path) -> None:
        """An empty file not marked empty is absent: the target is removed."""
        (dest_dir / ".hushlogin").write_bytes(b"")
        entry = File("dot_hushlogin", ".hushlogin", contents=b"")

        entry.apply(FileSystem(), FsMutator(), dest_dir, 0o022)

        assert not (dest_dir / ".hushlogin").exists()

    def test_empty_contents_missing_file_stays_missing(self, dest_dir: Path) -> None:
        """An absent file that does not exist causes no mutation."""
        entry = File("dot_hushlogin", ".hushlogin", contents=b"")
        mutator = DryRunMutator()

        entry.apply(FileSystem(), mutator, dest_dir, 0o022)

        assert mutator.operations == []

    def test_empty_attribute_keeps_empty_file(self, dest_dir: Path) -> None:
        """A file marked empty is created even with no contents."""
        entry = File("empty_dot_hushlogin", ".hushlogin", contents=b"", empty=True)

        entry.apply(FileSystem(), FsMutator(), dest_dir, 0o022)

        assert (dest_dir / ".hushlogin").read_bytes() == b""

    def test_directory_in_the_way_is_a_conflict(self, dest_dir: Path) -> None:
        """A directory in the slot is not replaced without force."""
        (dest_dir / ".bashrc").mkdir()
        entry = File("dot_bashrc", ".bashrc", contents=b"x")

        with pytest.raises(EntryConflictError):
            entry.apply(FileSystem(), DryRunMutator(), dest_dir, 0o022)

    def test_symlink_in_the_way_with_force(self, dest_dir: Path, tmp_path: Path) -> None:
        """With force, a symlink in the slot becomes a regular file."""
        elsewhere = tmp_path / "elsewhere"
        elsewhere.write_bytes(b"keep me")
        (dest_dir / ".bashrc").symlink_to(elsewhere)
        entry = File("dot_bashrc", ".bashrc", contents=b"x")

        entry.apply(FileSystem(), FsMutator(), dest_dir, 0o022, force=True)

        assert not (dest_dir / ".bashrc").is_symlink()
        assert (dest_dir / ".bashrc").read_bytes() == b"x"
        assert elsewhere.read_bytes() == b"keep me"

    def test_lazy_contents_evaluated_once(self, dest_dir: Path) -> None:
        """The contents callable runs once across apply and concrete_value."""
        calls: list[int] = []

        def contents() -> bytes:
            calls.append(1)
            return b"rendered"

        entry = File("dot_a.tmpl", ".a", contents=contents, template=True)
        entry.apply(FileSystem(), FsMutator(), dest_dir, 0o022)
        entry.concrete_value(dest_dir, dest_dir)

        assert len(calls) == 1


class TestFileConcreteValue:
    """Tests for File.concrete_value."""

    def test_fields(self, tmp_path: Path) -> None:
        """All attributes appear in the snapshot."""
        entry = File("private_dot_netrc", ".netrc", contents=b"machine x\n", perm=0o600)

        data = entry.concrete_value(tmp_path / "home", tmp_path / "src").to_dict()

        assert data["type"] == "file"
        assert data["targetPath"] == str(tmp_path / "home" / ".netrc")
        assert data["perm"] == 0o600
        assert data["contents"] == "machine x\n"
        assert data["empty"] is False
        assert data["encrypted"] is False


class TestFileArchive:
    """Tests for File.archive."""

    def test_writes_regular_member(self) -> None:
        """Contents and mode are archived."""
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w") as writer:
            File("dot_a", ".a", contents=b"hello", perm=0o666).archive(
                writer, tarfile.TarInfo(), 0o022
            )

        buffer.seek(0)
        with tarfile.open(fileobj=buffer, mode="r") as reader:
            member = reader.getmember(".a")
            extracted = reader.extractfile(member)
            assert extracted is not None
            assert extracted.read() == b"hello"
        assert member.isreg()
        assert member.mode == 0o644

    def test_absent_file_is_not_archived(self) -> None:
        """Empty files not marked empty are skipped."""
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w") as writer:
            File("dot_a", ".a", contents=b"").archive(writer, tarfile.TarInfo(), 0o022)

        buffer.seek(0)
        with tarfile.open(fileobj=buffer, mode="r") as reader:
            assert reader.getmembers() == []
