"""Unit tests for tar archives of the target state."""

import io
import os
import tarfile

import pytest
from dotctl.core.archive import make_header_template, write_archive
from dotctl.entries import Directory, File, Script, Symlink, TargetEntry


@pytest.fixture
def entries() -> list[TargetEntry]:
    return [
        File("dot_config/app.conf", ".config/app.conf", contents=b"a\n"),
        Script("run_setup.sh", "setup.sh", contents=b"echo\n"),
        Symlink("symlink_dot_vimrc", ".vimrc", link_name=".vim/vimrc"),
        Directory("private_dot_config", ".config", perm=0o700),
        File("dot_gone", ".gone", contents=b""),
    ]


def read_members(data: bytes, mode: str = "r") -> list[tarfile.TarInfo]:
    with tarfile.open(fileobj=io.BytesIO(data), mode=mode) as reader:
        return reader.getmembers()


class TestWriteArchive:
    """Tests for write_archive."""

    def test_members_in_order(self, entries: list[TargetEntry]) -> None:
        """Entries are written parents first; scripts and absent files are left out."""
        buffer = io.BytesIO()

        count = write_archive(entries, buffer, 0o022, header_template=make_header_template(0))

        members = read_members(buffer.getvalue())
        assert [m.name for m in members] == [".config", ".config/app.conf", ".vimrc"]
        assert count == len(entries)

    def test_modes_and_types(self, entries: list[TargetEntry]) -> None:
        buffer = io.BytesIO()

        write_archive(entries, buffer, 0o022, header_template=make_header_template(0))

        by_name = {m.name: m for m in read_members(buffer.getvalue())}
        assert by_name[".config"].isdir()
        assert by_name[".config"].mode == 0o700
        assert by_name[".config/app.conf"].mode == 0o644
        assert by_name[".vimrc"].issym()
        assert by_name[".vimrc"].linkname == ".vim/vimrc"

    def test_gzip(self, entries: list[TargetEntry]) -> None:
        buffer = io.BytesIO()

        write_archive(entries, buffer, 0o022, "tar.gz", make_header_template(0))

        assert buffer.getvalue()[:2] == b"\x1f\x8b"
        assert len(read_members(buffer.getvalue(), "r:gz")) == 3

    def test_unknown_format(self, entries: list[TargetEntry]) -> None:
        with pytest.raises(ValueError, match="Unknown archive format"):
            write_archive(entries, io.BytesIO(), 0o022, "zip")

    def test_evaluation_error_propagates(self) -> None:
        def broken() -> bytes:
            raise OSError("unreadable")

        with pytest.raises(OSError, match="unreadable"):
            write_archive([File("dot_a", ".a", contents=broken)], io.BytesIO(), 0o022)


class TestHeaderTemplate:
    """Tests for make_header_template."""

    def test_fixed_mtime(self) -> None:
        header = make_header_template(1700000000.5)
        assert header.mtime == 1700000000

    def test_current_user(self) -> None:
        header = make_header_template()
        assert header.uid == os.getuid()
        assert header.gid == os.getgid()
