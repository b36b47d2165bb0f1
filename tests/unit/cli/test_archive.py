"""Unit tests for archive command.

Tests for the CLI archive command implementation.
"""

import io
import tarfile
from pathlib import Path

from dotctl.cli.main import app
from typer.testing import CliRunner

runner = CliRunner(env={"COLUMNS": "1000"})


def write(path: Path, text: str = "x\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


class TestArchiveCommand:
    """Tests for dotctl archive command."""

    def test_archive_to_file(self, tmp_path: Path, cli_args: list[str], source_dir: Path) -> None:
        write(source_dir / "dot_config" / "app.conf", "a\n")
        write(source_dir / "run_setup.sh", "echo\n")
        output = tmp_path / "out.tar"

        result = runner.invoke(app, [*cli_args, "archive", "-o", str(output)])

        assert result.exit_code == 0
        assert "Archived 3 entries" in result.stdout
        with tarfile.open(output) as reader:
            assert reader.getnames() == [".config", ".config/app.conf"]
            member = reader.extractfile(".config/app.conf")
            assert member is not None
            assert member.read() == b"a\n"

    def test_archive_to_stdout(self, cli_args: list[str], source_dir: Path) -> None:
        write(source_dir / "dot_bashrc")

        result = runner.invoke(app, [*cli_args, "archive"])

        assert result.exit_code == 0
        with tarfile.open(fileobj=io.BytesIO(result.stdout_bytes)) as reader:
            assert reader.getnames() == [".bashrc"]

    def test_archive_gzip(self, tmp_path: Path, cli_args: list[str], source_dir: Path) -> None:
        write(source_dir / "dot_bashrc")
        output = tmp_path / "out.tar.gz"

        result = runner.invoke(app, [*cli_args, "archive", "--format", "tar.gz", "-o", str(output)])

        assert result.exit_code == 0
        with tarfile.open(output, "r:gz") as reader:
            assert reader.getnames() == [".bashrc"]

    def test_archive_evaluation_error(
        self, tmp_path: Path, cli_args: list[str], source_dir: Path
    ) -> None:
        write(source_dir / "dot_broken.tmpl", "$undefined\n")

        result = runner.invoke(app, [*cli_args, "archive", "-o", str(tmp_path / "out.tar")])

        assert result.exit_code == 1
        assert "Cannot write archive" in result.output
