"""Unit tests for apply command.

Tests for the CLI apply command implementation.
"""

import os
import stat
from pathlib import Path
from unittest.mock import patch

from dotctl.cli.display import create_operations_table
from dotctl.cli.main import app
from typer.testing import CliRunner

runner = CliRunner(env={"COLUMNS": "1000"})


def write(path: Path, text: str = "x\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


class TestApplyCommand:
    """Tests for dotctl apply command."""

    def test_apply_help(self) -> None:
        result = runner.invoke(app, ["apply", "--help"])
        assert result.exit_code == 0
        assert "--force" in result.stdout

    def test_apply_everything(self, cli_args: list[str], source_dir: Path, dest_dir: Path) -> None:
        """Files, private directories and symlinks are created."""
        write(source_dir / "dot_bashrc", "alias ll='ls -l'\n")
        write(source_dir / "private_dot_ssh" / "private_config", "Host *\n")
        write(source_dir / "symlink_dot_vimrc", ".vim/vimrc\n")
        write(source_dir / "executable_run.sh", "#!/bin/sh\n")

        result = runner.invoke(app, [*cli_args, "apply"])

        assert result.exit_code == 0
        assert (dest_dir / ".bashrc").read_text() == "alias ll='ls -l'\n"
        assert stat.S_IMODE((dest_dir / ".ssh").stat().st_mode) == 0o700
        assert stat.S_IMODE((dest_dir / ".ssh" / "config").stat().st_mode) == 0o600
        assert os.readlink(dest_dir / ".vimrc") == ".vim/vimrc"
        assert stat.S_IMODE((dest_dir / "run.sh").stat().st_mode) == 0o755
        assert "up to date" in result.stdout

    def test_apply_twice_is_idempotent(self, cli_args: list[str], source_dir: Path) -> None:
        write(source_dir / "dot_bashrc")
        runner.invoke(app, [*cli_args, "apply"])

        result = runner.invoke(app, ["-n", *cli_args, "apply"])

        assert result.exit_code == 0
        assert "No changes needed" in result.stdout

    def test_apply_dry_run(self, cli_args: list[str], source_dir: Path, dest_dir: Path) -> None:
        """--dry-run lists the planned changes without making them."""
        write(source_dir / "dot_config" / "app.conf")

        with patch(
            "dotctl.cli.commands.apply.create_operations_table", wraps=create_operations_table
        ) as mock_table:
            result = runner.invoke(app, ["-n", *cli_args, "apply"])

        assert result.exit_code == 0
        operations = mock_table.call_args.args[0]
        assert [op.action for op in operations] == ["mkdir", "write_file"]
        assert operations[1].path == str(dest_dir / ".config" / "app.conf")
        assert "Planned Changes" in result.stdout
        assert list(dest_dir.iterdir()) == []

    def test_apply_single_target(self, cli_args: list[str], source_dir: Path, dest_dir: Path) -> None:
        """Only the requested target is applied."""
        write(source_dir / "dot_a")
        write(source_dir / "dot_b")

        result = runner.invoke(app, [*cli_args, "apply", str(dest_dir / ".a")])

        assert result.exit_code == 0
        assert (dest_dir / ".a").exists()
        assert not (dest_dir / ".b").exists()

    def test_apply_unmanaged_target(self, cli_args: list[str], dest_dir: Path) -> None:
        result = runner.invoke(app, [*cli_args, "apply", str(dest_dir / ".zshrc")])

        assert result.exit_code == 1
        assert "not managed" in result.output

    def test_apply_target_outside_destination(self, tmp_path: Path, cli_args: list[str]) -> None:
        result = runner.invoke(app, [*cli_args, "apply", str(tmp_path / "elsewhere")])

        assert result.exit_code == 1
        assert "not in destination directory" in result.output

    def test_conflict_requires_force(
        self, cli_args: list[str], source_dir: Path, dest_dir: Path
    ) -> None:
        """A directory where a file belongs fails without --force."""
        write(source_dir / "dot_bashrc", "new\n")
        write(source_dir / "dot_profile", "profile\n")
        (dest_dir / ".bashrc").mkdir()

        result = runner.invoke(app, [*cli_args, "apply"])

        assert result.exit_code == 1
        assert "Failures" in result.stdout
        assert (dest_dir / ".bashrc").is_dir()
        assert (dest_dir / ".profile").exists()

        result = runner.invoke(app, [*cli_args, "apply", "--force"])

        assert result.exit_code == 0
        assert (dest_dir / ".bashrc").read_text() == "new\n"

    def test_templates_use_config_data(
        self, tmp_path: Path, cli_args: list[str], source_dir: Path, dest_dir: Path
    ) -> None:
        config = tmp_path / "config.toml"
        config.write_text('[data]\nemail = "me@example.com"\n')
        write(source_dir / "dot_gitconfig.tmpl", "email = $email\nhome = $dotctl_dest_dir\n")

        result = runner.invoke(app, ["-c", str(config), *cli_args, "apply"])

        assert result.exit_code == 0
        assert (dest_dir / ".gitconfig").read_text() == (
            f"email = me@example.com\nhome = {dest_dir}\n"
        )

    def test_broken_template_is_isolated(
        self, cli_args: list[str], source_dir: Path, dest_dir: Path
    ) -> None:
        """An entry that fails to evaluate is reported, the rest is applied."""
        write(source_dir / "dot_broken.tmpl", "$undefined\n")
        write(source_dir / "dot_ok", "ok\n")

        result = runner.invoke(app, [*cli_args, "apply"])

        assert result.exit_code == 1
        assert not (dest_dir / ".broken").exists()
        assert (dest_dir / ".ok").exists()
        assert "1 failed" in result.stdout

    def test_exact_directory_removes_extras(
        self, cli_args: list[str], source_dir: Path, dest_dir: Path
    ) -> None:
        write(source_dir / "exact_dot_config" / "keep")
        write(dest_dir / ".config" / "keep")
        write(dest_dir / ".config" / "stale")

        result = runner.invoke(app, [*cli_args, "apply"])

        assert result.exit_code == 0
        assert sorted(p.name for p in (dest_dir / ".config").iterdir()) == ["keep"]

    def test_empty_file_removes_target(
        self, cli_args: list[str], source_dir: Path, dest_dir: Path
    ) -> None:
        """An empty source file without empty_ means the target must not exist."""
        write(source_dir / "dot_old", "")
        write(dest_dir / ".old", "stale\n")

        result = runner.invoke(app, [*cli_args, "apply"])

        assert result.exit_code == 0
        assert not (dest_dir / ".old").exists()

    def test_run_once_script(self, cli_args: list[str], source_dir: Path) -> None:
        """A run_once_ script runs on the first apply only."""
        write(source_dir / "run_once_setup.sh", "#!/bin/sh\necho setup\n")

        with patch("dotctl.system.mutator.run_interactive", return_value=0) as mock_run:
            first = runner.invoke(app, [*cli_args, "apply"])
            second = runner.invoke(app, [*cli_args, "apply"])

        assert first.exit_code == 0
        assert second.exit_code == 0
        mock_run.assert_called_once()

    def test_failing_script(self, cli_args: list[str], source_dir: Path) -> None:
        write(source_dir / "run_setup.sh", "#!/bin/sh\nexit 1\n")

        with patch("dotctl.system.mutator.run_interactive", return_value=1):
            result = runner.invoke(app, [*cli_args, "apply"])

        assert result.exit_code == 1
        assert "1 failed" in result.stdout

    def test_nothing_to_apply(self, cli_args: list[str]) -> None:
        result = runner.invoke(app, [*cli_args, "apply"])

        assert result.exit_code == 0
        assert "Nothing to apply" in result.stdout
