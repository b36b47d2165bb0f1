"""Unit tests for encryption backends."""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest
from dotctl.core.config import EncryptionConfig
from dotctl.source import (
    EncryptionError,
    GpgEncryptor,
    NoEncryptor,
    create_encryptor,
)
from dotctl.utils.shell import CommandResult


def fake_gpg(output: bytes, returncode: int = 0, stderr: str = ""):
    """Build a run_command replacement that writes output to --output."""
    calls: list[list[str]] = []

    def run(args: list[str], **kwargs: object) -> CommandResult:
        calls.append(args)
        if returncode == 0:
            Path(args[args.index("--output") + 1]).write_bytes(output)
        return CommandResult(stdout="", stderr=stderr, returncode=returncode)

    return run, calls


class TestGpgEncryptor:
    """Tests for GpgEncryptor."""

    def test_encrypt(self) -> None:
        """Encryption passes the recipient and returns the output file."""
        run, calls = fake_gpg(b"CIPHERTEXT")
        encryptor = GpgEncryptor("gpg", "me@example.com", ["--quiet"])

        with patch("dotctl.source.encryption.run_command", side_effect=run):
            result = encryptor.encrypt(b"secret")

        assert result == b"CIPHERTEXT"
        args = calls[0]
        assert args[:4] == ["gpg", "--batch", "--yes", "--quiet"]
        assert "--recipient" in args
        assert args[args.index("--recipient") + 1] == "me@example.com"
        assert "--encrypt" in args

    def test_decrypt(self) -> None:
        """Decryption reads the input from a temporary file."""
        seen: list[bytes] = []
        run, calls = fake_gpg(b"secret")

        def capture_input(args: list[str], **kwargs: object) -> CommandResult:
            seen.append(Path(args[-1]).read_bytes())
            return run(args, **kwargs)

        with patch("dotctl.source.encryption.run_command", side_effect=capture_input):
            assert GpgEncryptor("gpg", "me").decrypt(b"CIPHER") == b"secret"

        assert seen == [b"CIPHER"]
        assert "--decrypt" in calls[0]

    def test_failure_reports_stderr(self) -> None:
        """A non-zero exit status raises with the tool's message."""
        run, _ = fake_gpg(b"", returncode=2, stderr="no secret key\n")

        with (
            patch("dotctl.source.encryption.run_command", side_effect=run),
            pytest.raises(EncryptionError, match="no secret key"),
        ):
            GpgEncryptor("gpg", "me").decrypt(b"x")

    def test_missing_command(self) -> None:
        """A missing executable raises EncryptionError."""
        with (
            patch("dotctl.source.encryption.run_command", side_effect=FileNotFoundError("gpg")),
            pytest.raises(EncryptionError, match="Cannot encrypt with gpg"),
        ):
            GpgEncryptor("gpg", "me").encrypt(b"x")

    def test_timeout(self) -> None:
        """A timeout raises EncryptionError."""
        with (
            patch(
                "dotctl.source.encryption.run_command",
                side_effect=subprocess.TimeoutExpired(cmd="gpg", timeout=1),
            ),
            pytest.raises(EncryptionError),
        ):
            GpgEncryptor("gpg", "me").decrypt(b"x")

    def test_is_available(self) -> None:
        """Availability checks PATH."""
        with patch("dotctl.source.encryption.command_exists", return_value=True) as mock_exists:
            assert GpgEncryptor("gpg2", "me").is_available()
        mock_exists.assert_called_once_with("gpg2")


class TestNoEncryptor:
    """Tests for NoEncryptor."""

    def test_always_fails(self) -> None:
        """Both directions raise."""
        with pytest.raises(EncryptionError, match="not configured"):
            NoEncryptor().encrypt(b"x")
        with pytest.raises(EncryptionError, match="not configured"):
            NoEncryptor().decrypt(b"x")


class TestCreateEncryptor:
    """Tests for create_encryptor."""

    def test_without_recipient(self) -> None:
        assert isinstance(create_encryptor(EncryptionConfig()), NoEncryptor)

    def test_with_recipient(self) -> None:
        encryptor = create_encryptor(EncryptionConfig(recipient="me", command="gpg2"))
        assert isinstance(encryptor, GpgEncryptor)
