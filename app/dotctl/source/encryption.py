"""Encryption of source file contents.

Encrypted source files (``encrypted_`` prefix) are stored as the output of
an external gpg-compatible command and decrypted on demand when the
target state is computed.
"""

import logging
import subprocess
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from dotctl.core.config import EncryptionConfig
from dotctl.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)


class EncryptionError(Exception):
    """Raised when contents cannot be encrypted or decrypted."""


class Encryptor(ABC):
    """Abstract base class for encryption backends."""

    @abstractmethod
    def encrypt(self, plaintext: bytes) -> bytes:
        """Encrypt plaintext.

        Raises:
            EncryptionError: If encryption fails.
        """

    @abstractmethod
    def decrypt(self, ciphertext: bytes) -> bytes:
        """Decrypt ciphertext.

        Raises:
            EncryptionError: If decryption fails.
        """


class NoEncryptor(Encryptor):
    """Encryptor used when no recipient is configured; always fails."""

    def encrypt(self, plaintext: bytes) -> bytes:
        raise EncryptionError("Encryption is not configured (set encryption.recipient)")

    def decrypt(self, ciphertext: bytes) -> bytes:
        raise EncryptionError("Encryption is not configured (set encryption.recipient)")


class GpgEncryptor(Encryptor):
    """Encrypts and decrypts with a gpg-compatible command.

    Files are exchanged through a private temporary directory because
    contents may be binary.

    Args:
        command: Executable to run (e.g. "gpg").
        recipient: Key to encrypt for.
        args: Extra arguments passed to every invocation.
        timeout: Maximum seconds per invocation.
    """

    def __init__(
        self,
        command: str,
        recipient: str,
        args: list[str] | None = None,
        timeout: float = 60.0,
    ) -> None:
        self._command = command
        self._recipient = recipient
        self._args = list(args or [])
        self._timeout = timeout

    def is_available(self) -> bool:
        """Check if the encryption command is on PATH."""
        return command_exists(self._command)

    def encrypt(self, plaintext: bytes) -> bytes:
        return self._run(
            ["--armor", "--recipient", self._recipient, "--encrypt"],
            plaintext,
            "encrypt",
        )

    def decrypt(self, ciphertext: bytes) -> bytes:
        return self._run(["--decrypt"], ciphertext, "decrypt")

    def _run(self, operation: list[str], data: bytes, label: str) -> bytes:
        with tempfile.TemporaryDirectory(prefix="dotctl-gpg-") as tmpdir:
            input_path = Path(tmpdir) / "input"
            output_path = Path(tmpdir) / "output"
            input_path.write_bytes(data)
            args = [
                self._command,
                "--batch",
                "--yes",
                *self._args,
                "--output",
                str(output_path),
                *operation,
                str(input_path),
            ]
            logger.debug("Running %s to %s", self._command, label)
            try:
                result = run_command(args, timeout=self._timeout)
            except (FileNotFoundError, OSError, subprocess.TimeoutExpired) as e:
                raise EncryptionError(f"Cannot {label} with {self._command}: {e}") from e
            if not result.success:
                detail = result.stderr.strip() or f"exit status {result.returncode}"
                raise EncryptionError(f"Cannot {label} with {self._command}: {detail}")
            return output_path.read_bytes()


def create_encryptor(config: EncryptionConfig) -> Encryptor:
    """Build the encryptor described by config.

    Args:
        config: Encryption settings.

    Returns:
        GpgEncryptor if a recipient is configured, NoEncryptor otherwise.
    """
    if config.recipient:
        return GpgEncryptor(config.command, config.recipient, config.args)
    return NoEncryptor()
