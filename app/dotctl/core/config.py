"""Configuration model and file I/O.

This module provides the dotctl configuration model and functions for
loading and saving it in TOML format with validation using Pydantic.

Configuration is stored in ~/.config/dotctl/config.toml
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from dotctl.core.paths import get_config_path, get_default_source_dir

# Template data values must be representable in TOML and substitutable in text
DataValue = str | int | float | bool


class EncryptionConfig(BaseModel):
    """Settings for the external encryption tool.

    Attributes:
        command: Executable used to encrypt and decrypt (gpg compatible).
        recipient: Key used for encryption. Encryption is disabled when unset.
        args: Extra arguments passed to every invocation.
    """

    model_config = ConfigDict(extra="forbid")

    command: Annotated[str, Field(description="Encryption command")] = "gpg"
    recipient: Annotated[str | None, Field(description="Encryption recipient")] = None
    args: Annotated[
        list[str],
        Field(default_factory=list, description="Extra command arguments"),
    ]

    @property
    def enabled(self) -> bool:
        """Check if a recipient is configured."""
        return bool(self.recipient)


class DotctlConfig(BaseModel):
    """Top-level dotctl configuration.

    Attributes:
        source_dir: Directory holding the source state. None means the
            XDG data directory (~/.local/share/dotctl).
        dest_dir: Destination directory the source state is applied to.
        umask: Permission bits cleared from every created entry.
        follow: Capture the targets of symlinks instead of the links.
        data: Template variables available to ``.tmpl`` entries.
        encryption: External encryption tool settings.
    """

    model_config = ConfigDict(extra="forbid")

    source_dir: Annotated[str | None, Field(description="Source directory")] = None
    dest_dir: Annotated[str, Field(description="Destination directory")] = "~"
    umask: Annotated[int, Field(ge=0, le=0o777, description="Permission mask")] = 0o022
    follow: Annotated[bool, Field(description="Follow symlinks when adding")] = False
    data: Annotated[
        dict[str, DataValue],
        Field(default_factory=dict, description="Template data"),
    ]
    encryption: Annotated[
        EncryptionConfig,
        Field(default_factory=EncryptionConfig, description="Encryption settings"),
    ]

    @property
    def source_path(self) -> Path:
        """Absolute source directory with ``~`` expanded."""
        if self.source_dir is None:
            return get_default_source_dir()
        return Path(self.source_dir).expanduser().absolute()

    @property
    def dest_path(self) -> Path:
        """Absolute destination directory with ``~`` expanded."""
        return Path(self.dest_dir).expanduser().absolute()


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


class ConfigValidationError(ConfigError):
    """Raised when config content is invalid."""


def load_config(path: Path | None = None) -> DotctlConfig:
    """Load and validate configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated DotctlConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigValidationError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return DotctlConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid config content: {e}") from e


def get_config(path: Path | None = None) -> DotctlConfig:
    """Load configuration, falling back to defaults when no file exists.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Loaded DotctlConfig, or the default configuration.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigValidationError: If the content doesn't match the schema.
    """
    try:
        return load_config(path)
    except ConfigNotFoundError:
        return DotctlConfig()


def save_config(config: DotctlConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    in the same directory and then using os.replace() for atomic rename.

    Args:
        config: The DotctlConfig object to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = _config_to_dict(config)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def _config_to_dict(config: DotctlConfig) -> dict[str, Any]:
    """Convert DotctlConfig to a dictionary for TOML serialization.

    Only includes non-None values to keep the file clean.

    Args:
        config: The DotctlConfig to convert.

    Returns:
        Dictionary ready for TOML serialization.
    """
    result: dict[str, Any] = {}
    if config.source_dir is not None:
        result["source_dir"] = config.source_dir
    result["dest_dir"] = config.dest_dir
    result["umask"] = config.umask
    result["follow"] = config.follow
    if config.data:
        result["data"] = dict(config.data)

    encryption: dict[str, Any] = {"command": config.encryption.command}
    if config.encryption.recipient is not None:
        encryption["recipient"] = config.encryption.recipient
    if config.encryption.args:
        encryption["args"] = list(config.encryption.args)
    result["encryption"] = encryption

    return result
