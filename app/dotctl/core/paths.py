"""XDG-compliant path management for dotctl.

This module provides standardized paths following the XDG Base Directory
Specification for configuration, source, and state storage.

XDG defaults:
- Config: ~/.config/dotctl/
- Source: ~/.local/share/dotctl/
- State: ~/.local/state/dotctl/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "dotctl"

CONFIG_FILENAME = "config.toml"
IGNORE_FILENAME = ".dotctlignore"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/dotctl/ (or XDG_CONFIG_HOME/dotctl/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_default_source_dir() -> Path:
    """Get the default source directory path.

    The source directory holds the desired state of every managed entry,
    encoded in file and directory names.

    Returns:
        Path to ~/.local/share/dotctl/ (or XDG_DATA_HOME/dotctl/).
    """
    return _get_xdg_dir("XDG_DATA_HOME", ".local/share")


def get_state_dir() -> Path:
    """Get the state directory path.

    State data includes the record of run-once scripts that should
    persist between runs but is not configuration.

    Returns:
        Path to ~/.local/state/dotctl/ (or XDG_STATE_HOME/dotctl/).
    """
    return _get_xdg_dir("XDG_STATE_HOME", ".local/state")


def get_config_path() -> Path:
    """Get the default config file path.

    Returns:
        Path to ~/.config/dotctl/config.toml.
    """
    return get_config_dir() / CONFIG_FILENAME


def _ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def ensure_source_dir(path: Path) -> Path:
    """Create a source directory if it doesn't exist.

    Args:
        path: Source directory to create.

    Returns:
        The created/existing source directory.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(path, "source")
