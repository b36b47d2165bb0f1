"""Target-state entries.

This module provides the Entry contract and its four kinds: files,
directories, symlinks, and scripts.
"""

from dotctl.entries.base import (
    Entry,
    EntryConflictError,
    EntryError,
    lstat_if_exists,
    validate_name,
)
from dotctl.entries.directory import Directory
from dotctl.entries.file import File
from dotctl.entries.lazy import Lazy
from dotctl.entries.models import (
    ConcreteValue,
    DirectoryConcreteValue,
    EntryType,
    FileConcreteValue,
    ScriptConcreteValue,
    SymlinkConcreteValue,
)
from dotctl.entries.script import Script
from dotctl.entries.symlink import Symlink

# Closed set of entry kinds
TargetEntry = File | Directory | Symlink | Script

__all__ = [
    "ConcreteValue",
    "Directory",
    "DirectoryConcreteValue",
    "Entry",
    "EntryConflictError",
    "EntryError",
    "EntryType",
    "File",
    "FileConcreteValue",
    "Lazy",
    "Script",
    "ScriptConcreteValue",
    "Symlink",
    "SymlinkConcreteValue",
    "TargetEntry",
    "lstat_if_exists",
    "validate_name",
]
