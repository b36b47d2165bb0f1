"""Source directory handling.

This module maps source-directory names to target attributes, renders
templates, encrypts contents, matches ignore patterns, and loads and
extends the source state.
"""

from dotctl.source.attributes import DirAttributes, FileAttributes, SourceFileKind
from dotctl.source.encryption import (
    EncryptionError,
    Encryptor,
    GpgEncryptor,
    NoEncryptor,
    create_encryptor,
)
from dotctl.source.ignore import IgnoreMatcher
from dotctl.source.state import AddOptions, SourceState, SourceStateError
from dotctl.source.templates import (
    TemplateError,
    TemplateRenderer,
    auto_template,
    builtin_data,
)

__all__ = [
    "AddOptions",
    "DirAttributes",
    "EncryptionError",
    "Encryptor",
    "FileAttributes",
    "GpgEncryptor",
    "IgnoreMatcher",
    "NoEncryptor",
    "SourceFileKind",
    "SourceState",
    "SourceStateError",
    "TemplateError",
    "TemplateRenderer",
    "auto_template",
    "builtin_data",
    "create_encryptor",
]
