"""CLI commands for dotctl.

This package contains all subcommand implementations.
"""

from dotctl.cli.commands import add, apply, archive, dump, init, verify

__all__ = ["add", "apply", "archive", "dump", "init", "verify"]
