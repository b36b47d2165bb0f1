"""Archive command implementation.

Writes the target state as a tar archive.
"""

import sys
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from dotctl.cli.types import build_runtime, load_source_state
from dotctl.core.archive import write_archive
from dotctl.core.reconcile import APPLY_ERRORS
from dotctl.utils.formatting import print_error, print_success


class ArchiveFormat(str, Enum):
    """Archive format options."""

    TAR = "tar"
    TAR_GZ = "tar.gz"


def archive_targets(
    ctx: typer.Context,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Archive file to write (default: standard output).",
        ),
    ] = None,
    archive_format: Annotated[
        ArchiveFormat,
        typer.Option(
            "--format",
            help="Archive format: tar or tar.gz.",
            case_sensitive=False,
        ),
    ] = ArchiveFormat.TAR,
) -> None:
    """Write the target state as a tar archive.

    Scripts are not archived.

    Examples:
        dotctl archive -o dotfiles.tar
        dotctl archive --format tar.gz | ssh host tar xzf -
    """
    runtime = build_runtime(ctx)
    state = load_source_state(runtime, script_state=False)
    entries = state.sorted_entries()

    try:
        if output is None:
            write_archive(entries, sys.stdout.buffer, runtime.umask, archive_format.value)
            sys.stdout.buffer.flush()
            return
        with output.open("wb") as f:
            count = write_archive(entries, f, runtime.umask, archive_format.value)
    except (*APPLY_ERRORS, ValueError) as e:
        print_error(f"Cannot write archive: {e}")
        raise typer.Exit(code=1) from e

    print_success(f"Archived {count} entries to {output}")
