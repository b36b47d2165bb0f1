"""Dump command implementation.

Prints the resolved target state as JSON or TOML.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

import tomli_w
import typer

from dotctl.cli.types import build_runtime, load_source_state, resolve_targets
from dotctl.core.reconcile import APPLY_ERRORS, UnmanagedTargetError, select_entries
from dotctl.utils.formatting import console, print_error


class DumpFormat(str, Enum):
    """Output format options for dump."""

    JSON = "json"
    TOML = "toml"


def dump_targets(
    ctx: typer.Context,
    targets: Annotated[
        list[Path] | None,
        typer.Argument(help="Targets to dump (default: everything)."),
    ] = None,
    output_format: Annotated[
        DumpFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format: json or toml.",
            case_sensitive=False,
        ),
    ] = DumpFormat.JSON,
    recursive: Annotated[
        bool,
        typer.Option(
            "--recursive",
            "-r",
            help="Include entries below requested directories.",
        ),
    ] = False,
) -> None:
    """Print the target state of the selected entries.

    Examples:
        dotctl dump                          # Everything, as JSON
        dotctl dump --format toml ~/.bashrc  # One target, as TOML
        dotctl dump -r ~/.config             # A directory and its contents
    """
    runtime = build_runtime(ctx)
    state = load_source_state(runtime, script_state=False)
    target_names = resolve_targets(runtime, targets)

    try:
        entries = select_entries(state.entries, target_names, recursive=recursive)
    except UnmanagedTargetError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    values: list[dict[str, Any]] = []
    for entry in entries:
        try:
            value = entry.concrete_value(runtime.dest_dir, runtime.source_dir, recursive)
        except APPLY_ERRORS as e:
            print_error(f"{entry.target_name}: {e}")
            raise typer.Exit(code=1) from e
        values.append(value.to_dict())

    if output_format == DumpFormat.TOML:
        typer.echo(tomli_w.dumps({"entries": values}), nl=False)
    else:
        console.print_json(json.dumps(values))
