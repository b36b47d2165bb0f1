"""Verify command implementation.

Checks that the destination directory already matches the source state.
"""

from pathlib import Path
from typing import Annotated

import typer

from dotctl.cli.display import create_operations_table, create_results_table
from dotctl.cli.types import build_runtime, load_source_state, resolve_targets
from dotctl.core.reconcile import (
    UnmanagedTargetError,
    apply_entries,
    remove_exact_extras,
    select_entries,
)
from dotctl.entries import Script
from dotctl.system import DryRunMutator
from dotctl.utils.formatting import console, print_error, print_success


def verify_targets(
    ctx: typer.Context,
    targets: Annotated[
        list[Path] | None,
        typer.Argument(help="Targets to verify (default: everything)."),
    ] = None,
) -> None:
    """Exit with status 0 if the destination matches the source state.

    Entries are applied against a recording mutator: the destination is
    up to date exactly when no change would be made. Scripts are not
    checked.

    Examples:
        dotctl verify                        # Verify everything
        dotctl verify ~/.bashrc              # Verify a single target
    """
    runtime = build_runtime(ctx)
    state = load_source_state(runtime, script_state=False)
    target_names = resolve_targets(runtime, targets)

    try:
        entries = select_entries(state.entries, target_names)
    except UnmanagedTargetError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    recorder = DryRunMutator()
    results = apply_entries(
        [entry for entry in entries if not isinstance(entry, Script)],
        runtime.fs,
        recorder,
        runtime.dest_dir,
        runtime.umask,
    )
    if not target_names:
        results.extend(
            remove_exact_extras(
                state.entries,
                runtime.fs,
                recorder,
                runtime.dest_dir,
                is_ignored=state.ignore.match,
            )
        )

    failures = [r for r in results if not r.success]
    if failures:
        console.print(create_results_table(failures, title="Failures"))
    if recorder.operations:
        console.print(create_operations_table(recorder.operations, "Out of Date"))

    if failures or recorder.operations:
        raise typer.Exit(code=1)

    print_success("Destination matches the source state.")
