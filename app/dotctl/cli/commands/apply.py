"""Apply command implementation.

Brings the destination directory in line with the source directory.
"""

from pathlib import Path
from typing import Annotated

import typer

from dotctl.cli.display import (
    create_operations_table,
    create_results_table,
    print_results_summary,
)
from dotctl.cli.types import build_runtime, load_source_state, resolve_targets
from dotctl.core.reconcile import (
    UnmanagedTargetError,
    apply_entries,
    evaluate_entries,
    remove_exact_extras,
    select_entries,
)
from dotctl.utils.formatting import console, print_error, print_info


def apply_targets(
    ctx: typer.Context,
    targets: Annotated[
        list[Path] | None,
        typer.Argument(help="Targets to apply (default: everything)."),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Replace destination objects of a different kind.",
        ),
    ] = False,
) -> None:
    """Apply the source state to the destination directory.

    Every entry is evaluated first (templates rendered, files decrypted);
    entries that fail evaluation are reported and not applied. Unmanaged
    children of exact directories are removed when applying everything.

    Examples:
        dotctl apply                         # Apply everything
        dotctl apply ~/.bashrc               # Apply a single target
        dotctl --dry-run apply               # Show what would change
        dotctl apply --force                 # Replace conflicting objects
    """
    runtime = build_runtime(ctx)
    state = load_source_state(runtime)
    target_names = resolve_targets(runtime, targets)

    try:
        entries = select_entries(state.entries, target_names)
    except UnmanagedTargetError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not entries:
        print_info("Nothing to apply.")
        return

    evaluated = evaluate_entries(entries)
    failed = {r.target_name for r in evaluated if not r.success}
    ready = [entry for entry in entries if entry.target_name not in failed]

    results = [r for r in evaluated if not r.success]
    results.extend(
        apply_entries(
            ready,
            runtime.fs,
            runtime.mutator,
            runtime.dest_dir,
            runtime.umask,
            force=force,
        )
    )
    if not target_names:
        results.extend(
            remove_exact_extras(
                state.entries,
                runtime.fs,
                runtime.mutator,
                runtime.dest_dir,
                is_ignored=state.ignore.match,
            )
        )

    recorder = runtime.dry_run_mutator
    if recorder is not None:
        if recorder.operations:
            console.print(create_operations_table(recorder.operations, "Planned Changes (Dry Run)"))
        else:
            print_info("[DRY-RUN] No changes needed.")

    failures = [r for r in results if not r.success]
    if failures:
        console.print(create_results_table(failures, title="Failures"))
    print_results_summary(results)

    if failures:
        raise typer.Exit(code=1)
