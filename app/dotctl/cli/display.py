"""Shared Rich display functions for results and planned operations.

Provides reusable table builders and summary printers for the apply,
verify, and add commands.
"""

from rich.table import Table

from dotctl.core.capture import CaptureReport
from dotctl.core.reconcile import ApplyResult
from dotctl.system.mutator import MutatorOperation
from dotctl.utils.formatting import console, print_success

# Theme style per mutator action
_ACTION_STYLES = {
    "write_file": "file",
    "mkdir": "dir",
    "write_symlink": "symlink",
    "run_script": "script",
    "remove_all": "removed",
}


def create_results_table(results: list[ApplyResult], title: str = "Results") -> Table:
    """Create a Rich table displaying per-entry results.

    Successful results show "OK" status; failed results show "FAIL" with
    the error message.

    Args:
        results: Results to display.
        title: Table title.

    Returns:
        Rich Table configured for results display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=8, justify="center")
    table.add_column("Target", no_wrap=True)
    table.add_column("Message")

    for result in results:
        if result.success:
            status = "[success]OK[/success]"
            message = ""
        else:
            status = "[error]FAIL[/error]"
            message = result.error or "Unknown error"

        table.add_row(status, result.target_name, f"[muted]{message}[/muted]")

    return table


def create_operations_table(operations: list[MutatorOperation], title: str) -> Table:
    """Create a Rich table displaying planned filesystem operations.

    Args:
        operations: Operations recorded by a dry-run mutator.
        title: Table title.

    Returns:
        Rich Table configured for operation display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Action", width=14)
    table.add_column("Path", no_wrap=True)
    table.add_column("Command")

    for operation in operations:
        style = _ACTION_STYLES.get(operation.action, "changed")
        table.add_row(
            f"[{style}]{operation.action}[/{style}]",
            str(operation.path),
            f"[muted]{operation.command}[/muted]",
        )

    return table


def print_results_summary(results: list[ApplyResult], noun: str = "entry(s)") -> None:
    """Print a summary line for results."""
    success_count = sum(1 for r in results if r.success)
    fail_count = len(results) - success_count

    if fail_count == 0:
        print_success(f"All {success_count} {noun} up to date.")
    else:
        console.print(
            f"\n[success]{success_count} succeeded[/success], [error]{fail_count} failed[/error]"
        )


def print_capture_summary(report: CaptureReport) -> None:
    """Print what a capture run added, skipped, and ignored."""
    parts: list[str] = [f"[added]{len(report.added)} added[/added]"]
    if report.skipped:
        parts.append(f"[muted]{len(report.skipped)} skipped[/muted]")
    if report.ignored:
        parts.append(f"[warning]{len(report.ignored)} ignored[/warning]")
    if report.failures:
        parts.append(f"[error]{len(report.failures)} failed[/error]")
    console.print(f"Summary: {', '.join(parts)}")
    if report.cancelled:
        console.print("[muted]Cancelled at prompt.[/muted]")
