"""Add command implementation.

Captures existing files, directories, and symlinks into the source
directory.
"""

from pathlib import Path
from typing import Annotated

import typer

from dotctl.cli.display import print_capture_summary
from dotctl.cli.prompt import TerminalPrompter
from dotctl.cli.types import build_runtime, load_source_state
from dotctl.core.capture import CaptureWorkflow
from dotctl.core.paths import ensure_source_dir
from dotctl.source import AddOptions
from dotctl.utils.formatting import print_error, print_warning


def add_targets(
    ctx: typer.Context,
    targets: Annotated[
        list[Path],
        typer.Argument(help="Files, directories, or symlinks to add."),
    ],
    recursive: Annotated[
        bool,
        typer.Option("--recursive", "-r", help="Recurse into subdirectories."),
    ] = False,
    prompt: Annotated[
        bool,
        typer.Option("--prompt", "-p", help="Ask before adding each path."),
    ] = False,
    empty: Annotated[
        bool,
        typer.Option("--empty", "-e", help="Add empty files."),
    ] = False,
    encrypt: Annotated[
        bool,
        typer.Option("--encrypt", help="Encrypt files."),
    ] = False,
    exact: Annotated[
        bool,
        typer.Option("--exact", "-x", help="Add directories exactly."),
    ] = False,
    template: Annotated[
        bool,
        typer.Option("--template", "-T", help="Add files as templates."),
    ] = False,
    auto_template: Annotated[
        bool,
        typer.Option(
            "--autotemplate",
            "-a",
            help="Generate templates by replacing data values with variables.",
        ),
    ] = False,
) -> None:
    """Add existing files, directories, or symlinks to the source directory.

    With [bold]--prompt[/bold], answer [bold]y[/bold]es, [bold]n[/bold]o,
    [bold]q[/bold]uit, or [bold]a[/bold]ll (stop asking) for each path.

    Examples:
        dotctl add ~/.bashrc                 # Add one file
        dotctl add -r ~/.config/nvim         # Add a directory tree
        dotctl add -r -p ~/.config           # Choose what to add
        dotctl add -a ~/.gitconfig           # Add as a generated template
    """
    runtime = build_runtime(ctx)

    if encrypt and not runtime.config.encryption.enabled:
        print_error("Encryption is not configured (set encryption.recipient in the config).")
        raise typer.Exit(code=1)

    if not runtime.dry_run:
        try:
            ensure_source_dir(runtime.source_dir)
        except RuntimeError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e

    state = load_source_state(runtime, script_state=False)
    workflow = CaptureWorkflow(
        state,
        runtime.fs,
        runtime.mutator,
        options=AddOptions(
            empty=empty,
            encrypt=encrypt,
            exact=exact,
            template=template,
            auto_template=auto_template,
        ),
        recursive=recursive,
        prompt=prompt,
        follow=runtime.follow,
        prompter=TerminalPrompter(),
        warn=print_warning,
    )
    report = workflow.run(targets)

    for failure in report.failures:
        print_error(f"{failure.path}: {failure.error}")
    print_capture_summary(report)

    if not report.success:
        raise typer.Exit(code=1)
