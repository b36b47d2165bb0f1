"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.logging import RichHandler

from dotctl import __version__
from dotctl.cli.commands import add, apply, archive, dump, init, verify
from dotctl.utils.formatting import err_console

# Create main Typer app
app = typer.Typer(
    name="dotctl",
    help="Manage dotfiles from a source directory.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"dotctl version {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    root = logging.getLogger("dotctl")
    root.handlers.clear()
    handler = RichHandler(console=err_console, show_path=False, show_time=False)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.propagate = False


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Config file (default: ~/.config/dotctl/config.toml).",
        ),
    ] = None,
    source: Annotated[
        Path | None,
        typer.Option(
            "--source",
            "-S",
            help="Source directory (overrides the config file).",
        ),
    ] = None,
    destination: Annotated[
        Path | None,
        typer.Option(
            "--destination",
            "-D",
            help="Destination directory (overrides the config file).",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would change without changing anything.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Print every change and debug logging.",
        ),
    ] = False,
    follow: Annotated[
        bool,
        typer.Option(
            "--follow",
            help="Capture what symlinks point to instead of the links.",
        ),
    ] = False,
) -> None:
    """dotctl - Manage dotfiles from a source directory.

    The source directory describes the desired state of your home
    directory. Capture files with [bold]add[/bold], bring the home
    directory in line with [bold]apply[/bold].
    """
    _configure_logging(verbose)

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["source"] = source
    ctx.obj["destination"] = destination
    ctx.obj["dry_run"] = dry_run
    ctx.obj["verbose"] = verbose
    ctx.obj["follow"] = follow


# Register commands
app.command(name="init")(init.init_source)
app.command(name="add")(add.add_targets)
app.command(name="apply")(apply.apply_targets)
app.command(name="verify")(verify.verify_targets)
app.command(name="dump")(dump.dump_targets)
app.command(name="archive")(archive.archive_targets)


if __name__ == "__main__":
    app()
