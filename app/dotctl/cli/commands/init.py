"""Init command implementation.

Creates the source directory and a default config file.
"""

from typing import Annotated

import typer

from dotctl.cli.types import build_runtime
from dotctl.core.config import ConfigError, DotctlConfig, save_config
from dotctl.core.paths import ensure_source_dir, get_config_path
from dotctl.utils.formatting import print_error, print_info, print_success, print_warning


def init_source(
    ctx: typer.Context,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing config file.",
        ),
    ] = False,
) -> None:
    """Create the source directory and a default config file.

    Examples:
        dotctl init                          # Default locations
        dotctl --source ~/dotfiles init      # Custom source directory
        dotctl --dry-run init                # Preview without writing
    """
    runtime = build_runtime(ctx)
    config_path = runtime.config_path or get_config_path()

    config = DotctlConfig(
        source_dir=str(runtime.source_dir),
        dest_dir=runtime.config.dest_dir,
        umask=runtime.config.umask,
        follow=runtime.config.follow,
        data=runtime.config.data,
        encryption=runtime.config.encryption,
    )

    write_config = True
    if config_path.exists():
        if force:
            print_warning(f"Overwriting existing config: {config_path}")
        else:
            print_info(f"Config already exists: {config_path}")
            write_config = False

    if runtime.dry_run:
        print_info(f"[DRY-RUN] Would create source directory: {runtime.source_dir}")
        if write_config:
            print_info(f"[DRY-RUN] Would write config: {config_path}")
        return

    try:
        ensure_source_dir(runtime.source_dir)
    except RuntimeError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Source directory: {runtime.source_dir}")

    if write_config:
        try:
            saved_path = save_config(config, config_path)
        except ConfigError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        print_success(f"Config created: {saved_path}")
