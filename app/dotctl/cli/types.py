"""Shared types and helpers for CLI commands.

Builds the runtime every command works with (configuration, directories,
filesystem, mutator, source state) from the global options stored in the
Typer context.
"""

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from dotctl.core.config import ConfigError, DotctlConfig, get_config
from dotctl.core.paths import IGNORE_FILENAME
from dotctl.core.state import ScriptStateManager
from dotctl.source import (
    IgnoreMatcher,
    SourceState,
    SourceStateError,
    TemplateRenderer,
    builtin_data,
    create_encryptor,
)
from dotctl.system import DryRunMutator, FileSystem, FsMutator, Mutator, VerboseMutator
from dotctl.utils.formatting import console, print_error


@dataclass
class Runtime:
    """Everything a command needs to act on the source and destination.

    Attributes:
        config: Loaded configuration.
        config_path: Explicit config file, None for the default location.
        source_dir: Absolute source directory.
        dest_dir: Absolute destination directory.
        umask: Permission bits cleared from created objects.
        follow: Capture what symlinks point to.
        dry_run: Record changes instead of performing them.
        verbose: Print every change.
        fs: Read-only filesystem accessor.
        mutator: Performs (or records) every change.
    """

    config: DotctlConfig
    config_path: Path | None
    source_dir: Path
    dest_dir: Path
    umask: int
    follow: bool
    dry_run: bool
    verbose: bool
    fs: FileSystem
    mutator: Mutator

    @property
    def dry_run_mutator(self) -> DryRunMutator | None:
        """The recording mutator in dry-run mode, None otherwise."""
        mutator = self.mutator
        if isinstance(mutator, VerboseMutator):
            mutator = mutator.wrapped
        return mutator if isinstance(mutator, DryRunMutator) else None


def _absolute(path: Path) -> Path:
    return Path(os.path.abspath(path.expanduser()))


def build_runtime(ctx: typer.Context) -> Runtime:
    """Build the Runtime from global options and the config file.

    Command-line options take precedence over the config file.

    Raises:
        typer.Exit: If the config file cannot be loaded.
    """
    options = ctx.obj or {}
    config_path: Path | None = options.get("config_path")
    try:
        config = get_config(config_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    source = options.get("source")
    destination = options.get("destination")
    dry_run = bool(options.get("dry_run", False))
    verbose = bool(options.get("verbose", False))

    mutator: Mutator = DryRunMutator() if dry_run else FsMutator()
    if verbose:
        mutator = VerboseMutator(mutator, console)

    return Runtime(
        config=config,
        config_path=config_path,
        source_dir=_absolute(source) if source else config.source_path,
        dest_dir=_absolute(destination) if destination else config.dest_path,
        umask=config.umask,
        follow=bool(options.get("follow", False)) or config.follow,
        dry_run=dry_run,
        verbose=verbose,
        fs=FileSystem(),
        mutator=mutator,
    )


def load_source_state(runtime: Runtime, *, script_state: bool = True) -> SourceState:
    """Load the source state described by runtime.

    Args:
        runtime: Current runtime.
        script_state: Track run-once scripts in the state file.

    Raises:
        typer.Exit: If the source directory cannot be read.
    """
    data: dict[str, object] = dict(runtime.config.data)
    renderer = TemplateRenderer(
        {**builtin_data(runtime.source_dir, runtime.dest_dir), **data}
    )
    try:
        ignore = IgnoreMatcher.from_file(runtime.source_dir / IGNORE_FILENAME)
        state = SourceState(
            runtime.source_dir,
            runtime.dest_dir,
            umask=runtime.umask,
            ignore=ignore,
            renderer=renderer,
            encryptor=create_encryptor(runtime.config.encryption),
            script_state=ScriptStateManager(dry_run=runtime.dry_run) if script_state else None,
            data=data,
        )
        state.load(runtime.fs)
    except (OSError, SourceStateError) as e:
        print_error(f"Cannot read source directory {runtime.source_dir}: {e}")
        raise typer.Exit(code=1) from e
    return state


def resolve_targets(runtime: Runtime, paths: list[Path] | None) -> list[str]:
    """Turn command-line paths into target names.

    Raises:
        typer.Exit: If a path is outside the destination directory.
    """
    names: list[str] = []
    for path in paths or []:
        absolute = _absolute(path)
        try:
            relative = absolute.relative_to(runtime.dest_dir)
        except ValueError as e:
            print_error(f"{path}: not in destination directory {runtime.dest_dir}")
            raise typer.Exit(code=1) from e
        if relative.parts:
            names.append(relative.as_posix())
    return names
