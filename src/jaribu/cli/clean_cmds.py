# src/jaribu/cli/clean_cmds.py

from pathlib import Path

import click
import structlog

from jaribu.cleaning import clear_all_bytecode_caches, clear_bytecode_cache
from jaribu.cli.utils import logging_options, setup_logging_from_context
from jaribu.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.clean")


@click.command(name="clean")
@click.argument(
    "paths",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, file_okay=True, dir_okay=True, path_type=Path),
)
@logging_options
@click.pass_context
def clean_cli(ctx: click.Context, paths: tuple[Path, ...], **kwargs):
    """Clear cached bytecode for test scripts (directories: every __pycache__ below)."""
    setup_logging_from_context(ctx, kwargs)

    for path in paths:
        if path.is_dir():
            removed = clear_all_bytecode_caches(path)
            if removed:
                click.echo(f"✓ Clearing all bytecode caches below {path}:")
                for cache_dir in removed:
                    click.echo(f"  - {cache_dir}")
            else:
                click.echo(f"⚠ No bytecode caches found below {path}; proceeding.")
            continue

        removed = clear_bytecode_cache(path)
        if removed:
            for cached in removed:
                click.echo(f"✓ Cleared bytecode cache for {path.name}: {cached.name}")
        else:
            click.echo(f"⚠ No bytecode cache found for {path.name}; proceeding.")

    log.debug("'clean' command finished.", paths=[str(p) for p in paths])

# 🔼⚙️
