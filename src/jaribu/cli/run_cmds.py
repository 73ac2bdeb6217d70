# src/jaribu/cli/run_cmds.py

import asyncio
import sys
from pathlib import Path

import attrs
import click
import structlog

from jaribu.cli.utils import logging_options, setup_logging_from_context
from jaribu.config import load_config
from jaribu.exceptions import ConfigurationError, DiscoveryError
from jaribu.loading import collect_test_classes, load_script
from jaribu.runner import TestRunner
from jaribu.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.run")


def _run_suite(runner: TestRunner, clear_cache: bool | None, filter_tag: str | None) -> int:
    """
    Runs the registered suite on a fresh event loop and returns its exit code.
    """
    try:
        return asyncio.run(runner.run_all_tests(clear_cache=clear_cache, filter_tag=filter_tag))
    except KeyboardInterrupt:
        log.warning("Test run interrupted by KeyboardInterrupt (CTRL-C).")
        return 130


@click.command(name="run")
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True, path_type=Path),
)
@click.option(
    "-t",
    "--tag",
    "filter_tag",
    default=None,
    help="Only run tests carrying this tag (env var JARIBU_FILTER_TAG).",
)
@click.option(
    "--clear-cache/--no-clear-cache",
    default=None,
    help="Clean each script's bytecode cache before its tests run.",
)
@click.option(
    "-c",
    "--config-path",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True, path_type=Path),
    default=None,
    envvar="JARIBU_CONF",
    help="Path to a jaribu TOML configuration file (env var JARIBU_CONF).",
    show_envvar=True,
)
@click.option(
    "--max-message-width",
    type=click.IntRange(min=4),
    default=None,
    help="Truncate result messages to this many characters.",
)
@logging_options
@click.pass_context
def run_cli(
    ctx: click.Context,
    files: tuple[Path, ...],
    filter_tag: str | None,
    clear_cache: bool | None,
    config_path: Path | None,
    max_message_width: int | None,
    **kwargs,
):
    """Run the test classes defined in one or more scripts."""
    setup_logging_from_context(ctx, kwargs)

    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        log.error("Failed to load or validate configuration", error=str(e))
        click.echo(f"Error: Configuration problem: {e}", err=True)
        ctx.exit(2)

    setup_logging_from_context(ctx, kwargs, fallback_level=config.log_level)

    if max_message_width is not None:
        config = attrs.evolve(config, max_message_width=max_message_width)

    runner = TestRunner(config=config)
    try:
        for path in files:
            module = load_script(path)
            classes = collect_test_classes(module)
            if not classes:
                log.warning("No test classes found in script", path=str(path))
            for cls in classes:
                runner.register_tests(cls)
    except DiscoveryError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(2)

    log.info("Running registered test classes", count=len(runner.registry))
    exit_code = _run_suite(runner, clear_cache, filter_tag)

    log.info("'run' command finished.", exit_code=exit_code)
    if exit_code != 0:
        sys.exit(exit_code)

# 🔼⚙️
