# src/jaribu/cli/utils.py

"""
Logging options shared by the jaribu command group and its commands.

Level precedence: command option, group option (both also read
``JARIBU_LOG_LEVEL``), then the configuration file, then WARNING.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

import click
import structlog
from attrs import define

from jaribu.telemetry.logger import setup_logging

log = structlog.get_logger("cli.utils")

DEFAULT_LOG_LEVEL = "WARNING"
CONTEXT_KEYS = {"log_level": "LOG_LEVEL", "log_file": "LOG_FILE", "json_logs": "JSON_LOGS"}

_LOGGING_OPTIONS: tuple[Callable[[Callable], Callable], ...] = (
    click.option(
        "-l",
        "--log-level",
        type=click.Choice(list(logging.getLevelNamesMapping()), case_sensitive=False),
        default=None,
        envvar="JARIBU_LOG_LEVEL",
        help="Logging level (overrides the configuration file).",
    ),
    click.option(
        "--log-file",
        type=click.Path(dir_okay=False, writable=True, resolve_path=True),
        default=None,
        envvar="JARIBU_LOG_FILE",
        help="Also write JSON log records to this file.",
    ),
    click.option(
        "--json-logs",
        is_flag=True,
        default=None,
        envvar="JARIBU_JSON_LOGS",
        help="Render console logs as JSON.",
    ),
)


def logging_options(f: Callable) -> Callable:
    """Adds --log-level, --log-file and --json-logs to a click command."""
    for option in reversed(_LOGGING_OPTIONS):
        f = option(f)
    return f


@define(frozen=True, slots=True)
class LoggingSettings:
    """Logging choices resolved from command options and the click context."""

    level: str
    log_file: str | None
    json_logs: bool

    @classmethod
    def resolve(
        cls,
        ctx: click.Context,
        options: Mapping[str, Any] | None = None,
        fallback_level: str = DEFAULT_LOG_LEVEL,
    ) -> "LoggingSettings":
        options = options or {}
        group = ctx.obj or {}

        def pick(name: str) -> Any:
            value = options.get(name)
            return value if value is not None else group.get(CONTEXT_KEYS[name])

        level = (pick("log_level") or fallback_level).upper()
        if level not in logging.getLevelNamesMapping():
            level = DEFAULT_LOG_LEVEL
        return cls(level=level, log_file=pick("log_file"), json_logs=bool(pick("json_logs")))

    @property
    def numeric_level(self) -> int:
        return logging.getLevelNamesMapping()[self.level]


def setup_logging_from_context(
    ctx: click.Context,
    options: Mapping[str, Any] | None = None,
    fallback_level: str = DEFAULT_LOG_LEVEL,
) -> LoggingSettings:
    """
    Configures logging for a command from its own logging ``options`` and
    those stored on the group context. ``fallback_level`` applies when
    neither names a level.
    """
    settings = LoggingSettings.resolve(ctx, options, fallback_level)
    setup_logging(
        level=settings.numeric_level,
        json_logs=settings.json_logs,
        log_file=settings.log_file,
    )
    log.debug(
        "CLI logging configured",
        level=settings.level,
        file=settings.log_file or "console",
        json=settings.json_logs,
    )
    return settings

# ⚙️🛠️
