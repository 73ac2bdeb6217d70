#
# config/loader.py
#
"""
Loads RunnerConfig from TOML files and the environment.

Precedence: explicit arguments > environment variables > file > defaults.
"""

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import attrs
import structlog

from jaribu.exceptions import ConfigurationError

from .models import RunnerConfig

log = structlog.get_logger("config.loader")

FILTER_TAG_ENV_VAR = "JARIBU_FILTER_TAG"
CONFIG_TABLE = "jaribu"


def resolve_filter_tag(
    explicit: str | None,
    environ: Mapping[str, str] | None = None,
) -> str | None:
    """
    The active filter tag: ``explicit`` if given, else ``JARIBU_FILTER_TAG``.

    Blank values mean no filtering.
    """
    if explicit is not None:
        return explicit.strip() or None
    environ = os.environ if environ is None else environ
    value = environ.get(FILTER_TAG_ENV_VAR)
    if value is None or not value.strip():
        return None
    return value.strip()


def _extract_table(data: Mapping[str, Any], path: Path) -> Mapping[str, Any]:
    """Finds ``[jaribu]`` or, in a pyproject.toml, ``[tool.jaribu]``."""
    if CONFIG_TABLE in data:
        table = data[CONFIG_TABLE]
    else:
        table = data.get("tool", {}).get(CONFIG_TABLE, {})
    if not isinstance(table, Mapping):
        raise ConfigurationError(f"'{CONFIG_TABLE}' must be a table", path=str(path))
    return table


def load_config(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> RunnerConfig:
    """
    Builds a RunnerConfig from an optional TOML file plus the environment.

    Raises:
        ConfigurationError: if the file is unreadable, is not valid TOML or
            contains invalid or unknown settings.
    """
    settings: dict[str, Any] = {}

    if config_path is not None:
        config_path = Path(config_path)
        log.debug("Loading configuration", path=str(config_path))
        try:
            with config_path.open("rb") as f:
                data = tomllib.load(f)
        except FileNotFoundError as e:
            raise ConfigurationError("Configuration file not found", path=str(config_path)) from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration: {e}", path=str(config_path)) from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML: {e}", path=str(config_path)) from e

        settings.update(_extract_table(data, config_path))

    known = {a.name for a in attrs.fields(RunnerConfig)}
    unknown = sorted(set(settings) - known)
    if unknown:
        raise ConfigurationError(
            f"Unknown configuration keys: {unknown}",
            path=str(config_path) if config_path else None,
        )

    env_tag = resolve_filter_tag(None, environ)
    if env_tag is not None:
        log.debug("Filter tag taken from environment", env_var=FILTER_TAG_ENV_VAR, tag=env_tag)
        settings["filter_tag"] = env_tag

    try:
        config = RunnerConfig(**settings)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid configuration: {e}",
            path=str(config_path) if config_path else None,
        ) from e

    log.debug("Configuration loaded", config=attrs.asdict(config))
    return config


# 🔼⚙️
