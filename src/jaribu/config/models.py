#
# config/models.py
#
"""
Attrs-based data models for jaribu configuration.
"""

import logging
from typing import Any

from attrs import define, field

from jaribu.cleaning import DEFAULT_CLEAN_COMMAND
from jaribu.rendering import DEFAULT_MAX_MESSAGE_WIDTH


# --- Validators ---
def _validate_log_level(inst: Any, attr: Any, value: str) -> None:
    """Validator for standard logging level names."""
    valid = logging._nameToLevel.keys()
    if value.upper() not in valid:
        raise ValueError(f"Invalid log_level '{value}'. Must be one of {list(valid)}.")


def _validate_positive_int(inst: Any, attr: Any, value: int) -> None:
    """Validator ensures integer is positive."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"Field '{attr.name}' must be positive integer, got {value}")


def _validate_command(inst: Any, attr: Any, value: tuple[str, ...]) -> None:
    if not value or not all(isinstance(part, str) and part for part in value):
        raise ValueError(f"Field '{attr.name}' must be a non-empty list of strings, got {value!r}")


def _optional_tag(value: str | None) -> str | None:
    """Blank tags mean no filtering."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


@define(frozen=True, slots=True)
class RunnerConfig:
    """Settings applied to every run of the test runner."""
    filter_tag: str | None = field(default=None, converter=_optional_tag)
    clear_cache: bool | None = field(default=None)
    max_message_width: int = field(default=DEFAULT_MAX_MESSAGE_WIDTH, validator=_validate_positive_int)
    clean_command: tuple[str, ...] = field(
        default=DEFAULT_CLEAN_COMMAND, converter=tuple, validator=_validate_command
    )
    log_level: str = field(default="WARNING", validator=_validate_log_level)

    @property
    def numeric_log_level(self) -> int:
        return logging.getLevelName(self.log_level.upper())


# 🔼⚙️
