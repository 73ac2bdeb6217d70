# src/jaribu/telemetry/logger/processors.py

"""
Custom structlog processors.
"""

import logging

from structlog.typing import EventDict, WrappedLogger

# Keys that are useful while binding but only add noise to rendered lines.
_NOISY_KEYS = ("emoji_key",)


def add_emoji_processor(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Prefixes the event with an emoji for its level, or for ``emoji_key`` if bound."""
    from .base import LOG_EMOJIS

    emoji_key = event_dict.get("emoji_key")
    level = logging.getLevelName(event_dict.get("level", method_name).upper())
    emoji = LOG_EMOJIS.get(emoji_key) or LOG_EMOJIS.get(level)
    event = event_dict.get("event")
    if emoji and isinstance(event, str) and not event.startswith(emoji):
        event_dict["event"] = f"{emoji} {event}"
    return event_dict


def remove_extra_keys_processor(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    for key in _NOISY_KEYS:
        event_dict.pop(key, None)
    return event_dict

# 🔼⚙️
