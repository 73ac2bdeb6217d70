#
# config/__init__.py
#
"""
Configuration handling sub-package for jaribu.

Exports the loading functions and the runner configuration model.
"""

from .loader import FILTER_TAG_ENV_VAR, load_config, resolve_filter_tag
from .models import RunnerConfig

__all__ = [
    "FILTER_TAG_ENV_VAR",
    "RunnerConfig",
    "load_config",
    "resolve_filter_tag",
]

# 🔼⚙️
