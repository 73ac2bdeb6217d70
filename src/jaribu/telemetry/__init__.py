#
# src/jaribu/telemetry/__init__.py
#
"""
Logging setup for jaribu.
"""
from .logger import StructLogger, setup_logging

__all__ = ["StructLogger", "setup_logging"]

# 🔼⚙️
