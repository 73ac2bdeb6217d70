#
# src/jaribu/__init__.py
#
"""
jaribu: a convention-based test runner for standalone Python scripts.

Public async staticmethods of a test class are its tests::

    import asyncio

    from jaribu import TestRunner

    class MathTests:
        @staticmethod
        async def adds():
            assert 1 + 1 == 2

    if __name__ == "__main__":
        raise SystemExit(asyncio.run(TestRunner().run_tests(MathTests)))
"""
from jaribu.exceptions import CommandExecutionError, ConfigurationError, DiscoveryError, JaribuError
from jaribu.markers import clean, clear_runfile_cache, inputs, skip, tag, timeout
from jaribu.registry import TestRegistry
from jaribu.results import TestOutcome, TestResult, TestRunSummary, TestSuiteSummary
from jaribu.runner import TestRunner

__all__ = [
    "CommandExecutionError",
    "ConfigurationError",
    "DiscoveryError",
    "JaribuError",
    "TestOutcome",
    "TestRegistry",
    "TestResult",
    "TestRunSummary",
    "TestRunner",
    "TestSuiteSummary",
    "clean",
    "clear_runfile_cache",
    "inputs",
    "skip",
    "tag",
    "timeout",
]

# 🔼⚙️
