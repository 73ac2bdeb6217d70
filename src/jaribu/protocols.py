#
# src/jaribu/protocols.py
#
"""
Protocols for the collaborators the test runner talks to.
"""
from pathlib import Path
from typing import Protocol, runtime_checkable

from attrs import define

from jaribu.results import TestResult, TestRunSummary, TestSuiteSummary


@define(frozen=True, slots=True)
class CommandResult:
    """
    Structured result from running an external command.
    """
    success: bool
    exit_code: int
    stdout: str
    stderr: str


@runtime_checkable
class CommandRunner(Protocol):
    """
    Protocol for something that can execute an external command.
    """
    async def run(
        self,
        command: list[str],
        working_dir: Path | None = None,
    ) -> CommandResult:
        """
        Runs the command and waits for it to finish.

        Args:
            command: The command and arguments to execute.
            working_dir: The directory from which to run the command.

        Returns:
            A CommandResult with the exit status and captured output.
        """
        ...


@runtime_checkable
class Cleaner(Protocol):
    """
    Protocol for the best-effort cache clean performed before a run.
    """
    async def run_clean(self, path: Path | str | None = None) -> bool:
        """
        Cleans the cache of the script at ``path``.

        Returns:
            True if a clean command ran and succeeded, False otherwise.
        """
        ...


@runtime_checkable
class ResultRenderer(Protocol):
    """
    Protocol for presenting live progress and final summaries.
    """
    def test_started(self, name: str, parameters: tuple | None = None) -> None: ...

    def test_finished(self, result: TestResult) -> None: ...

    def run_started(self, class_name: str, filter_tag: str | None) -> None: ...

    def print_results_table(self, summary: TestRunSummary) -> None: ...

    def print_suite_summary_table(self, summary: TestSuiteSummary) -> None: ...

    def warn(self, message: str) -> None: ...

# 🔼⚙️
