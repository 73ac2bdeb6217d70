#
# src/jaribu/rendering.py
#
"""
Rich-based console output: live status lines and summary tables.
"""
import re
from datetime import timedelta
from typing import Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from jaribu.results import TestOutcome, TestResult, TestRunSummary, TestSuiteSummary

DEFAULT_MAX_MESSAGE_WIDTH = 50
ELLIPSIS = "..."

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")

STATUS_CELLS = {
    TestOutcome.PASSED: Text("✓ Pass", style="green"),
    TestOutcome.FAILED: Text("X Fail", style="red"),
    TestOutcome.SKIPPED: Text("⚠ Skip", style="yellow"),
}


def format_test_name(name: str) -> str:
    """
    Turns a method name into readable words.

    ``parses_empty_input`` -> ``Parses Empty Input``;
    ``ParsesEmptyInput`` -> ``Parses Empty Input``.
    """
    spaced = _CAMEL_BOUNDARY.sub(" ", name.replace("_", " "))
    return " ".join(word[:1].upper() + word[1:] for word in spaced.split())


def format_parameters(parameters: tuple[Any, ...] | None) -> str:
    if not parameters:
        return ""
    return ", ".join("None" if p is None else str(p) for p in parameters)


def truncate(message: str, max_width: int = DEFAULT_MAX_MESSAGE_WIDTH) -> str:
    """Cuts ``message`` to ``max_width`` characters, ending with ``...``."""
    if len(message) <= max_width:
        return message
    keep = max(max_width - len(ELLIPSIS), 0)
    return message[:keep] + ELLIPSIS


def format_duration(duration: timedelta) -> str:
    return f"{duration.total_seconds():.2f}s"


def result_message(result: TestResult) -> str:
    if result.outcome is TestOutcome.PASSED:
        return "Completed successfully"
    if result.outcome is TestOutcome.SKIPPED:
        return result.failure_message or "Skipped"
    return result.failure_message or "Failed"


class ResultsRenderer:
    """Writes progress lines and result tables to a rich console."""

    def __init__(
        self,
        console: Console | None = None,
        max_message_width: int = DEFAULT_MAX_MESSAGE_WIDTH,
    ):
        self.console = console or Console()
        self.max_message_width = max_message_width

    # --- Live output ---
    def run_started(self, class_name: str, filter_tag: str | None) -> None:
        self.console.print(f"🧪 Testing {escape(class_name)}...")
        if filter_tag is not None:
            self.console.print(f"   (filtered by tag: {escape(filter_tag)})")
        self.console.print()

    def test_started(self, name: str, parameters: tuple | None = None) -> None:
        display = format_test_name(name)
        if parameters:
            display = f"{display} ({format_parameters(parameters)})"
        self.console.print(f"Test: {escape(display)}")

    def test_finished(self, result: TestResult) -> None:
        if result.outcome is TestOutcome.PASSED:
            self.console.print("  ✓ PASSED", style="green")
        elif result.outcome is TestOutcome.FAILED:
            self.console.print(f"  ✗ FAILED: {escape(result.failure_message or '')}", style="red")
        else:
            self.console.print(f"  ⚠ SKIPPED: {escape(result.failure_message or '')}", style="yellow")
        self.console.print()

    def warn(self, message: str) -> None:
        self.console.print(f"⚠ {escape(message)}", style="yellow")

    # --- Tables ---
    def build_results_table(self, summary: TestRunSummary) -> Table:
        table = Table(box=box.ROUNDED)
        table.add_column("Test")
        table.add_column("Status")
        table.add_column("Duration", justify="right")
        table.add_column("Message")

        for result in summary.results:
            table.add_row(
                format_test_name(result.name),
                STATUS_CELLS[result.outcome].copy(),
                format_duration(result.duration),
                Text(truncate(result_message(result), self.max_message_width)),
            )
        return table

    def print_results_table(self, summary: TestRunSummary) -> None:
        self.console.print()
        self.console.print(self.build_results_table(summary))
        self.console.print()
        self.console.print(f"[bold]Total:[/bold] {summary.total_tests}")
        self.console.print(f"[green]Passed:[/green] {summary.passed_count}")
        if summary.failed_count > 0:
            self.console.print(f"[red]Failed:[/red] {summary.failed_count}")
        if summary.skipped_count > 0:
            self.console.print(f"[yellow]Skipped:[/yellow] {summary.skipped_count}")

    def build_suite_table(self, summary: TestSuiteSummary) -> Table:
        table = Table(box=box.ROUNDED)
        table.add_column("Class")
        table.add_column("Passed", justify="right")
        table.add_column("Failed", justify="right")
        table.add_column("Skipped", justify="right")
        table.add_column("Total", justify="right")
        table.add_column("Duration", justify="right")

        for class_result in summary.class_results:
            table.add_row(
                Text(class_result.class_name),
                Text(str(class_result.passed_count), style="green"),
                Text(str(class_result.failed_count), style="red" if class_result.failed_count else ""),
                Text(str(class_result.skipped_count), style="yellow" if class_result.skipped_count else ""),
                str(class_result.total_tests),
                format_duration(class_result.total_duration),
            )
        return table

    def print_suite_summary_table(self, summary: TestSuiteSummary) -> None:
        self.console.print()
        self.console.print("[bold]Test Suite Summary[/bold]")
        self.console.print("=" * 60)
        self.console.print(self.build_suite_table(summary))
        self.console.print()

        overall = (
            "[bold green]ALL TESTS PASSED[/bold green]"
            if summary.success
            else "[bold red]TESTS FAILED[/bold red]"
        )
        self.console.print(f"[bold]Overall:[/bold] {overall}")
        self.console.print(f"[bold]Total Tests:[/bold] {summary.total_tests}")
        self.console.print(f"[green]Passed:[/green] {summary.passed_count}")
        if summary.failed_count > 0:
            self.console.print(f"[red]Failed:[/red] {summary.failed_count}")
        if summary.skipped_count > 0:
            self.console.print(f"[yellow]Skipped:[/yellow] {summary.skipped_count}")
        self.console.print(f"[bold]Duration:[/bold] {format_duration(summary.total_duration)}")


# 🔼⚙️
