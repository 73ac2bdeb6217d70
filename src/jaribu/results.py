#
# src/jaribu/results.py
#
"""
Immutable result models produced by a test run.
"""
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from attrs import define, field, validators


class TestOutcome(Enum):
    """Terminal classification of one test invocation."""

    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


def _to_tuple(value: Iterable[Any] | None) -> tuple[Any, ...] | None:
    if value is None:
        return None
    return tuple(value)


@define(frozen=True, slots=True)
class TestResult:
    """
    Outcome of a single test invocation.

    ``failure_message`` holds the error summary for failed tests and the
    reason for skipped ones. ``stack_trace`` is only set when a raised error
    caused the failure. ``parameters`` is only set for parameterized tests.
    """

    __test__ = False

    name: str
    outcome: TestOutcome = field(validator=validators.instance_of(TestOutcome))
    duration: timedelta = field(factory=timedelta)
    failure_message: str | None = field(default=None)
    stack_trace: str | None = field(default=None)
    parameters: tuple[Any, ...] | None = field(default=None, converter=_to_tuple)

    @failure_message.validator
    def _check_failure_message(self, attribute, value):
        if self.outcome is TestOutcome.PASSED and value is not None:
            raise ValueError("Passed results carry no failure_message")
        if self.outcome is not TestOutcome.PASSED and value is None:
            raise ValueError(f"{self.outcome.name} results need a failure_message")

    @stack_trace.validator
    def _check_stack_trace(self, attribute, value):
        if value is not None and self.outcome is not TestOutcome.FAILED:
            raise ValueError("Only failed results carry a stack_trace")

    @classmethod
    def passed(
        cls, name: str, duration: timedelta, parameters: Sequence[Any] | None = None
    ) -> "TestResult":
        return cls(name, TestOutcome.PASSED, duration, parameters=parameters or None)

    @classmethod
    def failed(
        cls,
        name: str,
        duration: timedelta,
        message: str,
        stack_trace: str | None = None,
        parameters: Sequence[Any] | None = None,
    ) -> "TestResult":
        return cls(
            name,
            TestOutcome.FAILED,
            duration,
            failure_message=message,
            stack_trace=stack_trace,
            parameters=parameters or None,
        )

    @classmethod
    def skipped(cls, name: str, reason: str) -> "TestResult":
        return cls(name, TestOutcome.SKIPPED, timedelta(0), failure_message=reason)


@define(frozen=True, slots=True)
class TestRunSummary:
    """Aggregated results for every test of one class."""

    __test__ = False

    class_name: str
    start_time: datetime
    total_duration: timedelta
    passed_count: int
    failed_count: int
    skipped_count: int
    results: tuple[TestResult, ...] = field(factory=tuple, converter=tuple)

    @classmethod
    def from_results(
        cls,
        class_name: str,
        start_time: datetime,
        total_duration: timedelta,
        results: Iterable[TestResult],
    ) -> "TestRunSummary":
        """Builds a summary whose counts are tallied from ``results``."""
        results = tuple(results)
        return cls(
            class_name=class_name,
            start_time=start_time,
            total_duration=total_duration,
            passed_count=sum(1 for r in results if r.outcome is TestOutcome.PASSED),
            failed_count=sum(1 for r in results if r.outcome is TestOutcome.FAILED),
            skipped_count=sum(1 for r in results if r.outcome is TestOutcome.SKIPPED),
            results=results,
        )

    @property
    def total_tests(self) -> int:
        return self.passed_count + self.failed_count + self.skipped_count

    @property
    def success(self) -> bool:
        """True when nothing failed; skipped tests do not count as failures."""
        return self.failed_count == 0


@define(frozen=True, slots=True)
class TestSuiteSummary:
    """Aggregated results across several test classes."""

    __test__ = False

    start_time: datetime
    total_duration: timedelta
    total_tests: int
    passed_count: int
    failed_count: int
    skipped_count: int
    class_results: tuple[TestRunSummary, ...] = field(factory=tuple, converter=tuple)

    @classmethod
    def from_class_results(
        cls,
        start_time: datetime,
        total_duration: timedelta,
        class_results: Iterable[TestRunSummary],
    ) -> "TestSuiteSummary":
        class_results = tuple(class_results)
        return cls(
            start_time=start_time,
            total_duration=total_duration,
            total_tests=sum(r.total_tests for r in class_results),
            passed_count=sum(r.passed_count for r in class_results),
            failed_count=sum(r.failed_count for r in class_results),
            skipped_count=sum(r.skipped_count for r in class_results),
            class_results=class_results,
        )

    @classmethod
    def empty(cls) -> "TestSuiteSummary":
        return cls(
            start_time=datetime.now(UTC),
            total_duration=timedelta(0),
            total_tests=0,
            passed_count=0,
            failed_count=0,
            skipped_count=0,
        )

    @property
    def success(self) -> bool:
        return self.failed_count == 0


# 🔼⚙️
