#
# src/jaribu/state.py
#
"""
Mutable progress counters for the test class currently being run.
"""

from enum import Enum, auto

import structlog
from attrs import field, mutable

from jaribu.results import TestOutcome, TestResult

log: structlog.stdlib.BoundLogger = structlog.get_logger("state")


class RunStatus(Enum):
    """Lifecycle of a single class run."""

    IDLE = auto()
    CLEANING = auto()
    RUNNING = auto()
    FINISHED = auto()


@mutable(slots=True)
class RunProgress:
    """
    Running tallies for one class run.

    Reset at the start of every class run. Not synchronized: only one run may
    use an instance at a time.
    """

    class_name: str | None = field(default=None)
    status: RunStatus = field(default=RunStatus.IDLE)
    current_test: str | None = field(default=None)
    total_tests: int = field(default=0)
    passed_count: int = field(default=0)
    failed_count: int = field(default=0)
    skipped_count: int = field(default=0)

    def reset(self, class_name: str) -> None:
        """Clears all counters before a new class run."""
        self.class_name = class_name
        self.status = RunStatus.IDLE
        self.current_test = None
        self.total_tests = 0
        self.passed_count = 0
        self.failed_count = 0
        self.skipped_count = 0

    def update_status(self, new_status: RunStatus) -> None:
        old_status = self.status
        if old_status == new_status:
            return
        self.status = new_status
        log.debug(
            "Run status changed",
            test_class=self.class_name,
            old_status=old_status.name,
            new_status=new_status.name,
        )

    def start_test(self, name: str) -> None:
        self.current_test = name

    def record(self, result: TestResult) -> None:
        """Counts one finished invocation."""
        self.total_tests += 1
        if result.outcome is TestOutcome.PASSED:
            self.passed_count += 1
        elif result.outcome is TestOutcome.FAILED:
            self.failed_count += 1
        else:
            self.skipped_count += 1
        self.current_test = None


# 🔼⚙️
